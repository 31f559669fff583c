from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

from oauthcore.authenticators.base import GrantAuthenticator
from oauthcore.utils import ensure_callable, maybe_await

if TYPE_CHECKING:
    from oauthcore.server import OAuthServer


class CallbackAuthenticator(GrantAuthenticator):
    """Custom grant backed by a single callable.

    For extension grants (RFC 6749 Section 4.5) that don't fit the
    two-field shape. ``callback(request, server)`` reads whatever it needs
    through the server and returns the credentials.
    """

    def __init__(self, callback: Callable[[Any, OAuthServer], Any]) -> None:
        self._callback = ensure_callable(callback, "callback")

    async def authenticate(self, request: Any, server: OAuthServer) -> Any:
        return await maybe_await(self._callback, request, server)
