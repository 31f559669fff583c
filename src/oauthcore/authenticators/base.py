"""Base classes for grant authenticators.

A grant authenticator turns the request for one grant type into opaque
credentials that the server hands to generate_token. The built-in variants
only extract fields and delegate verification to an injected function.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

from oauthcore.errors import ErrorCode, OAuthError
from oauthcore.utils import ensure_callable, maybe_await

if TYPE_CHECKING:
    from oauthcore.server import OAuthServer

logger = logging.getLogger(__name__)


class GrantAuthenticator(ABC):
    """Verifies the credentials presented for a single grant type."""

    @abstractmethod
    async def authenticate(self, request: Any, server: OAuthServer) -> Any:
        """Return the credentials to hand to generate_token.

        Args:
            request: The transport's request object, opaque to the server.
            server: The server dispatching the request. Use its
                get_request_input/get_request_header to read the request.

        Raises:
            OAuthError: invalid_grant, invalid_client or invalid_request if
                the grant cannot be verified.
        """


class FieldPairAuthenticator(GrantAuthenticator):
    """Reads two required request inputs and passes them to ``verify``.

    ``verify`` is called as ``verify(first, second)``, or as
    ``verify(request, first, second)`` when ``pass_request`` is True. Its
    return value is passed through unchanged.
    """

    def __init__(
        self,
        verify: Callable[..., Any],
        first_field: str,
        second_field: str,
        pass_request: bool = False,
    ) -> None:
        self._verify = ensure_callable(verify, "verify")
        self._first_field = first_field
        self._second_field = second_field
        self._pass_request = pass_request

    @property
    def fields(self) -> tuple[str, str]:
        return self._first_field, self._second_field

    @property
    def pass_request(self) -> bool:
        return self._pass_request

    async def authenticate(self, request: Any, server: OAuthServer) -> Any:
        first = await server.get_request_input(request, self._first_field)
        second = await server.get_request_input(request, self._second_field)

        if not first or not second:
            logger.debug(
                f"{type(self).__name__} missing "
                f"{self._first_field!r} or {self._second_field!r}"
            )
            raise OAuthError(ErrorCode.INVALID_GRANT)

        if self._pass_request:
            return await maybe_await(self._verify, request, first, second)
        return await maybe_await(self._verify, first, second)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(fields={self.fields!r}, "
            f"pass_request={self._pass_request})"
        )
