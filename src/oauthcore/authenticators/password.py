from typing import Any, Callable

from oauthcore.authenticators.base import FieldPairAuthenticator


class PasswordAuthenticator(FieldPairAuthenticator):
    """Resource Owner Password Credentials Grant (RFC 6749 Section 4.3).

    Register under ``password``. ``verify(username, password)`` should raise
    ``OAuthError("invalid_grant")`` on bad credentials.
    """

    def __init__(
        self,
        verify: Callable[..., Any],
        *,
        username_field: str = "username",
        password_field: str = "password",
        pass_request: bool = False,
    ) -> None:
        super().__init__(verify, username_field, password_field, pass_request)
