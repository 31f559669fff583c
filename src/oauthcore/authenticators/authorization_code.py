from typing import Any, Callable

from oauthcore.authenticators.base import FieldPairAuthenticator


class AuthorizationCodeAuthenticator(FieldPairAuthenticator):
    """Authorization Code Grant (RFC 6749 Section 4.1.3).

    Register under ``authorization_code``. ``verify(code, redirect_uri)``
    checks the code was issued for that redirect URI and returns whatever
    identity generate_token needs.
    """

    def __init__(
        self,
        verify: Callable[..., Any],
        *,
        code_field: str = "code",
        redirect_uri_field: str = "redirect_uri",
        pass_request: bool = False,
    ) -> None:
        super().__init__(verify, code_field, redirect_uri_field, pass_request)
