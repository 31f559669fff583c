from typing import Any, Callable

from oauthcore.authenticators.base import FieldPairAuthenticator


class ClientCredentialsAuthenticator(FieldPairAuthenticator):
    """Client Credentials Grant (RFC 6749 Section 4.4) using client_id/client_secret.

    Register under ``client_credentials``. Clients authenticating some other
    way (HTTP Basic, assertions) should use a custom authenticator or the
    verify_client hook instead.
    """

    def __init__(
        self,
        verify: Callable[..., Any],
        *,
        client_id_field: str = "client_id",
        client_secret_field: str = "client_secret",
        pass_request: bool = False,
    ) -> None:
        super().__init__(verify, client_id_field, client_secret_field, pass_request)
