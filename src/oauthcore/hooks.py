"""Hook contracts and immutable server configuration.

Hooks are the functions the embedding application injects. The server
calls them but never implements their logic. Every hook may be a plain
function or a coroutine function; results are awaited when awaitable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from oauthcore.errors import ConfigurationError
from oauthcore.utils import ensure_callable

if TYPE_CHECKING:
    from oauthcore.server import OAuthServer

# (request, header_name) -> header value or None
GetRequestHeader = Callable[[Any, str], Any]
# (request, input_name) -> body/query value or None
GetRequestInput = Callable[[Any, str], Any]
# (credentials, GrantContext) -> mapping or pydantic model with access_token
GenerateToken = Callable[[Any, "GrantContext"], Any]
# (request, token, AccessContext) -> None, raises OAuthError(invalid_token)
CheckAccessToken = Callable[[Any, str, "AccessContext"], Any]
# (request, refresh_token) -> credentials, raises OAuthError(invalid_grant)
CheckRefreshToken = Callable[[Any, Any], Any]
# (request, GrantContext) -> ignored, raises OAuthError(invalid_client)
VerifyClient = Callable[[Any, "GrantContext"], Any]
# (request) -> token or None, replaces the default bearer extraction
GetToken = Callable[[Any], Any]
# (request, *args) -> exactly True to grant access
Authorizer = Callable[..., Any]

REQUIRED_HOOKS = (
    "get_request_header",
    "get_request_input",
    "generate_token",
    "check_access_token",
)
OPTIONAL_HOOKS = ("check_refresh_token", "get_token")


@dataclass(frozen=True)
class GrantContext:
    """Passed to verify_client and generate_token for the grant being served."""

    grant_type: str
    server: OAuthServer | None = None


@dataclass(frozen=True)
class AccessContext:
    """Passed to check_access_token."""

    token_type: str


async def accept_any_client(request: Any, context: GrantContext) -> bool:
    """Default verify_client hook: every client is accepted."""
    return True


@dataclass(frozen=True)
class ServerConfig:
    """Immutable server configuration.

    Required hooks are validated here so wiring mistakes surface when the
    server is built, not on the first request. Setters on OAuthServer swap
    in a new ServerConfig via ``dataclasses.replace``, which re-runs the
    validation.
    """

    get_request_header: GetRequestHeader | None = None
    get_request_input: GetRequestInput | None = None
    generate_token: GenerateToken | None = None
    check_access_token: CheckAccessToken | None = None
    check_refresh_token: CheckRefreshToken | None = None
    verify_client: VerifyClient = accept_any_client
    get_token: GetToken | None = None
    token_type: str = "Bearer"
    strict_authorizers: bool = False

    def __post_init__(self) -> None:
        missing = [name for name in REQUIRED_HOOKS if getattr(self, name) is None]
        if missing:
            raise ConfigurationError(f"Missing required hooks: {', '.join(missing)}")

        for name in (*REQUIRED_HOOKS, "verify_client", *OPTIONAL_HOOKS):
            value = getattr(self, name)
            if value is not None:
                ensure_callable(value, name)

        if not isinstance(self.token_type, str) or not self.token_type:
            raise ConfigurationError("token_type must be a non-empty string")
