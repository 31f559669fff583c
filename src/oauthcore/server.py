"""OAuth 2.0 server core: grant dispatch and access authorization.

Implements the token endpoint flow of RFC 6749 and bearer token checks of
RFC 6750 without owning any storage, crypto or transport. The embedding
application supplies those through hooks.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from oauthcore.bearer import get_bearer_token
from oauthcore.errors import ErrorCode, OAuthError
from oauthcore.hooks import (
    AccessContext,
    Authorizer,
    CheckAccessToken,
    CheckRefreshToken,
    GenerateToken,
    GetRequestHeader,
    GetRequestInput,
    GetToken,
    GrantContext,
    ServerConfig,
    VerifyClient,
    accept_any_client,
)
from oauthcore.models.tokens import TokenResult
from oauthcore.registry import AuthenticatorRegistry, AuthorizerRegistry
from oauthcore.utils import ensure_callable, maybe_await

logger = logging.getLogger(__name__)

REFRESH_TOKEN_GRANT = "refresh_token"


class OAuthServer:
    """Dispatches token requests to grant authenticators and guards resources.

    Two operations face the transport layer:

    - ``authenticate(request)``: the token endpoint. Verifies the client,
      verifies the grant, generates a token and returns the normalized
      response body.
    - ``authorize(request, name=None, *args)``: resource protection. Checks
      the bearer token, then optionally a named authorizer.

    Both raise OAuthError for protocol failures. Any other exception raised
    by a hook propagates unchanged.

    The server keeps no per-request state, so one instance can serve any
    number of concurrent requests. Register authenticators and authorizers
    before serving traffic.

    Args:
        get_request_header: ``(request, name) -> value``.
        get_request_input: ``(request, name) -> value`` from body or query.
        generate_token: ``(credentials, GrantContext) -> mapping`` with at
            least ``access_token``.
        check_access_token: ``(request, token, AccessContext)``; raises
            ``OAuthError("invalid_token")`` for bad tokens.
        check_refresh_token: ``(request, refresh_token) -> credentials``.
            Without it the refresh_token grant is unsupported.
        verify_client: ``(request, GrantContext)``; raises
            ``OAuthError("invalid_client")``. Called for every grant,
            including refresh_token. Accepts every client by default.
        get_token: ``(request) -> token``; replaces bearer token extraction.
        token_type: Token type placed in responses. Defaults to "Bearer".
        strict_authorizers: Deny access when ``authorize`` names an
            authorizer that was never registered.

    Raises:
        ConfigurationError: If a required hook is missing or not callable.
    """

    def __init__(
        self,
        *,
        get_request_header: GetRequestHeader | None = None,
        get_request_input: GetRequestInput | None = None,
        generate_token: GenerateToken | None = None,
        check_access_token: CheckAccessToken | None = None,
        check_refresh_token: CheckRefreshToken | None = None,
        verify_client: VerifyClient | None = None,
        get_token: GetToken | None = None,
        token_type: str = "Bearer",
        strict_authorizers: bool = False,
    ) -> None:
        self._config = ServerConfig(
            get_request_header=get_request_header,
            get_request_input=get_request_input,
            generate_token=generate_token,
            check_access_token=check_access_token,
            check_refresh_token=check_refresh_token,
            verify_client=verify_client or accept_any_client,
            get_token=get_token,
            token_type=token_type,
            strict_authorizers=strict_authorizers,
        )
        self.authenticators = AuthenticatorRegistry()
        self.authorizers = AuthorizerRegistry()

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def token_type(self) -> str:
        return self._config.token_type

    def get_token_type(self) -> str:
        """Token type for building ``WWW-Authenticate`` challenges on 401."""
        return self._config.token_type

    # ================================
    # Hook setters
    # ================================

    def _replace_hook(self, name: str, hook: Any) -> None:
        self._config = replace(self._config, **{name: ensure_callable(hook, name)})

    def set_get_request_header(self, hook: GetRequestHeader) -> None:
        self._replace_hook("get_request_header", hook)

    def set_get_request_input(self, hook: GetRequestInput) -> None:
        self._replace_hook("get_request_input", hook)

    def set_generate_token(self, hook: GenerateToken) -> None:
        self._replace_hook("generate_token", hook)

    def set_check_access_token(self, hook: CheckAccessToken) -> None:
        """Set the access token check.

        The hook raises ``OAuthError("invalid_token")`` for an invalid token.
        """
        self._replace_hook("check_access_token", hook)

    def set_check_refresh_token(self, hook: CheckRefreshToken) -> None:
        """Set the refresh token check, enabling the refresh_token grant.

        The hook raises ``OAuthError("invalid_grant")`` for an invalid
        refresh token and otherwise returns the credentials for
        generate_token.
        """
        self._replace_hook("check_refresh_token", hook)

    def set_verify_client(self, hook: VerifyClient) -> None:
        """Set the client verification run before every grant.

        On failure the hook raises ``OAuthError("invalid_client")``. Setting
        the ``WWW-Authenticate`` scheme expected by the client is the
        transport's job.
        """
        self._replace_hook("verify_client", hook)

    def set_get_token(self, hook: GetToken) -> None:
        self._replace_hook("get_token", hook)

    # ================================
    # Registration
    # ================================

    def add_authenticator(self, grant_type: str, authenticator: Any) -> None:
        """Register the authenticator serving grant_type.

        ``refresh_token`` is handled by check_refresh_token and cannot be
        overridden here.

        Raises:
            ConfigurationError: If authenticator has no ``authenticate`` method.
        """
        if grant_type == REFRESH_TOKEN_GRANT:
            logger.warning(
                "Authenticator registered for 'refresh_token' will never be "
                "called; use check_refresh_token instead"
            )
        self.authenticators.register(grant_type, authenticator)

    def add_authorizer(self, name: str, authorizer: Authorizer) -> None:
        """Register a named authorizer for ``authorize(request, name, *args)``.

        Raises:
            ConfigurationError: If authorizer is not callable.
        """
        self.authorizers.register(name, authorizer)

    # ================================
    # Request accessors
    # ================================

    async def get_request_header(self, request: Any, name: str) -> Any:
        return await maybe_await(self._config.get_request_header, request, name)

    async def get_request_input(self, request: Any, name: str) -> Any:
        return await maybe_await(self._config.get_request_input, request, name)

    # ================================
    # Token endpoint
    # ================================

    async def authenticate(self, request: Any) -> dict[str, Any]:
        """Run the token endpoint flow for request.

        Steps, in order: read grant_type, verify the client, verify the
        grant (refresh token check or registered authenticator), generate
        the token and normalize it.

        Returns:
            The response body: access_token and token_type always; expires_in,
            refresh_token and scope only when generate_token provided them.

        Raises:
            OAuthError: unsupported_grant_type for a missing or unknown grant
                type, invalid_grant for a malformed token result, or whatever
                the hooks and authenticators raise.
        """
        config = self._config

        grant_type = await self.get_request_input(request, "grant_type")
        if not grant_type:
            logger.debug("Token request without grant_type")
            raise OAuthError(ErrorCode.UNSUPPORTED_GRANT_TYPE)

        context = GrantContext(grant_type=grant_type, server=self)
        await maybe_await(config.verify_client, request, context)
        logger.debug(f"Client verified for grant_type={grant_type}")

        if grant_type == REFRESH_TOKEN_GRANT:
            if config.check_refresh_token is None:
                logger.debug("refresh_token grant requested but not configured")
                raise OAuthError(ErrorCode.UNSUPPORTED_GRANT_TYPE)
            refresh_token = await self.get_request_input(request, "refresh_token")
            credentials = await maybe_await(
                config.check_refresh_token, request, refresh_token
            )
        else:
            if not self.authenticators.has(grant_type):
                logger.debug(f"No authenticator registered for {grant_type!r}")
                raise OAuthError(ErrorCode.UNSUPPORTED_GRANT_TYPE)
            authenticator = self.authenticators.get(grant_type)
            credentials = await authenticator.authenticate(request, self)
        logger.debug(f"Grant verified for grant_type={grant_type}")

        result = await maybe_await(config.generate_token, credentials, context)
        token = TokenResult.from_hook_result(result)

        logger.info(f"Issued access token for grant_type={grant_type}")
        return token.to_response(config.token_type)

    # ================================
    # Resource protection
    # ================================

    async def get_access_token(self, request: Any) -> str | None:
        """Extract the access token with get_token or the bearer extractor."""
        if self._config.get_token is not None:
            return await maybe_await(self._config.get_token, request)
        return await get_bearer_token(self, request)

    async def authorize(self, request: Any, name: str | None = None, *args: Any) -> None:
        """Check that request carries a valid access token and passes name.

        Args:
            request: The transport's request object.
            name: Optional authorizer to run after the token check.
            *args: Extra arguments passed to the authorizer.

        Raises:
            OAuthError: invalid_request (401) when no token is present,
                access_denied (401) when the authorizer does not return
                exactly True, or whatever check_access_token raises.
        """
        config = self._config

        access_token = await self.get_access_token(request)
        if not access_token:
            raise OAuthError(ErrorCode.INVALID_REQUEST, status=401)

        await maybe_await(
            config.check_access_token,
            request,
            access_token,
            AccessContext(token_type=config.token_type),
        )

        if not name:
            return

        if not self.authorizers.has(name):
            if config.strict_authorizers:
                logger.error(
                    f'authorize() called with name "{name}", but no authorizer '
                    "with this name was registered; denying access"
                )
                raise OAuthError(ErrorCode.ACCESS_DENIED, status=401)
            logger.warning(
                f'authorize() called with name "{name}", but no authorizer '
                "with this name was registered"
            )
            return

        access = await maybe_await(self.authorizers.get(name), request, *args)
        if access is not True:
            logger.debug(f"Authorizer {name!r} denied access")
            raise OAuthError(ErrorCode.ACCESS_DENIED, status=401)
