"""
Token endpoint and protected routes served with Starlette.

Shows how to bind OAuthServer to an HTTP framework: request accessors,
in-memory token storage, and an error handler that turns OAuthError into
RFC 6749 JSON error responses with a WWW-Authenticate challenge on 401.
Any other exception becomes a JSON 500 body.

Demo credentials come from the environment (a .env file works too):
OAUTHCORE_DEMO_USERNAME, OAUTHCORE_DEMO_PASSWORD, OAUTHCORE_DEMO_CLIENT_ID,
OAUTHCORE_DEMO_CLIENT_SECRET.

Run with: python -m oauthcore.examples.token_server
"""

from __future__ import annotations

import logging
import os
import secrets
import time
from dataclasses import dataclass, field
from typing import Any

import uvicorn
from dotenv import load_dotenv
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from oauthcore.authenticators.authorization_code import AuthorizationCodeAuthenticator
from oauthcore.authenticators.client_credentials import ClientCredentialsAuthenticator
from oauthcore.authenticators.password import PasswordAuthenticator
from oauthcore.bearer import parse_authorization_header
from oauthcore.errors import ErrorCode, OAuthError
from oauthcore.hooks import AccessContext, GrantContext
from oauthcore.server import OAuthServer

logger = logging.getLogger(__name__)

TOKEN_LIFETIME = 3 * 24 * 3600  # 3 days


@dataclass
class DemoSettings:
    username: str = "admin"
    password: str = "1234"
    client_id: str = "1111"
    client_secret: str = "******"
    guest_username: str = "guest"
    guest_password: str = "guest"
    authorization_code: str = "VALID_CODE"

    @classmethod
    def from_env(cls) -> DemoSettings:
        defaults = cls()
        return cls(
            username=os.getenv("OAUTHCORE_DEMO_USERNAME", defaults.username),
            password=os.getenv("OAUTHCORE_DEMO_PASSWORD", defaults.password),
            client_id=os.getenv("OAUTHCORE_DEMO_CLIENT_ID", defaults.client_id),
            client_secret=os.getenv(
                "OAUTHCORE_DEMO_CLIENT_SECRET", defaults.client_secret
            ),
        )


@dataclass
class TokenStore:
    """In-memory token storage. Real applications use a database."""

    access_tokens: dict[str, dict[str, Any]] = field(default_factory=dict)
    refresh_tokens: dict[str, dict[str, Any]] = field(default_factory=dict)

    def issue(self, subject: dict[str, Any], with_refresh: bool) -> dict[str, Any]:
        access_token = secrets.token_urlsafe(32)
        expires_at = time.time() + TOKEN_LIFETIME
        self.access_tokens[access_token] = {**subject, "expires_at": expires_at}

        result: dict[str, Any] = {
            "access_token": access_token,
            "expires_in": TOKEN_LIFETIME,
        }
        if with_refresh:
            refresh_token = secrets.token_urlsafe(32)
            self.refresh_tokens[refresh_token] = dict(subject)
            result["refresh_token"] = refresh_token
        return result

    def lookup_access(self, token: str) -> dict[str, Any] | None:
        subject = self.access_tokens.get(token)
        if subject is None or subject["expires_at"] < time.time():
            return None
        return subject

    def consume_refresh(self, token: str) -> dict[str, Any] | None:
        # Refresh tokens rotate: each one is good for a single use
        return self.refresh_tokens.pop(token, None)


# ================================
# Request accessors
# ================================


async def get_request_input(request: Request, name: str) -> str | None:
    """Body parameters for POST, query parameters otherwise."""
    if request.method == "POST":
        form = await request.form()
        value = form.get(name)
        return value if isinstance(value, str) else None
    return request.query_params.get(name)


def get_request_header(request: Request, name: str) -> str | None:
    return request.headers.get(name)


# ================================
# Server wiring
# ================================


def create_oauth_server(
    settings: DemoSettings | None = None, store: TokenStore | None = None
) -> OAuthServer:
    """Build an OAuthServer with the demo grants and hooks."""
    settings = settings or DemoSettings()
    store = store or TokenStore()

    async def generate_token(
        credentials: dict[str, Any], context: GrantContext
    ) -> dict[str, Any]:
        if context.grant_type == "client_credentials":
            # Application tokens carry their own type and no refresh token
            result = store.issue(credentials, with_refresh=False)
            result["token_type"] = "Basic"
            return result
        return store.issue(credentials, with_refresh=True)

    async def check_access_token(
        request: Request, token: str, context: AccessContext
    ) -> None:
        subject = store.lookup_access(token)
        if subject is None or "username" not in subject:
            raise OAuthError(ErrorCode.INVALID_TOKEN)
        request.state.subject = subject

    async def check_refresh_token(
        request: Request, token: str | None
    ) -> dict[str, Any]:
        subject = store.consume_refresh(token) if token else None
        if subject is None:
            raise OAuthError(ErrorCode.INVALID_GRANT)
        return subject

    async def verify_client(request: Request, context: GrantContext) -> None:
        # Only the authorization code grant requires a registered app token
        if context.grant_type != "authorization_code":
            return
        header = request.headers.get("Authorization")
        if not header:
            raise OAuthError(ErrorCode.INVALID_CLIENT)
        try:
            scheme, credentials = parse_authorization_header(header)
        except OAuthError:
            raise OAuthError(ErrorCode.INVALID_CLIENT) from None
        app = store.lookup_access(credentials) if scheme.lower() == "basic" else None
        if app is None or app.get("client_id") != settings.client_id:
            raise OAuthError(ErrorCode.INVALID_CLIENT)

    async def verify_password(username: str, password: str) -> dict[str, Any]:
        if username == settings.username and password == settings.password:
            return {"username": username, "role": "admin"}
        if username == settings.guest_username and password == settings.guest_password:
            return {"username": username, "role": "user"}
        raise OAuthError(ErrorCode.INVALID_GRANT)

    async def verify_client_secret(client_id: str, client_secret: str) -> dict[str, Any]:
        if client_id == settings.client_id and client_secret == settings.client_secret:
            return {"client_id": client_id}
        raise OAuthError(ErrorCode.INVALID_CLIENT)

    async def verify_code(code: str, redirect_uri: str) -> dict[str, Any]:
        if code == settings.authorization_code:
            return {"username": settings.username, "role": "admin"}
        raise OAuthError(ErrorCode.INVALID_GRANT)

    def is_admin(request: Request) -> bool:
        return request.state.subject.get("role") == "admin"

    server = OAuthServer(
        get_request_header=get_request_header,
        get_request_input=get_request_input,
        generate_token=generate_token,
        check_access_token=check_access_token,
        check_refresh_token=check_refresh_token,
        verify_client=verify_client,
    )
    server.add_authenticator("password", PasswordAuthenticator(verify_password))
    server.add_authenticator(
        "client_credentials", ClientCredentialsAuthenticator(verify_client_secret)
    )
    server.add_authenticator(
        "authorization_code", AuthorizationCodeAuthenticator(verify_code)
    )
    server.add_authorizer("admin", is_admin)
    return server


def create_app(server: OAuthServer | None = None) -> Starlette:
    """Create the Starlette application with token and protected endpoints."""
    server = server or create_oauth_server()

    async def token_endpoint(request: Request) -> Response:
        result = await server.authenticate(request)
        return JSONResponse(
            result, headers={"Cache-Control": "no-store", "Pragma": "no-cache"}
        )

    async def secure_endpoint(request: Request) -> Response:
        await server.authorize(request)
        return JSONResponse({"success": True})

    async def admin_endpoint(request: Request) -> Response:
        await server.authorize(request, "admin")
        return JSONResponse({"success": True, "admin": True})

    async def handle_oauth_error(request: Request, exc: OAuthError) -> Response:
        headers = {}
        if exc.status == 401:
            headers["WWW-Authenticate"] = exc.www_authenticate(server.get_token_type())
        return JSONResponse(exc.to_json_response(), status_code=exc.status, headers=headers)

    async def handle_unexpected_error(request: Request, exc: Exception) -> Response:
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse({"error": "server_error"}, status_code=500)

    routes = [
        Route("/token", token_endpoint, methods=["GET", "POST"]),
        Route("/secure", secure_endpoint, methods=["GET"]),
        Route("/admin", admin_endpoint, methods=["GET"]),
    ]

    app = Starlette(
        routes=routes,
        exception_handlers={
            OAuthError: handle_oauth_error,
            Exception: handle_unexpected_error,
        },
    )
    app.state.oauth_server = server
    return app


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    host = os.getenv("OAUTHCORE_HOST", "127.0.0.1")
    port = int(os.getenv("OAUTHCORE_PORT", "8000"))
    app = create_app(create_oauth_server(DemoSettings.from_env()))

    logger.info(f"Serving token endpoint on http://{host}:{port}/token")
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
