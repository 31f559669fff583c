"""
HTTP client for the example token server.

Requests tokens with the password, client credentials and refresh token
grants, and calls bearer-protected routes.

Run against a running token_server with:
python -m oauthcore.examples.token_client http://127.0.0.1:8000
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any

import httpx
from pydantic import ValidationError

from oauthcore.errors import OAuthError
from oauthcore.models.tokens import TokenResult

logger = logging.getLogger(__name__)


class TokenClientError(Exception):
    """Raised when the server can't be reached or answers with garbage."""

    pass


class TokenClient:
    """Talks to a token endpoint using form-encoded requests (RFC 6749 Section 4).

    Error responses from the server are raised as OAuthError with the
    server's error code and status.
    """

    def __init__(
        self,
        base_url: str,
        token_path: str = "/token",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.token_path = token_path
        self._http_client = http_client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout
        )

    async def password_grant(self, username: str, password: str) -> TokenResult:
        return await self._request_token(
            {"grant_type": "password", "username": username, "password": password}
        )

    async def client_credentials_grant(
        self, client_id: str, client_secret: str
    ) -> TokenResult:
        return await self._request_token(
            {
                "grant_type": "client_credentials",
                "client_id": client_id,
                "client_secret": client_secret,
            }
        )

    async def refresh(self, refresh_token: str) -> TokenResult:
        return await self._request_token(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )

    async def get_protected(self, path: str, access_token: str) -> Any:
        """GET a bearer-protected route and return its JSON body.

        Raises:
            OAuthError: If the server rejects the token.
            TokenClientError: On network or parsing failures.
        """
        try:
            response = await self._http_client.get(
                path, headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            raise TokenClientError(f"HTTP error calling {path}: {e}") from e

        if response.status_code != 200:
            raise self._error_from_response(response)
        return response.json()

    async def _request_token(self, form_data: dict[str, str]) -> TokenResult:
        logger.debug(f"Token request: grant_type={form_data['grant_type']}")

        try:
            response = await self._http_client.post(
                self.token_path,
                data=form_data,
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise TokenClientError(f"HTTP error during token request: {e}") from e

        if response.status_code != 200:
            raise self._error_from_response(response)

        try:
            return TokenResult.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise TokenClientError(f"Invalid token response format: {e}") from e

    def _error_from_response(self, response: httpx.Response) -> Exception:
        """Map an RFC 6749 Section 5.2 error body back onto OAuthError."""
        try:
            body = response.json()
            error = OAuthError(
                body["error"],
                status=response.status_code,
                description=body.get("error_description"),
                uri=body.get("error_uri"),
            )
        except (ValueError, KeyError, TypeError):
            return TokenClientError(
                f"Unexpected {response.status_code} response: {response.text}"
            )

        logger.warning(f"Request failed with {response.status_code}: {error.error}")
        return error

    async def close(self) -> None:
        """Close the HTTP client and clean up resources."""
        await self._http_client.aclose()


async def main(base_url: str) -> None:
    client = TokenClient(base_url)
    try:
        token = await client.password_grant("admin", "1234")
        print(f"Access token: {token.access_token} ({token.token_type})")
        print(await client.get_protected("/secure", token.access_token))
        if token.refresh_token:
            refreshed = await client.refresh(token.refresh_token)
            print(f"Refreshed access token: {refreshed.access_token}")
    finally:
        await client.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8000"))
