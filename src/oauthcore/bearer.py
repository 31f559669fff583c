"""Bearer token extraction (RFC 6750 Sections 2.1 and 2.3).

Looks for the token in the ``access_token`` request input first, then in
the ``Authorization`` header.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from oauthcore.errors import ErrorCode, OAuthError

if TYPE_CHECKING:
    from oauthcore.server import OAuthServer

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def parse_authorization_header(header: str) -> tuple[str, str]:
    """Split an ``Authorization`` header into scheme and credentials.

    Raises:
        OAuthError: invalid_token unless the header is exactly two parts
            separated by a single space.
    """
    parts = header.split(" ")
    if len(parts) != 2:
        raise OAuthError(ErrorCode.INVALID_TOKEN)
    return parts[0], parts[1]


async def get_bearer_token(server: OAuthServer, request: Any) -> str | None:
    """Return the bearer token carried by the request, or None.

    A header with another scheme (e.g. ``Basic``) yields None rather than an
    error, so the caller reports a missing token.

    Raises:
        OAuthError: invalid_token if the Authorization header is malformed.
    """
    token = await server.get_request_input(request, "access_token")
    if token:
        return token

    header = await server.get_request_header(request, "Authorization")
    if not isinstance(header, str):
        return None

    scheme, credentials = parse_authorization_header(header)
    if scheme.lower() == BEARER_SCHEME:
        return credentials

    logger.debug(f"Ignoring Authorization header with scheme {scheme!r}")
    return None
