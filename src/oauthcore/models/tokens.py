"""Token result model for the token endpoint.

Validates what the generate_token hook returns and renders the normalized
RFC 6749 Section 5.1 response.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from oauthcore.errors import ErrorCode, OAuthError


class TokenResult(BaseModel):
    """Successful access token response (RFC 6749 Section 5.1).

    Keys the hook returns beyond these fields are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str
    # Passed through exactly as the hook returned them
    token_type: Any = None
    expires_in: Any = None  # Seconds until expiry
    refresh_token: Any = None
    scope: Any = None

    @classmethod
    def from_hook_result(cls, result: Any) -> TokenResult:
        """Coerce a generate_token result into a TokenResult.

        Accepts a mapping or a pydantic model.

        Raises:
            OAuthError: invalid_grant if the result is not structured or has
                no string access_token.
        """
        if isinstance(result, BaseModel):
            result = result.model_dump()
        if not isinstance(result, Mapping):
            raise OAuthError(ErrorCode.INVALID_GRANT)

        try:
            return cls.model_validate(dict(result))
        except ValidationError as e:
            raise OAuthError(
                ErrorCode.INVALID_GRANT, description="Token generation failed"
            ) from e

    def to_response(self, default_token_type: str) -> dict[str, Any]:
        """Render the response body.

        token_type falls back to default_token_type. Optional fields that are
        absent are omitted rather than set to null.
        """
        response: dict[str, Any] = {
            "access_token": self.access_token,
            "token_type": self.token_type or default_token_type,
        }
        for field in ("expires_in", "refresh_token", "scope"):
            value = getattr(self, field)
            if value is not None:
                response[field] = value
        return response
