"""Error taxonomy for the OAuth 2.0 server core.

OAuthError is the only vocabulary hooks and authenticators use to signal a
protocol failure back to the server. Anything else raised by a hook is an
unexpected fault and propagates untouched.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """OAuth 2.0 error codes (RFC 6749 Section 5.2, RFC 6750 Section 3.1)."""

    INVALID_REQUEST = "invalid_request"
    INVALID_CLIENT = "invalid_client"
    INVALID_GRANT = "invalid_grant"
    UNAUTHORIZED_CLIENT = "unauthorized_client"
    UNSUPPORTED_GRANT_TYPE = "unsupported_grant_type"
    INVALID_SCOPE = "invalid_scope"
    ACCESS_DENIED = "access_denied"
    INVALID_TOKEN = "invalid_token"

    @property
    def default_status(self) -> int:
        return DEFAULT_STATUS[self]


DEFAULT_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.INVALID_CLIENT: 400,
    ErrorCode.INVALID_GRANT: 400,
    ErrorCode.UNAUTHORIZED_CLIENT: 400,
    ErrorCode.UNSUPPORTED_GRANT_TYPE: 400,
    ErrorCode.INVALID_SCOPE: 400,
    ErrorCode.ACCESS_DENIED: 401,
    ErrorCode.INVALID_TOKEN: 401,
}


class OAuthError(Exception):
    """Protocol-level failure carrying an error code and an HTTP status.

    Raise it from hooks and authenticators:

        raise OAuthError("invalid_grant")
        raise OAuthError(ErrorCode.INVALID_REQUEST, status=401)

    Args:
        code: An ErrorCode or its string value.
        status: Overrides the code's default HTTP status.
        description: Optional human-readable ``error_description``.
        uri: Optional ``error_uri`` pointing at documentation.

    Raises:
        ValueError: If code is not one of the known error codes.
    """

    def __init__(
        self,
        code: ErrorCode | str,
        status: int | None = None,
        description: str | None = None,
        uri: str | None = None,
    ) -> None:
        self.code = ErrorCode(code)
        self.status = status if status is not None else self.code.default_status
        self.description = description
        self.uri = uri
        super().__init__(description or self.code.value)

    @property
    def error(self) -> str:
        return self.code.value

    def to_json_response(self) -> dict[str, Any]:
        """Serialize to the RFC 6749 error response body.

        Optional fields appear only when set.
        """
        body: dict[str, Any] = {"error": self.code.value}
        if self.description:
            body["error_description"] = self.description
        if self.uri:
            body["error_uri"] = self.uri
        return body

    def www_authenticate(self, token_type: str) -> str:
        """Build a ``WWW-Authenticate`` challenge value (RFC 6750 Section 3).

        A missing token gets the bare scheme, as RFC 6750 recommends that no
        error code is included when the request lacks authentication.
        """
        if self.code is ErrorCode.INVALID_REQUEST and self.status == 401:
            return token_type
        challenge = f'{token_type} error="{self.code.value}"'
        if self.description:
            challenge += f', error_description="{self.description}"'
        return challenge

    def __repr__(self) -> str:
        return f"OAuthError(code={self.code.value!r}, status={self.status})"


class ConfigurationError(Exception):
    """Raised when the server or an authenticator is wired up incorrectly.

    Always surfaces at construction or registration time, never per request.
    """

    pass
