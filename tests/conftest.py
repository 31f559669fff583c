from dataclasses import dataclass, field
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from oauthcore.server import OAuthServer


@dataclass
class FakeRequest:
    """Stand-in for a transport request: plain dicts for inputs and headers."""

    inputs: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, Any] = field(default_factory=dict)


def get_request_input(request: FakeRequest, name: str) -> Any:
    return request.inputs.get(name)


def get_request_header(request: FakeRequest, name: str) -> Any:
    return request.headers.get(name)


@pytest.fixture
def make_request() -> Callable[..., FakeRequest]:
    def _make(
        inputs: dict[str, Any] | None = None, headers: dict[str, Any] | None = None
    ) -> FakeRequest:
        return FakeRequest(inputs=inputs or {}, headers=headers or {})

    return _make


@pytest.fixture
def make_server() -> Callable[..., OAuthServer]:
    """Build an OAuthServer wired to FakeRequest with AsyncMock hooks.

    Keyword arguments override any hook or option.
    """

    def _make(**overrides: Any) -> OAuthServer:
        options: dict[str, Any] = {
            "get_request_header": get_request_header,
            "get_request_input": get_request_input,
            "generate_token": AsyncMock(return_value={"access_token": "access-123"}),
            "check_access_token": AsyncMock(return_value=None),
        }
        options.update(overrides)
        return OAuthServer(**options)

    return _make
