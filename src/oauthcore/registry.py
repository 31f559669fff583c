"""Registries for grant authenticators and named authorizers.

Both are populated during setup and only read while serving requests, so
they hold no locks.
"""

from typing import Any

from oauthcore.errors import ConfigurationError
from oauthcore.hooks import Authorizer


class AuthenticatorRegistry:
    """Maps grant type names to authenticators."""

    def __init__(self):
        self.registered: dict[str, Any] = {}

    def register(self, grant_type: str, authenticator: Any) -> None:
        """Register an authenticator for a grant type.

        Any object with an ``authenticate(request, server)`` method is
        accepted. Registering the same grant type twice replaces the first.

        Raises:
            ConfigurationError: If the authenticator has no callable
                ``authenticate``.
        """
        if not callable(getattr(authenticator, "authenticate", None)):
            raise ConfigurationError(
                f"Authenticator for {grant_type!r} must implement "
                "authenticate(request, server)"
            )
        self.registered[grant_type] = authenticator

    def has(self, grant_type: str) -> bool:
        return grant_type in self.registered

    def get(self, grant_type: str) -> Any:
        """Return the authenticator for a grant type.

        Raises:
            KeyError: If nothing is registered under grant_type.
        """
        return self.registered[grant_type]

    def __contains__(self, grant_type: object) -> bool:
        return grant_type in self.registered

    def __len__(self) -> int:
        return len(self.registered)


class AuthorizerRegistry:
    """Maps authorizer names to predicates called as ``predicate(request, *args)``."""

    def __init__(self):
        self.registered: dict[str, Authorizer] = {}

    def register(self, name: str, authorizer: Authorizer) -> None:
        """Register a named authorizer.

        The predicate grants access only by returning exactly ``True``.

        Raises:
            ConfigurationError: If authorizer is not callable.
        """
        if not callable(authorizer):
            raise ConfigurationError(
                f"Authorizer {name!r} must be a function(request, *args)"
            )
        self.registered[name] = authorizer

    def has(self, name: str) -> bool:
        return name in self.registered

    def get(self, name: str) -> Authorizer:
        """Return the authorizer registered under name.

        Raises:
            KeyError: If nothing is registered under name.
        """
        return self.registered[name]

    def __contains__(self, name: object) -> bool:
        return name in self.registered

    def __len__(self) -> int:
        return len(self.registered)
