import inspect
from typing import Any, Callable

from oauthcore.errors import ConfigurationError


async def maybe_await(func: Callable[..., Any], *args: Any) -> Any:
    """Call a hook that may be a plain function or a coroutine function.

    Returns the hook's result, awaiting it first if it is awaitable.
    """
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result


def ensure_callable(value: Any, name: str) -> Callable[..., Any]:
    """Return value unchanged, or raise ConfigurationError if it is not callable."""
    if not callable(value):
        raise ConfigurationError(
            f"{name} must be callable, got {type(value).__name__}"
        )
    return value
