"""
Exception hierarchy and containment helpers.

Failures stop at the layer that sees them: one broken surface leaves its
siblings drawing, and a failed notification never reaches the fetch path.
"""

import logging
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _report(func: Callable, exc: Exception, level: int = logging.ERROR) -> None:
    name = getattr(func, "__name__", repr(func))
    logger.log(
        level,
        f"Error in {name}: {exc}",
        exc_info=True,
        extra={"boundary": getattr(func, "__qualname__", name)},
    )


def error_boundary(
    *,
    reraise: bool = False,
    default_return: Any = None,
    log_level: int = logging.ERROR,
) -> Callable[[F], F]:
    """
    Contain exceptions raised by the wrapped function.

    The error is logged with its traceback, then either re-raised or
    swapped for default_return.

    Example:
        >>> @error_boundary(default_return=False)
        ... def poll(monitor):
        ...     return monitor.check()
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def contained(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _report(func, e, log_level)
                if reraise:
                    raise
                return default_return

        return contained  # type: ignore

    return decorator


def safe_execute(
    func: Callable[[], Any],
    *,
    on_error: Optional[Callable[[Exception], Any]] = None,
    default: Any = None,
) -> Any:
    """Call func once; on failure log, notify on_error and return default."""
    try:
        return func()
    except Exception as e:
        _report(func, e)
        if on_error is not None:
            on_error(e)
        return default


class SignalHostError(Exception):
    """Root of every signalhost error."""


class ConfigurationError(SignalHostError):
    """Unreadable or invalid configuration."""


class FetchError(SignalHostError):
    """The remote metrics endpoint could not be used."""


class NetworkFailure(FetchError):
    """Timeout, refused connection or non-200 response."""


class ParseFailure(FetchError):
    """Response body is not a valid metrics document."""


class RenderFailure(SignalHostError):
    """A display surface could not draw itself."""


class BridgeError(SignalHostError):
    """A payload pushed from the web page is unusable."""
