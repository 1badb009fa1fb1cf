"""
Common utilities and helper functions for the flash-loan toolkit.

Formatting helpers, context-aware loggers and the async retry wrapper used
by the price-discovery path.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

T = TypeVar("T")


# Time utilities
def format_duration(seconds: float) -> str:
    """Format duration in seconds to human-readable string."""
    if seconds < 60:
        return f"{seconds:.2f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


# Math utilities
def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp value between min and max bounds."""
    return max(min_val, min(value, max_val))


def parse_bool(value: Union[str, bool, None], default: bool = False) -> bool:
    """Interpret common truthy strings ("true", "1", "yes", "on")."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return value.strip().lower() in ("1", "true", "yes", "on")


# Logging utilities
class ContextLoggerAdapter(logging.LoggerAdapter):
    """Prefixes every message with ``[context]`` so components are easy to grep."""

    def process(self, msg, kwargs):
        context = self.extra.get("context")
        if context:
            msg = f"[{context}] {msg}"
        return msg, kwargs


def get_logger(
    name: str,
    context: Optional[str] = None,
    level: Union[str, int, None] = None,
) -> Union[logging.Logger, logging.LoggerAdapter]:
    """
    Get a logger, optionally tagged with a component context.

    Handlers and formatting are owned by ``logging_config.setup``; this
    helper only names the logger and wraps it when a context is given.

    Args:
        name: Logger name (typically __name__)
        context: Component tag prepended to every message, e.g. "SwapExecutor"
        level: Optional level override for this logger

    Returns:
        Plain logger, or a ContextLoggerAdapter when context is set
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    if context:
        return ContextLoggerAdapter(logger, {"context": context})
    return logger


# Retry utilities
async def with_retry(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay_ms: int = 1000,
    logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Run ``operation`` up to ``attempts`` times with linear backoff.

    The wait before retry ``n`` (1-based attempt that failed) is
    ``base_delay_ms * n`` milliseconds. The last error is re-raised.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Maximum number of calls (must be >= 1)
        base_delay_ms: Base delay in milliseconds
        logger: Where to report failed attempts
        sleep: Awaitable sleep function (injectable for tests)

    Returns:
        The first successful result
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    log = logger or logging.getLogger(__name__)
    last_error: Optional[BaseException] = None

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            log.warning(f"Attempt {attempt}/{attempts} failed: {e}")
            if attempt < attempts:
                await sleep(base_delay_ms * attempt / 1000.0)

    assert last_error is not None
    raise last_error
