"""Retry logic with exponential backoff for idempotent Google API calls."""
from __future__ import annotations

import random
import time
from functools import wraps
from typing import Callable, TypeVar

from .logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


def is_retryable_error(exc: Exception) -> bool:
    """Classify an exception as transient (rate limit, timeout, server error)."""
    status = getattr(getattr(exc, "resp", None), "status", None)
    try:
        if status is not None and int(status) in _RETRYABLE_STATUSES:
            return True
    except (TypeError, ValueError):
        pass

    error_str = str(exc).lower()
    is_rate_limit = any(
        pattern in error_str
        for pattern in ["rate_limit", "ratelimit", "429", "too many requests", "quota"]
    )
    is_timeout = any(
        pattern in error_str
        for pattern in ["timeout", "timed out", "deadline"]
    )
    is_server_error = any(
        pattern in error_str
        for pattern in ["500", "502", "503", "504", "server error", "backend error"]
    )
    return is_rate_limit or is_timeout or is_server_error


def with_exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    jitter: bool = True,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Decorator that retries a synchronous call on transient failures.

    Only wrap idempotent calls (document reads). Batch updates are never retried.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay cap in seconds (default: 30.0)
        jitter: Add randomization to the delay (default: True)
        sleep: Sleep function, injectable for tests
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args, **kwargs) -> T:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as exc:
                    retryable = is_retryable_error(exc)
                    if not retryable or attempt == max_retries:
                        if not retryable:
                            logger.error("non_retryable_error", call=func.__name__, error=str(exc))
                        else:
                            logger.error("max_retries_reached", call=func.__name__, error=str(exc))
                        raise

                    delay = min(base_delay * (2 ** attempt), max_delay)
                    if jitter:
                        delay = delay * (0.5 + random.random())

                    logger.warning(
                        "retrying_call",
                        call=func.__name__,
                        attempt=attempt + 1,
                        max_attempts=max_retries + 1,
                        error=str(exc),
                        delay_seconds=round(delay, 2),
                    )
                    sleep(delay)
            raise AssertionError("unreachable")

        return wrapper
    return decorator
