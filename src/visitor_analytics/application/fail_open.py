"""Fail-open wrapper for best-effort operations.

Analytics must never block the page or the dashboard: an operation that
fails is logged and replaced by its documented zero value.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

from visitor_analytics.domain.errors import StoreUnavailableError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def fail_open(
    fallback: Callable[[Exception], T],
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """Decorate a coroutine so any exception yields ``fallback(exc)`` instead.

    ``StoreUnavailableError`` is expected during store outages and is logged
    as a warning without a traceback; anything else is logged as an error
    with the traceback.

    Args:
        fallback: Builds the substitute result from the caught exception.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return await func(*args, **kwargs)
            except StoreUnavailableError as e:
                logger.warning(f"{func.__qualname__}: {e}, using default")
                return fallback(e)
            except Exception as e:
                logger.error(f"{func.__qualname__} failed, using default: {e}", exc_info=True)
                return fallback(e)

        return wrapper

    return decorator
