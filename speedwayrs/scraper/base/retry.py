"""Retry decorator with fixed or exponential backoff."""
import asyncio
import functools
import itertools
import logging
from typing import TypeVar, Callable, Any, Optional

logger = logging.getLogger(__name__)
F = TypeVar('F', bound=Callable[..., Any])


def with_retry(
    max_attempts: Optional[int] = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential: bool = True,
    exceptions: tuple = (Exception,)
) -> Callable[[F], F]:
    """Decorator for async functions that retries on the given exceptions.

    ``max_attempts=None`` retries forever.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempts = itertools.count(1) if max_attempts is None else range(1, max_attempts + 1)

            for attempt in attempts:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if max_attempts is not None and attempt == max_attempts:
                        logger.error(f"{func.__name__} failed after {max_attempts} attempts")
                        raise

                    if exponential:
                        delay = min(base_delay * (2 ** (attempt - 1)), max_delay)
                    else:
                        delay = base_delay
                    logger.warning(
                        f"{func.__name__} attempt {attempt} failed: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )
                    await asyncio.sleep(delay)

        return wrapper
    return decorator
