import asyncio
import functools
import random
from typing import Callable, Optional
from sqlalchemy.exc import DBAPIError, OperationalError
from eshop.common.logging_setup import get_logger

logger = get_logger("eshop.retries")

# substrings of driver exception class names that mean "try again"
_TRANSIENT_DRIVER_ERRORS = (
    "timeout", "connection", "brokenpipe", "deadlock", "serialization",
)


def is_recoverable_exception(exc: BaseException) -> bool:
    if isinstance(exc, asyncio.CancelledError):
        return False
    if isinstance(exc, (TimeoutError, ConnectionError, OperationalError)):
        return True
    if not isinstance(exc, DBAPIError):
        return False
    if exc.connection_invalidated:
        return True
    driver_error = type(exc.orig).__name__.lower() if exc.orig is not None else ""
    return any(marker in driver_error for marker in _TRANSIENT_DRIVER_ERRORS)


def _backoff(attempt: int, base_delay: float, factor: float, max_delay: float, jitter: float) -> float:
    delay = min(max_delay, base_delay * (factor ** (attempt - 1)))
    return max(0.0, delay + random.uniform(-jitter * delay, jitter * delay))


def retry_async(
    *,
    attempts: int = 3,
    base_delay: float = 0.1,
    factor: float = 2.0,
    max_delay: float = 1.0,
    jitter: float = 0.15,
    if_retryable: Optional[Callable[[BaseException], bool]] = None,
    per_attempt_timeout: Optional[float] = None,
):
    """Retry an all-or-nothing coroutine on transient storage errors.

    The wrapped coroutine must roll back its own unit of work before raising,
    otherwise a retry could observe half applied state.
    """
    should_retry = if_retryable or is_recoverable_exception

    def deco(fn: Callable):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                attempt += 1
                try:
                    call = fn(*args, **kwargs)
                    if per_attempt_timeout:
                        return await asyncio.wait_for(call, timeout=per_attempt_timeout)
                    return await call
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    try:
                        retryable = should_retry(exc)
                    except Exception:
                        retryable = False
                    if not retryable or attempt >= attempts:
                        raise

                    delay = _backoff(attempt, base_delay, factor, max_delay, jitter)
                    logger.debug("retry.attempt_failed", extra={
                        "fn": fn.__name__,
                        "attempt": attempt,
                        "delay": round(delay, 3),
                        "error": str(exc),
                    })
                    await asyncio.sleep(delay)
        return wrapper
    return deco
