"""Retry with exponential backoff for network-bound commands."""
import time
from typing import Callable, Iterator, Optional, Tuple, Type, TypeVar

from twinstrap.core.logger import get_logger
from twinstrap.models.project import RetryPolicy

logger = get_logger(__name__)

T = TypeVar("T")


def backoff_delays(delay: float, backoff: float) -> Iterator[float]:
    """Yield the wait before each retry: delay, delay*backoff, ..."""
    current = delay
    while True:
        yield current
        current *= backoff


def call_with_retry(
    func: Callable[[], T],
    attempts: int = 3,
    delay: float = 2.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    description: Optional[str] = None,
    on_failure: Optional[Callable[[Exception], None]] = None,
) -> T:
    """Call func until it succeeds or the attempts run out.

    Args:
        func: Zero-argument callable
        attempts: Maximum number of calls (1 disables retrying)
        delay: Wait in seconds before the first retry
        backoff: Multiplier applied to the wait after each failure
        exceptions: Exception types that trigger another attempt
        description: Label used in log lines (defaults to func's name)
        on_failure: Called with the error after every failed attempt,
            including the last, before any retry

    Raises:
        The last exception once every attempt has failed
    """
    label = description or getattr(func, "__name__", "operation")
    attempts = max(1, attempts)
    waits = backoff_delays(delay, backoff)

    for attempt in range(1, attempts + 1):
        try:
            return func()
        except exceptions as e:
            if on_failure is not None:
                on_failure(e)
            if attempt == attempts:
                if attempts > 1:
                    logger.error(f"{label} failed after {attempts} attempts: {e}")
                raise

            wait = next(waits)
            logger.warning(f"{label} failed (attempt {attempt}/{attempts}): {e}")
            if wait > 0:
                logger.info(f"Retrying in {wait:.1f}s...")
                time.sleep(wait)


def retry_with_policy(
    func: Callable[[], T],
    policy: RetryPolicy,
    exceptions: Tuple[Type[Exception], ...],
    description: Optional[str] = None,
    on_failure: Optional[Callable[[Exception], None]] = None,
) -> T:
    """call_with_retry driven by the workspace's retry settings."""
    return call_with_retry(
        func,
        attempts=policy.attempts,
        delay=policy.delay,
        backoff=policy.backoff,
        exceptions=exceptions,
        description=description,
        on_failure=on_failure,
    )

