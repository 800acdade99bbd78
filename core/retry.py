"""
Second-level retries for RDS describe calls.

botocore already retries throttling, 5xx and connection errors inside a single
API call (``SDK_CONFIG``: standard mode). This decorator only kicks in once the
SDK has given up: it waits noticeably longer and tries the whole call again, a
few times at most, and only for errors ``retry_if`` accepts. Everything else
(denied access, missing credentials, validation errors) propagates on the first
attempt.
"""
from __future__ import annotations
import random
import time
from functools import wraps
from typing import Any, Callable, Iterator, Optional, Tuple, Type


def backoff_delays(
    tries: int,
    base_delay: float,
    max_delay: float,
    jitter: bool = True,
) -> Iterator[float]:
    """Waits between ``tries`` attempts: doubling from base_delay, capped at max_delay."""
    delay = base_delay
    for _ in range(max(tries - 1, 0)):
        wait = min(delay, max_delay)
        if jitter:
            wait += random.uniform(0, wait / 2.0)
        yield wait
        delay *= 2.0


def retry_with_backoff(
    exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    tries: int = 3,
    base_delay: float = 2.0,
    max_delay: float = 16.0,
    jitter: bool = True,
    retry_if: Optional[Callable[[BaseException], bool]] = None,
    logger: Optional[Any] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Retry the wrapped call on ``exceptions`` accepted by ``retry_if``.

    Args:
        exceptions: Exception types that may be retried; anything else propagates.
        tries: Total attempts, including the first one.
        base_delay: Wait before the first retry, doubled after each attempt.
        max_delay: Upper bound for a single wait (before jitter).
        jitter: Add up to 50% random delay on top of each wait.
        retry_if: Predicate on the caught error; False re-raises immediately.
        logger: Optional logger for retry / give-up messages.
        sleep: Called with each wait in seconds.
    """
    def _decorate(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def _wrapped(*args: Any, **kwargs: Any) -> Any:
            delays = backoff_delays(tries, base_delay, max_delay, jitter)
            attempt = 0
            while True:
                attempt += 1
                try:
                    return func(*args, **kwargs)
                except exceptions as exc:
                    if retry_if is not None and not retry_if(exc):
                        raise
                    wait = next(delays, None)
                    if wait is None:
                        if logger:
                            logger.error("[retry] %s still failing after %d attempt(s): %s",
                                         func.__name__, attempt, exc)
                        raise
                    if logger:
                        logger.warning("[retry] %s: %s; trying again in %.1fs (%d/%d)",
                                       func.__name__, exc, wait, attempt + 1, tries)
                    sleep(wait)
        return _wrapped
    return _decorate
