"""Exponential-backoff retry for calls that cross the network (search, SMTP)."""
from __future__ import annotations

import functools
import random
import time
from typing import Any, Callable, Tuple, Type

from jobcheck.log import get_logger

log = get_logger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    max_delay: float,
    backoff_factor: float,
    jitter: bool,
) -> float:
    """Seconds to wait after the given (1-based) failed attempt."""
    delay = min(base_delay * (backoff_factor ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
) -> Callable:
    """Re-invoke the wrapped call while it raises one of *retryable*.

    Anything outside *retryable* propagates on the first attempt, so each
    call site names the failures it treats as transient (timeouts, dropped
    connections). The final attempt re-raises whatever it gets.
    """
    pause = functools.partial(
        backoff_delay,
        base_delay=base_delay,
        max_delay=max_delay,
        backoff_factor=backoff_factor,
        jitter=jitter,
    )

    def decorator(fn: Callable) -> Callable:
        name = fn.__qualname__

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    delay = pause(attempt)
                    log.warning("%s: attempt %d of %d failed (%s); next try in %.1fs",
                                name, attempt, max_attempts, exc, delay)
                    time.sleep(delay)
            try:
                return fn(*args, **kwargs)
            except retryable as exc:
                log.error("%s: giving up after %d attempts: %s", name, max_attempts, exc)
                raise

        return wrapper

    return decorator
