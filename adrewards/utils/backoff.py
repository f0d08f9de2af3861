"""Exponential backoff helpers with jitter, plus a small retry loop for storage calls."""
from __future__ import annotations

import random
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from adrewards.config import BACKOFF_POLICY

T = TypeVar("T")


def compute_backoff_seconds(attempt: int, *, base: Optional[float] = None, factor: Optional[float] = None, max_seconds: Optional[float] = None, jitter_pct: Optional[float] = None) -> float:
    """Compute exponential backoff delay with jitter."""
    if attempt < 1:
        attempt = 1
    base = float(base if base is not None else BACKOFF_POLICY["base_seconds"])
    factor = float(factor if factor is not None else BACKOFF_POLICY["factor"])
    max_seconds = float(max_seconds if max_seconds is not None else BACKOFF_POLICY["max_seconds"])
    jitter_pct = float(jitter_pct if jitter_pct is not None else BACKOFF_POLICY["jitter_pct"])

    delay = base * (factor ** (attempt - 1))
    delay = min(delay, max_seconds)
    if jitter_pct > 0:
        jitter_amount = delay * jitter_pct
        delay = random.uniform(delay - jitter_amount, delay + jitter_amount)
    return max(delay, 0.0)


def call_with_retry(
    fn: Callable[[], T],
    *,
    retry_on: Tuple[Type[BaseException], ...],
    max_attempts: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
) -> T:
    """Invoke ``fn`` until it succeeds or ``max_attempts`` is exhausted.

    Only exceptions in ``retry_on`` are retried; the last one is re-raised.
    """
    attempts_allowed = max(1, int(max_attempts if max_attempts is not None else BACKOFF_POLICY["max_attempts"]))
    attempt = 0
    while True:
        attempt += 1
        try:
            return fn()
        except retry_on as exc:
            if attempt >= attempts_allowed:
                raise
            delay = compute_backoff_seconds(attempt)
            if on_retry is not None:
                on_retry(attempt, exc, delay)
            sleep(delay)


__all__ = ["compute_backoff_seconds", "call_with_retry"]
