from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def compute_backoff(
    attempt: int, base: float = 1.5, jitter: float = 0.5, cap: float = 30.0
) -> float:
    """Seconds to wait before retry number ``attempt``, capped at ``cap``."""
    return min(cap, base ** attempt) + random.uniform(0, jitter)


def retry_call(
    func: Callable[[], T],
    attempts: int = 1,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Optional[Callable[[float], None]] = None,
) -> T:
    """Call ``func`` up to ``attempts`` times, sleeping with backoff in between.

    The last error is re-raised once attempts are exhausted.
    """
    sleep = sleep or time.sleep
    attempt = 0
    while True:
        attempt += 1
        try:
            return func()
        except retry_on as exc:
            if attempt >= attempts:
                raise
            delay = compute_backoff(attempt)
            logger.warning(f"Attempt {attempt}/{attempts} failed ({exc}); retrying in {delay:.1f}s")
            sleep(delay)
