"""Exponential backoff with jitter for LLM retries."""

import random

JITTER_RATIO = 0.20


def exponential_backoff(attempt: int, base: float, max_wait: float) -> float:
    """
    Seconds to wait before retry number ``attempt`` (1-based).

    ``base * 2**(attempt-1)``, capped at ``max_wait``, then scaled by a
    random factor in [0.8, 1.2] and capped again.
    """
    if base <= 0 or max_wait <= 0:
        return 0.0

    attempt = max(attempt, 1)
    wait = min(base * (2 ** (attempt - 1)), max_wait)
    jittered = wait * random.uniform(1 - JITTER_RATIO, 1 + JITTER_RATIO)
    return min(max(jittered, 0.0), max_wait)
