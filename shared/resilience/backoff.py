from __future__ import annotations

import random


def exponential_backoff(
    attempt: int, base_seconds: float = 0.05, cap_seconds: float = 2.0, jitter: float = 0.25
) -> float:
    """Delay before retry ``attempt`` (1-based), capped and spread by +/- ``jitter``."""
    raw = min(cap_seconds, base_seconds * (2 ** max(0, attempt - 1)))
    if jitter <= 0:
        return raw
    spread = raw * jitter
    return max(0.0, raw + random.uniform(-spread, spread))
