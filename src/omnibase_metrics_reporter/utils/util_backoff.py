# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Exponential backoff with jitter for provisioning retries."""

from __future__ import annotations

import random


def compute_backoff_seconds(
    attempt: int,
    base_seconds: float,
    max_seconds: float,
    jitter: bool = True,
) -> float:
    """Delay to wait after the given (1-based) failed attempt.

    ``base * 2**(attempt - 1)``, capped at ``max_seconds``, then multiplied by
    a jitter factor drawn from [0.5, 1.5) so that reporter instances started
    together do not retry in lockstep. The jittered value is capped again.

    Args:
        attempt: Number of the attempt that just failed (>= 1).
        base_seconds: Delay after the first failure.
        max_seconds: Upper bound for any delay.
        jitter: Apply the random jitter factor.

    Returns:
        Delay in seconds, never negative.
    """
    if attempt < 1:
        attempt = 1
    delay = min(base_seconds * (2 ** (attempt - 1)), max_seconds)
    if jitter:
        delay *= random.uniform(0.5, 1.5)
    return max(0.0, min(delay, max_seconds))


__all__ = ["compute_backoff_seconds"]
