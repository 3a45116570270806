"""
Replay Protection

A signature is fresh only if its epoch is strictly in the past and younger
than the replay window. An epoch equal to "now" or in the future is rejected.
"""

import time
from typing import Optional

# Default replay window: 5 minutes
DEFAULT_REPLAY_WINDOW_MS = 300000


def now_ms() -> int:
    """Current wall-clock time in milliseconds since Jan 1, 1970."""
    return int(time.time() * 1000)


def is_fresh(epoch: int, window_ms: int = DEFAULT_REPLAY_WINDOW_MS, now: Optional[int] = None) -> bool:
    """
    Check that an epoch is recent.

    Args:
        epoch: Claimed signing time in milliseconds
        window_ms: Maximum accepted age in milliseconds
        now: Current time in milliseconds (default: now_ms())

    Returns:
        True iff 0 < now - epoch < window_ms
    """
    if isinstance(epoch, bool) or not isinstance(epoch, int):
        return False
    if now is None:
        now = now_ms()
    delta = now - epoch
    return 0 < delta < window_ms
