"""
Clock helpers.

Wall-clock timestamps for persisted records and a monotonic clock type for
expiry deadlines. Both are injectable so tests can move time forward.
"""

import time
from datetime import datetime, timezone
from typing import Callable

WallClock = Callable[[], datetime]
MonotonicClock = Callable[[], float]


def utc_now() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def monotonic() -> float:
    return time.monotonic()
