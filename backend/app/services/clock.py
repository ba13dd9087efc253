from datetime import datetime, timezone
from typing import Protocol

class Clock(Protocol):
    def now(self) -> datetime:
        ...

class SystemClock:
    """Wall clock returning naive UTC datetimes, matching the stored timestamps"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(tzinfo=None)

class FixedClock:
    """Clock frozen at a given instant; used by tests and backfill runs"""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

def get_clock() -> Clock:
    """Dependency returning the clock used by the API layer"""
    return SystemClock()
