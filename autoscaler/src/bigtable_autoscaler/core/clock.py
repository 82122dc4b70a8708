#!/usr/bin/env python3
"""
Clock abstraction so scaling decisions can run against a frozen time in tests
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current time"""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current time as a timezone-aware datetime"""


class SystemClock(Clock):
    """Wall clock in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock that only moves when told to"""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self.instant = instant

    @classmethod
    def from_epoch_millis(cls, millis: int) -> "FixedClock":
        return cls(datetime.fromtimestamp(millis / 1000, tz=timezone.utc))

    def now(self) -> datetime:
        return self.instant

    def advance(self, delta: timedelta) -> None:
        self.instant = self.instant + delta
