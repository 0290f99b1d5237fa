"""
Injectable time source.

Services take a ``Clock`` and never call ``datetime.now()`` or
``date.today()`` themselves, so posting dates and audit stamps can be
pinned in tests.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone

DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware UTC timestamps."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Always answers with the instant it was built with."""

    def __init__(self, fixed_time: datetime = DEFAULT_TEST_TIME):
        self._fixed_time = fixed_time

    def now(self) -> datetime:
        return self._fixed_time
