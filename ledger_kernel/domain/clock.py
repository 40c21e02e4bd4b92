"""
Clock -- injectable time source.

Responsibility:
    Supplies "now" to the trigger engine's scheduled-window check and to
    the notification journal. Nothing in the kernel calls
    ``datetime.now()`` directly.

Architecture position:
    Kernel > Domain -- pure, except SystemClock which is the one sanctioned
    read of wall-clock time.

Audit relevance:
    Window evaluation is lazy: it compares stored bounds to the clock at
    call time. A DeterministicClock makes every trigger decision replayable.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta


class Clock(ABC):
    """Source of timezone-aware "now"."""

    @abstractmethod
    def now(self) -> datetime: ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """Frozen time that only moves through ``advance()``."""

    def __init__(self, start: datetime | None = None):
        self._now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: int | timedelta = 1) -> datetime:
        step = seconds if isinstance(seconds, timedelta) else timedelta(seconds=seconds)
        self._now += step
        return self._now
