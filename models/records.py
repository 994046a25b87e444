"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

# Serialized instant as delivered by the source: ISO-8601 text or epoch milliseconds.
Timestamp = Union[str, int, float, None]


class Trend(str, Enum):
    """Short-term direction reported by the sensor source."""

    rising = "up"
    falling = "down"
    stable = "stable"


@dataclass(frozen=True, slots=True)
class Reading:
    """A single sensor observation."""

    timestamp: Timestamp
    value: Optional[float] = None

    @property
    def has_value(self) -> bool:
        return self.value is not None


@dataclass(frozen=True, slots=True)
class LatestReading:
    """The most recent reading together with its trend."""

    reading: Reading = field(default_factory=lambda: Reading(timestamp=None))
    trend: Trend = Trend.stable


@dataclass(frozen=True, slots=True)
class HistoryWindow:
    """Recent readings in the order the source delivered them.

    ``count`` is whatever the source reported and is not required to match
    ``len(readings)``.
    """

    readings: Tuple[Reading, ...] = ()
    count: int = 0

    @property
    def timestamps(self) -> Tuple[Timestamp, ...]:
        return tuple(reading.timestamp for reading in self.readings)

    @property
    def values(self) -> Tuple[Optional[float], ...]:
        return tuple(reading.value for reading in self.readings)

    def __len__(self) -> int:
        return len(self.readings)
