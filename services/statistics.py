"""Summary statistics for a history window."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from models.records import HistoryWindow


@dataclass(frozen=True, slots=True)
class HistoryStatistics:
    """Statistics derived from the readings currently held."""

    current: Optional[float]
    average: float
    range: float
    sample_count: int


def derive_statistics(window: HistoryWindow) -> Optional[HistoryStatistics]:
    """Compute current, average and range from ``window``.

    Readings without a value are skipped for the average and range. Returns
    ``None`` when there is nothing to aggregate. ``current`` is the value of
    the last reading and may itself be absent.
    """
    if not window.readings:
        return None

    total = 0.0
    sample_count = 0
    min_value: float | None = None
    max_value: float | None = None

    for reading in window.readings:
        value = reading.value
        if value is None:
            continue
        sample_count += 1
        total += value

        if min_value is None or value < min_value:
            min_value = value
        if max_value is None or value > max_value:
            max_value = value

    if sample_count == 0 or min_value is None or max_value is None:
        return None

    return HistoryStatistics(
        current=window.readings[-1].value,
        average=total / sample_count,
        range=max_value - min_value,
        sample_count=sample_count,
    )
