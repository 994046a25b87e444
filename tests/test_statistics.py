"""Unit tests for history statistics."""

from __future__ import annotations

from typing import Optional, Sequence

from models.records import HistoryWindow, Reading
from services.statistics import derive_statistics


def _window(values: Sequence[Optional[float]]) -> HistoryWindow:
    """Helper to build a window with deterministic timestamps."""

    readings = tuple(
        Reading(timestamp=f"2024-01-01T12:{minute:02d}:00Z", value=value)
        for minute, value in enumerate(values)
    )
    return HistoryWindow(readings=readings, count=len(readings))


def test_empty_window_has_no_statistics() -> None:
    assert derive_statistics(HistoryWindow()) is None


def test_statistics_for_three_readings() -> None:
    stats = derive_statistics(_window([18.0, 20.0, 22.0]))

    assert stats is not None
    assert stats.current == 22.0
    assert stats.average == 20.0
    assert stats.range == 4.0
    assert stats.sample_count == 3


def test_single_reading_has_zero_range() -> None:
    stats = derive_statistics(_window([19.5]))

    assert stats is not None
    assert stats.current == 19.5
    assert stats.average == 19.5
    assert stats.range == 0.0


def test_absent_values_are_skipped() -> None:
    stats = derive_statistics(_window([10.0, None, 30.0, None]))

    assert stats is not None
    assert stats.current is None
    assert stats.average == 20.0
    assert stats.range == 20.0
    assert stats.sample_count == 2


def test_window_without_any_values_has_no_statistics() -> None:
    assert derive_statistics(_window([None, None])) is None


def test_reported_count_does_not_affect_statistics() -> None:
    window = HistoryWindow(readings=_window([1.0, 3.0]).readings, count=500)

    stats = derive_statistics(window)

    assert stats is not None
    assert stats.average == 2.0
