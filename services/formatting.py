"""Display formatting for readings, labels and trend direction."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Optional

from models.records import Timestamp, Trend

TIME_PLACEHOLDER = "--:--"
VALUE_PLACEHOLDER = "--"
UNIT = "°C"


@dataclass(frozen=True, slots=True)
class TrendIndicator:
    """Direction marker shown next to the current temperature."""

    symbol: str
    label: str
    color: str


RISING_INDICATOR = TrendIndicator(symbol="↑", label="Rising", color="red")
FALLING_INDICATOR = TrendIndicator(symbol="↓", label="Falling", color="blue")


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """Parse a serialized instant, returning ``None`` when it is unusable.

    Numbers are epoch milliseconds. Text is ISO-8601; a trailing ``Z`` is
    accepted and text without an offset is taken as local time.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    candidate = str(value).strip()
    if not candidate:
        return None

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        try:
            parsed = parsed.astimezone()
        except (OverflowError, OSError, ValueError):
            return None
    return parsed


def format_time_of_day(value: Timestamp, tz: Optional[tzinfo] = None) -> Optional[str]:
    """Format as a 24-hour ``HH:MM`` in ``tz`` (the viewer's local zone by default)."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    try:
        return parsed.astimezone(tz).strftime("%H:%M")
    except (OverflowError, OSError, ValueError):
        # Parseable but outside the range the viewer's zone can represent.
        return None


def reading_time_text(value: Timestamp, tz: Optional[tzinfo] = None) -> str:
    return format_time_of_day(value, tz) or TIME_PLACEHOLDER


def history_label(value: Timestamp, tz: Optional[tzinfo] = None) -> str:
    formatted = format_time_of_day(value, tz)
    if formatted is not None:
        return formatted
    return "" if value is None else str(value)


def temperature_text(value: Optional[float]) -> str:
    """Render a temperature the way the source sent it, without rounding."""
    if value is None:
        return VALUE_PLACEHOLDER
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def one_decimal(value: float) -> str:
    return f"{value:.1f}"


def trend_indicator(trend: Trend) -> Optional[TrendIndicator]:
    if trend is Trend.rising:
        return RISING_INDICATOR
    if trend is Trend.falling:
        return FALLING_INDICATOR
    return None
