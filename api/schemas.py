"""Pydantic schemas for the sensor API payloads."""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.records import HistoryWindow, LatestReading, Reading, Trend

_TREND_VALUES = {trend.value for trend in Trend}


class LatestReadingPayload(BaseModel):
    """Body of ``GET /api/latest``."""

    model_config = ConfigDict(extra="ignore")

    temperature: Optional[float] = None
    time: Optional[Union[str, int, float]] = None
    trend: Trend = Trend.stable

    @field_validator("trend", mode="before")
    @classmethod
    def _coerce_trend(cls, value: Any) -> Any:
        # Anything the source sends besides the three known tags means "no direction".
        if isinstance(value, Trend):
            return value
        if isinstance(value, str) and value in _TREND_VALUES:
            return value
        return Trend.stable

    def to_latest(self) -> LatestReading:
        return LatestReading(
            reading=Reading(timestamp=self.time, value=self.temperature),
            trend=self.trend,
        )


class HistoryPayload(BaseModel):
    """Body of ``GET /api/history``."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    timestamps: List[Optional[Union[str, int, float]]] = Field(
        default_factory=list, alias="lastTimestamps"
    )
    temperatures: List[Optional[float]] = Field(
        default_factory=list, alias="lastTemperatures"
    )
    count: int = Field(default=0, description="Total reported by the source, display only.")

    @field_validator("timestamps", "temperatures", mode="before")
    @classmethod
    def _default_sequence(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("count", mode="before")
    @classmethod
    def _default_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    def to_window(self) -> HistoryWindow:
        """Pair temperatures with timestamps by position.

        One reading per temperature; a temperature without a matching
        timestamp gets ``None`` and surplus timestamps are dropped.
        """
        readings = tuple(
            Reading(
                timestamp=self.timestamps[index] if index < len(self.timestamps) else None,
                value=value,
            )
            for index, value in enumerate(self.temperatures)
        )
        return HistoryWindow(readings=readings, count=self.count)
