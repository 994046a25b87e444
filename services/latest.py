"""Latest-reading poller and its summary-card derivation."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from api.client import LATEST_PATH, SensorApiClient, SensorApiError
from models.records import LatestReading, Trend
from services.formatting import TrendIndicator, reading_time_text, temperature_text, trend_indicator
from services.poller import DEFAULT_POLL_INTERVAL, ClientState, Poller


class LatestReadingPoller(Poller[LatestReading]):
    """Keeps the freshest reading and trend.

    Failures are logged and otherwise ignored: the last good reading stays
    on display and no error is ever exposed.
    """

    name = "latest"
    endpoint = LATEST_PATH

    def __init__(self, client: SensorApiClient, interval: float = DEFAULT_POLL_INTERVAL) -> None:
        super().__init__(client, initial=LatestReading(), interval=interval)

    async def _fetch(self) -> LatestReading:
        return await self.client.fetch_latest()

    def _failed_state(self, exc: SensorApiError) -> ClientState[LatestReading]:
        return dataclasses.replace(self.state, loading=False)


@dataclass(frozen=True, slots=True)
class LatestSummary:
    """Display-ready values for the current-temperature card."""

    loading: bool
    temperature: str
    time: str
    trend: Trend
    indicator: Optional[TrendIndicator]


def summarize_latest(
    state: ClientState[LatestReading], tz: Optional[tzinfo] = None
) -> LatestSummary:
    latest = state.data
    return LatestSummary(
        loading=state.loading,
        temperature=temperature_text(latest.reading.value),
        time=reading_time_text(latest.reading.timestamp, tz),
        trend=latest.trend,
        indicator=trend_indicator(latest.trend),
    )
