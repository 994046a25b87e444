"""History poller with chart series and statistics derivation."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import tzinfo
from typing import Callable, Optional, Tuple

from api.client import HISTORY_PATH, SensorApiClient, SensorApiError
from models.records import HistoryWindow
from services.formatting import history_label, one_decimal, temperature_text
from services.poller import DEFAULT_POLL_INTERVAL, ClientState, Poller
from services.statistics import derive_statistics
from services.theme import Palette, ThemeSignal, palette_for


class HistoryPoller(Poller[HistoryWindow]):
    """Keeps the recent reading window and reports failures as an error state.

    On failure the previous window is kept but ``error`` is set, which the
    render layer shows instead of the chart until a fetch succeeds again.
    """

    name = "history"
    endpoint = HISTORY_PATH

    def __init__(
        self,
        client: SensorApiClient,
        interval: float = DEFAULT_POLL_INTERVAL,
        theme: Optional[ThemeSignal] = None,
    ) -> None:
        super().__init__(client, initial=HistoryWindow(), interval=interval)
        self.theme = theme if theme is not None else ThemeSignal()
        self._unsubscribe_theme: Optional[Callable[[], None]] = None
        self._theme_listeners: list[Callable[[bool], None]] = []

    @property
    def dark(self) -> bool:
        return self.theme.dark

    async def retry(self) -> None:
        """Fetch again right away, independent of the schedule."""
        await self.refresh()

    def on_theme_change(self, listener: Callable[[bool], None]) -> None:
        """Register ``listener`` to be told when the palette should change."""
        self._theme_listeners.append(listener)

    async def _fetch(self) -> HistoryWindow:
        return await self.client.fetch_history()

    def _failed_state(self, exc: SensorApiError) -> ClientState[HistoryWindow]:
        return dataclasses.replace(self.state, loading=False, error=str(exc))

    def _on_start(self) -> None:
        self._unsubscribe_theme = self.theme.subscribe(self._theme_changed)

    def _on_stop(self) -> None:
        if self._unsubscribe_theme is not None:
            self._unsubscribe_theme()
            self._unsubscribe_theme = None

    def _theme_changed(self, dark: bool) -> None:
        if not self.running:
            return
        for listener in list(self._theme_listeners):
            listener(dark)


@dataclass(frozen=True, slots=True)
class StatisticsBlock:
    current: str
    average: str
    range: str


@dataclass(frozen=True, slots=True)
class ChartSeries:
    labels: Tuple[str, ...]
    values: Tuple[Optional[float], ...]
    palette: Palette


@dataclass(frozen=True, slots=True)
class HistorySummary:
    """Display-ready values for the history panel.

    Exactly one of ``loading``, ``error`` or ``chart`` drives what is shown.
    """

    loading: bool
    error: Optional[str]
    subtitle: str
    chart: Optional[ChartSeries]
    statistics: Optional[StatisticsBlock]

    @property
    def can_retry(self) -> bool:
        return self.error is not None


def summarize_history(
    state: ClientState[HistoryWindow],
    dark: bool = False,
    tz: Optional[tzinfo] = None,
) -> HistorySummary:
    if state.loading:
        return HistorySummary(
            loading=True,
            error=None,
            subtitle="Loading temperature data...",
            chart=None,
            statistics=None,
        )

    if state.error is not None:
        return HistorySummary(
            loading=False,
            error=state.error,
            subtitle=f"Error loading data: {state.error}",
            chart=None,
            statistics=None,
        )

    window = state.data
    chart = ChartSeries(
        labels=tuple(history_label(timestamp, tz) for timestamp in window.timestamps),
        values=window.values,
        palette=palette_for(dark),
    )

    stats = derive_statistics(window)
    block = None
    if stats is not None:
        block = StatisticsBlock(
            current=temperature_text(None) if stats.current is None else one_decimal(stats.current),
            average=one_decimal(stats.average),
            range=one_decimal(stats.range),
        )

    return HistorySummary(
        loading=False,
        error=None,
        subtitle=f"Last {window.count} temperature readings",
        chart=chart,
        statistics=block,
    )
