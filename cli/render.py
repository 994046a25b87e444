from __future__ import annotations

from typing import Iterable, Optional

import typer

from services.formatting import UNIT
from services.history import HistorySummary
from services.latest import LatestSummary
from services.theme import hex_to_rgb

_BAR_WIDTH = 30

HISTORY_RETRY_HINT = "Run again with --retry N to retry right away."
WATCH_RETRY_HINT = "Retrying on the next refresh."


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_subtitle(text: str, fg: Optional[str] = None) -> None:
    typer.secho(text, dim=fg is None, fg=fg)


def render_latest(summary: LatestSummary) -> None:
    if summary.loading:
        typer.echo("Loading...")
        return

    echo_heading("Current Temperature")
    echo_subtitle(f"Live reading from sensor  {summary.time}")
    typer.secho(f"{summary.temperature} {UNIT}", bold=True)
    indicator = summary.indicator
    if indicator is not None:
        typer.secho(f"{indicator.symbol} {indicator.label}", fg=indicator.color)


def _bars(values: Iterable[Optional[float]]) -> list[str]:
    present = [value for value in values if value is not None]
    if not present:
        return []
    low, high = min(present), max(present)
    span = high - low
    bars = []
    for value in values:
        if value is None:
            bars.append("")
            continue
        filled = _BAR_WIDTH if span == 0 else 1 + round((value - low) / span * (_BAR_WIDTH - 1))
        bars.append("█" * filled)
    return bars


def render_history(summary: HistorySummary, retry_hint: Optional[str] = None) -> None:
    echo_heading("Temperature History")
    if summary.loading:
        echo_subtitle(summary.subtitle)
        return

    if summary.error is not None:
        echo_subtitle(summary.subtitle, fg="red")
        if retry_hint:
            typer.echo(retry_hint)
        return

    echo_subtitle(summary.subtitle)
    chart = summary.chart
    if chart is not None:
        color = hex_to_rgb(chart.palette.line)
        values = list(chart.values)
        for label, value, bar in zip(chart.labels, values, _bars(values) or [""] * len(values)):
            reading = "--" if value is None else f"{value:.1f}{UNIT}"
            typer.echo(f"{label:>8}  {reading:>8}  ", nl=False)
            typer.secho(bar, fg=color)

    stats = summary.statistics
    if stats is not None:
        typer.echo()
        typer.echo(
            f"Current: {stats.current}{UNIT}  "
            f"Average: {stats.average}{UNIT}  "
            f"Range: {stats.range}{UNIT}"
        )
