from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional

import typer

from api.client import SensorApiClient
from cli.config import CLIConfig, load_config
from cli.render import HISTORY_RETRY_HINT, WATCH_RETRY_HINT, render_history, render_latest
from logging_config import configure_logging
from models.records import HistoryWindow, LatestReading
from services.history import HistoryPoller, summarize_history
from services.latest import LatestReadingPoller, summarize_latest
from services.poller import ClientState
from services.theme import ThemeSignal, detect_dark_mode
from settings import get_settings


@dataclass
class CLIState:
    config: CLIConfig
    theme: ThemeSignal


app = typer.Typer(
    help="Poll a temperature sensor API and show its latest reading and history.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


def _positive(value: Optional[float], option: str) -> Optional[float]:
    if value is not None and value <= 0:
        raise typer.BadParameter("must be greater than 0.", param_hint=option)
    return value


def _build_client(config: CLIConfig) -> SensorApiClient:
    return SensorApiClient(config.base_url, timeout=config.request_timeout)


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Sensor API base URL (defaults to API_BASE_URL env or http://localhost:5000).",
    ),
    poll_interval: Optional[float] = typer.Option(
        None,
        "--poll-interval",
        help="Seconds between refreshes (defaults to POLL_INTERVAL env or 30).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-request timeout in seconds.",
    ),
    theme: Optional[str] = typer.Option(
        None,
        "--theme",
        help="Chart palette: dark or light (defaults to SENSOR_THEME env, then terminal background).",
    ),
) -> None:
    """Entry point for the CLI."""
    configure_logging()
    config = load_config(
        base_url=base_url,
        poll_interval=_positive(poll_interval, "--poll-interval"),
        request_timeout=_positive(timeout, "--timeout"),
    )
    preference = theme.lower() if theme else get_settings().theme
    ctx.obj = CLIState(config=config, theme=ThemeSignal(dark=detect_dark_mode(preference)))


async def _read_latest(config: CLIConfig) -> ClientState[LatestReading]:
    async with _build_client(config) as client:
        poller = LatestReadingPoller(client, interval=config.poll_interval)
        async with poller:
            await poller.wait_until_loaded()
        await poller.drain()
        return poller.state


async def _read_history(
    config: CLIConfig, theme: ThemeSignal, retries: int
) -> ClientState[HistoryWindow]:
    async with _build_client(config) as client:
        poller = HistoryPoller(client, interval=config.poll_interval, theme=theme)
        async with poller:
            await poller.wait_until_loaded()
            for _ in range(retries):
                if poller.state.error is None:
                    break
                await poller.retry()
        await poller.drain()
        return poller.state


async def _watch(config: CLIConfig, theme: ThemeSignal, duration: Optional[float]) -> None:
    async with _build_client(config) as client:
        latest = LatestReadingPoller(client, interval=config.poll_interval)
        history = HistoryPoller(client, interval=config.poll_interval, theme=theme)

        def show_latest(state: ClientState[LatestReading]) -> None:
            render_latest(summarize_latest(state))
            typer.echo()

        def show_history(state: ClientState[HistoryWindow]) -> None:
            render_history(summarize_history(state, dark=theme.dark), retry_hint=WATCH_RETRY_HINT)
            typer.echo()

        latest.subscribe(show_latest)
        history.subscribe(show_history)
        history.on_theme_change(lambda _dark: show_history(history.state))

        show_latest(latest.state)
        show_history(history.state)
        await latest.start()
        await history.start()
        try:
            if duration is None:
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(duration)
        finally:
            await latest.stop()
            await history.stop()
            await latest.drain()
            await history.drain()


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Fetch and show the current temperature."""
    state = _get_state(ctx)
    result = asyncio.run(_read_latest(state.config))
    render_latest(summarize_latest(result))


@app.command("history")
def history_command(
    ctx: typer.Context,
    retries: int = typer.Option(
        0,
        "--retry",
        min=0,
        help="Retry this many times right away if the fetch fails.",
    ),
) -> None:
    """Fetch and show recent readings with statistics."""
    state = _get_state(ctx)
    result = asyncio.run(_read_history(state.config, state.theme, retries))
    render_history(summarize_history(result, dark=state.theme.dark), retry_hint=HISTORY_RETRY_HINT)
    if result.error is not None:
        raise typer.Exit(code=1)


@app.command("watch")
def watch_command(
    ctx: typer.Context,
    duration: Optional[float] = typer.Option(
        None,
        "--duration",
        help="Stop after this many seconds instead of running until interrupted.",
    ),
) -> None:
    """Keep both views refreshed on the poll interval."""
    state = _get_state(ctx)
    typer.echo(f"Watching {state.config.base_url} (every {state.config.poll_interval:g}s)...")
    try:
        asyncio.run(_watch(state.config, state.theme, duration))
    except KeyboardInterrupt:
        typer.echo("Stopped.")
