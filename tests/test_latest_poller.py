from __future__ import annotations

import asyncio
import logging
from datetime import timezone

from models.records import LatestReading, Reading, Trend
from services.latest import LatestReadingPoller, summarize_latest
from services.poller import ClientState, PollStatus


def test_state_is_loading_until_first_fetch_resolves(sensor) -> None:
    async def scenario():
        async with sensor.client() as client:
            poller = LatestReadingPoller(client, interval=60)
            before_start = poller.state
            await poller.start()
            during = poller.state
            await poller.drain()
            after = poller.state
            await poller.stop()
            return before_start, during, after

    before_start, during, after = asyncio.run(scenario())

    assert before_start.loading is True
    assert during.status is PollStatus.loading
    assert after.loading is False
    assert after.status is PollStatus.ready
    assert after.data.reading.value == 21.5
    assert after.data.reading.timestamp == "2024-01-01T12:34:00Z"
    assert after.data.trend is Trend.rising


def test_first_fetch_failure_still_ends_loading(sensor) -> None:
    sensor.script = [503]

    async def scenario():
        async with sensor.client() as client:
            async with LatestReadingPoller(client, interval=60) as poller:
                await poller.drain()
            return poller.state

    state = asyncio.run(scenario())

    assert state.loading is False
    assert state.error is None
    assert state.data == LatestReading()

    summary = summarize_latest(state)
    assert summary.temperature == "--"
    assert summary.time == "--:--"
    assert summary.indicator is None


def test_failure_after_success_keeps_last_reading(sensor, caplog) -> None:
    notifications = []

    async def scenario():
        async with sensor.client() as client:
            async with LatestReadingPoller(client, interval=60) as poller:
                await poller.drain()
                good = poller.state
                poller.subscribe(notifications.append)
                sensor.script = ["offline", 500]
                await poller.refresh()
                await poller.refresh()
                return good, poller.state

    with caplog.at_level(logging.WARNING):
        good, after_failures = asyncio.run(scenario())

    assert after_failures == good
    assert after_failures.data.reading.value == 21.5
    assert after_failures.data.trend is Trend.rising
    assert notifications == []
    assert any("Failed to fetch latest" in message for message in caplog.messages)


def test_success_replaces_state_wholesale(sensor) -> None:
    async def scenario():
        async with sensor.client() as client:
            async with LatestReadingPoller(client, interval=60) as poller:
                await poller.drain()
                sensor.latest = {"temperature": None, "time": None, "trend": "stable"}
                await poller.refresh()
                return poller.state

    state = asyncio.run(scenario())

    assert state.data.reading.value is None
    assert state.data.reading.timestamp is None
    assert state.data.trend is Trend.stable


def test_polls_on_fixed_interval(sensor) -> None:
    async def scenario():
        async with sensor.client() as client:
            poller = LatestReadingPoller(client, interval=0.05)
            await poller.start()
            await asyncio.sleep(0.18)
            await poller.stop()
            await poller.drain()

    asyncio.run(scenario())

    assert len(sensor.requests) >= 3
    assert set(sensor.requests) == {"/api/latest"}


def test_no_fetch_or_mutation_after_stop(sensor) -> None:
    async def scenario():
        async with sensor.client() as client:
            poller = LatestReadingPoller(client, interval=0.05)
            await poller.start()
            await poller.drain()
            await poller.stop()
            before = poller.state
            calls = len(sensor.requests)
            sensor.latest = {"temperature": 99.0, "time": "2024-01-01T00:00:00Z", "trend": "down"}
            await asyncio.sleep(0.15)
            return before, poller.state, calls

    before, after, calls = asyncio.run(scenario())

    assert after == before
    assert len(sensor.requests) == calls


def test_in_flight_fetch_resolving_after_stop_is_ignored(sensor) -> None:
    async def scenario():
        gate = asyncio.Event()
        sensor.script = [gate]
        async with sensor.client() as client:
            poller = LatestReadingPoller(client, interval=60)
            await poller.start()
            await asyncio.sleep(0.01)
            await poller.stop()
            gate.set()
            await poller.drain()
            return poller.state

    state = asyncio.run(scenario())

    assert state.loading is True
    assert state.data == LatestReading()


def test_stale_response_does_not_overwrite_newer_one(sensor) -> None:
    async def scenario():
        gate = asyncio.Event()
        async with sensor.client() as client:
            async with LatestReadingPoller(client, interval=60) as poller:
                await poller.drain()
                sensor.script = [gate, {"temperature": 20.0, "time": "2024-01-01T13:00:00Z", "trend": "down"}]
                sensor.latest = {"temperature": 10.0, "time": "2024-01-01T12:00:00Z", "trend": "up"}
                slow = asyncio.create_task(poller.refresh())
                await asyncio.sleep(0.01)
                await poller.refresh()
                gate.set()
                await slow
                return poller.state

    state = asyncio.run(scenario())

    assert state.data.reading.value == 20.0
    assert state.data.trend is Trend.falling


def test_summary_formats_reading() -> None:
    state = ClientState(
        data=LatestReading(reading=Reading(timestamp="2024-01-01T18:07:00Z", value=22.25), trend=Trend.rising),
        loading=False,
    )

    summary = summarize_latest(state, tz=timezone.utc)

    assert summary.loading is False
    assert summary.temperature == "22.25"
    assert summary.time == "18:07"
    assert summary.indicator is not None
    assert summary.indicator.label == "Rising"


def test_stable_trend_never_shows_indicator() -> None:
    for value in (None, -10.0, 0.0, 35.5):
        state = ClientState(
            data=LatestReading(reading=Reading(timestamp=None, value=value), trend=Trend.stable),
            loading=False,
        )
        assert summarize_latest(state).indicator is None


def test_summary_survives_out_of_range_timestamp() -> None:
    state = ClientState(
        data=LatestReading(reading=Reading(timestamp="0001-01-01T00:00:00+05:00", value=1.0)),
        loading=False,
    )

    summary = summarize_latest(state, tz=timezone.utc)

    assert summary.time == "--:--"
    assert summary.temperature == "1"


def test_wait_until_loaded_returns_while_schedule_keeps_spawning(sensor) -> None:
    sensor.delay = 0.1

    async def scenario():
        async with sensor.client() as client:
            poller = LatestReadingPoller(client, interval=0.03)
            await poller.start()
            await asyncio.wait_for(poller.wait_until_loaded(), timeout=2)
            loaded = poller.state
            await poller.stop()
            await poller.drain()
            return loaded

    loaded = asyncio.run(scenario())

    assert loaded.loading is False
    assert loaded.data.reading.value == 21.5
