"""Fixed-interval polling shared by the latest-reading and history views."""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, List, Optional, Set, TypeVar

from api.client import SensorApiClient, SensorApiError

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 30.0

T = TypeVar("T")


class PollStatus(str, Enum):
    """Lifecycle of a poller's state."""

    loading = "loading"
    ready = "ready"
    failed = "failed"


@dataclass(frozen=True)
class ClientState(Generic[T]):
    """Immutable snapshot of what a poller currently holds."""

    data: T
    loading: bool = True
    error: Optional[str] = None

    @property
    def status(self) -> PollStatus:
        if self.loading:
            return PollStatus.loading
        if self.error is not None:
            return PollStatus.failed
        return PollStatus.ready


StateListener = Callable[[ClientState[T]], None]


class Poller(Generic[T]):
    """Fetch immediately on start, then every ``interval`` seconds until stopped.

    Each tick runs its fetch as an independent task, so fetches may overlap.
    Responses are tagged with a monotonically increasing sequence number and
    a response older than the last one applied is dropped. Nothing a fetch
    returns after :meth:`stop` reaches the state.
    """

    name = "poller"
    endpoint = ""

    def __init__(
        self,
        client: SensorApiClient,
        initial: T,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError("Poll interval must be positive.")
        self.client = client
        self.interval = interval
        self._initial = initial
        self._state: ClientState[T] = ClientState(data=initial)
        self._listeners: List[StateListener[T]] = []
        self._sequence = itertools.count(1)
        self._issued = 0
        self._applied = 0
        self._mounted = False
        self._timer: Optional[asyncio.Task[None]] = None
        self._inflight: Set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ClientState[T]:
        return self._state

    @property
    def running(self) -> bool:
        return self._mounted

    def subscribe(self, listener: StateListener[T]) -> Callable[[], None]:
        """Register ``listener`` to receive every new state snapshot."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        self._state = ClientState(data=self._initial)
        # Requests issued before this start belong to a previous run.
        self._applied = self._issued
        self._on_start()
        logger.info("Starting %s poller", self.name, extra={"interval": self.interval})
        self._spawn_refresh()
        self._timer = asyncio.create_task(self._run_schedule(), name=f"{self.name}-schedule")

    async def stop(self) -> None:
        """Cancel the schedule; in-flight fetches finish but are ignored."""
        if not self._mounted:
            return
        self._mounted = False
        self._on_stop()
        timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await timer
        logger.info("Stopped %s poller", self.name)

    async def wait_until_loaded(self) -> None:
        """Wait for the first fetch since :meth:`start` to resolve, whatever its outcome."""
        if not self._state.loading:
            return
        loaded = asyncio.Event()

        def on_change(state: ClientState[T]) -> None:
            if not state.loading:
                loaded.set()

        unsubscribe = self.subscribe(on_change)
        try:
            await loaded.wait()
        finally:
            unsubscribe()

    async def drain(self) -> None:
        """Wait until no fetch is in flight; only terminates once the schedule is stopped."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    async def refresh(self) -> None:
        """Fetch once and fold the outcome into the state."""
        sequence = next(self._sequence)
        self._issued = sequence
        try:
            data = await self._fetch()
        except SensorApiError as exc:
            logger.warning(
                "Failed to fetch %s: %s",
                self.name,
                exc,
                extra={"endpoint": self.endpoint, "sequence": sequence, "reason": type(exc).__name__},
            )
            self._resolve(sequence, self._failed_state(exc))
        else:
            self._resolve(sequence, self._succeeded_state(data))

    async def __aenter__(self) -> "Poller[T]":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    async def _fetch(self) -> T:
        raise NotImplementedError

    def _succeeded_state(self, data: T) -> ClientState[T]:
        return ClientState(data=data, loading=False, error=None)

    def _failed_state(self, exc: SensorApiError) -> ClientState[T]:
        raise NotImplementedError

    def _on_start(self) -> None:
        """Hook run when the poller starts, before the first fetch."""

    def _on_stop(self) -> None:
        """Hook run when the poller stops."""

    def _resolve(self, sequence: int, next_state: ClientState[T]) -> None:
        if not self._mounted:
            logger.debug("Ignoring %s response after stop", self.name, extra={"sequence": sequence})
            return
        if sequence <= self._applied:
            logger.debug("Discarding stale %s response", self.name, extra={"sequence": sequence})
            return
        self._applied = sequence
        self._set_state(next_state)

    def _set_state(self, next_state: ClientState[T]) -> None:
        if next_state == self._state:
            return
        self._state = next_state
        for listener in list(self._listeners):
            listener(next_state)

    def _spawn_refresh(self) -> None:
        task = asyncio.create_task(self.refresh(), name=f"{self.name}-refresh")
        self._inflight.add(task)
        task.add_done_callback(self._forget)

    def _forget(self, task: asyncio.Task[None]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unexpected error while refreshing %s", self.name, exc_info=exc)

    async def _run_schedule(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            next_tick += self.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            self._spawn_refresh()
