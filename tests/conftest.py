from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest

from api.client import SensorApiClient

BASE_URL = "http://sensor.test"


class FakeSensor:
    """Scriptable stand-in for the sensor API, served through ``httpx.MockTransport``.

    Responses are consumed from ``script`` first; once it is empty the
    ``latest``/``history`` payloads are served. A scripted entry may be an
    ``int`` status code, a payload dict, the string ``"offline"`` for a
    connection error, or an ``asyncio.Event`` to wait on before answering
    with the current payload. Every response is held back by ``delay`` seconds.
    """

    def __init__(self) -> None:
        self.latest: Dict[str, Any] = {
            "temperature": 21.5,
            "time": "2024-01-01T12:34:00Z",
            "trend": "up",
        }
        self.history: Dict[str, Any] = {
            "lastTimestamps": [
                "2024-01-01T12:00:00Z",
                "2024-01-01T12:30:00Z",
                "2024-01-01T13:00:00Z",
            ],
            "lastTemperatures": [18.0, 20.0, 22.0],
            "count": 3,
        }
        self.script: List[Any] = []
        self.requests: List[str] = []
        self.delay = 0.0

    def _payload_for(self, path: str) -> Dict[str, Any]:
        return self.history if path.endswith("/history") else self.latest

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        step: Optional[Any] = self.script.pop(0) if self.script else None
        if self.delay:
            await asyncio.sleep(self.delay)

        if isinstance(step, asyncio.Event):
            await step.wait()
            step = None
        if step == "offline":
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(step, int):
            return httpx.Response(step, json={"detail": "unavailable"})
        if isinstance(step, dict):
            return httpx.Response(200, json=step)
        return httpx.Response(200, json=self._payload_for(path))

    def client(self) -> SensorApiClient:
        return SensorApiClient(BASE_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def sensor() -> FakeSensor:
    return FakeSensor()
