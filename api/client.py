from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ValidationError

from api.schemas import HistoryPayload, LatestReadingPayload
from models.records import HistoryWindow, LatestReading

logger = logging.getLogger(__name__)

LATEST_PATH = "/api/latest"
HISTORY_PATH = "/api/history"


class SensorApiError(Exception):
    """Base class for failures at the fetch boundary."""


class NetworkError(SensorApiError):
    """The request could not be sent or no response arrived."""


class HttpStatusError(SensorApiError):
    """A response arrived with a non-success status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP error! status: {status_code}")
        self.status_code = status_code


class PayloadError(SensorApiError):
    """The response body could not be decoded into the expected shape."""


class SensorApiClient:
    """Minimal async HTTP client for the sensor service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "SensorApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def fetch_latest(self) -> LatestReading:
        payload = await self._get_json(LATEST_PATH)
        return self._decode(LatestReadingPayload, payload, LATEST_PATH).to_latest()

    async def fetch_history(self) -> HistoryWindow:
        payload = await self._get_json(HISTORY_PATH)
        return self._decode(HistoryPayload, payload, HISTORY_PATH).to_window()

    async def _get_json(self, path: str) -> Dict[str, Any]:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise HttpStatusError(exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise PayloadError(f"Response from {path} is not valid JSON.") from exc
        if not isinstance(payload, dict):
            raise PayloadError(f"Response from {path} is not a JSON object.")
        logger.debug("Fetched payload", extra={"endpoint": path, "status_code": response.status_code})
        return payload

    @staticmethod
    def _decode(model: type[BaseModel], payload: Dict[str, Any], path: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise PayloadError(
                f"Unexpected response payload from {path}: {exc.error_count()} invalid field(s)."
            ) from exc
