"""Client for the upstream history-data endpoint."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, List, Optional, Protocol

import httpx

from models.records import DateRange, RawReading
from services.errors import FetchError
from settings import get_settings

logger = logging.getLogger(__name__)


class HistoryFetcher(Protocol):
    async def fetch(self, date_range: DateRange) -> List[RawReading]: ...


class HttpHistoryFetcher:
    """Fetches raw readings for a validated range over HTTP.

    An empty list is a valid answer and is returned untouched; every transport
    or payload problem becomes a :class:`FetchError`.
    """

    def __init__(
        self,
        base_url: str,
        path: str = "/api/history-data",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.path = path
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, date_range: DateRange) -> List[RawReading]:
        params = date_range.query_params()
        try:
            response = await self._client.get(self.path, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"History source answered with status {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"History source request failed: {exc}") from exc
        except ValueError as exc:
            raise FetchError("History source returned a non-JSON body.") from exc

        readings = self._parse(payload)
        logger.info(
            "Fetched history readings",
            extra={
                "start_date": date_range.start_iso,
                "end_date": date_range.end_iso,
                "reading_count": len(readings),
            },
        )
        return readings

    @staticmethod
    def _parse(payload: Any) -> List[RawReading]:
        if not isinstance(payload, list):
            raise FetchError("History source returned an unexpected payload.")
        readings: List[RawReading] = []
        for index, item in enumerate(payload):
            try:
                readings.append(RawReading.from_payload(item))
            except TypeError as exc:
                raise FetchError(f"Reading {index} is malformed: {exc}") from exc
        return readings


@lru_cache
def build_default_fetcher() -> HttpHistoryFetcher:
    settings = get_settings()
    return HttpHistoryFetcher(
        base_url=settings.history_base_url,
        path=settings.history_path,
        timeout=settings.fetch_timeout,
    )
