"""Interactive history session state: current dataset, error banner, selection."""

from __future__ import annotations

import logging
from typing import Optional

from models.dataset import ChannelPoint, HistoricalDataset, ImageTimeline
from models.records import DateRange
from services.errors import ExportError, FetchError, ValidationError
from services.history import NO_DATA_MESSAGE, ExportArtifact, HistoryResult, HistoryService
from services.selector import DataPointSelector, ImageLoader, SelectionOutcome
from services.validator import DateInput

logger = logging.getLogger(__name__)

FETCH_FAILED_MESSAGE = "Failed to fetch historical data"
EXPORT_UNAVAILABLE_MESSAGE = "No data available to export"


class HistorySession:
    """Holds what a dashboard viewer currently sees.

    Every submission takes a new request token. Results carrying an older
    token are dropped, so the dataset only ever changes wholesale to the
    outcome of the latest query. Errors are recorded in :attr:`error`, which
    holds at most one message at a time.
    """

    def __init__(self, service: HistoryService, image_loader: ImageLoader) -> None:
        self.service = service
        self.selector = DataPointSelector(image_loader, on_error=self._show_error)
        self.result: Optional[HistoryResult] = None
        self.date_range: Optional[DateRange] = None
        self.error: Optional[str] = None
        self._token = 0

    @property
    def dataset(self) -> Optional[HistoricalDataset]:
        return self.result.dataset if self.result is not None else None

    @property
    def timeline(self) -> ImageTimeline:
        if self.result is None:
            return ImageTimeline(interval_ms=self.service.timelapse_interval_ms)
        return self.result.timeline

    @property
    def displayed_image(self) -> Optional[str]:
        return self.selector.displayed

    async def submit(self, start: DateInput, end: DateInput) -> Optional[HistoryResult]:
        self._token += 1
        token = self._token
        self.error = None
        self.result = None
        self.date_range = None
        self.selector.clear()

        try:
            date_range = self.service.validate(start, end)
        except ValidationError as exc:
            self._show_error(str(exc))
            return None

        try:
            result = await self.service.load_range(date_range)
        except FetchError as exc:
            if token != self._token:
                return None
            logger.warning(
                FETCH_FAILED_MESSAGE,
                extra={"request_token": token, "reason": str(exc)},
            )
            self._show_error(FETCH_FAILED_MESSAGE)
            return None

        if token != self._token:
            logger.info("Discarding stale history result", extra={"request_token": token})
            return None
        if result.is_empty:
            self._show_error(NO_DATA_MESSAGE)
            return None

        self.date_range = date_range
        self.result = result
        return result

    def export(self) -> Optional[ExportArtifact]:
        if self.result is None:
            self._show_error(EXPORT_UNAVAILABLE_MESSAGE)
            return None
        try:
            return self.service.export(self.result)
        except ExportError as exc:
            self._show_error(str(exc))
            return None

    def point_at(self, metric: str, index: int) -> ChannelPoint:
        if self.result is None:
            raise LookupError("No dataset loaded.")
        return self.result.dataset.point(metric, index)

    async def select(self, point: ChannelPoint) -> SelectionOutcome:
        return await self.selector.select(point)

    def close_image(self) -> None:
        self.selector.clear()

    def _show_error(self, message: str) -> None:
        self.error = message
