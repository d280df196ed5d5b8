"""End-to-end history pipeline: validate, fetch, transform, export."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Optional

from models.dataset import HistoricalDataset, ImageTimeline
from models.records import DateRange
from services.errors import FetchError
from services.exporter import CsvExporter, export_filename
from services.fetcher import HistoryFetcher, build_default_fetcher
from services.images import extract_images
from services.transformer import MultiChannelTransformer, build_default_transformer
from services.validator import DateInput, DateRangeValidator, build_default_validator
from settings import get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

NO_DATA_MESSAGE = "No data found for the selected date range."


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HistoryResult:
    date_range: DateRange
    dataset: HistoricalDataset
    timeline: ImageTimeline

    @property
    def is_empty(self) -> bool:
        return self.dataset.is_empty


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    content: str
    media_type: str = "text/csv; charset=utf-8"


class HistoryService:
    """Stateless pipeline; every call works on its own range and dataset."""

    def __init__(
        self,
        validator: DateRangeValidator,
        fetcher: HistoryFetcher,
        transformer: MultiChannelTransformer,
        exporter: CsvExporter,
        timelapse_interval_ms: int = 500,
        clock: Clock = utc_now,
    ) -> None:
        self.validator = validator
        self.fetcher = fetcher
        self.transformer = transformer
        self.exporter = exporter
        self.timelapse_interval_ms = timelapse_interval_ms
        self.clock = clock

    def validate(self, start: DateInput, end: DateInput) -> DateRange:
        return self.validator.validate(start, end, self.clock())

    def default_range(self) -> DateRange:
        return self.validator.default_range(self.clock())

    async def load(self, start: DateInput, end: DateInput) -> HistoryResult:
        """Validate then fetch and transform; an empty range is not an error."""
        return await self.load_range(self.validate(start, end))

    async def load_range(self, date_range: DateRange) -> HistoryResult:
        readings = await self.fetcher.fetch(date_range)
        try:
            dataset = self.transformer.transform(readings)
        except ValueError as exc:
            raise FetchError(f"History source returned an unreadable timestamp: {exc}") from exc

        if dataset.is_empty:
            logger.info(
                NO_DATA_MESSAGE,
                extra={"start_date": date_range.start_iso, "end_date": date_range.end_iso},
            )
        return HistoryResult(
            date_range=date_range,
            dataset=dataset,
            timeline=extract_images(dataset, interval_ms=self.timelapse_interval_ms),
        )

    def export(self, result: HistoryResult) -> ExportArtifact:
        content = self.exporter.export(result.dataset, result.date_range)
        return ExportArtifact(filename=export_filename(result.date_range), content=content)


@lru_cache
def build_default_service(fetcher: Optional[HistoryFetcher] = None) -> HistoryService:
    """Factory that wires the pipeline from settings."""
    settings = get_settings()
    return HistoryService(
        validator=build_default_validator(),
        fetcher=fetcher or build_default_fetcher(),
        transformer=build_default_transformer(),
        exporter=CsvExporter(),
        timelapse_interval_ms=settings.timelapse_interval_ms,
    )
