"""CSV serialization of a historical dataset."""

from __future__ import annotations

import csv
import io
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from models.dataset import HistoricalDataset
from models.records import METRICS, DateRange
from services.errors import EmptyResultError

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

TIMESTAMP_HEADER = "Timestamp"
HEADERS = (TIMESTAMP_HEADER, *(metric.label for metric in METRICS))


def export_filename(date_range: DateRange) -> str:
    return f"weather_data_{date_range.start_iso}_to_{date_range.end_iso}.csv"


def format_instant(epoch_ms: int) -> str:
    instant = _EPOCH + timedelta(milliseconds=epoch_ms)
    return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_cell(value: Optional[float]) -> str:
    if value is None:
        return ""
    if math.isnan(value):
        return "NaN"
    return f"{value:.2f}"


class CsvExporter:
    """Writes the twelve raw metrics, one row per reading.

    The derived irradiance channel is display only and never exported.
    """

    def export(self, dataset: HistoricalDataset, date_range: DateRange) -> str:
        if dataset.is_empty:
            raise EmptyResultError("No data available to export")

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(HEADERS)
        for index, epoch_ms in enumerate(dataset.times):
            writer.writerow(
                [format_instant(epoch_ms)]
                + [format_cell(dataset.value_at(metric.name, index)) for metric in METRICS]
            )
        logger.info(
            "Exported history as CSV",
            extra={
                "start_date": date_range.start_iso,
                "end_date": date_range.end_iso,
                "row_count": len(dataset),
            },
        )
        return buffer.getvalue()
