from __future__ import annotations

import csv
import io
import math
from datetime import date, timedelta

import pytest

from models.dataset import HistoricalDataset, ImageTimeline
from models.records import METRICS, DateRange, RawReading
from services.errors import EmptyResultError, ExportError
from services.exporter import HEADERS, CsvExporter, export_filename
from services.images import extract_images
from services.transformer import MultiChannelTransformer

RANGE = DateRange(start=date(2024, 11, 20), end=date(2024, 11, 21), same_day=False)


def _dataset(*image_urls: str | None) -> HistoricalDataset:
    readings = [
        RawReading(
            timestamp=f"2024-11-20T10:{index:02d}:00.000Z",
            image_url=image_url,
            **{metric.name: position + index / 10 for position, metric in enumerate(METRICS)},
        )
        for index, image_url in enumerate(image_urls)
    ]
    return MultiChannelTransformer(timedelta(hours=-6)).transform(readings)


def test_extract_images_keeps_order_and_drops_missing() -> None:
    dataset = _dataset("https://img/a.jpg", None, "", "https://img/b.jpg")

    timeline = extract_images(dataset)

    assert timeline.frames == ("https://img/a.jpg", "https://img/b.jpg")
    assert timeline.interval_ms == 500


def test_extract_images_from_dataset_without_images() -> None:
    timeline = extract_images(_dataset(None, None), interval_ms=250)

    assert len(timeline) == 0
    assert timeline.frame_at(1000) is None


def test_timeline_playback_loops() -> None:
    timeline = ImageTimeline(frames=("a", "b", "c"), interval_ms=500)

    assert timeline.frame_at(0) == "a"
    assert timeline.frame_at(499) == "a"
    assert timeline.frame_at(500) == "b"
    assert timeline.frame_at(1500) == "a"


def test_export_writes_header_and_one_row_per_reading() -> None:
    content = CsvExporter().export(_dataset("https://img/a.jpg", None), RANGE)

    lines = content.splitlines()
    assert len(lines) == 3
    rows = list(csv.reader(io.StringIO(content)))
    assert tuple(rows[0]) == HEADERS
    assert rows[0][0] == "Timestamp"
    assert "Solar Irradiance (W/m²)" not in rows[0]
    assert len(rows[1]) == 1 + len(METRICS)
    assert rows[1][0] == "2024-11-20T16:00:00.000Z"
    assert rows[2][0] == "2024-11-20T16:01:00.000Z"
    assert rows[1][1:] == [f"{position:.2f}" for position in range(len(METRICS))]
    assert rows[2][1] == "0.10"


def test_export_header_follows_declared_metric_order() -> None:
    assert HEADERS == (
        "Timestamp",
        "Temperature (°C)",
        "Humidity (%)",
        "Pressure (hPa)",
        "Wind Max Speed (km/h)",
        "Wind Speed (km/h)",
        "Wind Direction (°)",
        "Ambient Temperature (°C)",
        "Ambient Humidity (%)",
        "Rain (mm)",
        "UV Index",
        "UVI",
        "Light Lux (lx)",
    )


def test_export_tolerates_missing_channel_entries() -> None:
    dataset = HistoricalDataset(
        times=(0,),
        values={"temperature": (12.5,), "humidity": (math.nan,)},
        image_refs=(None,),
    )

    rows = list(csv.reader(io.StringIO(CsvExporter().export(dataset, RANGE))))

    assert rows[1][0] == "1970-01-01T00:00:00.000Z"
    assert rows[1][1] == "12.50"
    assert rows[1][2] == "NaN"
    assert rows[1][3:] == [""] * (len(METRICS) - 2)


def test_export_of_empty_dataset_is_refused() -> None:
    dataset = MultiChannelTransformer().transform([])

    with pytest.raises(EmptyResultError) as info:
        CsvExporter().export(dataset, RANGE)

    assert isinstance(info.value, ExportError)
    assert str(info.value) == "No data available to export"


def test_export_filename_uses_range_dates() -> None:
    assert export_filename(RANGE) == "weather_data_2024-11-20_to_2024-11-21.csv"
