"""Turns raw readings into aligned per-metric channels."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Context, Decimal
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional

from models.dataset import HistoricalDataset
from models.records import LIGHT_LUX, METRICS, SOLAR_IRRADIANCE, RawReading
from settings import get_settings

# W/m² per lux, applied to the already-rounded lux value.
LUX_TO_IRRADIANCE = 0.0079

_ZONE_SUFFIX = re.compile(r"(?:[Zz]|[+-]\d{2}:?\d{2})$")
_FRACTION = re.compile(r"\.(\d+)$")
_CENTS = Decimal("0.01")
# wide enough to quantize any finite float
_WIDE = Context(prec=400)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)


def round2(value: Any) -> float:
    """Round half away from zero to two decimals.

    Values that are not numbers come back as NaN instead of raising.
    """
    number = _coerce(value)
    if not math.isfinite(number):
        return number
    rounded = float(Decimal(repr(number)).quantize(_CENTS, rounding=ROUND_HALF_UP, context=_WIDE))
    # folds -0.0 into 0.0
    return rounded + 0.0


def _coerce(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float, str)):
        try:
            return float(value)
        except (OverflowError, ValueError):
            return math.nan
    return math.nan


def parse_wall_clock(timestamp: str, zone: timezone) -> int:
    """Epoch milliseconds for a receiver-local timestamp.

    Any trailing zone marker is dropped before parsing: the station writes
    local wall-clock time and marks it as UTC.
    """
    candidate = _ZONE_SUFFIX.sub("", timestamp.strip())
    candidate = _FRACTION.sub(_microseconds, candidate)
    parsed = datetime.fromisoformat(candidate)
    return (parsed.replace(tzinfo=zone) - _EPOCH) // _MILLISECOND


def _microseconds(match: "re.Match[str]") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


class MultiChannelTransformer:
    """Single pass over the readings producing one column per metric."""

    def __init__(self, wall_clock_offset: timedelta = timedelta(0)) -> None:
        self.zone = timezone(wall_clock_offset)

    def transform(self, readings: Iterable[RawReading]) -> HistoricalDataset:
        times: List[int] = []
        image_refs: List[Optional[str]] = []
        columns: Dict[str, List[float]] = {metric.name: [] for metric in METRICS}

        for reading in readings:
            times.append(parse_wall_clock(reading.timestamp, self.zone))
            image_refs.append(reading.image_url or None)
            for metric in METRICS:
                columns[metric.name].append(round2(reading.scalar(metric)))

        columns[SOLAR_IRRADIANCE.name] = [
            round2(lux * LUX_TO_IRRADIANCE) for lux in columns[LIGHT_LUX.name]
        ]

        return HistoricalDataset(
            times=tuple(times),
            values={name: tuple(column) for name, column in columns.items()},
            image_refs=tuple(image_refs),
        )


@lru_cache
def build_default_transformer() -> MultiChannelTransformer:
    settings = get_settings()
    return MultiChannelTransformer(timedelta(hours=settings.wall_clock_offset_hours))
