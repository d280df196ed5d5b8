"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from models.records import DateRange
from services.history import NO_DATA_MESSAGE, HistoryResult


class HistoryStatus(str, Enum):
    """Outcome of a history query."""

    ok = "ok"
    empty = "empty"


class TickFormat(str, Enum):
    hourly = "hourly"
    daily = "daily"


class DateRangeResponse(BaseModel):
    """A validated query range."""

    start_date: date
    end_date: date
    same_day: bool
    tick_format: TickFormat

    @classmethod
    def from_range(cls, date_range: DateRange) -> "DateRangeResponse":
        return cls(
            start_date=date_range.start,
            end_date=date_range.end,
            same_day=date_range.same_day,
            tick_format=TickFormat(date_range.tick_format),
        )


class ChannelPointResponse(BaseModel):
    time: int = Field(..., description="Epoch milliseconds.")
    value: Optional[float] = Field(None, description="Null when the source scalar was not a number.")
    image_url: Optional[str] = None


class HistoryResponse(DateRangeResponse):
    """Aligned channels and timelapse frames for a range."""

    status: HistoryStatus
    detail: Optional[str] = None
    channels: Dict[str, List[ChannelPointResponse]] = Field(default_factory=dict)
    images: List[str] = Field(default_factory=list)
    timelapse_interval_ms: int = Field(..., gt=0)

    @classmethod
    def from_result(cls, result: HistoryResult) -> "HistoryResponse":
        dataset = result.dataset
        channels = {
            metric: [
                ChannelPointResponse(
                    time=point.time,
                    value=point.value if math.isfinite(point.value) else None,
                    image_url=point.image_ref,
                )
                for point in dataset.channel(metric)
            ]
            for metric in dataset.metrics
        }
        date_range = result.date_range
        return cls(
            start_date=date_range.start,
            end_date=date_range.end,
            same_day=date_range.same_day,
            tick_format=TickFormat(date_range.tick_format),
            status=HistoryStatus.empty if result.is_empty else HistoryStatus.ok,
            detail=NO_DATA_MESSAGE if result.is_empty else None,
            channels=channels,
            images=list(result.timeline.frames),
            timelapse_interval_ms=result.timeline.interval_ms,
        )
