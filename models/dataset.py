"""Aligned per-metric time series built from a list of readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence


@dataclass(frozen=True, slots=True)
class ChannelPoint:
    time: int
    value: float
    image_ref: Optional[str] = None


@dataclass(frozen=True)
class HistoricalDataset:
    """Record-of-channels sharing one time axis.

    ``times`` and ``image_refs`` hold one entry per reading and every tuple in
    ``values`` is indexed identically, so a channel can never drift out of
    alignment with its siblings.
    """

    times: tuple[int, ...]
    values: Mapping[str, tuple[float, ...]]
    image_refs: tuple[Optional[str], ...]

    def __post_init__(self) -> None:
        size = len(self.times)
        if len(self.image_refs) != size:
            raise ValueError("image_refs must have one entry per timestamp.")
        for metric, column in self.values.items():
            if len(column) != size:
                raise ValueError(f"Channel {metric!r} is not aligned with the time axis.")
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    @classmethod
    def empty(cls, metrics: Sequence[str] = ()) -> "HistoricalDataset":
        return cls(times=(), values={name: () for name in metrics}, image_refs=())

    def __len__(self) -> int:
        return len(self.times)

    @property
    def is_empty(self) -> bool:
        return not self.times

    @property
    def metrics(self) -> tuple[str, ...]:
        return tuple(self.values)

    def channel(self, metric: str) -> tuple[ChannelPoint, ...]:
        column = self.values[metric]
        return tuple(
            ChannelPoint(time=time, value=value, image_ref=image_ref)
            for time, value, image_ref in zip(self.times, column, self.image_refs)
        )

    def point(self, metric: str, index: int) -> ChannelPoint:
        return ChannelPoint(
            time=self.times[index],
            value=self.values[metric][index],
            image_ref=self.image_refs[index],
        )

    def value_at(self, metric: str, index: int) -> Optional[float]:
        column = self.values.get(metric)
        if column is None or not 0 <= index < len(column):
            return None
        return column[index]


@dataclass(frozen=True, slots=True)
class ImageTimeline:
    """Ordered image references driving timelapse playback."""

    frames: tuple[str, ...] = field(default_factory=tuple)
    interval_ms: int = 500

    def __len__(self) -> int:
        return len(self.frames)

    def frame_at(self, elapsed_ms: int) -> Optional[str]:
        """Frame on screen after ``elapsed_ms`` of looping playback."""
        if not self.frames:
            return None
        tick = max(elapsed_ms, 0) // self.interval_ms
        return self.frames[tick % len(self.frames)]
