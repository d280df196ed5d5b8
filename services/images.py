"""Image timeline extraction for timelapse playback."""

from __future__ import annotations

from models.dataset import HistoricalDataset, ImageTimeline


def extract_images(dataset: HistoricalDataset, interval_ms: int = 500) -> ImageTimeline:
    """Collect the image references of the dataset in reading order.

    Every channel shares the same image column, so the dataset's single
    ``image_refs`` tuple is the reference channel here. Readings without an
    image are skipped rather than kept as placeholders.
    """
    frames = tuple(ref for ref in dataset.image_refs if ref)
    return ImageTimeline(frames=frames, interval_ms=interval_ms)
