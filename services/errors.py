"""Error taxonomy for the history pipeline."""

from __future__ import annotations


class HistoryError(Exception):
    """Base class for user-facing history pipeline failures."""


class ValidationError(HistoryError):
    """The requested date range was rejected."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class FetchError(HistoryError):
    """The history source failed or returned an unusable payload."""


class ExportError(HistoryError):
    """Export was refused because there is nothing to serialize."""


class EmptyResultError(ExportError):
    """The dataset holds no readings."""


class ImageLoadError(HistoryError):
    """A selected image could not be preloaded."""
