"""Date range validation for history queries."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from functools import lru_cache
from typing import Union

from models.records import DateRange
from services.errors import ValidationError
from settings import get_settings

DateInput = Union[str, date]

INVALID_DATE = "invalid_date"
START_TOO_EARLY = "start_too_early"
END_IN_FUTURE = "end_in_future"
START_AFTER_END = "start_after_end"

DEFAULT_LOOKBACK = timedelta(days=7)


class DateRangeValidator:
    """Turns two calendar dates into a :class:`DateRange` or raises.

    Calendar dates are pinned to midnight in a fixed reference offset rather
    than the caller's local zone, so a range means the same thing wherever it
    is requested from.
    """

    def __init__(self, earliest_date: date, reference_offset: timedelta) -> None:
        self.earliest_date = earliest_date
        self.reference_zone = timezone(reference_offset)

    def validate(self, start: DateInput, end: DateInput, now: datetime) -> DateRange:
        start_day = self._parse_date(start, "start")
        end_day = self._parse_date(end, "end")
        current = self._aware(now)

        if start_day < self.earliest_date:
            raise ValidationError(
                START_TOO_EARLY,
                "Start date cannot be earlier than "
                + self.earliest_date.strftime("%a %b %d %Y"),
            )
        if self._to_instant(end_day) > current:
            raise ValidationError(END_IN_FUTURE, "End date cannot be in the future")
        if start_day > end_day:
            raise ValidationError(START_AFTER_END, "Start date must be before end date")

        return DateRange(
            start=start_day,
            end=end_day,
            same_day=start_day.isoformat() == end_day.isoformat(),
        )

    def today(self, now: datetime) -> date:
        return self._aware(now).astimezone(self.reference_zone).date()

    def default_range(self, now: datetime) -> DateRange:
        """The last week up to today, never reaching before the earliest date."""
        end_day = self.today(now)
        start_day = min(max(self.earliest_date, end_day - DEFAULT_LOOKBACK), end_day)
        return DateRange(start=start_day, end=end_day, same_day=start_day == end_day)

    def _to_instant(self, day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=self.reference_zone)

    @staticmethod
    def _aware(now: datetime) -> datetime:
        if now.tzinfo is None:
            return now.replace(tzinfo=timezone.utc)
        return now

    @staticmethod
    def _parse_date(value: DateInput, label: str) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        candidate = (value or "").strip()
        try:
            return date.fromisoformat(candidate)
        except ValueError as exc:
            raise ValidationError(
                INVALID_DATE, f"Invalid {label} date {candidate!r}; expected YYYY-MM-DD"
            ) from exc


@lru_cache
def build_default_validator() -> DateRangeValidator:
    settings = get_settings()
    return DateRangeValidator(
        earliest_date=settings.earliest_date,
        reference_offset=timedelta(hours=settings.reference_offset_hours),
    )
