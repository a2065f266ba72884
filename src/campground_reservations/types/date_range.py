# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Half-open date ranges used by reservations and the interval index.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

from ..exceptions import ValidationError

DateLike = date | datetime | str


def _to_date(value: DateLike, field_name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            # Accept both "2024-06-01" and full ISO timestamps
            if len(text) > 10:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f"{field_name} is not a valid date: {value!r}") from e
    raise ValidationError(f"{field_name} must be a date, got {type(value).__name__}")


@dataclass(frozen=True)
class DateRange:
    """
    An immutable half-open range of days, ``[start, end)``.

    A stay from June 1st to June 5th occupies the nights of the 1st through
    the 4th; a second stay starting on the 5th does not overlap it.

    Attributes:
        start: First day included in the range
        end: First day after the range (excluded)
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if not isinstance(self.start, date) or not isinstance(self.end, date):
            raise ValidationError("DateRange bounds must be dates")
        # datetime is a date subclass but does not compare with plain dates
        for name in ("start", "end"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())
        if self.start >= self.end:
            raise ValidationError(
                f"start must be before end (got {self.start} >= {self.end})"
            )

    @classmethod
    def parse(cls, start: DateLike, end: DateLike) -> "DateRange":
        """Build a range from dates, datetimes or ISO-8601 strings."""
        return cls(_to_date(start, "startDate"), _to_date(end, "endDate"))

    def overlaps(self, other: "DateRange") -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def clip(self, other: "DateRange") -> "DateRange | None":
        """Return the intersection with ``other``, or None if they do not overlap."""
        if not self.overlaps(other):
            return None
        return DateRange(max(self.start, other.start), min(self.end, other.end))

    @property
    def nights(self) -> int:
        return (self.end - self.start).days

    def days(self) -> list[date]:
        return [self.start + timedelta(days=i) for i in range(self.nights)]

    def end_instant(self) -> datetime:
        """The UTC instant at which the range has fully elapsed."""
        return datetime.combine(self.end, time.min, tzinfo=timezone.utc)

    def to_dict(self) -> dict[str, str]:
        return {"startDate": self.start.isoformat(), "endDate": self.end.isoformat()}

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


__all__ = ["DateLike", "DateRange"]
