"""
Calendar and date utilities

Every date in FinanceHub is a plain ``datetime.date`` interpreted as local
midnight. Strings are parsed once at the storage boundary and never
re-parsed inside the engine.

Business days are Monday through Friday; no holiday calendar is applied.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Union


DateLike = Union[date, datetime, str]


@dataclass(frozen=True, order=True)
class MonthKey:
    """A calendar month, ordered chronologically and printed as ``YYYY-MM``."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month out of range: {self.month}")

    @classmethod
    def parse(cls, value: str) -> "MonthKey":
        """Parse ``YYYY-MM`` (a trailing ``-DD`` is tolerated and ignored)."""
        parts = str(value).strip().split("-")
        if len(parts) < 2:
            raise ValueError(f"Invalid month key: {value!r}")
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError as e:
            raise ValueError(f"Invalid month key: {value!r}") from e

    @classmethod
    def from_date(cls, value: date) -> "MonthKey":
        return cls(value.year, value.month)

    def shift(self, months: int) -> "MonthKey":
        """Return the month ``months`` months away (negative goes back)."""
        index = self.year * 12 + (self.month - 1) + months
        return MonthKey(index // 12, index % 12 + 1)

    def months_until(self, other: "MonthKey") -> int:
        """Signed number of months from this key to ``other``."""
        return (other.year - self.year) * 12 + (other.month - self.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, last_day_of_month(self.year, self.month))

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def parse_date(value: DateLike) -> date:
    """
    Convert a stored value into a calendar date.

    Accepts ``date``, ``datetime`` (time part dropped) or an ISO
    ``YYYY-MM-DD`` string; a longer ISO timestamp is cut to its date.

    Raises:
        ValueError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) >= 10:
            return date.fromisoformat(text[:10])
    raise ValueError(f"Invalid date: {value!r}")


def is_business_day(value: date) -> bool:
    """True for Monday through Friday."""
    return value.weekday() < 5


def business_days_between(start: date, end: date) -> int:
    """
    Count business days in the inclusive range [start, end].

    Returns 0 when ``end`` is before ``start``.
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5

    weekday = start.weekday()
    for offset in range(remainder):
        if (weekday + offset) % 7 < 5:
            count += 1

    return count


def month_key(value: date) -> MonthKey:
    """The month the date falls in."""
    return MonthKey.from_date(value)


def last_day_of_month(year: int, month: int) -> int:
    """Number of the last day of the month (leap-year aware)."""
    return calendar.monthrange(year, month)[1]


def last_business_day_of_month(year: int, month: int) -> date:
    """Last Monday-Friday of the month."""
    day = date(year, month, last_day_of_month(year, month))
    while not is_business_day(day):
        day -= timedelta(days=1)
    return day


def add_months(value: date, months: int) -> date:
    """
    Add calendar months to a date.

    The day of month is clamped to the target month's length, so
    2024-01-31 + 1 month is 2024-02-29. Adding and then subtracting the same
    number of months is therefore not an identity for month-end days.
    """
    target = MonthKey.from_date(value).shift(months)
    day = min(value.day, last_day_of_month(target.year, target.month))
    return date(target.year, target.month, day)


def due_date_in_month(due_day: int, key: MonthKey) -> date:
    """The date of a monthly due day inside ``key``, clamped to the month length."""
    day = max(1, min(int(due_day), last_day_of_month(key.year, key.month)))
    return date(key.year, key.month, day)


def generate_month_range(start: MonthKey, end: MonthKey) -> list[MonthKey]:
    """Month keys from start to end (inclusive)."""
    return [start.shift(i) for i in range(start.months_until(end) + 1)]
