"""Calendar buckets for a target year.

Weeks run Sunday to Saturday and are numbered from the week containing
January 1st (Google Calendar numbering). Months are the fixed twelve calendar
months, each with the seed title used when rows are first created and the
final label applied afterwards.
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional


@dataclass(frozen=True)
class WeekBucket:
    """One Sunday-to-Saturday span.

    Attributes:
        number: 1-based week number within the year
        start: Sunday the week starts on (may fall in the previous year)
        end: Saturday the week ends on (may fall in the next year)
    """

    number: int
    start: date
    end: date

    @property
    def title(self) -> str:
        """Row title, e.g. "Week 01"."""
        return f"Week {self.number:02d}"


@dataclass(frozen=True)
class MonthBucket:
    """One calendar month.

    Attributes:
        index: Month number, 1-12
        title: Seed title ("January")
        label: Final title ("01. Jan")
        icon: Emoji icon applied together with the label
    """

    index: int
    title: str
    label: str
    icon: str


MONTHS = (
    MonthBucket(1, "January", "01. Jan", "⛄"),
    MonthBucket(2, "February", "02. Feb", "❤️"),
    MonthBucket(3, "March", "03. Mar", "☘️"),
    MonthBucket(4, "April", "04. Apr", "☂️"),
    MonthBucket(5, "May", "05. May", "💐"),
    MonthBucket(6, "June", "06. Jun", "☀️"),
    MonthBucket(7, "July", "07. Jul", "🍦"),
    MonthBucket(8, "August", "08. Aug", "✏️"),
    MonthBucket(9, "September", "09. Sep", "🍎"),
    MonthBucket(10, "October", "10. Oct", "🎃"),
    MonthBucket(11, "November", "11. Nov", "🍁"),
    MonthBucket(12, "December", "12. Dec", "❄️"),
)

_WEEK_NUMBER_RE = re.compile(r"\d+")


def compute_weeks(year: int) -> List[WeekBucket]:
    """Compute the Sunday-aligned weeks of a year.

    Week 1 starts on the Sunday on or before January 1st. Weeks are emitted
    while their start is on or before December 31st, so a year has 53
    weeks, or 54 when it is a leap year starting on a Saturday.

    Args:
        year: Target year

    Returns:
        Contiguous, non-overlapping list of 7-day weeks

    Examples:
        >>> weeks = compute_weeks(2026)
        >>> weeks[0].start, weeks[0].end
        (datetime.date(2025, 12, 28), datetime.date(2026, 1, 3))
        >>> len(weeks)
        53
    """
    jan1 = date(year, 1, 1)
    dec31 = date(year, 12, 31)

    # date.weekday() is Monday=0 .. Sunday=6
    days_since_sunday = (jan1.weekday() + 1) % 7
    current_start = jan1 - timedelta(days=days_since_sunday)

    weeks: List[WeekBucket] = []
    number = 1
    while current_start <= dec31:
        current_end = current_start + timedelta(days=6)
        if current_end >= jan1:
            weeks.append(WeekBucket(number=number, start=current_start, end=current_end))
            number += 1
        current_start += timedelta(days=7)

    return weeks


def compute_months() -> List[MonthBucket]:
    """Return the twelve months in calendar order."""
    return list(MONTHS)


def assign_week_to_month(week: WeekBucket, year: int) -> MonthBucket:
    """Determine which month owns a week.

    A week containing the 1st of a month belongs to that month, so a week
    spanning a month boundary goes to the later month. Otherwise the week
    belongs to the month its start date falls in.

    Args:
        week: Week to assign
        year: Year the week was computed for

    Returns:
        Owning month
    """
    for month in MONTHS:
        first_of_month = date(year, month.index, 1)
        if week.start <= first_of_month <= week.end:
            return month
    return MONTHS[week.start.month - 1]


def week_number_from_title(title: str) -> Optional[int]:
    """Extract the week number from a row title like "Week 07"."""
    match = _WEEK_NUMBER_RE.search(title)
    return int(match.group()) if match else None


def format_day(day: date) -> str:
    """Format a date for progress output, e.g. "Jan 4"."""
    return f"{day.strftime('%b')} {day.day}"


def format_week_range(week: WeekBucket) -> str:
    """Format a week's span for progress output, e.g. "Dec 28 - Jan 3"."""
    return f"{format_day(week.start)} - {format_day(week.end)}"
