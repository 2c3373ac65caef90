"""Week and month bucket calculation."""

from year_builder.calendar.weeks import (
    MONTHS,
    MonthBucket,
    WeekBucket,
    assign_week_to_month,
    compute_months,
    compute_weeks,
    format_week_range,
    week_number_from_title,
)

__all__ = [
    "MONTHS",
    "MonthBucket",
    "WeekBucket",
    "assign_week_to_month",
    "compute_months",
    "compute_weeks",
    "format_week_range",
    "week_number_from_title",
]
