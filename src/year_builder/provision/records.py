"""Create and read back the calendar rows of a year.

Covers month rows, dated week rows, per-week and per-month child rows, and
the single year row. Callers probe for each row by exact title before
creating it.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from year_builder.calendar.weeks import MonthBucket, WeekBucket, week_number_from_title
from year_builder.schema.transformer import first_date_column
from year_builder.utils.notion_client import NotionAPIError, NotionClient
from year_builder.utils.notion_objects import (
    date_value,
    relation_value,
    row_date_range,
    row_title,
    title_value,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeekRow:
    """A week row read back from the Weeks database."""

    row_id: str
    title: str
    number: int
    start: date
    end: date

    def bucket(self) -> WeekBucket:
        return WeekBucket(number=self.number, start=self.start, end=self.end)


def weekly_title(week_number: int, suffix: str) -> str:
    """Title of a per-week child row, e.g. "Week 07 Work Retro"."""
    return f"Week {week_number:02d} {suffix}"


def monthly_title(month: MonthBucket, suffix: str) -> str:
    """Title of a per-month child row, e.g. "03. Mar Recap"."""
    return f"{month.label} {suffix}"


def week_date_column(client: NotionClient, template_weeks_id: Optional[str], fallback: str) -> str:
    """Name of the date column of the Weeks database.

    Taken from the template Weeks database (first date column). The
    template schema is immutable, so the cached read is used.
    """
    if not template_weeks_id:
        return fallback
    try:
        properties = client.get_table_schema(template_weeks_id, use_cache=True)
    except NotionAPIError as e:
        logger.warning(f"Could not read template Weeks schema, using '{fallback}': {e}")
        return fallback
    return first_date_column(properties) or fallback


def read_week_rows(
    client: NotionClient, weeks_id: str, title_column: str, date_column: str
) -> List[WeekRow]:
    """Read all dated week rows, sorted by week number.

    Rows without a usable date range or week number are ignored.

    Raises:
        NotionAPIError: If the rows cannot be read
    """
    weeks = []
    for row in client.query_rows(weeks_id):
        title = row_title(row, title_column)
        number = week_number_from_title(title)
        span = row_date_range(row, date_column)
        if number is None or span is None:
            logger.debug(f'Ignoring week row "{title}" without number or dates')
            continue
        weeks.append(WeekRow(row_id=row["id"], title=title, number=number, start=span[0], end=span[1]))
    return sorted(weeks, key=lambda w: w.number)


def read_month_rows(client: NotionClient, months_id: str, title_column: str) -> Dict[str, str]:
    """Map month row title to row ID.

    Raises:
        NotionAPIError: If the rows cannot be read
    """
    months: Dict[str, str] = {}
    for row in client.query_rows(months_id):
        title = row_title(row, title_column)
        if title:
            months[title] = row["id"]
    return months


def resolve_month_row(months: Dict[str, str], month: MonthBucket) -> Optional[str]:
    """Row ID of a month, whether it still has its seed title or its label."""
    return months.get(month.label) or months.get(month.title)


def create_month_row(client: NotionClient, months_id: str, title_column: str, month: MonthBucket) -> str:
    """Create a month row with its seed title."""
    return client.create_row(months_id, {title_column: title_value(month.title)})


def create_week_row(
    client: NotionClient,
    weeks_id: str,
    title_column: str,
    date_column: str,
    week: WeekBucket,
) -> str:
    """Create a week row with its Sunday-to-Saturday date range."""
    return client.create_row(
        weeks_id,
        {
            title_column: title_value(week.title),
            date_column: date_value(week.start, week.end),
        },
    )


def link_week_to_month(client: NotionClient, week_row_id: str, relation_column: str, month_row_id: str) -> None:
    """Point a week row's month relation at its owning month."""
    client.update_row(week_row_id, {relation_column: relation_value([month_row_id])})


def relabel_month(client: NotionClient, row_id: str, title_column: str, month: MonthBucket) -> None:
    """Give a month row its final label and icon."""
    client.update_row(row_id, {title_column: title_value(month.label)}, icon=month.icon)


def create_child_row(
    client: NotionClient,
    table_id: str,
    title_column: str,
    title: str,
    relation_column: str,
    parent_row_id: str,
) -> str:
    """Create a row linked to its parent week or month row."""
    return client.create_row(
        table_id,
        {
            title_column: title_value(title),
            relation_column: relation_value([parent_row_id]),
        },
    )


def create_year_row(
    client: NotionClient,
    year_table_id: str,
    title_column: str,
    year: int,
    relation_column: str,
    month_row_ids: Iterable[str],
) -> str:
    """Create the year row linked to every month row."""
    return client.create_row(
        year_table_id,
        {
            title_column: title_value(str(year)),
            relation_column: relation_value(month_row_ids),
        },
    )
