"""Show how a year is split into weeks and months."""

import click

from year_builder.calendar import assign_week_to_month, compute_weeks, format_week_range


@click.command()
@click.argument("year", type=click.IntRange(1900, 9999))
def weeks(year: int) -> None:
    """Print the week rows a year would get, with their owning month.

    Needs no Notion access.

    \b
    Example:
        year-builder weeks 2026
    """
    buckets = compute_weeks(year)
    for week in buckets:
        month = assign_week_to_month(week, year)
        click.echo(f"{week.title}  {format_week_range(week):<16} → {month.title}")
    click.echo(f"\n{len(buckets)} weeks")
