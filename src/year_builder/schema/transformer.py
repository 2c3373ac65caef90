"""Convert a template-year database schema into a creation-ready schema."""

import logging
from typing import Any, Dict, Iterable, Mapping, Union

from year_builder.models.columns import Column, parse_schema
from year_builder.schema.naming import render

logger = logging.getLogger(__name__)

RawProperties = Mapping[str, Dict[str, Any]]


def _as_columns(properties: Union[RawProperties, Mapping[str, Column]]) -> Dict[str, Column]:
    if all(isinstance(value, Column) for value in properties.values()):
        return dict(properties)  # type: ignore[arg-type]
    return parse_schema(dict(properties))  # type: ignore[arg-type]


def transform_schema(
    properties: Union[RawProperties, Mapping[str, Column]],
    omit: Iterable[str],
    year: int | str,
    template_year: int | str,
) -> Dict[str, Dict[str, Any]]:
    """Build the ``properties`` payload for creating a database.

    Only basic column kinds are kept (title, text, number, date, checkbox,
    select, multi-select). Relations are wired separately, formulas and
    rollups are cloned once relations exist, and status columns cannot be
    created through the API at all.

    Args:
        properties: Template schema, raw (``databases.retrieve`` format) or parsed
        omit: Template column names to leave out
        year: Target year
        template_year: Year the template database was built for

    Returns:
        Mapping of rendered column name to creation schema, in template order
    """
    omit_set = set(omit)
    created: Dict[str, Dict[str, Any]] = {}

    for name, column in _as_columns(properties).items():
        if name in omit_set:
            logger.debug(f"Omitting column '{name}' (configured omit list)")
            continue
        if not column.basic:
            if column.kind in ("relation", "formula", "rollup"):
                logger.debug(f"Deferring column {column.describe()} to a later phase")
            else:
                logger.info(f"Dropping column {column.describe()}: cannot be created via API")
            continue

        new_name = render(name, year, token=str(template_year))
        created[new_name] = column.creation_schema()

    return created


def computed_columns(
    properties: Union[RawProperties, Mapping[str, Column]],
) -> Dict[str, Column]:
    """Select the formula and rollup columns of a template schema."""
    return {name: col for name, col in _as_columns(properties).items() if col.computed}


def first_date_column(properties: Union[RawProperties, Mapping[str, Column]]) -> str | None:
    """Name of the first date column in a schema, if any."""
    for name, column in _as_columns(properties).items():
        if column.kind == "date":
            return name
    return None
