"""Rewrite formula expressions and rollup configurations for a new year.

Computed columns reference other columns by name, and those names carry the
template year (``prop("2025 Weeks")``). Cloning a computed column into the
target year means rewriting those references and nothing else.
"""

import re
from typing import Any, Dict

from year_builder.models.columns import Column, FormulaColumn, RollupColumn
from year_builder.schema.naming import render

# prop("<column name>") references inside a formula expression
PROPERTY_REFERENCE = re.compile(r'prop\("([^"]*)"\)')


def rewrite_formula(expression: str, year: int | str, token: str) -> str:
    """Rewrite column references in a formula expression.

    Only names inside ``prop("...")`` that contain the token are changed;
    literals and other text are left alone.

    Args:
        expression: Formula expression from the template database
        year: Target year
        token: Template-year token (e.g. "2025")

    Returns:
        Rewritten expression (the input itself if nothing matched)

    Examples:
        >>> rewrite_formula('prop("2025 Weeks") + 1', 2027, "2025")
        'prop("2027 Weeks") + 1'
    """

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        if token not in name:
            return match.group(0)
        return f'prop("{render(name, year, token=token)}")'

    return PROPERTY_REFERENCE.sub(_replace, expression)


def rewrite_rollup(rollup: RollupColumn, year: int | str, token: str) -> RollupColumn:
    """Rewrite the relation and target column names of a rollup.

    The aggregate function is carried over unchanged.
    """
    return rollup.model_copy(
        update={
            "relation_property_name": render(rollup.relation_property_name, year, token=token),
            "rollup_property_name": render(rollup.rollup_property_name, year, token=token),
        }
    )


def rewrite_column(column: Column, year: int | str, token: str) -> Column:
    """Clone a computed column for the target year (name and references).

    Raises:
        ValueError: If the column is not a formula or rollup
    """
    new_name = render(column.name, year, token=token)
    if isinstance(column, FormulaColumn):
        return column.model_copy(
            update={"name": new_name, "expression": rewrite_formula(column.expression, year, token)}
        )
    if isinstance(column, RollupColumn):
        return rewrite_rollup(column, year, token).model_copy(update={"name": new_name})
    raise ValueError(f"Not a computed column: {column.describe()}")


def computed_creation_schema(column: Column, year: int | str, token: str) -> Dict[str, Any]:
    """Creation payload for a computed column cloned into the target year."""
    return rewrite_column(column, year, token).creation_schema()
