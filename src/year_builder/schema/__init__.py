"""Schema transformation and expression rewriting for year cloning."""

from year_builder.schema.expressions import (
    computed_creation_schema,
    rewrite_column,
    rewrite_formula,
    rewrite_rollup,
)
from year_builder.schema.naming import YEAR_PLACEHOLDER, render
from year_builder.schema.transformer import (
    computed_columns,
    first_date_column,
    transform_schema,
)

__all__ = [
    "YEAR_PLACEHOLDER",
    "computed_columns",
    "computed_creation_schema",
    "first_date_column",
    "render",
    "rewrite_column",
    "rewrite_formula",
    "rewrite_rollup",
    "transform_schema",
]
