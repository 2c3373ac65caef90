"""Data models for year-builder."""

from year_builder.models.columns import (
    Column,
    RelationColumn,
    UnsupportedColumn,
    UnsupportedColumnKind,
    parse_column,
    parse_schema,
)
from year_builder.models.results import GLYPHS, ItemOutcome, Outcome, PhaseResult, Reporter

__all__ = [
    "Column",
    "RelationColumn",
    "UnsupportedColumn",
    "UnsupportedColumnKind",
    "parse_column",
    "parse_schema",
    "GLYPHS",
    "ItemOutcome",
    "Outcome",
    "PhaseResult",
    "Reporter",
]
