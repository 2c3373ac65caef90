"""Database column (Notion property) schemas.

Columns are modelled as a tagged union: one pydantic model per Notion property
type, each knowing how to render itself in creation format. Property types
that cannot be represented fall back to ``UnsupportedColumn``.
"""

from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, Field


class UnsupportedColumnKind(ValueError):
    """Raised when a column kind cannot be created through the API."""

    pass


class ChoiceOption(BaseModel):
    """Option of a select or multi-select column.

    Only name and color are carried over; option ids are workspace-specific.
    """

    name: str
    color: str = "default"


class Column(BaseModel):
    """Base column schema.

    Attributes:
        name: Column name as shown in the database
    """

    name: str

    # Notion property type this variant handles
    kind: ClassVar[str] = ""
    # Created together with the database (phase 1)
    basic: ClassVar[bool] = False
    # Formula or rollup (phase 3)
    computed: ClassVar[bool] = False

    @classmethod
    def from_notion(cls, name: str, raw: Dict[str, Any]) -> "Column":
        """Build a column from the ``databases.retrieve`` property format."""
        return cls(name=name)

    def creation_schema(self) -> Dict[str, Any]:
        """Property schema in ``databases.create`` / ``databases.update`` format."""
        return {self.kind: {}}

    def describe(self) -> str:
        """Short human-readable description."""
        return f"{self.name} ({self.kind})"


class TitleColumn(Column):
    kind: ClassVar[str] = "title"
    basic: ClassVar[bool] = True


class TextColumn(Column):
    kind: ClassVar[str] = "rich_text"
    basic: ClassVar[bool] = True


class NumberColumn(Column):
    kind: ClassVar[str] = "number"
    basic: ClassVar[bool] = True


class DateColumn(Column):
    kind: ClassVar[str] = "date"
    basic: ClassVar[bool] = True


class CheckboxColumn(Column):
    kind: ClassVar[str] = "checkbox"
    basic: ClassVar[bool] = True


class SelectColumn(Column):
    """Single-choice column."""

    kind: ClassVar[str] = "select"
    basic: ClassVar[bool] = True

    options: List[ChoiceOption] = Field(default_factory=list)

    @classmethod
    def from_notion(cls, name: str, raw: Dict[str, Any]) -> "Column":
        config = raw.get(cls.kind) or {}
        options = [
            ChoiceOption(name=opt["name"], color=opt.get("color", "default"))
            for opt in config.get("options", [])
        ]
        return cls(name=name, options=options)

    def creation_schema(self) -> Dict[str, Any]:
        return {self.kind: {"options": [opt.model_dump() for opt in self.options]}}

    def describe(self) -> str:
        return f"{self.name} ({self.kind}, {len(self.options)} options)"


class MultiSelectColumn(SelectColumn):
    """Multi-choice column."""

    kind: ClassVar[str] = "multi_select"


class StatusColumn(Column):
    """Status column. The API can read these but not create them."""

    kind: ClassVar[str] = "status"

    def creation_schema(self) -> Dict[str, Any]:
        raise UnsupportedColumnKind(
            f"Column '{self.name}': status columns must be created manually"
        )


class FormulaColumn(Column):
    kind: ClassVar[str] = "formula"
    computed: ClassVar[bool] = True

    expression: str = ""

    @classmethod
    def from_notion(cls, name: str, raw: Dict[str, Any]) -> "Column":
        config = raw.get(cls.kind) or {}
        return cls(name=name, expression=config.get("expression", ""))

    def creation_schema(self) -> Dict[str, Any]:
        return {"formula": {"expression": self.expression}}


class RollupColumn(Column):
    """Aggregate over a related database's column."""

    kind: ClassVar[str] = "rollup"
    computed: ClassVar[bool] = True

    relation_property_name: str
    rollup_property_name: str
    function: str

    @classmethod
    def from_notion(cls, name: str, raw: Dict[str, Any]) -> "Column":
        config = raw.get(cls.kind) or {}
        return cls(
            name=name,
            relation_property_name=config.get("relation_property_name", ""),
            rollup_property_name=config.get("rollup_property_name", ""),
            function=config.get("function", "show_original"),
        )

    def creation_schema(self) -> Dict[str, Any]:
        return {
            "rollup": {
                "relation_property_name": self.relation_property_name,
                "rollup_property_name": self.rollup_property_name,
                "function": self.function,
            }
        }

    def describe(self) -> str:
        return f"{self.name} (rollup {self.function} of {self.relation_property_name})"


class RelationColumn(Column):
    """Cross-database reference.

    When ``synced_property_name`` is set the column is created as a dual
    property: Notion adds and keeps in sync the reverse column on the target.
    """

    kind: ClassVar[str] = "relation"

    database_id: str
    synced_property_name: Optional[str] = None

    @classmethod
    def from_notion(cls, name: str, raw: Dict[str, Any]) -> "Column":
        config = raw.get(cls.kind) or {}
        dual = config.get("dual_property") or {}
        return cls(
            name=name,
            database_id=config.get("database_id", ""),
            synced_property_name=dual.get("synced_property_name"),
        )

    def creation_schema(self) -> Dict[str, Any]:
        if self.synced_property_name:
            return {
                "relation": {
                    "database_id": self.database_id,
                    "dual_property": {"synced_property_name": self.synced_property_name},
                }
            }
        return {"relation": {"database_id": self.database_id, "single_property": {}}}

    def describe(self) -> str:
        return f"{self.name} (relation → {self.database_id})"


class UnsupportedColumn(Column):
    """Any property type without a dedicated model (people, files, url, ...)."""

    type: str = "unknown"

    @classmethod
    def from_notion(cls, name: str, raw: Dict[str, Any]) -> "Column":
        return cls(name=name, type=str(raw.get("type", "unknown")))

    def creation_schema(self) -> Dict[str, Any]:
        raise UnsupportedColumnKind(f"Column '{self.name}': unsupported type '{self.type}'")

    def describe(self) -> str:
        return f"{self.name} ({self.type}, unsupported)"


COLUMN_TYPES: Dict[str, Type[Column]] = {
    cls.kind: cls
    for cls in (
        TitleColumn,
        TextColumn,
        NumberColumn,
        DateColumn,
        CheckboxColumn,
        SelectColumn,
        MultiSelectColumn,
        StatusColumn,
        FormulaColumn,
        RollupColumn,
        RelationColumn,
    )
}


def parse_column(name: str, raw: Dict[str, Any]) -> Column:
    """Parse one property from ``databases.retrieve`` into its column model.

    Args:
        name: Property name
        raw: Property object (must carry a ``type`` key)

    Returns:
        Matching Column variant, or UnsupportedColumn for unknown types
    """
    column_cls = COLUMN_TYPES.get(raw.get("type", ""), UnsupportedColumn)
    return column_cls.from_notion(name, raw)


def parse_schema(properties: Dict[str, Dict[str, Any]]) -> Dict[str, Column]:
    """Parse a whole ``properties`` mapping, preserving order."""
    return {name: parse_column(name, raw) for name, raw in properties.items()}
