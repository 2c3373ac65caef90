"""Configuration models for year-builder."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ParentKind(str, Enum):
    """Page a database is created under."""

    YEAR = "year"
    DATABASES = "databases"


class TableTemplate(BaseModel):
    """Database to clone from the template year.

    Attributes:
        name: Database name with a ``{year}`` placeholder (e.g., "{year} Weeks")
        icon: Emoji icon
        source_id: ID of the template-year database whose schema is cloned
        env_key: Environment variable name printed with the new database ID
        parent: Create under the year page or the "{year} Databases" subpage
        omit_columns: Template column names not to clone
    """

    model_config = ConfigDict(frozen=True)

    name: str
    icon: str
    source_id: str
    env_key: str = Field(..., pattern=r"^[A-Z][A-Z0-9_]*$")
    parent: ParentKind = ParentKind.YEAR
    omit_columns: List[str] = Field(default_factory=list)

    @field_validator("source_id")
    @classmethod
    def validate_source_id(cls, v: str) -> str:
        """Normalize the template database ID to 32 lowercase hex characters."""
        compact = v.replace("-", "").lower()
        if len(compact) != 32 or not all(c in "0123456789abcdef" for c in compact):
            raise ValueError("source_id must be a 32-character hex Notion ID")
        return compact


class RelationTemplate(BaseModel):
    """Bidirectional relation between two cloned databases.

    Attributes:
        source_table: Database the relation column is added to
        target_table: Database receiving the synced reverse column
        source_column: Relation column name on the source database
        target_column: Reverse column name on the target database
        gap_fix: Re-checked during the final phase (added after the first rollout)
    """

    model_config = ConfigDict(frozen=True)

    source_table: str
    target_table: str
    source_column: str
    target_column: str
    gap_fix: bool = False


class SubpageSettings(BaseModel):
    """Subpage holding the integration databases."""

    title: str = "{year} Databases"
    icon: str = "ℹ️"


class WeeksSettings(BaseModel):
    """Weeks database layout."""

    table: str = "{year} Weeks"
    title_column: str = "Week"
    date_column_fallback: str = Field(
        default="Date Range (SET)",
        description="Date column used when the template Weeks schema cannot be read",
    )


class MonthsSettings(BaseModel):
    """Months database layout."""

    table: str = "{year} Months"
    title_column: str = "Month"


class YearSettings(BaseModel):
    """Year database layout."""

    table: str = "{year} Year"
    title_column: str = "Year"


class WeeklyRecordTemplate(BaseModel):
    """Database receiving one row per week (e.g., "Week 01 Personal Summary")."""

    table: str
    title_column: str
    title_suffix: str
    relation_column: str = "⏰ {year} Weeks"


class MonthlyRecordTemplate(BaseModel):
    """Database receiving one row per month (e.g., "01. Jan Recap")."""

    table: str
    title_column: str = "Month Recap"
    title_suffix: str = "Recap"
    relation_column: str = "🗓️ {year} Months"


class ManualStep(BaseModel):
    """Columns that must be added by hand after provisioning."""

    table: str
    columns: List[str]


class RateLimitSettings(BaseModel):
    """Client-side pacing of Notion API calls."""

    requests_per_second: float = Field(default=3.0, gt=0)
    burst: int = Field(default=1, ge=1)


class YearBuilderConfig(BaseModel):
    """Root configuration model for year-builder.

    Attributes:
        template_year: Year the template databases were built for; occurrences
            in template column names and formulas are replaced by the target year
        token_env: Environment variable holding the Notion integration token
        databases_page: Subpage for databases with ``parent: databases``
        tables: Databases to clone
        relations: Relations to wire between cloned databases
        weeks: Weeks database layout
        months: Months database layout
        year: Year database layout
        weekly_records: Databases seeded with one row per week
        monthly_records: Databases seeded with one row per month
        manual_steps: Columns the API cannot create (status columns)
        rate_limit: Request pacing
    """

    template_year: int = Field(default=2025, ge=1900, le=9999)
    token_env: str = "NOTION_TOKEN"
    databases_page: SubpageSettings = Field(default_factory=SubpageSettings)
    tables: List[TableTemplate]
    relations: List[RelationTemplate] = Field(default_factory=list)
    weeks: WeeksSettings = Field(default_factory=WeeksSettings)
    months: MonthsSettings = Field(default_factory=MonthsSettings)
    year: YearSettings = Field(default_factory=YearSettings)
    weekly_records: List[WeeklyRecordTemplate] = Field(default_factory=list)
    monthly_records: List[MonthlyRecordTemplate] = Field(default_factory=list)
    manual_steps: List[ManualStep] = Field(default_factory=list)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)

    @model_validator(mode="after")
    def check_references(self) -> "YearBuilderConfig":
        """Validate that table names are unique and every reference resolves."""
        names = [t.name for t in self.tables]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate table names: {', '.join(duplicates)}")

        known = set(names)
        for relation in self.relations:
            for table in (relation.source_table, relation.target_table):
                if table not in known:
                    raise ValueError(
                        f"Relation '{relation.source_column}' references unknown table '{table}'"
                    )

        for record in [*self.weekly_records, *self.monthly_records]:
            if record.table not in known:
                raise ValueError(f"Record template references unknown table '{record.table}'")

        return self

    def table(self, name: str) -> Optional[TableTemplate]:
        """Get a table template by (unrendered) name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def relation(self, source_table: str, target_table: str) -> Optional[RelationTemplate]:
        """Get the relation template wired from ``source_table`` to ``target_table``."""
        for relation in self.relations:
            if relation.source_table == source_table and relation.target_table == target_table:
                return relation
        return None
