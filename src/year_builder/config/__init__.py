"""Configuration module for year-builder."""

from year_builder.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigLoadError,
    create_example_config,
    load_config,
)
from year_builder.config.models import (
    ManualStep,
    MonthlyRecordTemplate,
    ParentKind,
    RelationTemplate,
    TableTemplate,
    WeeklyRecordTemplate,
    YearBuilderConfig,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ManualStep",
    "MonthlyRecordTemplate",
    "ParentKind",
    "RelationTemplate",
    "TableTemplate",
    "WeeklyRecordTemplate",
    "YearBuilderConfig",
    "load_config",
    "create_example_config",
    "ConfigLoadError",
]
