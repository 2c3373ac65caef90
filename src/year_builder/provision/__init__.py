"""Provision a year of Notion databases from the template year.

Phases run in order: databases, relations, formulas and rollups, week and
month rows, week → month links, then gap fixes and child records.
"""

from year_builder.provision.errors import ConfigurationMissing, EntityNotFound, ProvisionError
from year_builder.provision.orchestrator import (
    PHASES,
    collect_env_ids,
    ensure_databases_page,
    manual_steps,
    resolve_target_page,
    run_pipeline,
)
from year_builder.provision.registry import TableRegistry, scan_tables
from year_builder.provision.runner import run_phase

__all__ = [
    "ConfigurationMissing",
    "EntityNotFound",
    "ProvisionError",
    "PHASES",
    "TableRegistry",
    "collect_env_ids",
    "ensure_databases_page",
    "manual_steps",
    "resolve_target_page",
    "run_phase",
    "run_pipeline",
    "scan_tables",
]
