"""year-builder: Provision a year of interlinked Notion databases from a template year.

This package clones the structure of a known-good template year (databases,
relations, formulas and rollups) into an empty Notion page named after the
target year, then seeds the calendar rows (weeks, months, per-week and
per-month records) that the rest of the workspace links against.
"""

__version__ = "0.20251214.0"
__license__ = "MIT"

__all__ = ["__version__", "__license__"]
