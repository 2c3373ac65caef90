"""Existence checks run before every creation.

Notion's search is fuzzy, so every check filters the results client-side
by exact parent and exact title. A check that fails remotely (network or
API error) reports the entity as absent: the caller then attempts the
creation, and the failure (if any) surfaces on that item.

The ``*_complete`` functions decide whether a whole phase can be skipped.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from year_builder.utils.notion_client import NotionAPIError, NotionClient
from year_builder.utils.notion_objects import normalize_id, object_title, row_relation_ids, row_title

logger = logging.getLogger(__name__)


def _find_child(client: NotionClient, kind: str, parent_id: str, title: str) -> Optional[str]:
    try:
        results = client.search(kind, query=title, parent_id=parent_id)
    except NotionAPIError as e:
        logger.warning(f'Could not check for {kind} "{title}", assuming absent: {e}')
        return None

    for obj in results:
        if object_title(obj) == title:
            return str(obj["id"])
    return None


def find_table(client: NotionClient, parent_id: str, name: str) -> Optional[str]:
    """ID of the database titled ``name`` directly under ``parent_id``, if any."""
    return _find_child(client, "database", parent_id, name)


def find_page(client: NotionClient, parent_id: str, title: str) -> Optional[str]:
    """ID of the page titled ``title`` directly under ``parent_id``, if any."""
    return _find_child(client, "page", parent_id, title)


def table_schema(client: NotionClient, table_id: str) -> Optional[Dict[str, Dict[str, Any]]]:
    """Current properties of a database, or None if they cannot be read."""
    try:
        return client.get_table_schema(table_id)
    except NotionAPIError as e:
        logger.warning(f"Could not read schema of database {table_id}: {e}")
        return None


def column_exists(
    client: NotionClient, table_id: str, name: str, kind: Optional[str] = None
) -> bool:
    """Check whether a database has a column, optionally of a given kind."""
    schema = table_schema(client, table_id)
    if schema is None or name not in schema:
        return False
    return kind is None or schema[name].get("type") == kind


def find_row(
    client: NotionClient,
    table_id: str,
    title_column: str,
    titles: Union[str, Sequence[str]],
) -> Optional[Dict[str, Any]]:
    """Find a row whose title equals one of ``titles`` exactly.

    Several titles are accepted so that a renamed row (e.g. "January" that
    became "01. Jan") is still recognized.

    Returns:
        The first matching row, or None
    """
    candidates = [titles] if isinstance(titles, str) else list(titles)

    for title in candidates:
        try:
            rows = client.query_rows(
                table_id, filter={"property": title_column, "title": {"equals": title}}
            )
        except NotionAPIError as e:
            logger.warning(f'Could not check for row "{title}", assuming absent: {e}')
            continue
        for row in rows:
            if row_title(row, title_column) == title:
                return row
    return None


def relation_contains(row: Dict[str, Any], column: str, target_id: str) -> bool:
    """Check whether a row's relation column already points at ``target_id``."""
    wanted = normalize_id(target_id)
    return any(normalize_id(rel_id) == wanted for rel_id in row_relation_ids(row, column))


def _rows(client: NotionClient, table_id: Optional[str]) -> Optional[List[Dict[str, Any]]]:
    if not table_id:
        return None
    try:
        return client.query_rows(table_id)
    except NotionAPIError as e:
        logger.warning(f"Could not read rows of database {table_id}: {e}")
        return None


def _titles(rows: Iterable[Dict[str, Any]], title_column: str) -> Set[str]:
    return {row_title(row, title_column) for row in rows}


def tables_complete(registry: Iterable[str], names: Iterable[str]) -> bool:
    """Phase 1: every configured database is present."""
    present = set(registry)
    return all(name in present for name in names)


def columns_complete(
    client: NotionClient, planned: Iterable[Tuple[str, str]], kind: Optional[str] = None
) -> bool:
    """Check that every planned (table_id, column) pair exists.

    Each database schema is read once, however many columns it plans.
    """
    by_table: Dict[str, List[str]] = {}
    for table_id, column in planned:
        by_table.setdefault(table_id, []).append(column)

    for table_id, columns in by_table.items():
        schema = table_schema(client, table_id)
        if schema is None:
            return False
        for column in columns:
            if column not in schema:
                return False
            if kind is not None and schema[column].get("type") != kind:
                return False
    return True


def relations_complete(client: NotionClient, planned: Iterable[Tuple[str, str]]) -> bool:
    """Phase 2 and 6a: every planned relation column exists."""
    return columns_complete(client, planned, kind="relation")


def computed_complete(client: NotionClient, planned: Iterable[Tuple[str, str]]) -> bool:
    """Phase 3: every planned formula and rollup column exists."""
    return columns_complete(client, planned)


def seed_rows_complete(
    client: NotionClient, weeks_id: Optional[str], months_id: Optional[str], week_count: int
) -> bool:
    """Phase 4: the Weeks and Months databases hold a full year of rows."""
    weeks = _rows(client, weeks_id)
    months = _rows(client, months_id)
    if weeks is None or months is None:
        return False
    return len(weeks) >= week_count and len(months) >= 12


def week_links_complete(client: NotionClient, weeks_id: Optional[str], relation_column: str) -> bool:
    """Phase 5: every week row is linked to a month."""
    weeks = _rows(client, weeks_id)
    if not weeks:
        return False
    return all(row_relation_ids(row, relation_column) for row in weeks)


def labels_complete(
    client: NotionClient, months_id: Optional[str], title_column: str, labels: Iterable[str]
) -> bool:
    """Phase 6b: every month row carries its final label."""
    months = _rows(client, months_id)
    if months is None:
        return False
    present = _titles(months, title_column)
    return all(label in present for label in labels)


def child_rows_complete(
    client: NotionClient, table_id: Optional[str], title_column: str, titles: Iterable[str]
) -> bool:
    """Phase 6c/6d: every expected child row exists."""
    rows = _rows(client, table_id)
    if rows is None:
        return False
    present = _titles(rows, title_column)
    return all(title in present for title in titles)


def year_row_exists(
    client: NotionClient, year_table_id: Optional[str], title_column: str, year: int
) -> bool:
    """Phase 6e: the single year row exists."""
    if not year_table_id:
        return False
    return find_row(client, year_table_id, title_column, str(year)) is not None


def row_links_to(client: NotionClient, row_id: str, column: str, target_id: str) -> bool:
    """Check (fresh from the API) whether a row's relation points at ``target_id``."""
    try:
        row = client.get_row(row_id)
    except NotionAPIError as e:
        logger.warning(f"Could not read row {row_id}, assuming unlinked: {e}")
        return False
    return relation_contains(row, column, target_id)
