"""Name → ID registry of the databases provisioned for a year."""

import logging
from typing import Dict, Iterable, Iterator, Mapping, Optional

from year_builder.provision.errors import EntityNotFound
from year_builder.utils.notion_client import NotionClient
from year_builder.utils.notion_objects import object_title

logger = logging.getLogger(__name__)


class TableRegistry(Mapping[str, str]):
    """Immutable mapping of database title to database ID.

    Built by :func:`scan_tables` and passed explicitly to every phase; a new
    scan produces a new registry.
    """

    def __init__(self, tables: Optional[Mapping[str, str]] = None):
        self._tables: Dict[str, str] = dict(tables or {})

    def __getitem__(self, name: str) -> str:
        return self._tables[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tables)

    def __len__(self) -> int:
        return len(self._tables)

    def __repr__(self) -> str:
        return f"TableRegistry({len(self._tables)} tables)"

    def require(self, name: str) -> str:
        """Get a table ID, raising if the table was not found.

        Raises:
            EntityNotFound: If no table with this name exists
        """
        table_id = self._tables.get(name)
        if table_id is None:
            raise EntityNotFound(f'Database "{name}" not found')
        return table_id


def scan_tables(client: NotionClient, container_ids: Iterable[Optional[str]]) -> TableRegistry:
    """Scan pages for the databases directly under them.

    A failed scan propagates: without a registry no phase can resolve its
    tables.

    Args:
        client: Notion API client
        container_ids: Page IDs to scan (None entries are ignored)

    Returns:
        Registry of database title → ID

    Raises:
        NotionAPIError: If a search fails
    """
    tables: Dict[str, str] = {}

    for container_id in container_ids:
        if not container_id:
            continue
        for database in client.search("database", parent_id=container_id):
            title = object_title(database)
            if not title:
                continue
            if title in tables:
                logger.warning(f'Duplicate database "{title}" found, keeping the first one')
                continue
            tables[title] = database["id"]

    logger.debug(f"Scanned {len(tables)} databases")
    return TableRegistry(tables)
