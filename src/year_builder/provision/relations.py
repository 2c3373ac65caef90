"""Wire bidirectional relations between provisioned databases."""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple

from year_builder.config.models import RelationTemplate
from year_builder.models.columns import RelationColumn
from year_builder.provision.errors import EntityNotFound
from year_builder.schema.naming import render
from year_builder.utils.notion_client import NotionClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationItem:
    """A relation resolved for one year.

    Table IDs are None when the table is missing from the registry.
    """

    source_table: str
    target_table: str
    source_column: str
    target_column: str
    source_id: Optional[str]
    target_id: Optional[str]

    @property
    def label(self) -> str:
        return f"{self.source_table} → {self.target_table}"

    def table_ids(self) -> Tuple[str, str]:
        """Source and target table IDs.

        Raises:
            EntityNotFound: If either table is missing
        """
        if not self.source_id:
            raise EntityNotFound(f'Source database "{self.source_table}" not found')
        if not self.target_id:
            raise EntityNotFound(f'Target database "{self.target_table}" not found')
        return self.source_id, self.target_id


def relation_items(
    templates: Iterable[RelationTemplate], registry: Mapping[str, str], year: int
) -> List[RelationItem]:
    """Render relation templates for a year and resolve their tables."""
    items = []
    for template in templates:
        source_table = render(template.source_table, year)
        target_table = render(template.target_table, year)
        items.append(
            RelationItem(
                source_table=source_table,
                target_table=target_table,
                source_column=render(template.source_column, year),
                target_column=render(template.target_column, year),
                source_id=registry.get(source_table),
                target_id=registry.get(target_table),
            )
        )
    return items


def wire_relation(
    client: NotionClient,
    source_id: str,
    target_id: str,
    source_column: str,
    target_column: str,
) -> None:
    """Add a relation column to the source database.

    Notion creates the reverse column on the target database and keeps both
    in sync, so a single schema update yields the two linked columns.
    """
    column = RelationColumn(
        name=source_column, database_id=target_id, synced_property_name=target_column
    )
    client.update_table_schema(source_id, {source_column: column.creation_schema()})
    logger.info(f'Added relation "{source_column}" ({source_id} → {target_id})')
