"""Shared fixtures: an in-memory Notion workspace.

``FakeNotion`` implements the methods of ``NotionClient`` that the pipeline
uses, with the validation Notion applies that matters here: a database needs
exactly one title column, rows may only set existing columns, rollups need
their relation column, and a dual relation adds the synced column to the
target database.
"""

import copy
import uuid
from typing import Any, Dict, List, Optional, Tuple

import pytest

from year_builder.config import YearBuilderConfig, load_config
from year_builder.models.results import ItemOutcome, PhaseResult, Reporter
from year_builder.utils.notion_client import NotionAPIError
from year_builder.utils.notion_objects import normalize_id, object_title, plain_text

TEMPLATE_YEAR = 2025


def rich_text(text: str) -> List[Dict[str, Any]]:
    return [{"type": "text", "plain_text": text, "text": {"content": text}}]


class FakeNotion:
    """In-memory stand-in for NotionClient."""

    def __init__(self) -> None:
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        # method name -> exception raised on every call
        self.failures: Dict[str, Exception] = {}

    # Helpers for tests

    def _key(self, object_id: str) -> str:
        return normalize_id(object_id)

    def _get(self, object_id: str, kind: Optional[str] = None) -> Dict[str, Any]:
        obj = self.objects.get(self._key(object_id))
        if obj is None or (kind is not None and obj["object"] != kind):
            raise NotionAPIError(
                f"Could not find {kind or 'object'} with ID: {object_id}",
                status=404,
                code="object_not_found",
            )
        return obj

    def _record(self, method: str, target: str = "") -> None:
        self.calls.append((method, target))
        failure = self.failures.get(method)
        if failure is not None:
            raise failure

    def add_page(self, title: str, parent_id: Optional[str] = None) -> str:
        page_id = str(uuid.uuid4())
        parent = (
            {"type": "page_id", "page_id": parent_id}
            if parent_id
            else {"type": "workspace", "workspace": True}
        )
        self.objects[self._key(page_id)] = {
            "object": "page",
            "id": page_id,
            "parent": parent,
            "properties": {"title": {"id": "title", "type": "title", "title": rich_text(title)}},
            "url": f"https://www.notion.so/{normalize_id(page_id)}",
        }
        return page_id

    def add_database(
        self,
        title: str,
        properties: Dict[str, Dict[str, Any]],
        parent_id: Optional[str] = None,
        database_id: Optional[str] = None,
    ) -> str:
        """Add a database given its properties in retrieve format (without ids)."""
        database_id = database_id or str(uuid.uuid4())
        parent = (
            {"type": "page_id", "page_id": parent_id}
            if parent_id
            else {"type": "workspace", "workspace": True}
        )
        props = {}
        for name, prop in properties.items():
            props[name] = dict(prop, id=uuid.uuid4().hex[:4], name=name)
        self.objects[self._key(database_id)] = {
            "object": "database",
            "id": database_id,
            "parent": parent,
            "title": rich_text(title),
            "properties": props,
        }
        return database_id

    def databases_under(self, parent_id: str) -> Dict[str, Dict[str, Any]]:
        wanted = normalize_id(parent_id)
        return {
            object_title(obj): obj
            for obj in self.objects.values()
            if obj["object"] == "database"
            and normalize_id(obj["parent"].get("page_id")) == wanted
        }

    def rows_of(self, table_id: str) -> List[Dict[str, Any]]:
        wanted = normalize_id(table_id)
        return [
            obj
            for obj in self.objects.values()
            if obj["object"] == "page"
            and obj["parent"].get("type") == "database_id"
            and normalize_id(obj["parent"]["database_id"]) == wanted
        ]

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)

    # NotionClient interface

    def search(
        self, kind: str, query: Optional[str] = None, parent_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        self._record("search", query or "")
        results = []
        for obj in self.objects.values():
            if obj["object"] != kind:
                continue
            if kind == "page" and obj["parent"].get("type") == "database_id":
                continue
            if query:
                # Notion's search is fuzzy: any shared word matches
                title = object_title(obj).lower()
                if not any(word in title for word in query.lower().split()):
                    continue
            if parent_id is not None and normalize_id(obj["parent"].get("page_id")) != normalize_id(
                parent_id
            ):
                continue
            results.append(copy.deepcopy(obj))
        return results

    def get_page(self, page_id: str) -> Dict[str, Any]:
        self._record("get_page", page_id)
        return copy.deepcopy(self._get(page_id, "page"))

    def create_page(self, parent_id: str, title: str, icon: Optional[str] = None) -> str:
        self._record("create_page", title)
        self._get(parent_id, "page")
        return self.add_page(title, parent_id)

    def get_table_schema(self, table_id: str, use_cache: bool = False) -> Dict[str, Dict[str, Any]]:
        self._record("get_table_schema", table_id)
        return copy.deepcopy(self._get(table_id, "database")["properties"])

    def create_table(
        self,
        parent_id: str,
        name: str,
        icon: Optional[str],
        properties: Dict[str, Dict[str, Any]],
    ) -> str:
        self._record("create_table", name)
        self._get(parent_id, "page")
        titles = [n for n, p in properties.items() if "title" in p]
        if len(titles) != 1:
            raise NotionAPIError(
                "Databases must have exactly one title property", status=400, code="validation_error"
            )
        database_id = self.add_database(name, {}, parent_id=parent_id)
        database = self.objects[self._key(database_id)]
        database["icon"] = {"type": "emoji", "emoji": icon}
        for column, schema in properties.items():
            self._add_column(database, column, schema)
        return database_id

    def _add_column(self, database: Dict[str, Any], name: str, schema: Dict[str, Any]) -> None:
        (kind, config), = schema.items()
        if kind in ("status", "people", "files"):
            raise NotionAPIError(f"Cannot create {kind} property", status=400, code="validation_error")
        if kind == "rollup":
            if config.get("relation_property_name") not in database["properties"]:
                raise NotionAPIError(
                    f"Relation {config.get('relation_property_name')} not found",
                    status=400,
                    code="validation_error",
                )
        if kind == "relation":
            target = self._get(config["database_id"], "database")
            synced = (config.get("dual_property") or {}).get("synced_property_name")
            if synced:
                target["properties"][synced] = {
                    "id": uuid.uuid4().hex[:4],
                    "name": synced,
                    "type": "relation",
                    "relation": {
                        "database_id": database["id"],
                        "type": "dual_property",
                        "dual_property": {"synced_property_name": name},
                    },
                }
        database["properties"][name] = {
            "id": uuid.uuid4().hex[:4],
            "name": name,
            "type": kind,
            kind: copy.deepcopy(config),
        }

    def update_table_schema(self, table_id: str, properties: Dict[str, Dict[str, Any]]) -> None:
        self._record("update_table_schema", table_id)
        database = self._get(table_id, "database")
        for name, schema in properties.items():
            self._add_column(database, name, schema)

    def query_rows(
        self, table_id: str, filter: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        self._record("query_rows", table_id)
        self._get(table_id, "database")
        rows = self.rows_of(table_id)
        if filter:
            column = filter["property"]
            wanted = filter["title"]["equals"]
            rows = [
                r
                for r in rows
                if plain_text((r["properties"].get(column) or {}).get("title")) == wanted
            ]
        return copy.deepcopy(rows)

    def get_row(self, row_id: str) -> Dict[str, Any]:
        self._record("get_row", row_id)
        return copy.deepcopy(self._get(row_id, "page"))

    def _set_values(self, row: Dict[str, Any], schema: Dict[str, Any], values: Dict[str, Any]) -> None:
        for name, value in values.items():
            if name not in schema:
                raise NotionAPIError(
                    f"{name} is not a property that exists.", status=400, code="validation_error"
                )
            kind = schema[name]["type"]
            if kind not in value:
                raise NotionAPIError(
                    f"{name} is expected to be {kind}.", status=400, code="validation_error"
                )
            if kind == "title":
                text = "".join(part["text"]["content"] for part in value["title"])
                row["properties"][name] = {"type": "title", "title": rich_text(text)}
            else:
                row["properties"][name] = {"type": kind, kind: copy.deepcopy(value[kind])}

    def create_row(
        self,
        table_id: str,
        properties: Dict[str, Dict[str, Any]],
        icon: Optional[str] = None,
    ) -> str:
        self._record("create_row", table_id)
        database = self._get(table_id, "database")
        row_id = str(uuid.uuid4())
        row: Dict[str, Any] = {
            "object": "page",
            "id": row_id,
            "parent": {"type": "database_id", "database_id": database["id"]},
            "properties": {},
            "icon": {"type": "emoji", "emoji": icon} if icon else None,
        }
        self._set_values(row, database["properties"], properties)
        self.objects[self._key(row_id)] = row
        return row_id

    def update_row(
        self,
        row_id: str,
        properties: Optional[Dict[str, Dict[str, Any]]] = None,
        icon: Optional[str] = None,
    ) -> None:
        self._record("update_row", row_id)
        row = self._get(row_id, "page")
        database = self._get(row["parent"]["database_id"], "database")
        if properties:
            self._set_values(row, database["properties"], properties)
        if icon:
            row["icon"] = {"type": "emoji", "emoji": icon}


class RecordingReporter(Reporter):
    """Collect progress events."""

    def __init__(self) -> None:
        self.started: List[str] = []
        self.items: List[ItemOutcome] = []
        self.finished: List[PhaseResult] = []

    def phase_started(self, phase: str, name: str) -> None:
        self.started.append(phase)

    def item(self, outcome: ItemOutcome) -> None:
        self.items.append(outcome)

    def phase_finished(self, result: PhaseResult) -> None:
        self.finished.append(result)


# Title column of each template database (everything else uses "Name")
TITLE_COLUMNS = {
    "{year} Weeks": "Week",
    "{year} Months": "Month",
    "{year} Year": "Year",
    "{year} Personal Summaries - Weeks": "Week Summary",
    "{year} Work Summaries - Weeks": "Week Summary",
    "{year} Personal Retro - Weeks": "Personal Retro",
    "{year} Work Retro - Weeks": "Work Retro",
    "{year} Personal Recaps - Month": "Month Recap",
    "{year} Work Recaps - Month": "Month Recap",
}


def template_properties(table_name: str) -> Dict[str, Dict[str, Any]]:
    """Template-year schema of one configured database."""
    props: Dict[str, Dict[str, Any]] = {
        TITLE_COLUMNS.get(table_name, "Name"): {"type": "title", "title": {}},
        "Notes": {"type": "rich_text", "rich_text": {}},
    }

    if table_name == "{year} Weeks":
        props["Date Range (SET)"] = {"type": "date", "date": {}}
        props["🗓️ 2025 Months"] = {
            "type": "relation",
            "relation": {"database_id": "x" * 32, "dual_property": {"synced_property_name": "⏰ 2025 Weeks"}},
        }
        props["Week Label"] = {
            "type": "formula",
            "formula": {"expression": 'prop("Week") + " " + prop("🗓️ 2025 Months")'},
        }
    elif table_name == "{year} Months":
        props["Week Count"] = {
            "type": "rollup",
            "rollup": {
                "relation_property_name": "⏰ 2025 Weeks",
                "rollup_property_name": "Week",
                "function": "count",
            },
        }
    elif table_name == "{year} Trips":
        props["Status"] = {"type": "status", "status": {"options": [], "groups": []}}
        props["Locations"] = {"type": "rich_text", "rich_text": {}}
        props["Attendees"] = {"type": "people", "people": {}}
        props["Dates"] = {"type": "date", "date": {}}
    elif table_name == "{year} Goals":
        props["Category"] = {
            "type": "select",
            "select": {
                "options": [
                    {"id": "a1", "name": "Health", "color": "green"},
                    {"id": "a2", "name": "Career", "color": "blue"},
                ]
            },
        }
        props["Done"] = {"type": "checkbox", "checkbox": {}}
        props["2025 Progress"] = {"type": "number", "number": {"format": "percent"}}

    return props


def build_template_workspace(store: FakeNotion, config: YearBuilderConfig) -> None:
    """Add the template-year database of every configured table."""
    for table in config.tables:
        store.add_database(
            table.name.replace("{year}", str(TEMPLATE_YEAR)),
            template_properties(table.name),
            database_id=table.source_id,
        )


@pytest.fixture
def config() -> YearBuilderConfig:
    """The packaged template configuration."""
    return load_config(require_token=False)


@pytest.fixture
def store(config: YearBuilderConfig) -> FakeNotion:
    """Workspace holding the template databases."""
    fake = FakeNotion()
    build_template_workspace(fake, config)
    return fake


@pytest.fixture
def year_page(store: FakeNotion) -> str:
    """An empty "2026" page."""
    return store.add_page("2026")


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def empty_store() -> FakeNotion:
    """Workspace without any database."""
    return FakeNotion()
