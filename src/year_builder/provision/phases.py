"""The provisioning phases.

Every phase has the same shape: rescan the databases, run the completion
probe (unless forced), then hand the phase's items to :func:`run_phase`.
A phase that is already complete reports all of its items as skipped.
Exceptions raised outside the item loop (a missing Weeks database, an
incomplete configuration) abort only the phase; the orchestrator records
them and moves on.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from year_builder.calendar.weeks import (
    MONTHS,
    MonthBucket,
    assign_week_to_month,
    compute_months,
    compute_weeks,
    format_week_range,
)
from year_builder.config.models import (
    ParentKind,
    RelationTemplate,
    TableTemplate,
    YearBuilderConfig,
)
from year_builder.models.columns import Column, RollupColumn
from year_builder.models.results import PhaseResult, Reporter
from year_builder.provision import prober, records
from year_builder.provision.errors import ConfigurationMissing, EntityNotFound
from year_builder.provision.registry import TableRegistry, scan_tables
from year_builder.provision.relations import RelationItem, relation_items, wire_relation
from year_builder.provision.runner import run_phase
from year_builder.schema.expressions import computed_creation_schema
from year_builder.schema.naming import render
from year_builder.schema.transformer import computed_columns, transform_schema
from year_builder.utils.notion_client import NotionAPIError, NotionClient

logger = logging.getLogger(__name__)


@dataclass
class YearContext:
    """Everything a phase needs to know about the year being provisioned.

    Attributes:
        client: Notion API client
        config: Template configuration
        year: Target year
        page_id: Year page the databases are created under
        databases_page_id: "{year} Databases" subpage
        force: Ignore completion probes
        reporter: Progress receiver
    """

    client: NotionClient
    config: YearBuilderConfig
    year: int
    page_id: str
    databases_page_id: Optional[str] = None
    force: bool = False
    reporter: Reporter = field(default_factory=Reporter)

    @property
    def token(self) -> str:
        """Template year as it appears in template column names."""
        return str(self.config.template_year)

    def name(self, template: str) -> str:
        return render(template, self.year)

    def scan(self) -> TableRegistry:
        return scan_tables(self.client, [self.page_id, self.databases_page_id])

    def parent_for(self, table: TableTemplate) -> str:
        if table.parent == ParentKind.DATABASES:
            if not self.databases_page_id:
                raise EntityNotFound(f'"{self.name(self.config.databases_page.title)}" page not found')
            return self.databases_page_id
        return self.page_id

    def run(
        self,
        result: PhaseResult,
        items: Sequence,
        probe: Callable,
        create: Callable,
        label: Callable[..., str] = str,
    ) -> PhaseResult:
        return run_phase(result, items, probe, create, label, self.reporter)


def _already_complete(ctx: YearContext, result: PhaseResult, planned: int, complete: Callable[[], bool]) -> bool:
    if ctx.force or not complete():
        return False
    result.already_complete = True
    result.skipped += planned
    logger.info(f"Phase {result.phase} ({result.name}) already complete, skipping")
    return True


def _relation_template(config: YearBuilderConfig, source: str, target: str) -> RelationTemplate:
    relation = config.relation(source, target)
    if relation is None:
        raise ConfigurationMissing(f'No relation configured from "{source}" to "{target}"')
    return relation


def _date_column(ctx: YearContext) -> str:
    weeks = ctx.config.weeks
    template = ctx.config.table(weeks.table)
    column = records.week_date_column(
        ctx.client, template.source_id if template else None, weeks.date_column_fallback
    )
    return render(column, ctx.year, token=ctx.token)


# Phase 1


def create_tables(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Create every configured database with its basic columns.

    ``result.env_ids`` receives the (env_key, id) pair of every database
    that exists after the phase, created or not, in configuration order.
    """
    tables = ctx.config.tables
    registry = ctx.scan()
    found: Dict[str, str] = {}

    def collect_env_ids() -> None:
        result.env_ids = [(t.env_key, found[t.name]) for t in tables if t.name in found]

    names = [ctx.name(t.name) for t in tables]
    if _already_complete(ctx, result, len(tables), lambda: prober.tables_complete(registry, names)):
        found.update({t.name: registry[ctx.name(t.name)] for t in tables})
        collect_env_ids()
        return result

    def probe(table: TableTemplate) -> Optional[str]:
        table_id = prober.find_table(ctx.client, ctx.parent_for(table), ctx.name(table.name))
        if table_id:
            found[table.name] = table_id
        return table_id

    def create(table: TableTemplate) -> None:
        template = ctx.client.get_table_schema(table.source_id, use_cache=True)
        properties = transform_schema(template, table.omit_columns, ctx.year, ctx.config.template_year)
        found[table.name] = ctx.client.create_table(
            ctx.parent_for(table), ctx.name(table.name), table.icon, properties
        )

    ctx.run(result, tables, probe, create, lambda t: ctx.name(t.name))
    collect_env_ids()
    return result


# Phases 2 and 6a


def _wire_relations(ctx: YearContext, result: PhaseResult, templates: List[RelationTemplate]) -> PhaseResult:
    items = relation_items(templates, ctx.scan(), ctx.year)

    def complete() -> bool:
        if any(not (i.source_id and i.target_id) for i in items):
            return False
        return prober.relations_complete(ctx.client, [(i.source_id, i.source_column) for i in items])

    if _already_complete(ctx, result, len(items), complete):
        return result

    def probe(item: RelationItem) -> bool:
        source_id, _ = item.table_ids()
        return prober.column_exists(ctx.client, source_id, item.source_column, kind="relation")

    def create(item: RelationItem) -> None:
        source_id, target_id = item.table_ids()
        wire_relation(ctx.client, source_id, target_id, item.source_column, item.target_column)

    return ctx.run(result, items, probe, create, lambda i: i.label)


def wire_relations(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Add every configured relation."""
    return _wire_relations(ctx, result, list(ctx.config.relations))


def fix_schema_gaps(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Re-check the relations added after the template was first rolled out."""
    return _wire_relations(ctx, result, [r for r in ctx.config.relations if r.gap_fix])


# Phase 3


@dataclass(frozen=True)
class ComputedItem:
    """A formula or rollup column to clone into one database.

    ``failure`` is set when the database or its template could not be
    resolved; the item then fails when processed.
    """

    table: str
    table_id: Optional[str] = None
    column: Optional[Column] = None
    failure: Optional[Exception] = None

    def label(self, year: int, token: str) -> str:
        if self.column is None:
            return self.table
        return f"{self.table}: {render(self.column.name, year, token=token)}"


def _computed_items(ctx: YearContext, registry: TableRegistry) -> List[ComputedItem]:
    items: List[ComputedItem] = []
    for table in ctx.config.tables:
        name = ctx.name(table.name)
        try:
            template = ctx.client.get_table_schema(table.source_id, use_cache=True)
        except NotionAPIError as e:
            items.append(ComputedItem(table=name, failure=e))
            continue

        columns = list(computed_columns(template).values())
        if not columns:
            continue
        table_id = registry.get(name)
        if table_id is None:
            items.append(ComputedItem(table=name, failure=EntityNotFound(f'Database "{name}" not found')))
            continue

        # Rollups first: formulas may reference them
        columns.sort(key=lambda c: 0 if isinstance(c, RollupColumn) else 1)
        items.extend(ComputedItem(table=name, table_id=table_id, column=c) for c in columns)
    return items


def clone_computed_columns(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Clone formula and rollup columns, rewriting their references."""
    items = _computed_items(ctx, ctx.scan())

    def new_name(item: ComputedItem) -> str:
        assert item.column is not None
        return render(item.column.name, ctx.year, token=ctx.token)

    def complete() -> bool:
        if any(i.failure is not None for i in items):
            return False
        return prober.computed_complete(ctx.client, [(i.table_id, new_name(i)) for i in items])

    if _already_complete(ctx, result, len(items), complete):
        return result

    def probe(item: ComputedItem) -> bool:
        if item.failure is not None:
            raise item.failure
        return prober.column_exists(ctx.client, item.table_id, new_name(item))

    def create(item: ComputedItem) -> None:
        schema = computed_creation_schema(item.column, ctx.year, ctx.token)
        ctx.client.update_table_schema(item.table_id, {new_name(item): schema})

    return ctx.run(result, items, probe, create, lambda i: i.label(ctx.year, ctx.token))


# Phase 4


def seed_calendar_rows(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Create the twelve month rows and the dated week rows."""
    config = ctx.config
    registry = ctx.scan()
    weeks_id = registry.require(ctx.name(config.weeks.table))
    months_id = registry.require(ctx.name(config.months.table))

    weeks = compute_weeks(ctx.year)
    months = compute_months()

    if _already_complete(
        ctx,
        result,
        len(months) + len(weeks),
        lambda: prober.seed_rows_complete(ctx.client, weeks_id, months_id, len(weeks)),
    ):
        return result

    month_column = config.months.title_column
    week_column = config.weeks.title_column
    date_column = _date_column(ctx)

    ctx.run(
        result,
        months,
        lambda m: prober.find_row(ctx.client, months_id, month_column, [m.title, m.label]),
        lambda m: records.create_month_row(ctx.client, months_id, month_column, m),
        lambda m: m.title,
    )
    return ctx.run(
        result,
        weeks,
        lambda w: prober.find_row(ctx.client, weeks_id, week_column, w.title),
        lambda w: records.create_week_row(ctx.client, weeks_id, week_column, date_column, w),
        lambda w: f"{w.title} ({format_week_range(w)})",
    )


# Phase 5


def link_weeks_to_months(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Link every week row to the month that owns it."""
    config = ctx.config
    relation = _relation_template(config, config.weeks.table, config.months.table)
    relation_column = ctx.name(relation.source_column)

    registry = ctx.scan()
    weeks_id = registry.require(ctx.name(config.weeks.table))
    months_id = registry.require(ctx.name(config.months.table))

    week_rows = records.read_week_rows(ctx.client, weeks_id, config.weeks.title_column, _date_column(ctx))
    if _already_complete(
        ctx,
        result,
        len(week_rows),
        lambda: prober.week_links_complete(ctx.client, weeks_id, relation_column),
    ):
        return result

    month_rows = records.read_month_rows(ctx.client, months_id, config.months.title_column)

    def owner(row: records.WeekRow) -> MonthBucket:
        return assign_week_to_month(row.bucket(), ctx.year)

    def month_row_id(row: records.WeekRow) -> str:
        month = owner(row)
        row_id = records.resolve_month_row(month_rows, month)
        if row_id is None:
            raise EntityNotFound(f'Month "{month.title}" not found')
        return row_id

    return ctx.run(
        result,
        week_rows,
        lambda w: prober.row_links_to(ctx.client, w.row_id, relation_column, month_row_id(w)),
        lambda w: records.link_week_to_month(ctx.client, w.row_id, relation_column, month_row_id(w)),
        lambda w: f"{w.title} → {owner(w).title}",
    )


# Phase 6b


def relabel_months(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Rename month rows to their final label ("01. Jan") and set their icon."""
    column = ctx.config.months.title_column
    months_id = ctx.scan().require(ctx.name(ctx.config.months.table))

    if _already_complete(
        ctx,
        result,
        len(MONTHS),
        lambda: prober.labels_complete(ctx.client, months_id, column, [m.label for m in MONTHS]),
    ):
        return result

    def create(month: MonthBucket) -> None:
        row = prober.find_row(ctx.client, months_id, column, month.title)
        if row is None:
            raise EntityNotFound(f'Month "{month.title}" not found')
        records.relabel_month(ctx.client, row["id"], column, month)

    return ctx.run(
        result,
        list(MONTHS),
        lambda m: prober.find_row(ctx.client, months_id, column, m.label),
        create,
        lambda m: f"{m.title} → {m.label}",
    )


# Phases 6c and 6d


@dataclass(frozen=True)
class ChildItem:
    """A per-week or per-month row to create in a child database."""

    table: str
    table_id: Optional[str]
    title_column: str
    title: str
    relation_column: str
    parent_row_id: Optional[str]
    parent: str

    def require(self) -> Tuple[str, str]:
        if not self.table_id:
            raise EntityNotFound(f'Database "{self.table}" not found')
        if not self.parent_row_id:
            raise EntityNotFound(f'"{self.parent}" row not found')
        return self.table_id, self.parent_row_id


def _seed_children(ctx: YearContext, result: PhaseResult, items: List[ChildItem]) -> PhaseResult:
    def complete() -> bool:
        by_table: Dict[Tuple[Optional[str], str], List[str]] = {}
        for item in items:
            if not item.table_id or not item.parent_row_id:
                return False
            by_table.setdefault((item.table_id, item.title_column), []).append(item.title)
        return all(
            prober.child_rows_complete(ctx.client, table_id, column, titles)
            for (table_id, column), titles in by_table.items()
        )

    if _already_complete(ctx, result, len(items), complete):
        return result

    def probe(item: ChildItem) -> bool:
        table_id, _ = item.require()
        return prober.find_row(ctx.client, table_id, item.title_column, item.title) is not None

    def create(item: ChildItem) -> None:
        table_id, parent_row_id = item.require()
        records.create_child_row(
            ctx.client, table_id, item.title_column, item.title, item.relation_column, parent_row_id
        )

    return ctx.run(result, items, probe, create, lambda i: f"{i.table}: {i.title}")


def seed_weekly_records(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Create one row per week in each weekly child database."""
    config = ctx.config
    registry = ctx.scan()
    weeks_id = registry.require(ctx.name(config.weeks.table))
    week_rows = records.read_week_rows(ctx.client, weeks_id, config.weeks.title_column, _date_column(ctx))

    items: List[ChildItem] = []
    for template in config.weekly_records:
        table = ctx.name(template.table)
        for week in week_rows:
            items.append(
                ChildItem(
                    table=table,
                    table_id=registry.get(table),
                    title_column=ctx.name(template.title_column),
                    title=records.weekly_title(week.number, template.title_suffix),
                    relation_column=ctx.name(template.relation_column),
                    parent_row_id=week.row_id,
                    parent=week.title,
                )
            )
    return _seed_children(ctx, result, items)


def seed_monthly_records(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Create one row per month in each monthly child database."""
    config = ctx.config
    registry = ctx.scan()
    months_id = registry.require(ctx.name(config.months.table))
    month_rows = records.read_month_rows(ctx.client, months_id, config.months.title_column)

    items: List[ChildItem] = []
    for template in config.monthly_records:
        table = ctx.name(template.table)
        for month in MONTHS:
            items.append(
                ChildItem(
                    table=table,
                    table_id=registry.get(table),
                    title_column=ctx.name(template.title_column),
                    title=records.monthly_title(month, template.title_suffix),
                    relation_column=ctx.name(template.relation_column),
                    parent_row_id=records.resolve_month_row(month_rows, month),
                    parent=month.label,
                )
            )
    return _seed_children(ctx, result, items)


# Phase 6e


def create_year_record(ctx: YearContext, result: PhaseResult) -> PhaseResult:
    """Create the single year row, linked to every month row."""
    config = ctx.config
    relation = _relation_template(config, config.year.table, config.months.table)
    relation_column = ctx.name(relation.source_column)
    column = config.year.title_column

    registry = ctx.scan()
    year_table_id = registry.require(ctx.name(config.year.table))
    months_id = registry.require(ctx.name(config.months.table))

    if _already_complete(
        ctx, result, 1, lambda: prober.year_row_exists(ctx.client, year_table_id, column, ctx.year)
    ):
        return result

    def create(year: int) -> None:
        month_rows = records.read_month_rows(ctx.client, months_id, config.months.title_column)
        month_ids = [
            row_id
            for row_id in (records.resolve_month_row(month_rows, m) for m in MONTHS)
            if row_id is not None
        ]
        records.create_year_row(ctx.client, year_table_id, column, year, relation_column, month_ids)

    return ctx.run(
        result,
        [ctx.year],
        lambda y: prober.find_row(ctx.client, year_table_id, column, str(y)),
        create,
    )
