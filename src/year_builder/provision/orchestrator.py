"""Run the provisioning phases in order against a year page."""

import logging
from typing import Callable, List, Optional, Tuple

from year_builder.config.models import YearBuilderConfig
from year_builder.models.results import PhaseResult, Reporter
from year_builder.provision import phases, prober
from year_builder.provision.errors import EntityNotFound
from year_builder.provision.registry import scan_tables
from year_builder.schema.naming import render
from year_builder.utils.notion_client import NotionClient
from year_builder.utils.notion_objects import extract_page_id, object_title, year_from_title

logger = logging.getLogger(__name__)

PhaseStep = Callable[[phases.YearContext, PhaseResult], PhaseResult]

PHASES: List[Tuple[str, str, PhaseStep]] = [
    ("1", "Databases", phases.create_tables),
    ("2", "Relations", phases.wire_relations),
    ("3", "Formulas and rollups", phases.clone_computed_columns),
    ("4", "Weeks and months", phases.seed_calendar_rows),
    ("5", "Week → month links", phases.link_weeks_to_months),
    ("6a", "Schema gaps", phases.fix_schema_gaps),
    ("6b", "Month labels", phases.relabel_months),
    ("6c", "Weekly records", phases.seed_weekly_records),
    ("6d", "Monthly records", phases.seed_monthly_records),
    ("6e", "Year record", phases.create_year_record),
]


def resolve_target_page(client: NotionClient, reference: str) -> Tuple[str, str, int]:
    """Resolve the page a year is provisioned into.

    Args:
        client: Notion API client
        reference: Page URL or ID as pasted by the operator

    Returns:
        Tuple of (page_id, page_title, year)

    Raises:
        ValueError: If the reference or the page title is unusable
        NotionAPIError: If the page cannot be read
    """
    page_id = extract_page_id(reference)
    page = client.get_page(page_id)
    title = object_title(page)
    return page_id, title, year_from_title(title)


def ensure_databases_page(
    client: NotionClient, config: YearBuilderConfig, page_id: str, year: int
) -> str:
    """Find or create the "{year} Databases" subpage.

    Raises:
        NotionAPIError: If the subpage has to be created and creation fails
    """
    settings = config.databases_page
    title = render(settings.title, year)

    existing = prober.find_page(client, page_id, title)
    if existing:
        logger.info(f'Found "{title}" subpage')
        return existing

    logger.info(f'Creating "{title}" subpage')
    return client.create_page(page_id, title, settings.icon)


def run_pipeline(
    client: NotionClient,
    config: YearBuilderConfig,
    page_id: str,
    year: int,
    force: bool = False,
    reporter: Optional[Reporter] = None,
) -> List[PhaseResult]:
    """Provision a year: run every phase in order.

    A phase that fails outside its item loop is recorded in its result and
    the next phase still runs, so a partial run shows everything it could
    do. Re-running after a failure picks up where the last run stopped.

    Args:
        client: Notion API client
        config: Template configuration
        page_id: Year page ID
        year: Target year
        force: Run every phase even if its completion probe passes
        reporter: Progress receiver

    Returns:
        One result per phase, in order

    Raises:
        NotionAPIError: If the "{year} Databases" subpage cannot be created
    """
    reporter = reporter or Reporter()
    databases_page_id = ensure_databases_page(client, config, page_id, year)

    ctx = phases.YearContext(
        client=client,
        config=config,
        year=year,
        page_id=page_id,
        databases_page_id=databases_page_id,
        force=force,
        reporter=reporter,
    )

    results: List[PhaseResult] = []
    for phase, name, step in PHASES:
        result = PhaseResult(phase=phase, name=name)
        reporter.phase_started(phase, name)
        try:
            step(ctx, result)
        except Exception as e:
            result.error = str(e)
            logger.error(f"Phase {phase} ({name}) failed: {e}")
            logger.debug("Phase failure details", exc_info=True)
        reporter.phase_finished(result)
        results.append(result)

    return results


def collect_env_ids(
    client: NotionClient, config: YearBuilderConfig, page_id: str, year: int
) -> List[Tuple[str, str]]:
    """Scan an already provisioned year for its database IDs.

    No phase runs and nothing is created.

    Returns:
        (env_key, database_id) pairs sorted by key

    Raises:
        EntityNotFound: If no configured database exists yet
        NotionAPIError: If the scan fails
    """
    databases_page_id = prober.find_page(client, page_id, render(config.databases_page.title, year))
    registry = scan_tables(client, [page_id, databases_page_id])

    pairs = [
        (table.env_key, registry[render(table.name, year)])
        for table in config.tables
        if render(table.name, year) in registry
    ]
    if not pairs:
        raise EntityNotFound("No databases found. Run the full pipeline first to create them.")
    return sorted(pairs)


def manual_steps(config: YearBuilderConfig, year: int) -> List[Tuple[str, List[str]]]:
    """Columns the Notion API cannot create, per database."""
    return [(render(step.table, year), list(step.columns)) for step in config.manual_steps]
