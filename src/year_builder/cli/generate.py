"""Generate (provision) a year, or print its database IDs."""

import logging
import os
from typing import List, Optional, Tuple

import click

from year_builder.config import ConfigLoadError, YearBuilderConfig, load_config
from year_builder.models.results import ItemOutcome, Outcome, PhaseResult, Reporter
from year_builder.provision import (
    EntityNotFound,
    collect_env_ids,
    manual_steps,
    resolve_target_page,
    run_pipeline,
)
from year_builder.utils.notion_client import NotionAPIError, NotionClient
from year_builder.utils.rate_limiter import TokenBucket

logger = logging.getLogger(__name__)

RULE = "=" * 60


class EchoReporter(Reporter):
    """Print pipeline progress to the terminal."""

    def phase_started(self, phase: str, name: str) -> None:
        click.echo(f"\nPhase {phase}: {name}")

    def item(self, outcome: ItemOutcome) -> None:
        click.echo(outcome.format(), err=outcome.outcome == Outcome.ERROR)

    def phase_finished(self, result: PhaseResult) -> None:
        click.echo(result.summary(), err=result.error is not None)


def build_client(config: YearBuilderConfig) -> NotionClient:
    """Create the Notion client with the configured pacing."""
    limiter = TokenBucket(
        rate=config.rate_limit.requests_per_second,
        capacity=config.rate_limit.burst,
    )
    return NotionClient(
        token=os.getenv(config.token_env),
        cache_dir=".year-builder/cache",
        rate_limiter=limiter,
    )


def echo_env_ids(pairs: List[Tuple[str, str]], year: int) -> None:
    """Print database IDs as KEY=value lines."""
    click.echo(f"\n# {year} database IDs")
    for key, table_id in pairs:
        click.echo(f"{key}={table_id}")


def echo_manual_steps(config: YearBuilderConfig, year: int) -> None:
    """Print the columns that must be added by hand."""
    steps = manual_steps(config, year)
    if not steps:
        return
    click.echo(f"\n{RULE}")
    click.echo("MANUAL STEPS REQUIRED")
    click.echo(RULE)
    click.echo("The Notion API cannot create Status properties. Add these manually:\n")
    for table, columns in steps:
        click.echo(f"  • {table}: {', '.join(columns)}")
    click.echo("\nIn Notion: Open each database → + New Property → Status")


def _prepare(ctx: click.Context, page_ref: Optional[str]) -> Tuple[YearBuilderConfig, NotionClient, str, int]:
    config = load_config(ctx.obj.get("config"))
    client = build_client(config)

    if not page_ref:
        click.echo('Create an empty page in Notion named after the year (e.g., "2026").')
        page_ref = click.prompt("Notion page URL or ID")

    page_id, title, year = resolve_target_page(client, page_ref)
    click.echo(f'Found page: "{title}" (year {year})')
    return config, client, page_id, year


def _print_ids(config: YearBuilderConfig, client: NotionClient, page_id: str, year: int) -> None:
    echo_env_ids(collect_env_ids(client, config, page_id, year), year)


@click.command()
@click.option("--page", "page_ref", help="Year page URL or ID (prompted if omitted)")
@click.option(
    "--action",
    type=click.Choice(["run", "ids"], case_sensitive=False),
    help="Run the full pipeline or only print database IDs (prompted if omitted)",
)
@click.option("--force", is_flag=True, help="Run every phase even if it looks complete")
@click.pass_context
def generate(ctx: click.Context, page_ref: Optional[str], action: Optional[str], force: bool) -> None:
    """Populate a year page with the year's databases and records.

    Clones the template year's databases, relations, formulas and rollups
    into the page, then creates week, month and year rows. Every step
    checks what already exists, so the command can be re-run safely after
    an interruption.

    \b
    Examples:
        year-builder generate
        year-builder generate --page https://www.notion.so/me/2026-<id> --action run
        year-builder generate --page <id> --action ids
    """
    try:
        config, client, page_id, year = _prepare(ctx, page_ref)

        if action is None:
            action = click.prompt(
                "What would you like to do?",
                type=click.Choice(["run", "ids"], case_sensitive=False),
                default="run",
            )

        if action.lower() == "ids":
            _print_ids(config, client, page_id, year)
            return

        results = run_pipeline(client, config, page_id, year, force=force, reporter=EchoReporter())

        click.echo(f"\n{RULE}")
        for result in results:
            click.echo(result.summary())
        click.echo(RULE)

        env_ids = results[0].env_ids if results else []
        if env_ids:
            echo_env_ids(env_ids, year)

        echo_manual_steps(config, year)

        if any(r.failed for r in results):
            click.echo(
                f"\nSome steps failed (see {ctx.obj.get('log_file')}). Re-run to retry them.",
                err=True,
            )
        else:
            click.echo(f"\n✓ {year} provisioned")

    except ConfigLoadError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except (NotionAPIError, EntityNotFound) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@click.command()
@click.option("--page", "page_ref", required=True, help="Year page URL or ID")
@click.pass_context
def ids(ctx: click.Context, page_ref: str) -> None:
    """Print the database IDs of an already generated year.

    \b
    Example:
        year-builder ids --page <id>
    """
    try:
        config, client, page_id, year = _prepare(ctx, page_ref)
        _print_ids(config, client, page_id, year)
    except ConfigLoadError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
    except (NotionAPIError, EntityNotFound) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
