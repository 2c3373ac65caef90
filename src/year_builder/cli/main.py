"""Main CLI entry point for year-builder."""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from year_builder import __version__
from year_builder.cli.generate import generate as generate_cmd
from year_builder.cli.generate import ids as ids_cmd
from year_builder.cli.init import init as init_cmd
from year_builder.cli.weeks import weeks as weeks_cmd


@click.group()
@click.version_option(version=__version__, prog_name="year-builder")
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file path (default: packaged template configuration)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Logging level",
    show_default=True,
)
@click.pass_context
def cli(ctx: click.Context, config: Optional[str], log_level: str) -> None:
    """year-builder: Provision a year of Notion databases from a template year.

    Create an empty Notion page named after the year, share it with your
    integration, then run `year-builder generate`.
    """
    # Console WARNING, file at the requested level
    log_dir = Path(".year-builder/logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    pid = os.getpid()
    log_file = log_dir / f"{timestamp}-{pid}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(getattr(logging, log_level.upper()))
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(file_handler)

    # No per-request HTTP debug chatter in the log file
    for noisy in ("urllib3", "requests_cache"):
        logging.getLogger(noisy).setLevel(logging.INFO)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["log_file"] = str(log_file)


cli.add_command(generate_cmd, name="generate")
cli.add_command(ids_cmd, name="ids")
cli.add_command(init_cmd, name="init")
cli.add_command(weeks_cmd, name="weeks")


if __name__ == "__main__":
    cli()
