"""Write an editable configuration file."""

import click

from year_builder.config import ConfigLoadError, create_example_config


@click.command()
@click.argument("path", type=click.Path(dir_okay=False), default=".year-builder/config.yaml", required=False)
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_context
def init(ctx: click.Context, path: str, force: bool) -> None:
    """Write a copy of the default template configuration.

    Edit it to change template database IDs, names or icons, then pass it
    with the global --config option.

    \b
    Examples:
        year-builder init
        year-builder init my-config.yaml
    """
    try:
        written = create_example_config(path, force=force)
    except ConfigLoadError as e:
        click.echo(f"Error: {e}", err=True)
        if not force:
            click.echo("Use --force to overwrite", err=True)
        ctx.exit(1)
        return

    click.echo(f"✓ Wrote configuration to {written}")
    click.echo("\nNext steps:")
    click.echo("  1. Set NOTION_TOKEN to your integration token")
    click.echo(f"  2. Run: year-builder --config {written} generate")
