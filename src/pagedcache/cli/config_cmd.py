"""pagedcache config command - show the resolved configuration."""

from pathlib import Path

import click
import yaml

from pagedcache.config.loader import load_config
from pagedcache.core.errors import ConfigError


@click.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ./pagedcache.yaml)",
)
def config_command(config_path: Path | None) -> None:
    """Print the configuration after files, env vars and defaults are merged."""
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    click.echo(yaml.safe_dump(config.model_dump(), sort_keys=False), nl=False)
