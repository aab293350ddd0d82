"""pagedcache CLI - pagedcache command."""

import click

from pagedcache import __version__
from pagedcache.cli.browse import browse_command
from pagedcache.cli.config_cmd import config_command
from pagedcache.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="pagedcache")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """pagedcache - client-side paged data cache with cancellable loads."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "INFO")


cli.add_command(browse_command, name="browse")
cli.add_command(config_command, name="config")


if __name__ == "__main__":
    cli()
