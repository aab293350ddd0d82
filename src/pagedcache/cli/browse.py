"""pagedcache browse command - page through a JSON file as a simulated upstream."""

import asyncio
import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from pagedcache.config.loader import load_config
from pagedcache.core.errors import ConfigError
from pagedcache.core.logging import configure_logging
from pagedcache.engine import DataSource, PageRequest, PageResponse, Result

Row = dict[str, Any]


def load_rows(path: Path) -> list[Row]:
    """Read a JSON array of objects.

    Raises:
        click.ClickException: If the file is not a JSON array of objects.
    """
    try:
        rows = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"{path} is not valid JSON: {e}") from e
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise click.ClickException(f"{path} must contain a JSON array of objects")
    return rows


def _matches(row: Row, prefix: str, field: str | None) -> bool:
    if field is not None:
        value = row.get(field)
        return isinstance(value, str) and value.startswith(prefix)
    return any(isinstance(value, str) and value.startswith(prefix) for value in row.values())


def json_upstream(
    rows: list[Row],
    *,
    search_field: str | None = None,
    latency: float = 0.0,
) -> Callable[[PageRequest[str]], Any]:
    """Build an upstream page function over in-memory rows.

    A search term keeps rows where *search_field* (or any string field when
    None) starts with the term.
    """

    async def request(req: PageRequest[str]) -> PageResponse[Row, str]:
        if latency:
            await asyncio.sleep(latency)
        matching = rows if req.search is None else [
            row for row in rows if _matches(row, req.search, search_field)
        ]
        start = req.index * req.size
        return PageResponse(page=matching[start : start + req.size], total=len(matching))

    return request


def parse_where(where: str) -> Callable[[Row], bool]:
    """Turn ``FIELD=PREFIX`` into a row predicate."""
    field, sep, prefix = where.partition("=")
    if not sep or not field:
        raise click.BadParameter("expected FIELD=PREFIX", param_hint="--where")
    return lambda row: _matches(row, prefix, field)


def render_window(result: Result[Row, str], console: Console) -> None:
    """Print a window as a table followed by a one-line position footer."""
    columns: list[str] = []
    for row in result.page:
        columns.extend(key for key in row if key not in columns)

    table = Table(show_lines=False, pad_edge=False)
    for column in columns:
        table.add_column(column, overflow="fold")
    for row in result.page:
        table.add_row(*(str(row.get(column, "")) for column in columns))

    if result.page:
        console.print(table)
    else:
        console.print("[yellow]No rows[/yellow]")

    position = f"window {result.index + 1}/{max(result.indexes, 1)}"
    total = "?" if result.total is None else str(result.total)
    more = "yes" if result.more else "no"
    console.print(f"[dim]{position} · total {total} · more upstream: {more}[/dim]")


async def _browse(
    source: DataSource[Row, str],
    *,
    search: str | None,
    fetch_all: bool,
    where: Callable[[Row], bool] | None,
    window: int,
) -> Result[Row, str]:
    result = await (source.fetch(search) if fetch_all else source.query(search))
    if where is not None:
        result = source.filter(where)
    if window:
        result = await source.next(window)
    return result


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("-s", "--search", default=None, help="Search term sent upstream (prefix match)")
@click.option("--search-field", default=None, help="Field matched by --search (default: any)")
@click.option("-w", "--where", default=None, help="Local filter, FIELD=PREFIX")
@click.option("-n", "--window", default=0, type=int, help="0-based window to show")
@click.option("--all", "fetch_all", is_flag=True, help="Load the whole dataset first")
@click.option("--size", default=None, type=int, help="Window length (overrides config)")
@click.option("--limit", default=None, type=int, help="Bulk request size (overrides config)")
@click.option("--latency", default=0.0, type=float, help="Simulated upstream delay (seconds)")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: ./pagedcache.yaml)",
)
@click.option("--json", "as_json", is_flag=True, help="Output the window as JSON")
@click.pass_context
def browse_command(
    ctx: click.Context,
    path: Path,
    search: str | None,
    search_field: str | None,
    where: str | None,
    window: int,
    fetch_all: bool,
    size: int | None,
    limit: int | None,
    latency: float,
    config_path: Path | None,
    as_json: bool,
) -> None:
    """Page through PATH, a JSON array of objects, through a DataSource.

    The file plays the upstream: each request returns one slice of the rows
    matching --search. Logging follows the config file's logging section;
    -v on the group forces DEBUG.
    """
    predicate = parse_where(where) if where else None
    rows = load_rows(path)

    overrides: dict[str, Any] = {}
    if size is not None:
        overrides["page_size"] = size
    if limit is not None:
        overrides["fetch_limit"] = limit
    try:
        config = load_config(config_path, cache=overrides)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"error": e.to_dict()}))
            raise click.exceptions.Exit(1) from e
        raise click.ClickException(str(e)) from e

    logging_config = config.logging
    if (ctx.obj or {}).get("verbose"):
        logging_config = logging_config.model_copy(update={"level": "DEBUG"})
    configure_logging(config=logging_config)

    source: DataSource[Row, str] = DataSource(
        json_upstream(rows, search_field=search_field, latency=latency), config.cache
    )
    result = asyncio.run(
        _browse(source, search=search, fetch_all=fetch_all, where=predicate, window=window)
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), default=str))
        return
    render_window(result, Console())
