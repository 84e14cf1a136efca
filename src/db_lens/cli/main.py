"""Click command group for db-lens.

Commands stay thin: they pick a provider through the registry, select one
engine and render what it returns.
"""

import asyncio
import logging
import re
import sys
from collections.abc import Awaitable, Callable
from functools import wraps
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from db_lens.config import Settings, get_settings, load_workspace_settings
from db_lens.engines import Condition, DatabaseEngine
from db_lens.errors import DbLensError
from db_lens.notify import ConsoleNotifier
from db_lens.providers import EngineOption, EngineProvider, ProviderRegistry, default_registry

console = Console()
err_console = Console(stderr=True)

_WHERE_RE = re.compile(r"^\s*([^=<>!~\s]+)\s*(!=|<=|>=|=|<|>|~)\s*(.*)$")


def _get_cli_version() -> str:
    """Installed package version, or "unknown" from a source checkout."""
    try:
        return version("db-lens")
    except PackageNotFoundError:
        return "unknown"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_where(expressions: tuple[str, ...]) -> list[Condition]:
    """Turn ``col=value`` / ``col>=value`` / ``col~pattern`` into conditions."""
    conditions = []
    for expression in expressions:
        m = _WHERE_RE.match(expression)
        if not m:
            raise click.BadParameter(f"Expected COLUMN<op>VALUE, got {expression!r}")
        column, op, value = m.groups()
        operator = "like" if op == "~" else op
        conditions.append(Condition(column=column, operator=operator, value=value))
    return conditions


def _cell(value: Any) -> str:
    return "NULL" if value is None else str(value)


def parse_assignments(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn ``col=value`` pairs into a mapping."""
    values: dict[str, str] = {}
    for pair in pairs:
        column, sep, value = pair.partition("=")
        if not sep or not column:
            raise click.BadParameter(f"Expected COLUMN=VALUE, got {pair!r}")
        values[column] = value
    return values


async def open_engine(
    registry: ProviderRegistry, connection: str | None
) -> tuple[EngineProvider, DatabaseEngine]:
    """Select the first usable provider and one of its engines.

    Raises:
        click.ClickException: If nothing usable is found or the selection fails
    """
    provider = await registry.select()
    if provider is None:
        raise click.ClickException("No usable database connection found in this workspace.")

    if connection is None:
        ids = [option.id for option in provider.options]
        if len(ids) != 1:
            raise click.ClickException(
                "Several connections are available; pass --connection with one of: "
                + ", ".join(ids)
            )
        connection = ids[0]

    engine = await provider.get_database_engine(EngineOption(id=connection))
    if engine is None:
        raise click.ClickException(f"Cannot use connection {connection}.")
    return provider, engine


def _run(fn: Callable[..., Awaitable[None]]) -> Callable[..., None]:
    """Run an async command body with a registry that is reset afterwards.

    Engine errors (unknown table or column, lost connection) end the command
    with exit code 1.
    """

    @wraps(fn)
    @click.pass_obj
    def wrapper(settings: Settings, *args: Any, **kwargs: Any) -> None:
        async def body() -> None:
            registry = default_registry(settings, ConsoleNotifier(err_console))
            try:
                await fn(registry, *args, **kwargs)
            finally:
                await registry.boot()

        try:
            asyncio.run(body())
        except (ValueError, DbLensError) as e:
            err_console.print(f"[red]{escape(str(e))}[/red]")
            sys.exit(1)

    return wrapper


connection_option = click.option(
    "--connection", "-c", default=None, help="Connection id (SQLite path or server name)."
)
where_option = click.option(
    "--where", "-w", multiple=True, help="Filter such as id=3, age>=18 or email~%@example.com."
)


@click.group()
@click.version_option(version=_get_cli_version())
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
@click.option(
    "--config-file", default=None, help="Connection list path, relative to the workspace."
)
@click.pass_context
def main(ctx: click.Context, workspace: Path | None, config_file: str | None):
    """db-lens - browse the databases your project already points at."""
    overrides: dict[str, Any] = {}
    if config_file is not None:
        overrides["config_file"] = config_file
    if workspace is not None:
        settings = load_workspace_settings(workspace, **overrides)
    else:
        settings = get_settings().model_copy(update=overrides)
    _configure_logging(settings.log_level)
    ctx.obj = settings


@main.command()
@_run
async def connections(registry: ProviderRegistry) -> None:
    """List the validated connections of the first usable provider."""
    provider = await registry.select()
    if provider is None:
        raise click.ClickException("No usable database connection found in this workspace.")

    table = Table(title=f"{provider.name} connections")
    table.add_column("ID")
    table.add_column("Description")
    table.add_column("Detail", style="dim")
    table.add_column("Engine")
    for option in provider.options:
        table.add_row(option.id, option.description, option.detail or "", option.kind)
    console.print(table)


@main.command()
@connection_option
@_run
async def tables(registry: ProviderRegistry, connection: str | None) -> None:
    """List tables."""
    _, engine = await open_engine(registry, connection)
    for name in await engine.get_tables():
        console.print(name)


@main.command()
@click.argument("table_name")
@connection_option
@_run
async def columns(registry: ProviderRegistry, table_name: str, connection: str | None) -> None:
    """Describe the columns of TABLE_NAME."""
    _, engine = await open_engine(registry, connection)
    cols = await engine.get_columns(table_name)

    table = Table(title=table_name)
    for header in ("Column", "Type", "Nullable", "Key", "Default", "References"):
        table.add_column(header)
    for col in cols:
        table.add_row(
            col.name,
            col.type,
            "yes" if col.nullable else "no",
            "PK" if col.primary_key else "",
            col.default or "",
            col.foreign_key or "",
        )
    console.print(table)


@main.command()
@click.argument("table_name")
@connection_option
@where_option
@_run
async def count(
    registry: ProviderRegistry, table_name: str, connection: str | None, where: tuple[str, ...]
) -> None:
    """Count rows in TABLE_NAME."""
    _, engine = await open_engine(registry, connection)
    console.print(await engine.get_total_rows(table_name, parse_where(where)))


@main.command()
@click.argument("table_name")
@connection_option
@where_option
@click.option("--page", "-p", default=1, show_default=True, type=click.IntRange(min=1))
@click.option("--per-page", default=None, type=click.IntRange(min=1), help="Rows per page.")
@_run
async def rows(
    registry: ProviderRegistry,
    table_name: str,
    connection: str | None,
    where: tuple[str, ...],
    page: int,
    per_page: int | None,
) -> None:
    """Show one page of rows from TABLE_NAME."""
    _, engine = await open_engine(registry, connection)
    result = await engine.get_rows(
        table_name, page=page, per_page=per_page, conditions=parse_where(where)
    )

    table = Table(
        title=table_name,
        caption=f"Page {result.page} of {result.page_count} ({result.total} rows)",
    )
    for name in result.columns:
        table.add_column(name)
    for row in result.rows:
        table.add_row(*(_cell(row[name]) for name in result.columns))
    console.print(table)


@main.command()
@click.argument("table_name")
@click.argument("values", nargs=-1, required=True)
@connection_option
@_run
async def insert(
    registry: ProviderRegistry, table_name: str, values: tuple[str, ...], connection: str | None
) -> None:
    """Insert a row: db-lens insert users name=alice email=a@example.com"""
    _, engine = await open_engine(registry, connection)
    inserted = await engine.insert_record(table_name, parse_assignments(values))
    console.print(f"[green]✓ Inserted {inserted} row(s)[/green]")


@main.command()
@click.argument("table_name")
@click.argument("assignment")
@click.option("--key", "-k", "keys", multiple=True, required=True, help="Row selector, e.g. id=3.")
@connection_option
@_run
async def update(
    registry: ProviderRegistry,
    table_name: str,
    assignment: str,
    keys: tuple[str, ...],
    connection: str | None,
) -> None:
    """Set one cell: db-lens update users email=new@example.com --key id=3"""
    _, engine = await open_engine(registry, connection)
    ((column, value),) = parse_assignments((assignment,)).items()
    updated = await engine.update_cell(table_name, column, value, parse_assignments(keys))
    console.print(f"[green]✓ Updated {updated} row(s)[/green]")


@main.command()
@click.argument("table_name")
@click.option("--key", "-k", "keys", multiple=True, required=True, help="Row selector, e.g. id=3.")
@connection_option
@click.confirmation_option(prompt="Delete the matching rows?")
@_run
async def delete(
    registry: ProviderRegistry, table_name: str, keys: tuple[str, ...], connection: str | None
) -> None:
    """Delete rows; each --key selects rows independently (id=3 --key id=4)."""
    _, engine = await open_engine(registry, connection)
    deleted = await engine.delete_records(table_name, [parse_assignments((key,)) for key in keys])
    console.print(f"[green]✓ Deleted {deleted} row(s)[/green]")
