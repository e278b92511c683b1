import logging
from dataclasses import replace
from typing import Annotated

import typer
import uvicorn
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from treecalc._config import ConfigError, TreecalcConfig, get_config
from treecalc._errors import TreecalcError
from treecalc._http import create_app
from treecalc._migrate import migrate as run_migration
from treecalc._models import CalculationInput
from treecalc._recalc import RecalculationCoordinator
from treecalc._store import Database
from treecalc._tree import ResourceTree

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

DatabaseUrlOption = Annotated[
    str | None,
    typer.Option("--database-url", help="SQLAlchemy database URL (overrides configuration)"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Treecalc CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _load_config(database_url: str | None) -> TreecalcConfig:
    try:
        config = get_config()
    except ConfigError as e:
        err_console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e
    if database_url is not None:
        config = replace(config, database_url=database_url)
    return config


def _open_database(database_url: str | None) -> Database:
    config = _load_config(database_url)
    database = Database.from_url(config.database_url, echo=config.echo_sql)
    database.create_all()
    return database


def _fail(error: TreecalcError) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(str(error))}[/red]")
    return typer.Exit(code=1)


@app.command()
def migrate(
    *,
    seed: Annotated[
        bool,
        typer.Option("--seed", help="Replace variables and calculations with the sample data"),
    ] = False,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Create the database tables."""
    config = _load_config(database_url)
    err_console.print(f"[cyan]Migrating database:[/cyan] {escape(config.database_url)}")
    database = Database.from_url(config.database_url, echo=config.echo_sql)
    try:
        run_migration(database, seed=seed)
    finally:
        database.dispose()
    if seed:
        err_console.print("[green]✓ Sample data loaded[/green]")
    err_console.print("[green]✓ Migration completed successfully[/green]")


@app.command()
def serve(
    *,
    host: Annotated[str | None, typer.Option("--host", help="Interface to bind")] = None,
    port: Annotated[int | None, typer.Option("--port", help="Port to listen on")] = None,
    seed: Annotated[bool, typer.Option("--seed", help="Load the sample data at startup")] = False,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Run the HTTP API."""
    config = _load_config(database_url)
    bind_host = config.host if host is None else host
    bind_port = config.port if port is None else port
    err_console.print(f"[cyan]Server is running on[/cyan] http://{bind_host}:{bind_port}")
    uvicorn.run(create_app(config, seed=seed), host=bind_host, port=bind_port, log_config=None)


@app.command()
def lineage(
    resource_id: Annotated[int, typer.Argument(help="Resource id")],
    *,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Print the ancestors of a resource, root first."""
    database = _open_database(database_url)
    try:
        tree = ResourceTree(database)
        resource = tree.get_resource(resource_id)
        ancestors = [tree.get_resource(ancestor_id) for ancestor_id in tree.get_lineage(resource_id)]
    except TreecalcError as e:
        raise _fail(e) from e
    finally:
        database.dispose()

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("Depth", justify="right", style="dim")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    for depth, ancestor in enumerate([*ancestors, resource]):
        table.add_row(str(depth), str(ancestor.id), escape(ancestor.name))

    out_console.print(Panel(table, title=f"[bold]Lineage of {escape(resource.name)}[/bold]", border_style="cyan"))


@app.command(name="eval")
def eval_expression(
    expression: Annotated[str, typer.Argument(help='Expression, e.g. \'{"id": 1} * 2\'')],
    *,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Evaluate an expression against the stored variables."""
    database = _open_database(database_url)
    try:
        result = RecalculationCoordinator(database).process_calculation(
            CalculationInput(name="cli", expression=expression),
        )
    except TreecalcError as e:
        raise _fail(e) from e
    finally:
        database.dispose()

    out_console.print(repr(result.calculated_value))


@app.command()
def recalc(
    variable_id: Annotated[int, typer.Argument(help="Variable id whose dependents to recompute")],
    *,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Recompute every calculation that references a variable."""
    database = _open_database(database_url)
    try:
        coordinator = RecalculationCoordinator(database)
        candidates = coordinator.find_dependents(variable_id)
        results = coordinator.recalculate_for_variable(variable_id)
    finally:
        database.dispose()

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Calculation")
    table.add_column("Value", justify="right", style="yellow")
    for result in results:
        table.add_row(str(result.id), escape(result.name), repr(result.calculated_value))

    out_console.print(Panel(table, title=f"[bold]Variable {variable_id}[/bold]", border_style="cyan"))

    failed = len(candidates) - len(results)
    if failed:
        err_console.print(f"[red]✗ {failed} calculation(s) failed[/red]")
        raise typer.Exit(code=1)
    err_console.print(f"[green]✓ {len(results)} calculation(s) recomputed[/green]")


@app.command()
def deps(
    *,
    by_calculation: Annotated[
        bool,
        typer.Option("--by-calculation", help="One row per calculation, listing the variables it references"),
    ] = False,
    database_url: DatabaseUrlOption = None,
) -> None:
    """Show which calculations reference which variables."""
    database = _open_database(database_url)
    try:
        index = RecalculationCoordinator(database).dependency_index()
    finally:
        database.dispose()

    table = Table(show_header=True, header_style="bold cyan")
    if by_calculation:
        table.add_column("Calculation", justify="right", style="bold")
        table.add_column("Variables")
        for calculation_id in sorted(index.calculations):
            table.add_row(str(calculation_id), ", ".join(str(v) for v in sorted(index.references(calculation_id))))
    else:
        table.add_column("Variable", justify="right", style="bold")
        table.add_column("Calculations")
        for variable_id in sorted(index.variables):
            table.add_row(str(variable_id), ", ".join(str(c) for c in sorted(index.dependents(variable_id))))

    out_console.print(
        Panel(
            table,
            title="[bold]Dependency index[/bold]",
            subtitle=f"[dim]{len(index)} edges[/dim]",
            border_style="cyan",
        ),
    )


def main() -> None:
    app()
