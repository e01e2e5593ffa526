"""Structrack CLI.

Commands:
- init: Initialize database schema
- seed: Insert demo structure types and matrix columns
- tree: Print the structure tree
- import-elements: Bulk-import pasted coordinates into a group
- matrix: Show the progress matrix (relational or legacy)
- resync: Repair legacy tracking for a group
- web serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
from rich.tree import Tree

from structrack.config import get_config
from structrack.core.logging import configure_logging
from structrack.db.connection import close_db, get_session_factory, init_db
from structrack.db.store import SQLRecordStore
from structrack.errors import InvalidInputError, NotFoundError
from structrack.progress.models import SyncOutcome
from structrack.seed import seed_reference_data
from structrack.service import StructureManager

app = typer.Typer(
    name="structrack",
    help="Structrack - structure inventory and progress matrix",
    no_args_is_help=True,
)
web_cli = typer.Typer(help="Web API")
app.add_typer(web_cli, name="web")

console = Console()


def _manager() -> StructureManager:
    config = get_config()
    configure_logging(config.log_level, "text")
    return StructureManager.from_config(SQLRecordStore(get_session_factory()), config)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        if drop:
            console.print("[yellow]Dropping existing tables...[/yellow]")
        await init_db(drop=drop)
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command()
def seed():
    """Insert demo structure types and Bridge/Culvert matrix columns."""

    async def _seed():
        try:
            types_added, columns_added = await seed_reference_data(_manager())
        finally:
            await close_db()
        console.print(
            f"[bold green]✓[/bold green] {types_added} types, {columns_added} columns added"
        )

    asyncio.run(_seed())


@app.command()
def tree(
    lang: str = typer.Option("en", "--lang", help="Language for type names (tr/en/ro)"),
):
    """Print the structure tree."""

    async def _tree():
        manager = _manager()
        try:
            items = await manager.get_tree()
            types = {t.code: t for t in await manager.list_structure_types()}
        finally:
            await close_db()

        if not items:
            console.print("[yellow]No structures[/yellow]")
            return

        root = Tree("[bold]Structures[/bold]")
        for item in items:
            type_name = types[item.type_code].name.get(lang) if item.type_code in types else "-"
            km = f"{item.km_start} - {item.km_end}" if item.km_start is not None else ""
            branch = root.add(
                f"[cyan]{item.code or item.name}[/cyan] {type_name} [dim]{km}[/dim]"
            )
            for group in item.groups:
                group_branch = branch.add(
                    f"{group.name} [dim]{group.group_type} {group.direction}[/dim] "
                    f"({len(group.elements)} elements)"
                )
                for element in group.elements[:10]:
                    shape = element.coordinates.shape.value if element.coordinates else "-"
                    group_branch.add(f"[dim]{element.name} {element.element_class} {shape}[/dim]")
                if len(group.elements) > 10:
                    group_branch.add(f"[dim]... {len(group.elements) - 10} more[/dim]")
        console.print(root)

    asyncio.run(_tree())


@app.command(name="import-elements")
def import_elements(
    group_id: str = typer.Argument(..., help="Target group ID"),
    file: Path = typer.Argument(..., help="Tab-separated file: name, x, y, z[, d1, d2, d3]"),
):
    """Bulk-import element coordinates into a group."""
    if not file.exists():
        console.print(f"[red]✗[/red] File not found: {file}")
        raise typer.Exit(1)
    text = file.read_text(encoding="utf-8")

    async def _import():
        try:
            result = await _manager().import_bulk(group_id, text)
        except NotFoundError as e:
            console.print(f"[red]✗[/red] {e}")
            raise typer.Exit(1)
        finally:
            await close_db()

        console.print(f"[bold green]✓[/bold green] {result.message}")
        for err in result.errors[:5]:
            console.print(f"  {err}", style="dim")

    asyncio.run(_import())


@app.command()
def matrix(
    source: str = typer.Option("relational", "--source", help="relational or legacy"),
):
    """Show the progress matrix."""

    async def _matrix():
        manager = _manager()
        try:
            rows = await manager.get_matrix(source=source)
        except InvalidInputError as e:
            console.print(f"[red]✗[/red] {e}")
            raise typer.Exit(1)
        finally:
            await close_db()

        table = Table(title=f"Progress Matrix ({source})")
        table.add_column("Structure", style="cyan")
        table.add_column("Location")
        table.add_column("Dir", justify="center")
        table.add_column("Cells", justify="right")
        table.add_column("Filled", justify="right", style="green")

        for row in rows:
            filled = sum(1 for cell in row.cells.values() if cell.code != "-")
            table.add_row(
                row.structure_id,
                row.location or "-",
                row.direction or "-",
                str(len(row.cells)),
                str(filled),
            )
        console.print(table)

    asyncio.run(_matrix())


@app.command()
def resync(
    group_id: str = typer.Argument(..., help="Group ID to repair"),
):
    """Re-run legacy progress synchronization for a group."""

    async def _resync():
        try:
            result = await _manager().resync_group(group_id)
        except NotFoundError as e:
            console.print(f"[red]✗[/red] {e}")
            raise typer.Exit(1)
        finally:
            await close_db()

        report = result.sync
        if report is not None and report.outcome == SyncOutcome.SYNC_FAILED:
            console.print(f"[red]✗[/red] {report.message}")
            raise typer.Exit(1)
        console.print(f"[bold green]✓[/bold green] {result.message}")

    asyncio.run(_resync())


@web_cli.command("serve")
def web_serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the FastAPI app."""
    import uvicorn

    typer.echo(f"Starting Structrack API on http://{host}:{port}")
    uvicorn.run("structrack.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
