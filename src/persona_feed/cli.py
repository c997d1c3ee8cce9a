"""Command-line interface using Typer."""

import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from persona_feed import __version__
from persona_feed.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="persona-feed",
    help="Persona Feed - persona-targeted content management CLI",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Persona Feed v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Persona Feed - manage personas, content and the viewer feed."""
    pass


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from persona_feed.config import settings

    uvicorn.run(
        "persona_feed.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.api_reload,
    )


@app.command("init-db")
def init_db_command(
    create_tables: bool = typer.Option(
        True,
        "--create-tables/--check-only",
        help="Create missing tables (use migrations in production)",
    ),
) -> None:
    """Verify the database connection and optionally create tables."""
    from sqlalchemy.exc import SQLAlchemyError

    from persona_feed.db.session import init_db

    try:
        init_db(create_tables=create_tables)
    except SQLAlchemyError as e:
        console.print(f"[bold red]Database error: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]Database ready[/bold green]")


@app.command("import-content")
def import_content(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file of content items"),
    author_id: Optional[int] = typer.Option(None, "--author", help="Author user id for items without one"),
) -> None:
    """Bulk create content from a JSON list (or an object with an "items" list)."""
    from persona_feed.db.session import get_session_context
    from persona_feed.domain.errors import PersonaFeedError
    from persona_feed.services.content import ContentRepository

    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        console.print(f"[bold red]Invalid JSON: {e}[/bold red]")
        raise typer.Exit(code=1)

    items = data.get("items") if isinstance(data, dict) else data
    if not isinstance(items, list) or not items:
        console.print("[bold red]Expected a non-empty list of content items[/bold red]")
        raise typer.Exit(code=1)

    if author_id is not None:
        items = [{"author_id": author_id, **item} for item in items]

    try:
        with get_session_context() as session:
            ids = ContentRepository(session).bulk_create(items)
    except PersonaFeedError as e:
        console.print(f"[bold red]Import failed: {e}[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[bold green]Imported {len(ids)} content item(s)[/bold green]")
    console.print(f"[dim]IDs: {', '.join(str(i) for i in ids)}[/dim]")


@app.command()
def feed(
    persona_id: int = typer.Argument(..., help="Persona ID"),
    company_id: int = typer.Argument(..., help="Company ID"),
    platform: Optional[list[str]] = typer.Option(
        None, "--platform", "-p", help="Only show content on this platform (repeatable)"
    ),
) -> None:
    """Show the feed for a persona within a company."""
    from persona_feed.db.session import get_session_context
    from persona_feed.domain.feed import detect_source_type, filter_by_platforms
    from persona_feed.services.feed import FeedQuery

    with get_session_context() as session:
        rows = FeedQuery(session).get_by_persona_and_company(persona_id, company_id)
    rows = filter_by_platforms(rows, platform or [])

    if not rows:
        console.print("[dim]No content found for that persona & company[/dim]")
        return

    table = Table(title=f"Feed for persona {persona_id}")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Status")
    table.add_column("Source")
    table.add_column("Platforms")
    table.add_column("Published")
    table.add_column("Views", justify="right")

    for row in rows:
        table.add_row(
            str(row.id),
            row.title,
            row.status.value,
            detect_source_type(row.content_url).value,
            ", ".join(row.platform_names) or "-",
            row.publish_date.strftime("%Y-%m-%d %H:%M") if row.publish_date else "-",
            str(row.views),
        )

    console.print(table)


def _print_dimension(title: str, refs: list) -> None:
    if not refs:
        console.print(f"[dim]No {title.lower()} found[/dim]")
        return

    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for ref in refs:
        table.add_row(str(ref.id), ref.name)
    console.print(table)


@app.command()
def platforms() -> None:
    """List every known platform."""
    from persona_feed.db.session import get_session_context
    from persona_feed.services.personas import PersonaRepository

    with get_session_context() as session:
        refs = PersonaRepository(session).list_platforms()
    _print_dimension("Platforms", refs)


@app.command()
def interests() -> None:
    """List every known interest."""
    from persona_feed.db.session import get_session_context
    from persona_feed.services.personas import PersonaRepository

    with get_session_context() as session:
        refs = PersonaRepository(session).list_interests()
    _print_dimension("Interests", refs)


if __name__ == "__main__":
    app()
