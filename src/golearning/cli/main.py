"""
CLI Main - Typer command-line interface.
========================================

Commands:
- ingest: Crawl the tutorial and store structured lessons
- init-db: Create the database tables
- modules: List stored modules with lesson counts
- lesson: Show one stored lesson
- info: Show effective configuration
"""

import signal
import threading
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from golearning.shared.logging import get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="golearning",
    help="""🐹 GoLearning - Ingestion pipeline for Go tutorial lessons

Crawls the Go tutorial, rewrites every page into a fixed lesson structure
(overview, syntax, examples, pitfalls, practice tasks) and stores the
lessons grouped into modules.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

COMMANDS OVERVIEW:

  ingest   Crawl the tutorial and store lessons
           -n, --limit        Process only the first N lessons
           -u, --url          Tutorial base URL
           --db               Database URL
           --delay            Seconds between lesson requests

  init-db  Create database tables

  modules  List stored modules with lesson counts

  lesson   Show one stored lesson with its sections and tasks

  info     Show effective configuration

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

QUICK START:

  golearning init-db            # Step 1: Create tables
  golearning ingest -n 5        # Step 2: Try a few lessons
  golearning modules            # Step 3: See what was stored

Use 'golearning <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

EXIT_FATAL = 1
EXIT_CANCELLED = 130


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """Configure logging from settings before any command runs."""
    from golearning.shared.config import get_settings
    from golearning.shared.logging import setup_logging

    settings = get_settings()
    setup_logging(
        level="DEBUG" if verbose else settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Ingest Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def ingest(
    limit: int = typer.Option(
        0,
        "--limit", "-n",
        help="Process only the first N lessons of the table of contents (0 = all).",
    ),
    url: Optional[str] = typer.Option(
        None,
        "--url", "-u",
        help="Tutorial base URL. Default: from config/settings.yaml.",
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="SQLAlchemy database URL. Default: DATABASE_URL or config.",
    ),
    delay: Optional[float] = typer.Option(
        None,
        "--delay",
        min=0.0,
        help="Seconds to wait between lesson requests. Default: from config.",
    ),
):
    """
    🌐 Crawl the tutorial and store structured lessons.

    Lessons that cannot be fetched or parsed are skipped and listed in
    the summary. Re-running replaces stored lessons by slug.

    Press Ctrl+C to stop; the run stops before the next lesson.

    Examples:
        golearning ingest                   # Whole tutorial
        golearning ingest -n 10             # First 10 lessons
        golearning ingest --db sqlite:///tmp/go.db
    """
    from golearning.ingestion.fetcher import Fetcher
    from golearning.ingestion.pipeline import build_pipeline
    from golearning.shared.config import get_settings
    from golearning.shared.exceptions import IngestCancelled, IngestError, PersistenceError
    from golearning.storage.repository import ContentRepository

    settings = get_settings()
    base_url = (url or settings.get_effective_base_url()).rstrip("/")
    database_url = db or settings.get_effective_database_url()

    console.print(Panel(
        f"[bold]Ingestion Configuration[/bold]\n"
        f"Source: {base_url}\n"
        f"Database: {database_url}\n"
        f"Limit: {limit if limit > 0 else 'all lessons'}\n"
        f"Delay: {settings.pipeline.request_delay if delay is None else delay}s\n"
        f"Locale: {settings.site.locale}",
        title="🌐 Ingest",
    ))

    try:
        repository = ContentRepository.from_url(database_url)
    except PersistenceError as e:
        console.print(f"[red]Database unavailable: {e}[/red]")
        raise typer.Exit(EXIT_FATAL)

    stop_event = threading.Event()

    def _request_stop(signum, frame):
        console.print("\n[yellow]Stopping after the current lesson...[/yellow]")
        stop_event.set()

    previous = {sig: signal.signal(sig, _request_stop) for sig in (signal.SIGINT, signal.SIGTERM)}

    try:
        with Fetcher(base_url=base_url) as fetcher:
            pipeline = build_pipeline(
                settings,
                store=repository,
                fetcher=fetcher,
                base_url=base_url,
                request_delay=delay,
            )
            summary = pipeline.run(limit=limit, stop_event=stop_event)
    except IngestCancelled:
        console.print("[yellow]Ingestion cancelled.[/yellow]")
        raise typer.Exit(EXIT_CANCELLED)
    except IngestError as e:
        console.print(f"[red]Ingestion failed: {e}[/red]")
        raise typer.Exit(EXIT_FATAL)
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        repository.close()

    table = Table(title="Ingestion Summary")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Modules", str(summary.modules))
    table.add_row("Lessons imported", str(summary.lessons_imported))
    table.add_row("Lessons skipped", str(summary.lessons_failed))
    table.add_row("Sections", str(summary.sections))
    table.add_row("Tasks", str(summary.tasks))
    table.add_row("Section/task failures", str(summary.item_failures))
    table.add_row("Elapsed", f"{summary.elapsed:.1f}s")
    console.print(table)

    if summary.failures:
        console.print("\n[bold yellow]Skipped lessons:[/bold yellow]")
        for failed_url, reason in summary.failures:
            console.print(f"  • {failed_url}: {reason}")

    console.print(f"\n[bold green]✓ Imported {summary.lessons_imported} lessons[/bold green]")


# ─────────────────────────────────────────────────────────────────────────────
# Database Commands
# ─────────────────────────────────────────────────────────────────────────────


def _open_repository(db: Optional[str]):
    from golearning.shared.exceptions import PersistenceError
    from golearning.storage.repository import ContentRepository

    try:
        return ContentRepository.from_url(db)
    except PersistenceError as e:
        console.print(f"[red]Database unavailable: {e}[/red]")
        raise typer.Exit(EXIT_FATAL)


@app.command("init-db")
def init_db_command(
    db: Optional[str] = typer.Option(None, "--db", help="SQLAlchemy database URL."),
):
    """
    🗄️ Create the database tables.

    Safe to run repeatedly; existing tables are left untouched.
    """
    repository = _open_repository(db)
    console.print(f"[green]✓ Database ready: {repository.engine.url.render_as_string()}[/green]")
    repository.close()


@app.command()
def modules(
    db: Optional[str] = typer.Option(None, "--db", help="SQLAlchemy database URL."),
):
    """📚 List stored modules with their lesson counts."""
    repository = _open_repository(db)
    try:
        summaries = repository.list_modules()
    finally:
        repository.close()

    if not summaries:
        console.print("[yellow]No modules stored. Run 'golearning ingest' first.[/yellow]")
        return

    table = Table(title="Modules")
    table.add_column("#", justify="right")
    table.add_column("Slug")
    table.add_column("Title")
    table.add_column("Lessons", justify="right")

    for item in summaries:
        table.add_row(
            str(item.module.order_index + 1),
            item.module.slug,
            item.module.title,
            str(item.lesson_count),
        )

    console.print(table)


@app.command()
def lesson(
    slug: str = typer.Argument(..., help="Lesson slug, as shown after ingestion."),
    db: Optional[str] = typer.Option(None, "--db", help="SQLAlchemy database URL."),
):
    """📖 Show one stored lesson with its sections and tasks."""
    repository = _open_repository(db)
    try:
        stored = repository.get_lesson_by_slug(slug)
    finally:
        repository.close()

    if stored is None:
        console.print(f"[red]Lesson not found: {slug}[/red]")
        raise typer.Exit(EXIT_FATAL)

    record = stored.record
    console.print(Panel(
        f"[bold]{record.title}[/bold]\n"
        f"Module: {stored.module_slug}\n"
        f"Source: {record.source_url}\n"
        f"Reading time: {record.reading_time_min} min",
        title=f"📖 {record.slug}",
    ))

    for section in stored.sections:
        console.print(f"\n[bold blue]═══ {section.title} ═══[/bold blue]")
        console.print(section.body_md, markup=False, highlight=False)

    if stored.tasks:
        table = Table(title="Tasks")
        table.add_column("#", justify="right")
        table.add_column("Title")
        table.add_column("Points", justify="right")
        for task in stored.tasks:
            table.add_row(str(task.order_index + 1), task.title, str(task.points))
        console.print()
        console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """
    ℹ️ Show system information and configuration.

    Displays:
      • Version information
      • Source site and locale
      • Fetch and pipeline settings
      • Database URL

    Useful for debugging and verifying setup.
    """
    from golearning import __version__
    from golearning.shared.config import get_settings

    settings = get_settings()

    console.print(Panel(
        f"[bold]GoLearning[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: config/settings.yaml",
        title="ℹ️ Info",
    ))

    table = Table()
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Base URL", settings.get_effective_base_url())
    table.add_row("Locale", settings.site.locale)
    table.add_row("Timeout", f"{settings.fetching.timeout}s")
    table.add_row("Max body", f"{settings.fetching.max_body_bytes} bytes")
    table.add_row("Attempts", str(settings.fetching.max_attempts))
    table.add_row("Request delay", f"{settings.pipeline.request_delay}s")
    table.add_row("Default module", settings.pipeline.default_module_slug)
    table.add_row("Database", settings.get_effective_database_url())
    table.add_row("Log level", settings.get_effective_log_level())

    console.print(table)


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    app()


if __name__ == "__main__":
    cli()
