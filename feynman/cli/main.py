"""
FeynmanMath CLI

Usage:
    feynman run                        # Interactive tutoring session
    feynman bootstrap                  # Create default coach/test accounts
    feynman students --search ann      # List students
    feynman import-roster roster.csv   # Register students from CSV
    feynman export-report stats.csv    # Per-student mistake statistics
    feynman reset-password alice       # Reset a password to the username
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from rich.console import Console

from config import Settings, get_settings
from feynman.accounts.credential_store import CredentialStore
from feynman.accounts.roster_io import (
    build_student_report,
    read_roster_csv,
    write_student_report_csv,
)
from feynman.core.errors import FeynmanError
from feynman.navigation.app import TutorApp
from feynman.storage.kv_store import SQLiteKeyValueStore
from feynman.storage.repository import TutorRepository
from feynman.study.analytics import filter_students
from feynman.study.mistake_store import MistakeArchiveStore
from feynman.study.session_store import SessionContinuityStore

from . import views
from .interactive import InteractiveSession

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="feynman",
    help="📐 FeynmanMath - competition math tutor in your terminal",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()


def configure_logging(settings: Settings) -> None:
    """Replace loguru's default sink with the configured ones."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="5 MB", retention=3)


def _repository(db: Path | None) -> TutorRepository:
    settings = get_settings()
    return TutorRepository(SQLiteKeyValueStore(db or settings.database_path))


def _credentials(db: Path | None) -> CredentialStore:
    settings = get_settings()
    return CredentialStore(_repository(db), min_password_length=settings.min_password_length)


DbOption = Annotated[
    Path | None, typer.Option("--db", help="SQLite database path (overrides settings)")
]

# =============================================================================
# Commands
# =============================================================================


@app.command()
def run(db: DbOption = None) -> None:
    """Start an interactive session (login, practice, notebook, coach tools)."""
    settings = get_settings()
    if db is not None:
        settings = settings.model_copy(update={"db_path": db})
    if not settings.has_ai_configured():
        console.print("[yellow]⚠ GEMINI_API_KEY not set - problems will not be generated[/]")

    InteractiveSession(TutorApp.from_settings(settings), console).run()


@app.command()
def bootstrap(db: DbOption = None) -> None:
    """Create the default coach and test-student accounts if missing."""
    created = _credentials(db).bootstrap()
    console.print(f"[green]✓ {created} account(s) created[/]")


@app.command()
def students(
    search: Annotated[str, typer.Option("--search", "-s", help="Filter by name or username")] = "",
    db: DbOption = None,
) -> None:
    """List registered students."""
    repository = _repository(db)
    matches = filter_students(CredentialStore(repository).list_students(), search)
    open_ids = SessionContinuityStore(repository).users_with_open_session()
    console.print(views.students_table(matches, open_ids))


@app.command("import-roster")
def import_roster(
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Roster CSV file")],
    db: DbOption = None,
) -> None:
    """
    Register students from a CSV with 'name'/'username' (or '姓名'/'账号') columns.

    Initial password equals the username; students must change it on first login.
    """
    try:
        parsed = read_roster_csv(path)
    except FeynmanError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise typer.Exit(1)

    for rejection in parsed.rejected:
        console.print(f"[yellow]Row {rejection.row_number} skipped: {rejection.reason}[/]")
    if not parsed.entries:
        console.print("[yellow]No valid student rows found.[/]")
        raise typer.Exit(1)

    count = _credentials(db).register_batch(parsed.entries)
    console.print(f"[green]✓ Imported {count} student(s). Initial password = username.[/]")


@app.command("export-report")
def export_report(
    path: Annotated[Path, typer.Argument(dir_okay=False, help="Output CSV file")],
    db: DbOption = None,
) -> None:
    """Export per-student mistake statistics."""
    repository = _repository(db)
    credentials = CredentialStore(repository)
    rows = build_student_report(
        credentials.list_students(), MistakeArchiveStore(repository).get_mistakes
    )
    count = write_student_report_csv(path, rows)
    console.print(f"[green]✓ Exported {count} student(s) to {path}[/]")


@app.command("reset-password")
def reset_password(
    username: Annotated[str, typer.Argument(help="Username to reset")],
    db: DbOption = None,
) -> None:
    """Reset a user's password to their username and force a change on next login."""
    credentials = _credentials(db)
    try:
        user = credentials.find_by_username(username)
        credentials.reset_password_to_username(user.id)
    except FeynmanError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Password for {user.name} reset to: {user.username}[/]")


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    configure_logging(get_settings())
    app()


if __name__ == "__main__":
    main()
