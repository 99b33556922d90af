"""
Typer CLI for prep-plan-sync.

Commands:
    prepsync migrate PLAN_ID --user-id ID   - Migrate a stored plan into practice tables
    prepsync migrate ... --overwrite        - Replace previously migrated subjects
    prepsync preview plan.json              - Dry-run a plan document in memory
    prepsync db init                        - Create tables on DATABASE_URL
    prepsync version                        - Show version information

Usage:
    prepsync --help
    prepsync migrate 42 --user-id 6f1c... --json
    prepsync preview exports/plan_42.json --plan-id 42
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from config import Settings, get_settings
from prepsync import __version__
from prepsync.db.store import (
    ANSWERS_TABLE,
    DATASETS_TABLE,
    EXERCISES_TABLE,
    PLANS_TABLE,
    PROBLEM_SOLVING_TABLE,
    QUESTIONS_TABLE,
    MemoryStore,
)
from prepsync.migration import MigratePlanRequest, MigrationResponse, migrate_plan

app = typer.Typer(
    help="prep-plan-sync CLI: interview plan documents -> practice tables",
    no_args_is_help=True,
)
db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")

console = Console()

PREVIEW_USER_ID = "preview"


def configure_logging(settings: Settings) -> None:
    """Send loguru output to stderr, plus a rotating file when LOG_FILE is set."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(settings.log_file, level=settings.log_level, rotation="10 MB", retention=5)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level"),
) -> None:
    """Normalize interview preparation plans into practice exercises."""
    settings = get_settings()
    if verbose:
        settings = settings.model_copy(update={"log_level": "DEBUG"})
    configure_logging(settings)


def _render_response(response: MigrationResponse) -> None:
    result = response.result
    style = "green" if response.success else "red"

    table = Table(title=f"Plan {result.plan_id} Migration")
    table.add_column("Entity", style="cyan")
    table.add_column("Created", justify="right")
    table.add_row("Exercises", str(result.exercises_created))
    table.add_row("Datasets", str(result.datasets_created))
    table.add_row("Questions", str(result.questions_created))
    table.add_row("Answers", str(result.answers_created))
    table.add_row("Problem solving links", str(result.links_created))
    console.print(table)

    for warning in result.warnings:
        rprint(f"[yellow]⚠[/yellow] {warning}")
    for error in result.errors:
        rprint(f"[red]✗[/red] {error}")
    rprint(f"[{style}]{response.message}[/{style}]")


def _emit(response: MigrationResponse, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(response.to_dict(), indent=2))
    else:
        _render_response(response)
    if not response.success:
        raise typer.Exit(code=1)


# ========================================
# MIGRATION COMMANDS
# ========================================


@app.command("migrate")
def migrate(
    plan_id: int = typer.Argument(..., help="Plan id in interview_prep_plans"),
    user_id: str = typer.Option(..., "--user-id", "-u", help="Owner of the plan"),
    overwrite: bool | None = typer.Option(
        None,
        "--overwrite/--no-overwrite",
        help="Replace subjects migrated earlier (default from DEFAULT_OVERWRITE_EXISTING)",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the response as JSON"),
) -> None:
    """Migrate a stored plan into exercises, datasets, questions and answers."""
    from prepsync.db.database import build_store

    settings = get_settings()
    overwrite_existing = settings.default_overwrite_existing if overwrite is None else overwrite
    logger.info(f"Migrating plan {plan_id} (store={settings.store_backend}, overwrite={overwrite_existing})")

    try:
        store = build_store(settings)
    except ValueError as e:
        rprint(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    try:
        response = migrate_plan(
            store,
            user_id,
            MigratePlanRequest(plan_id=plan_id, overwrite_existing=overwrite_existing),
        )
    finally:
        close = getattr(store, "close", None)
        if callable(close):
            close()

    _emit(response, as_json)


@app.command("preview")
def preview(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Plan content JSON file"),
    plan_id: int = typer.Option(1, "--plan-id", help="Plan id used in exercise names"),
    as_json: bool = typer.Option(False, "--json", help="Print the response as JSON"),
) -> None:
    """
    Run a migration against an in-memory store.

    Accepts either a bare plan document (with `subject_prep`) or a full
    plan row (with `plan_content`). Nothing is written anywhere.
    """
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        rprint(f"[red]✗[/red] {path} is not valid JSON: {e}")
        raise typer.Exit(code=1)

    if isinstance(document, dict) and "plan_content" in document:
        plan_content = document["plan_content"]
    else:
        plan_content = document

    store = MemoryStore()
    store.insert(
        PLANS_TABLE,
        {"id": plan_id, "user_id": PREVIEW_USER_ID, "profile_id": None, "jd_id": None, "plan_content": plan_content},
    )
    response = migrate_plan(store, PREVIEW_USER_ID, MigratePlanRequest(plan_id=plan_id))

    if not as_json:
        counts = Table(title="Rows in memory store")
        counts.add_column("Table", style="cyan")
        counts.add_column("Rows", justify="right")
        for table in (EXERCISES_TABLE, DATASETS_TABLE, QUESTIONS_TABLE, ANSWERS_TABLE, PROBLEM_SOLVING_TABLE):
            counts.add_row(table, str(store.count(table)))
        console.print(counts)

    _emit(response, as_json)


# ========================================
# DATABASE COMMANDS
# ========================================


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from sqlalchemy.exc import SQLAlchemyError

    from prepsync.db.database import init_db

    logger.info("Initializing database tables...")
    try:
        init_db()
    except SQLAlchemyError as e:
        logger.error(f"Database initialization failed: {e}")
        raise typer.Exit(code=1)
    rprint("[green]✓[/green] Database initialized!")


@app.command("version")
def show_version() -> None:
    """Show version information."""
    rprint(f"[bold]prep-plan-sync[/bold] v{__version__}")
    rprint("  Interview plan documents -> practice tables")


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
