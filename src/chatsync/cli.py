"""
chatsync CLI - Command-line interface for chatsync.

Reads a conversation export and mirrors it into Redmine issues, keeping
per-conversation progress in a local SQLite database.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from chatsync.logging_config import setup_logging

app = typer.Typer(
    name="chatsync",
    help="chatsync - Mirror exported AI conversations into Redmine issues",
    no_args_is_help=True,
)

console = Console()


def _init_logging(settings) -> logging.Logger:
    # Fall back to console logging if file logging is not permitted
    try:
        return setup_logging(context="cli", settings=settings)
    except PermissionError:
        logging.basicConfig(level=logging.INFO)
        return logging.getLogger("chatsync")


def _open_store(settings, logger: logging.Logger):
    from chatsync.db.connection import create_db_engine
    from chatsync.db.progress import ProgressStore

    store = ProgressStore(create_db_engine(settings.database_url), logger=logger)
    store.initialize()
    return store


@app.command()
def sync(
    export: str = typer.Argument(
        ..., help="Path to the export archive (.zip) or conversations.json"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be synchronized without writing"
    ),
    upload_artifacts: Optional[bool] = typer.Option(
        None,
        "--upload-artifacts/--no-upload-artifacts",
        help="Attach extracted artifacts to tickets (defaults to UPLOAD_ARTIFACTS)",
    ),
) -> None:
    """
    Synchronize an export into Redmine.

    New conversations become issues; conversations synchronized before only
    get their new messages appended as notes.
    """
    from chatsync.config import get_settings
    from chatsync.exceptions import ConfigurationError, ExportFormatError, StoreError
    from chatsync.export import ExportReader
    from chatsync.remote import RedmineClient
    from chatsync.sync import ArtifactPublisher, SyncEngine, plan_sync

    settings = get_settings()
    logger = _init_logging(settings)

    export_path = Path(export)
    if not export_path.exists():
        console.print(f"[bold red]Error:[/bold red] Path not found: {export}")
        raise typer.Exit(1)

    if not dry_run:
        try:
            settings.validate_for_sync()
        except ConfigurationError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            raise typer.Exit(1)

    if upload_artifacts is None:
        upload_artifacts = settings.upload_artifacts

    console.print(f"[bold blue]Synchronizing export:[/bold blue] {export_path}")
    console.print(f"  Redmine: {settings.redmine_url or 'N/A'}")
    console.print(f"  Project: {settings.redmine_project_id or 'N/A'}")
    console.print(f"  Upload artifacts: {upload_artifacts}")
    console.print(f"  Dry run: {dry_run}")
    console.print()

    try:
        conversations = ExportReader(export_path, logger=logger).read()
    except ExportFormatError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not conversations:
        console.print("[yellow]No conversations found in export[/yellow]")
        raise typer.Exit(0)

    console.print(f"Found {len(conversations)} conversation(s)\n")

    try:
        store = _open_store(settings, logger)

        if dry_run:
            _print_plan(plan_sync(store, conversations))
            return

        with RedmineClient.from_settings(settings, logger=logger) as client:
            publisher = None
            if upload_artifacts:
                publisher = ArtifactPublisher(
                    client, store, Path(settings.artifacts_dir).expanduser(), logger
                )
            engine = SyncEngine(store, client, publisher, logger=logger)
            report = engine.synchronize(conversations)
    except StoreError as e:
        console.print(f"[bold red]✗ Progress store error:[/bold red] {e}")
        raise typer.Exit(1)

    for failure in report.failures:
        console.print(
            f"  [red]✗ {failure.conversation_id}[/red] "
            f"(ticket #{failure.ticket_id}): {failure.error}"
        )

    console.print()
    console.print("[bold]Summary:[/bold]")
    console.print(f"  Created: {report.created}")
    console.print(f"  Updated: {report.updated}")
    console.print(f"  Skipped: {report.skipped}")
    console.print(f"  Failed: {report.failed}")
    console.print(f"  Notes sent: {report.notes_sent}")
    if upload_artifacts:
        console.print(f"  Artifacts uploaded: {report.attachments_uploaded}")

    if not report.ok:
        raise typer.Exit(1)


def _print_plan(actions) -> None:
    table = Table(title="Planned actions (dry run)")
    table.add_column("Conversation")
    table.add_column("Title")
    table.add_column("Action")
    table.add_column("Ticket", justify="right")
    table.add_column("New messages", justify="right")

    colors = {"create": "green", "update": "cyan", "skip": "dim"}
    for action in actions:
        color = colors[action.action]
        table.add_row(
            action.conversation_id,
            action.title,
            f"[{color}]{action.action}[/{color}]",
            f"#{action.ticket_id}" if action.ticket_id else "-",
            str(action.pending_messages),
        )
    console.print(table)


@app.command()
def status(
    limit: int = typer.Option(20, help="Maximum number of records to show"),
) -> None:
    """Show synchronized conversations and their cursors."""
    from chatsync.config import get_settings
    from chatsync.exceptions import StoreError

    settings = get_settings()
    logger = _init_logging(settings)

    try:
        store = _open_store(settings, logger)
        records = store.list_records(limit=limit)
        attachment_counts = {
            record.conversation_id: len(store.attachments_for(record.conversation_id))
            for record in records
        }
    except StoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not records:
        console.print("[yellow]No conversations synchronized yet[/yellow]")
        return

    table = Table(title="Synchronized conversations")
    table.add_column("Conversation")
    table.add_column("Ticket", justify="right")
    table.add_column("Last message")
    table.add_column("Artifacts", justify="right")
    table.add_column("Updated")

    for record in records:
        table.add_row(
            record.conversation_id,
            f"#{record.remote_ticket_id}",
            record.last_synced_message_id or "-",
            str(attachment_counts[record.conversation_id]),
            record.updated_at.strftime("%Y-%m-%d %H:%M:%S")
            if record.updated_at
            else "-",
        )
    console.print(table)


@app.command(name="init-db")
def init_db() -> None:
    """Create the progress database if it does not exist."""
    from chatsync.config import get_settings
    from chatsync.exceptions import StoreError

    settings = get_settings()
    logger = _init_logging(settings)

    try:
        _open_store(settings, logger)
    except StoreError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(
        f"[green]✓ Progress database ready:[/green] {settings.database_path}"
    )


if __name__ == "__main__":
    app()
