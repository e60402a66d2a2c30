"""
Backup & Restore Commands
--------------------------

Remote backup and restore of the active profile.

Commands:
    - backup: Send the catalog to the first backup server that accepts it
    - restore: Replace the catalog with the server's snapshot
    - undo-restore: Put back the catalog saved before the last restore

Every failed endpoint is listed with its reason. When the server has no
exact match for the profile it lists the stored backups; pick one and
retry with ``--file``.

Usage:
    shelf backup
    shelf restore --yes
    shelf restore --file cineshelf_backup_alice.json
    shelf --config ~/.cineshelf/config.yaml backup --endpoint http://nas:8000
"""
import asyncio
import click

from cineshelf.core.exceptions import (
    BackupError,
    BackupUnavailableError,
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    RestoreApplyError,
    RestoreConflictError,
    SnapshotNotFoundError,
    ValidationError,
)
from cineshelf.core.logging_manager import handle_cli_error
from . import get_coordinator, get_profiles

endpoint_option = click.option(
    "--endpoint",
    "endpoints",
    multiple=True,
    help="Backup server base URL (repeatable; overrides config)",
)


def echo_attempts(attempts) -> None:
    """Status panel of the endpoints that failed."""
    if not attempts:
        return
    click.echo("\n📡 Endpoints tried:", err=True)
    for attempt in attempts:
        click.echo(f"  ✗ {attempt.describe()}", err=True)


def echo_restore_report(report) -> None:
    click.echo(f"   copies: {report.copies}")
    click.echo(f"   titles: {report.titles}")
    click.echo(f"   custom editions: {report.custom_editions}")
    if report.repairs:
        click.echo(f"\n🔧 {report.repairs} repair(s) applied:")
        for line in report.repair_details:
            click.echo(f"  • {line}")


@click.command()
@endpoint_option
@click.pass_context
def backup(ctx, endpoints):
    """Back up the active profile."""
    try:
        coordinator = get_coordinator(ctx, endpoints)
        click.echo(f"💾 Backing up {get_profiles(ctx).current.name}...")
        report = asyncio.run(coordinator.backup())

        click.echo(f"✅ Backup saved to {report.endpoint}")
        if report.filename:
            click.echo(f"   file: {report.filename}")
        click.echo(
            f"   {report.item_count} copies, {report.title_count} titles, "
            f"{report.custom_edition_count} custom editions"
        )
        echo_attempts(report.attempts)

    except BackupUnavailableError as e:
        echo_attempts(e.attempts)
        handle_cli_error(ctx, e, "backup")
    except (ValidationError, InvalidStateError, DatabaseError) as e:
        handle_cli_error(ctx, e, "backup")


@click.command()
@endpoint_option
@click.option("--file", "force_file", default=None, help="Backup file to restore")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def restore(ctx, endpoints, force_file, yes):
    """Replace the active profile's catalog with its backup."""
    try:
        coordinator = get_coordinator(ctx, endpoints)
        name = get_profiles(ctx).current.name
        if not yes:
            click.confirm(
                f"Replace the whole catalog of '{name}' with the server backup?",
                abort=True,
            )

        click.echo(f"📥 Restoring {name}...")
        report = asyncio.run(coordinator.restore(force_file=force_file))

        click.echo(f"✅ Restored from {report.endpoint}")
        if report.filename_used:
            click.echo(f"   file: {report.filename_used}")
        echo_restore_report(report)
        echo_attempts(report.attempts)
        click.echo("\nUndo with: shelf undo-restore")

    except RestoreConflictError as e:
        click.echo("\n📦 Available backups:", err=True)
        for listing in e.available:
            modified = listing.modified.isoformat() if listing.modified else "unknown"
            click.echo(f"  • {listing.filename}  ({modified}, {listing.size:,} bytes)", err=True)
        click.echo("\nRetry with: shelf restore --file <filename>", err=True)
        handle_cli_error(ctx, e, "restore")
    except (SnapshotNotFoundError, BackupUnavailableError, RestoreApplyError) as e:
        echo_attempts(e.attempts)
        handle_cli_error(ctx, e, "restore", {"file": force_file})
    except (ValidationError, InvalidStateError, BackupError, DatabaseError) as e:
        handle_cli_error(ctx, e, "restore", {"file": force_file})


@click.command("undo-restore")
@click.confirmation_option(prompt="Put back the catalog saved before the last restore?")
@click.pass_context
def undo_restore(ctx):
    """Undo the last restore of the active profile."""
    try:
        report = get_coordinator(ctx).restore_safety_snapshot()
        click.echo("✅ Catalog put back")
        echo_restore_report(report)

    except (NotFoundError, InvalidStateError, ValidationError, DatabaseError) as e:
        handle_cli_error(ctx, e, "undo_restore")
