#!/usr/bin/env python3
"""
CineShelf Command-Line Interface
--------------------------------

Command-line access to the local catalog, profiles and backups.

This module provides the main CLI group and shared context setup
for all shelf commands.

Command Structure:
    - Catalog (add, edit, move, delete, list, stats)
    - Titles (title add, title show)
    - Profiles (profile list, create, switch, delete)
    - Resolve (resolve queue, resolve link)
    - Editions (editions list, add, remove, reset)
    - Backup & Restore (backup, restore, undo-restore)

Usage:
    # Get general help
    shelf --help

    # Add a copy to the active profile's collection
    shelf add "Dune" --format 4K --discs 2

    # Restore, choosing a file when the server asks
    shelf restore --file cineshelf_backup_alice.json
"""
import click
from pathlib import Path

from cineshelf.core.cli_utils import setup_logger
from cineshelf.core.config import ShelfConfig, load_config
from cineshelf.core.exceptions import ValidationError
from cineshelf.core.logging_manager import handle_cli_error
from cineshelf.database import ProfileManager, ShelfDB
from cineshelf.sync.coordinator import SyncCoordinator


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    default=None,
    help="Path to database file (overrides config)",
)
@click.option(
    "--log-dir",
    type=click.Path(),
    default=None,
    help="Path to log directory (overrides config)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(),
    default=None,
    help="Path to YAML configuration file",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Show detailed errors and tracebacks",
)
@click.pass_context
def cli(ctx, db_path, log_dir, config_path, verbose):
    """CineShelf media collection manager"""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    try:
        config = load_config(Path(config_path) if config_path else None)
    except ValidationError as e:
        handle_cli_error(ctx, e, "load_config", {"config": config_path})

    if db_path:
        config.db_path = Path(db_path).expanduser()
    if log_dir:
        config.log_dir = Path(log_dir).expanduser()

    ctx.obj["config"] = config
    ctx.obj["logger"] = setup_logger(config.log_dir, "cli")
    ctx.call_on_close(lambda: _close(ctx.obj))


def _close(obj: dict) -> None:
    if "db" in obj:
        obj["db"].close()
    if "logger" in obj:
        obj["logger"].close()


def get_config(ctx) -> ShelfConfig:
    return ctx.obj["config"]


def get_db(ctx) -> ShelfDB:
    """Get or create database instance from context."""
    if "db" not in ctx.obj:
        config = get_config(ctx)
        ctx.obj["db"] = ShelfDB(
            db_path=config.db_path,
            logger=ctx.obj.get("logger"),
        )
    return ctx.obj["db"]


def get_profiles(ctx) -> ProfileManager:
    """Get or create the profile manager (and active context)."""
    if "profiles" not in ctx.obj:
        ctx.obj["profiles"] = ProfileManager(get_db(ctx), ctx.obj.get("logger"))
    return ctx.obj["profiles"]


def get_coordinator(ctx, endpoints=None) -> SyncCoordinator:
    """Sync coordinator for the active profile, using configured endpoints."""
    config = get_config(ctx)
    return SyncCoordinator(
        get_profiles(ctx),
        endpoints=list(endpoints) if endpoints else config.endpoints,
        timeout=config.timeout_seconds,
        logger=ctx.obj.get("logger"),
    )


# Import and register command modules
# These imports must come after CLI group definition
from .catalog import add, edit, move, delete, list_copies, stats  # noqa: E402
from .titles import title  # noqa: E402
from .profiles import profile  # noqa: E402
from .resolve import resolve  # noqa: E402
from .editions import editions  # noqa: E402
from .sync import backup, restore, undo_restore  # noqa: E402

# Register top-level commands
cli.add_command(add)
cli.add_command(edit)
cli.add_command(move)
cli.add_command(delete)
cli.add_command(list_copies)
cli.add_command(stats)
cli.add_command(backup)
cli.add_command(restore)
cli.add_command(undo_restore)

# Register command groups
cli.add_command(title)
cli.add_command(profile)
cli.add_command(resolve)
cli.add_command(editions)


if __name__ == "__main__":
    cli(obj={})
