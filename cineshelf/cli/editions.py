"""
Edition Commands
----------------

Edition names offered for copies: the built-in defaults plus the
active profile's custom editions.

Commands:
    - editions list: Show default and custom editions
    - editions add: Add a custom edition
    - editions remove: Remove a custom edition
    - editions reset: Remove every custom edition
"""
import click

from cineshelf.core.exceptions import DatabaseError, NotFoundError, ValidationError
from cineshelf.core.logging_manager import handle_cli_error
from cineshelf.database.managers import DEFAULT_EDITIONS
from . import get_profiles


@click.group()
@click.pass_context
def editions(ctx: click.Context) -> None:
    """Manage edition names."""
    pass


@editions.command("list")
@click.pass_context
def list_editions(ctx):
    """List default and custom editions."""
    try:
        custom = get_profiles(ctx).current.store.custom_editions()

        click.echo("\n📀 Default editions")
        for name in DEFAULT_EDITIONS:
            click.echo(f"  • {name}")

        click.echo(f"\n✏️  Custom editions ({len(custom)})")
        if not custom:
            click.echo("  None")
        for name in custom:
            click.echo(f"  • {name}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "list_editions")


@editions.command("add")
@click.argument("name")
@click.pass_context
def add_edition(ctx, name):
    """Add a custom edition."""
    try:
        added = get_profiles(ctx).current.store.add_custom_edition(name)
        click.echo(f"✅ Added edition: {added}")

    except (ValidationError, DatabaseError) as e:
        handle_cli_error(ctx, e, "add_custom_edition", {"edition": name})


@editions.command("remove")
@click.argument("name")
@click.pass_context
def remove_edition(ctx, name):
    """Remove a custom edition."""
    try:
        get_profiles(ctx).current.store.remove_custom_edition(name)
        click.echo(f"🗑️  Removed edition: {name}")

    except (NotFoundError, DatabaseError) as e:
        handle_cli_error(ctx, e, "remove_custom_edition", {"edition": name})


@editions.command("reset")
@click.confirmation_option(prompt="Remove every custom edition?")
@click.pass_context
def reset_editions(ctx):
    """Remove every custom edition."""
    try:
        removed = get_profiles(ctx).current.store.reset_custom_editions()
        click.echo(f"✅ Removed {removed} custom edition(s)")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "reset_custom_editions")
