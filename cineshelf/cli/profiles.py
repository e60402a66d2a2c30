"""
Profile Commands
----------------

Local user profiles sharing this device.

Commands:
    - profile list: List profiles, marking the active one
    - profile create: Create a profile without switching
    - profile switch: Make a profile active (created if absent)
    - profile delete: Delete a profile and its catalog
"""
import click

from cineshelf.core.exceptions import (
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    ProtectedResourceError,
    ValidationError,
)
from cineshelf.core.logging_manager import handle_cli_error
from . import get_profiles


@click.group()
@click.pass_context
def profile(ctx: click.Context) -> None:
    """Manage local profiles."""
    pass


@profile.command("list")
@click.pass_context
def list_profiles(ctx):
    """List all profiles."""
    try:
        profiles = get_profiles(ctx)
        active = profiles.current.name

        click.echo("\n👤 Profiles")
        click.echo("=" * 50)
        for item in profiles.list_profiles():
            marker = "▶" if item.name == active else " "
            click.echo(f"  {marker} {item.name}  (key: {item.key})")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "list_profiles")


@profile.command("create")
@click.argument("name")
@click.pass_context
def create_profile(ctx, name):
    """Create a profile."""
    try:
        created = get_profiles(ctx).create_profile(name)
        click.echo(f"✅ Created profile: {created.name} (key: {created.key})")

    except (ValidationError, DatabaseError) as e:
        handle_cli_error(ctx, e, "create_profile", {"profile": name})


@profile.command("switch")
@click.argument("name")
@click.pass_context
def switch_profile(ctx, name):
    """Switch to a profile, creating it if needed."""
    try:
        context = get_profiles(ctx).switch_profile(name)
        click.echo(f"✅ Active profile: {context.name}")

    except (ValidationError, InvalidStateError, DatabaseError) as e:
        handle_cli_error(ctx, e, "switch_profile", {"profile": name})


@profile.command("delete")
@click.argument("name")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete_profile(ctx, name, yes):
    """Delete a profile and all of its data."""
    try:
        if not yes:
            click.confirm(
                f"Delete profile '{name}' and its whole catalog?", abort=True
            )
        profiles = get_profiles(ctx)
        profiles.delete_profile(name)
        click.echo(f"🗑️  Deleted profile: {name}")
        click.echo(f"   Active profile: {profiles.current.name}")

    except (
        ProtectedResourceError,
        NotFoundError,
        InvalidStateError,
        DatabaseError,
    ) as e:
        handle_cli_error(ctx, e, "delete_profile", {"profile": name})
