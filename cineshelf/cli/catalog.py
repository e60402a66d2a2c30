"""
Catalog Commands
----------------

Copy management for the active profile.

Commands:
    - add: Add a copy (auto-linked to a known title of the same name)
    - edit: Change fields of a copy
    - move: Move a copy between collection and wishlist
    - delete: Delete a copy
    - list: List collection or wishlist, sorted
    - stats: Catalog counts

Usage:
    shelf add "Alien" --format Blu-ray --edition "Director's Cut"
    shelf list --view wishlist --sort year --desc
    shelf move copy_3f2a... --to collection
"""
import click

from cineshelf.core.exceptions import DatabaseError, NotFoundError, ValidationError
from cineshelf.core.logging_manager import handle_cli_error
from cineshelf.database.catalog_store import SORT_FIELDS, VIEWS
from . import get_profiles


def copy_field_options(func):
    """Options shared by add and edit for the free-text copy fields."""
    options = [
        click.option("--format", "format_", default=None, help="Disc format (DVD, Blu-ray, 4K...)"),
        click.option("--region", default=None, help="Region code"),
        click.option("--edition", default=None, help="Edition name"),
        click.option("--languages", default=None, help="Audio/subtitle languages"),
        click.option("--notes", default=None, help="Free-form notes"),
        click.option("--upc", default=None, help="Barcode"),
        click.option("--discs", type=int, default=None, help="Number of discs (1-50)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _fields(**values):
    """Non-None option values keyed by copy field name."""
    if "format_" in values:
        values["format"] = values.pop("format_")
    if "discs" in values:
        values["disc_count"] = values.pop("discs")
    return {name: value for name, value in values.items() if value is not None}


def format_copy(copy) -> str:
    status = "✓" if copy.resolved else "?"
    parts = [f"{status} {copy.title}"]
    if copy.format:
        parts.append(f"[{copy.format}]")
    if copy.edition:
        parts.append(f"{copy.edition}")
    if copy.disc_count > 1:
        parts.append(f"({copy.disc_count} discs)")
    return " ".join(parts)


@click.command()
@click.argument("title")
@copy_field_options
@click.option("--wishlist", is_flag=True, help="Add to the wishlist instead")
@click.pass_context
def add(ctx, title, format_, region, edition, languages, notes, upc, discs, wishlist):
    """Add a copy to the collection (or wishlist)."""
    try:
        store = get_profiles(ctx).current.store
        fields = _fields(
            title=title,
            format_=format_,
            region=region,
            edition=edition,
            languages=languages,
            notes=notes,
            upc=upc,
            discs=discs,
        )
        fields["is_wishlist"] = wishlist
        copy = store.add_copy(fields)

        click.echo(f"✅ Added to {copy.view}: {copy.title}")
        click.echo(f"   id: {copy.copy_id}")
        if copy.resolved:
            click.echo(f"   linked to: {copy.title_ref}")

    except (ValidationError, DatabaseError) as e:
        handle_cli_error(ctx, e, "add_copy", {"title": title})


@click.command()
@click.argument("copy_id")
@click.option("--title", default=None, help="New title")
@copy_field_options
@click.pass_context
def edit(ctx, copy_id, title, format_, region, edition, languages, notes, upc, discs):
    """Change fields of a copy."""
    try:
        changes = _fields(
            title=title,
            format_=format_,
            region=region,
            edition=edition,
            languages=languages,
            notes=notes,
            upc=upc,
            discs=discs,
        )
        if not changes:
            click.echo("⚠️  Nothing to change")
            return

        copy = get_profiles(ctx).current.store.update_copy(copy_id, changes)
        click.echo(f"✅ Updated: {format_copy(copy)}")

    except (ValidationError, NotFoundError, DatabaseError) as e:
        handle_cli_error(ctx, e, "update_copy", {"copy_id": copy_id})


@click.command()
@click.argument("copy_id")
@click.option(
    "--to",
    "view",
    type=click.Choice(VIEWS),
    required=True,
    help="Target listing",
)
@click.pass_context
def move(ctx, copy_id, view):
    """Move a copy between collection and wishlist."""
    try:
        copy = get_profiles(ctx).current.store.update_copy(
            copy_id, {"is_wishlist": view == "wishlist"}
        )
        click.echo(f"✅ Moved to {copy.view}: {copy.title}")

    except (ValidationError, NotFoundError, DatabaseError) as e:
        handle_cli_error(ctx, e, "move_copy", {"copy_id": copy_id, "view": view})


@click.command()
@click.argument("copy_id")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def delete(ctx, copy_id, yes):
    """Delete a copy."""
    try:
        store = get_profiles(ctx).current.store
        copy = store.get_copy(copy_id)
        if not yes:
            click.confirm(f"Delete '{copy.title}'?", abort=True)
        store.delete_copy(copy_id)
        click.echo(f"🗑️  Deleted: {copy.title}")

    except (NotFoundError, DatabaseError) as e:
        handle_cli_error(ctx, e, "delete_copy", {"copy_id": copy_id})


@click.command("list")
@click.option(
    "--view",
    type=click.Choice(VIEWS),
    default="collection",
    help="Listing to show",
)
@click.option(
    "--sort",
    "sort_field",
    type=click.Choice(SORT_FIELDS),
    default="title",
    help="Sort field",
)
@click.option("--desc", is_flag=True, help="Sort descending")
@click.option("--ids", is_flag=True, help="Show copy ids")
@click.pass_context
def list_copies(ctx, view, sort_field, desc, ids):
    """List the collection or wishlist."""
    try:
        context = get_profiles(ctx).current
        store = context.store
        copies = store.sort(
            store.list_copies(view), sort_field, "desc" if desc else "asc"
        )

        click.echo(f"\n🎬 {view.title()} of {context.name} ({len(copies)})")
        click.echo("=" * 70)
        if not copies:
            click.echo("  Nothing here yet")
        for copy in copies:
            click.echo(f"  • {format_copy(copy)}")
            if ids:
                click.echo(f"    {copy.copy_id}")

    except (ValidationError, DatabaseError) as e:
        handle_cli_error(ctx, e, "list_copies", {"view": view})


@click.command()
@click.pass_context
def stats(ctx):
    """Display catalog statistics."""
    try:
        context = get_profiles(ctx).current
        counts = context.store.stats()

        click.echo(f"\n📊 Catalog of {context.name}")
        click.echo("=" * 50)
        click.echo(f"  Collection:      {counts['collection']}")
        click.echo(f"  Wishlist:        {counts['wishlist']}")
        click.echo(f"  Unresolved:      {counts['unresolved']}")
        click.echo(f"  Titles:          {counts['titles']}")
        click.echo(f"  Custom editions: {counts['custom_editions']}")

        if counts["formats"]:
            click.echo("\nFormats:")
            for name, count in counts["formats"].items():
                click.echo(f"  • {name}: {count}")

        last = context.store.last_backup()
        if last is not None:
            click.echo(f"\n💾 Last backup: {last.to_dict()['timestamp']} ({last.endpoint})")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "stats")
