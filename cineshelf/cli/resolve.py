"""
Resolve Commands
----------------

Link unresolved copies to titles.

Commands:
    - resolve queue: List unresolved copies in queue order
    - resolve link: Link a copy to a title (stored first if new)
"""
import click

from cineshelf.core.exceptions import (
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from cineshelf.core.logging_manager import handle_cli_error
from cineshelf.sync.snapshot import TitleRecord
from . import get_profiles


@click.group()
@click.pass_context
def resolve(ctx: click.Context) -> None:
    """Resolve copies to titles."""
    pass


@resolve.command("queue")
@click.pass_context
def queue(ctx):
    """List unresolved copies."""
    try:
        context = get_profiles(ctx).current
        pending = context.store.unresolved_copies()

        click.echo(f"\n🔎 Unresolved copies of {context.name} ({len(pending)})")
        click.echo("=" * 70)
        if not pending:
            click.echo("  Everything is resolved")
        for position, copy in enumerate(pending, start=1):
            click.echo(f"  {position:>3}. {copy.title} [{copy.view}]")
            click.echo(f"       {copy.copy_id}")

    except DatabaseError as e:
        handle_cli_error(ctx, e, "resolve_queue")


@resolve.command("link")
@click.argument("copy_id")
@click.argument("external_id")
@click.option("--name", default=None, help="Title name, when the title is new")
@click.option("--year", type=int, default=None, help="Release year, when the title is new")
@click.pass_context
def link(ctx, copy_id, external_id, name, year):
    """Link a copy to a title."""
    try:
        context = get_profiles(ctx).current
        workflow = context.workflow
        workflow.start(copy_id)

        existing = context.store.find_title(external_id)
        if existing is not None:
            record = TitleRecord.from_model(existing)
        else:
            record = TitleRecord(
                external_id=external_id,
                name=name or workflow.form.get("title"),
                year=year,
            )

        stored = workflow.resolve(record)
        click.echo(f"✅ Linked to {stored.name} ({stored.external_id})")

        progress = workflow.progress()
        if workflow.current_copy_id:
            click.echo(
                f"   Next: {workflow.form.get('title')} "
                f"({progress['remaining']} remaining)"
            )
        else:
            click.echo("   Queue is empty")

    except (ValidationError, NotFoundError, InvalidStateError, DatabaseError) as e:
        handle_cli_error(ctx, e, "resolve_link", {"copy_id": copy_id})
