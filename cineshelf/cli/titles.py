"""
Title Commands
--------------

Title metadata of the active profile.

Commands:
    - title add: Add or update a title by external id
    - title show: Display a title and the copies linked to it
"""
import click

from cineshelf.core.exceptions import DatabaseError, NotFoundError, ValidationError
from cineshelf.core.logging_manager import handle_cli_error
from . import get_profiles
from .catalog import format_copy


@click.group()
@click.pass_context
def title(ctx: click.Context) -> None:
    """Manage title metadata."""
    pass


@title.command("add")
@click.argument("external_id")
@click.argument("name")
@click.option("--year", type=int, default=None, help="Release year")
@click.option("--rating", type=float, default=None, help="Rating out of 10")
@click.option("--poster-url", default=None, help="Poster image URL")
@click.option("--plot", default=None, help="Plot summary")
@click.option("--director", default=None, help="Director")
@click.option("--genre", default=None, help="Genre(s)")
@click.option("--runtime", default=None, help="Runtime, e.g. '155 min'")
@click.pass_context
def add_title(ctx, external_id, name, year, rating, poster_url, plot, director, genre, runtime):
    """Add or update a title."""
    try:
        stored = get_profiles(ctx).current.store.add_or_update_title(
            {
                "external_id": external_id,
                "name": name,
                "year": year,
                "rating": rating,
                "poster_url": poster_url,
                "plot": plot,
                "director": director,
                "genre": genre,
                "runtime": runtime,
            }
        )
        click.echo(f"✅ Saved title: {stored.name} ({stored.external_id})")

    except (ValidationError, DatabaseError) as e:
        handle_cli_error(ctx, e, "add_title", {"external_id": external_id})


@title.command("show")
@click.argument("external_id")
@click.pass_context
def show_title(ctx, external_id):
    """Display a title and its linked copies."""
    try:
        store = get_profiles(ctx).current.store
        stored = store.find_title(external_id)
        if stored is None:
            raise NotFoundError(f"No title found with external id: {external_id}")

        heading = stored.name + (f" ({stored.year})" if stored.year else "")
        click.echo(f"\n🎞️  {heading}")
        click.echo("=" * 50)
        for label, value in (
            ("Id", stored.external_id),
            ("Rating", stored.rating),
            ("Runtime", stored.runtime),
            ("Director", stored.director),
            ("Genre", stored.genre),
            ("Poster", stored.poster_url),
        ):
            if value is not None:
                click.echo(f"  {label + ':':<10} {value}")
        if stored.plot:
            click.echo(f"\n  {stored.plot}")

        linked = [c for c in store.all_copies() if c.title_ref == stored.external_id]
        click.echo(f"\nCopies ({len(linked)}):")
        for copy in linked:
            click.echo(f"  • {format_copy(copy)} [{copy.view}]")

    except (NotFoundError, DatabaseError) as e:
        handle_cli_error(ctx, e, "show_title", {"external_id": external_id})
