#!/usr/bin/env python3
"""
catalog_store.py
--------------------
The catalog of one profile: copies, titles and custom editions.

CatalogStore is the only way the rest of the application touches catalog
rows. Every public mutation runs in its own transaction and commits
before returning; a failed validation leaves the database untouched.

Key Features:
    - Copy CRUD with validation and auto-linking to titles by name
    - Title upserts and lookups
    - Collection / wishlist listings and client-side sorting
    - Custom edition management
    - Whole-catalog export and single-transaction replacement (restore)
    - Backup record and safety snapshot bookkeeping
    - Change listeners for UI refresh

Invariant kept by every operation: a copy is resolved exactly when its
``title_ref`` names an existing title of the same profile.

Usage:
    store = CatalogStore(db, profile, logger)
    copy = store.add_copy({"title": "Dune", "disc_count": 2})
    for copy in store.sort(store.list_copies("collection"), "year-desc"):
        ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

# --- Third party imports ---
from sqlalchemy.exc import SQLAlchemyError

# --- Local imports ---
from cineshelf.core.exceptions import (
    BackupError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from cineshelf.core.logging_manager import ShelfLogger
from cineshelf.core.validators import as_utc, utc_now
from cineshelf.sync.snapshot import CopyRecord, Snapshot, TitleRecord
from .decorators import handle_db_errors, log_database_operation
from .manager import ShelfDB
from .managers import (
    DEFAULT_EDITIONS,
    BookkeepingManager,
    CopyManager,
    EditionManager,
    TitleManager,
    clean_copy_fields,
)
from .models import BackupRecord, Copy, Profile, SafetySnapshot, Title

VIEWS = ("collection", "wishlist")
SORT_FIELDS = ("title", "year", "rating", "runtime", "director", "genre", "format", "added")

Listener = Callable[[str, Dict[str, Any]], None]


class CatalogStore:
    """
    Catalog of a single profile.

    Attributes:
        db: Database manager
        profile_id: Owning profile primary key
        profile_name: Owning profile display name
        profile_key: Owning profile sanitized key
        logger: Optional logger
    """

    def __init__(
        self,
        db: ShelfDB,
        profile: Profile,
        logger: Optional[ShelfLogger] = None,
    ) -> None:
        self.db = db
        self.profile_id = profile.id
        self.profile_name = profile.name
        self.profile_key = profile.key
        self.logger = logger
        self._listeners: List[Listener] = []

    def __repr__(self) -> str:
        return f"<CatalogStore(profile='{self.profile_name}')>"

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change callback, called as ``listener(event, details)``
        after each committed mutation.

        Returns:
            Function that unregisters the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, event: str, **details: Any) -> None:
        details.setdefault("profile", self.profile_name)
        for listener in list(self._listeners):
            listener(event, details)

    def close(self) -> None:
        """Detach every listener; the store is not used after this."""
        self._listeners.clear()

    # -------------------------------------------------------------------------
    # Copies
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("add_copy")
    def add_copy(self, data: Mapping[str, Any]) -> Copy:
        """
        Add a copy.

        Args:
            data: Copy fields (snake_case). ``title`` is required; a
                ``disc_count`` (or ``discs``) defaults to 1. ``title_ref``
                is not accepted here: the copy is linked to the oldest title
                whose name matches its title ignoring case, if any.

        Returns:
            The new Copy

        Raises:
            ValidationError: On invalid fields (nothing is stored)
        """
        fields = clean_copy_fields(data)
        if "title" not in fields:
            raise ValidationError("Please enter a valid title (1-200 characters)")
        if "title_ref" in fields:
            raise ValidationError("'title_ref' cannot be set when adding a copy")

        with self.db.session_scope() as session:
            titles = TitleManager(session, self.profile_id, self.logger)
            match = titles.find_by_name(fields["title"])
            if match is not None:
                fields["title_ref"] = match.external_id
            copy = CopyManager(session, self.profile_id, self.logger).create(
                fields, resolved=match is not None
            )

        self._notify("copy_added", copy_id=copy.copy_id)
        return copy

    @handle_db_errors
    @log_database_operation("update_copy")
    def update_copy(self, copy_id: str, patch: Mapping[str, Any]) -> Copy:
        """
        Update editable fields of a copy.

        Args:
            copy_id: Public copy id
            patch: Fields to change (snake_case). ``title_ref`` set to an
                existing title's external id links the copy; None unlinks it.

        Raises:
            NotFoundError: If the copy does not exist
            ValidationError: On immutable/unknown fields, invalid values or a
                ``title_ref`` that names no title
        """
        changes = clean_copy_fields(patch)

        with self.db.session_scope() as session:
            copies = CopyManager(session, self.profile_id, self.logger)
            copy = copies.get(copy_id)
            if copy is None:
                raise NotFoundError(f"No copy found with id: {copy_id}")

            link_requested = "title_ref" in changes
            ref = changes.pop("title_ref", None)
            if link_requested and ref is not None:
                title = TitleManager(session, self.profile_id, self.logger).get(ref)
                if title is None:
                    raise ValidationError(f"No title found with external id: {ref}")

            copies.update(copy, changes)
            if link_requested:
                if ref is None:
                    copies.unlink(copy)
                else:
                    copies.link(copy, ref)

        self._notify("copy_updated", copy_id=copy.copy_id)
        return copy

    @handle_db_errors
    @log_database_operation("delete_copy")
    def delete_copy(self, copy_id: str) -> None:
        """
        Delete a copy.

        Raises:
            NotFoundError: If the copy does not exist
        """
        with self.db.session_scope() as session:
            copies = CopyManager(session, self.profile_id, self.logger)
            copy = copies.get(copy_id)
            if copy is None:
                raise NotFoundError(f"No copy found with id: {copy_id}")
            copies.delete(copy)

        self._notify("copy_deleted", copy_id=copy_id)

    @handle_db_errors
    def get_copy(self, copy_id: str) -> Copy:
        """
        Copy by public id.

        Raises:
            NotFoundError: If the copy does not exist
        """
        with self.db.session_scope() as session:
            copy = CopyManager(session, self.profile_id).get(copy_id)
        if copy is None:
            raise NotFoundError(f"No copy found with id: {copy_id}")
        return copy

    @handle_db_errors
    def list_copies(self, view: str = "collection") -> List[Copy]:
        """
        Copies of one listing in insertion order.

        Args:
            view: 'collection' or 'wishlist'

        Raises:
            ValidationError: For any other view
        """
        if view not in VIEWS:
            raise ValidationError(
                f"Unknown view: '{view}' (expected one of {', '.join(VIEWS)})"
            )
        with self.db.session_scope() as session:
            return CopyManager(session, self.profile_id).get_all(
                is_wishlist=view == "wishlist"
            )

    @handle_db_errors
    def all_copies(self) -> List[Copy]:
        """Every copy (both listings) in insertion order."""
        with self.db.session_scope() as session:
            return CopyManager(session, self.profile_id).get_all()

    @handle_db_errors
    def unresolved_copies(self) -> List[Copy]:
        """Unresolved copies in queue order."""
        with self.db.session_scope() as session:
            return CopyManager(session, self.profile_id).get_unresolved()

    # -------------------------------------------------------------------------
    # Titles
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("add_or_update_title")
    def add_or_update_title(self, title: Any) -> Title:
        """
        Upsert a title by external id.

        Args:
            title: TitleRecord or mapping (wire, snake_case or legacy keys)

        Raises:
            ValidationError: If external id or name is missing
        """
        record = TitleRecord.coerce(title)
        with self.db.session_scope() as session:
            stored = TitleManager(session, self.profile_id, self.logger).upsert(record)

        self._notify("title_saved", external_id=stored.external_id)
        return stored

    @handle_db_errors
    def find_title(self, external_id: str) -> Optional[Title]:
        with self.db.session_scope() as session:
            return TitleManager(session, self.profile_id).get(external_id)

    @handle_db_errors
    def list_titles(self) -> List[Title]:
        with self.db.session_scope() as session:
            return TitleManager(session, self.profile_id).get_all()

    @handle_db_errors
    def titles_by_ref(self) -> Dict[str, Title]:
        """Every title keyed by external id."""
        with self.db.session_scope() as session:
            return TitleManager(session, self.profile_id).by_external_id()

    # -------------------------------------------------------------------------
    # Sorting
    # -------------------------------------------------------------------------

    def sort(
        self, copies: Sequence[Copy], field: str = "title", direction: str = "asc"
    ) -> List[Copy]:
        """
        Sort copies by a copy or title attribute.

        Text compares ignoring case; year, rating and runtime count as 0 when
        the copy has no title (runtime uses its leading minutes number);
        director and genre count as 'unknown'. Ties keep their input order.

        Args:
            copies: Copies to sort (not modified)
            field: One of SORT_FIELDS, optionally suffixed with ``-desc``;
                unknown fields sort by title
            direction: 'asc' or 'desc'

        Returns:
            New sorted list

        Raises:
            ValidationError: If direction is not 'asc' or 'desc'
        """
        if direction not in ("asc", "desc"):
            raise ValidationError(f"Unknown sort direction: '{direction}'")

        descending = direction == "desc"
        if field.endswith("-desc"):
            field = field[: -len("-desc")]
            descending = not descending
        if field not in SORT_FIELDS:
            field = "title"

        titles: Dict[str, Title] = {}
        if field not in ("title", "format", "added"):
            titles = self.titles_by_ref()

        def linked(copy: Copy) -> Optional[Title]:
            return titles.get(copy.title_ref) if copy.title_ref else None

        def key(copy: Copy) -> Any:
            title = linked(copy)
            if field == "year":
                return (title.year if title else None) or 0
            if field == "rating":
                return (title.rating if title else None) or 0.0
            if field == "runtime":
                return title.runtime_minutes if title else 0
            if field in ("director", "genre"):
                value = getattr(title, field) if title else None
                return (value or "unknown").lower()
            if field == "format":
                return (copy.format or "").lower()
            if field == "added":
                return as_utc(copy.created_at)
            return copy.title.lower()

        return sorted(copies, key=key, reverse=descending)

    # -------------------------------------------------------------------------
    # Custom editions
    # -------------------------------------------------------------------------

    @handle_db_errors
    def custom_editions(self) -> List[str]:
        with self.db.session_scope() as session:
            return EditionManager(session, self.profile_id).get_all()

    def all_editions(self) -> List[str]:
        """Default editions followed by custom ones."""
        return DEFAULT_EDITIONS + self.custom_editions()

    @handle_db_errors
    @log_database_operation("add_custom_edition")
    def add_custom_edition(self, name: str) -> str:
        """
        Add a custom edition.

        Raises:
            ValidationError: If the name is invalid or already listed
        """
        with self.db.session_scope() as session:
            edition = EditionManager(session, self.profile_id, self.logger).add(name)
        self._notify("editions_changed")
        return edition.name

    @handle_db_errors
    @log_database_operation("remove_custom_edition")
    def remove_custom_edition(self, name: str) -> None:
        """
        Raises:
            NotFoundError: If no custom edition has that name
        """
        with self.db.session_scope() as session:
            EditionManager(session, self.profile_id, self.logger).remove(name)
        self._notify("editions_changed")

    @handle_db_errors
    @log_database_operation("reset_custom_editions")
    def reset_custom_editions(self) -> int:
        """Remove every custom edition; returns how many were removed."""
        with self.db.session_scope() as session:
            removed = EditionManager(session, self.profile_id, self.logger).delete_all()
        self._notify("editions_changed")
        return removed

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    @handle_db_errors
    def stats(self) -> Dict[str, Any]:
        """
        Catalog counts.

        Returns:
            Dictionary with collection, wishlist, unresolved and title counts,
            custom edition count and per-format collection counts
        """
        with self.db.session_scope() as session:
            copies = CopyManager(session, self.profile_id)
            return {
                "collection": copies.count(is_wishlist=False),
                "wishlist": copies.count(is_wishlist=True),
                "unresolved": copies.count(resolved=False),
                "titles": TitleManager(session, self.profile_id).count(),
                "custom_editions": len(EditionManager(session, self.profile_id).get_all()),
                "formats": copies.format_breakdown(),
            }

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    @handle_db_errors
    def export_records(self) -> Snapshot:
        """
        Export the whole catalog as a Snapshot.

        The snapshot is labeled ``Backup for <profile key>`` and timestamped
        now; it holds copies of the data, not live rows.
        """
        with self.db.session_scope() as session:
            copies = CopyManager(session, self.profile_id).get_all()
            titles = TitleManager(session, self.profile_id).get_all()
            editions = EditionManager(session, self.profile_id).get_all()

        return Snapshot(
            user=self.profile_key,
            copies=[CopyRecord.from_model(c) for c in copies],
            titles=[TitleRecord.from_model(t) for t in titles],
            custom_editions=editions,
            timestamp=utc_now(),
            backup_label=f"Backup for {self.profile_key}",
        )

    @handle_db_errors
    @log_database_operation("replace_contents")
    def replace_contents(
        self,
        copies: Sequence[CopyRecord],
        titles: Sequence[TitleRecord],
        custom_editions: Sequence[str],
    ) -> Dict[str, int]:
        """
        Replace every copy, title and custom edition in one transaction.

        Records are expected to be repaired already (ids present and unique,
        valid titles and disc counts). ``resolved`` is recomputed from the
        incoming titles regardless of what the records say. If anything
        fails, nothing is replaced.

        Returns:
            Counts of stored copies, titles and custom editions

        Raises:
            ValidationError: If a record cannot be stored
        """
        with self.db.session_scope() as session:
            copy_mgr = CopyManager(session, self.profile_id, self.logger)
            title_mgr = TitleManager(session, self.profile_id, self.logger)
            edition_mgr = EditionManager(session, self.profile_id, self.logger)

            copy_mgr.delete_all()
            title_mgr.delete_all()

            known = set()
            for record in titles:
                known.add(title_mgr.upsert(record).external_id)

            for record in copies:
                if not record.id:
                    raise ValidationError("Cannot store a copy without an id")
                fields = clean_copy_fields(
                    {
                        "title": record.title,
                        "format": record.format,
                        "region": record.region,
                        "edition": record.edition,
                        "languages": record.languages,
                        "notes": record.notes,
                        "upc": record.upc,
                        "disc_count": record.disc_count,
                        "is_wishlist": record.is_wishlist,
                        "title_ref": record.title_ref,
                    }
                )
                copy_mgr.create(
                    fields,
                    copy_id=record.id,
                    created_at=record.created_at,
                    resolved=record.title_ref in known,
                )

            kept_editions = edition_mgr.replace_all(list(custom_editions))

        counts = {
            "copies": len(copies),
            "titles": len(known),
            "custom_editions": len(kept_editions),
        }
        self._notify("contents_replaced", **counts)
        return counts

    # -------------------------------------------------------------------------
    # Backup bookkeeping
    # -------------------------------------------------------------------------

    @handle_db_errors
    def record_backup(
        self,
        endpoint: str,
        snapshot: Snapshot,
        filename: Optional[str] = None,
        backed_up_at: Optional[datetime] = None,
    ) -> BackupRecord:
        """Store the metadata of a successful remote backup."""
        with self.db.session_scope() as session:
            bookkeeping = BookkeepingManager(session, self.profile_id, self.logger)
            record = bookkeeping.set_backup_record(
                backed_up_at=backed_up_at or utc_now(),
                endpoint=endpoint,
                item_count=len(snapshot.copies),
                title_count=len(snapshot.titles),
                custom_edition_count=len(snapshot.custom_editions),
                filename=filename,
            )
        return record

    @handle_db_errors
    def last_backup(self) -> Optional[BackupRecord]:
        with self.db.session_scope() as session:
            return BookkeepingManager(session, self.profile_id).get_backup_record()

    def save_safety_snapshot(self, reason: str = "safety_before_restore") -> SafetySnapshot:
        """
        Save the current catalog as this profile's safety snapshot.

        Raises:
            BackupError: If the snapshot cannot be stored
        """
        try:
            snapshot = self.export_records()
            with self.db.session_scope() as session:
                saved = BookkeepingManager(
                    session, self.profile_id, self.logger
                ).set_safety_snapshot(reason, utc_now(), snapshot.to_payload())
        except (DatabaseError, SQLAlchemyError) as e:
            raise BackupError(f"Failed to save safety snapshot: {e}") from e

        if self.logger:
            self.logger.log_operation(
                "safety_snapshot_saved",
                {
                    "profile": self.profile_name,
                    "reason": reason,
                    "copies": len(snapshot.copies),
                },
            )
        return saved

    @handle_db_errors
    def safety_snapshot(self) -> Optional[SafetySnapshot]:
        with self.db.session_scope() as session:
            return BookkeepingManager(session, self.profile_id).get_safety_snapshot()
