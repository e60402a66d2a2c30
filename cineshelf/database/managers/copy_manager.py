#!/usr/bin/env python3
"""
copy_manager.py
--------------------
Manages Copy rows for one profile.

Key Features:
    - Field validation and normalization (title length, disc count)
    - Creation with generated ``copy_<hex>`` identifiers
    - Partial updates restricted to editable fields
    - Listings in stable insertion order (collection, wishlist, unresolved)
    - Per-format counts for statistics

Linking a copy to a title is decided by the catalog store, which knows
which titles exist; this manager only stores the result.

Usage:
    copy_mgr = CopyManager(session, profile_id, logger)
    copy = copy_mgr.create({"title": "Dune", "disc_count": 2})
    copy_mgr.update(copy, {"format": "Blu-ray"})
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

# --- Third party imports ---
from sqlalchemy import func

# --- Local imports ---
from cineshelf.core.exceptions import ValidationError
from cineshelf.core.validators import DataValidator, utc_now
from cineshelf.database.decorators import handle_db_errors, log_database_operation
from cineshelf.database.models import Copy
from .base_manager import ProfileScopedManager

TEXT_FIELDS = ("format", "region", "edition", "languages", "notes", "upc")
EDITABLE_FIELDS = ("title",) + TEXT_FIELDS + ("disc_count", "is_wishlist", "title_ref")
IMMUTABLE_FIELDS = ("id", "copy_id", "created_at", "createdAt", "resolved")
FIELD_ALIASES = {"discs": "disc_count"}


def generate_copy_id() -> str:
    """Fresh public copy identifier."""
    return f"copy_{uuid.uuid4().hex}"


def clean_copy_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validate and normalize copy fields.

    Only the keys present in data are returned, so the result can be used
    both for creation and for partial updates.

    Args:
        data: Mapping of snake_case field names (``discs`` is accepted for
            ``disc_count``)

    Returns:
        Normalized field values

    Raises:
        ValidationError: On immutable or unknown fields, or invalid values
    """
    cleaned: Dict[str, Any] = {}
    for raw_key, value in data.items():
        key = FIELD_ALIASES.get(raw_key, raw_key)
        if key in IMMUTABLE_FIELDS:
            raise ValidationError(f"Field '{raw_key}' cannot be changed")
        if key not in EDITABLE_FIELDS:
            raise ValidationError(f"Unknown copy field: '{raw_key}'")

        if key == "title":
            cleaned[key] = DataValidator.validate_copy_title(value)
        elif key == "disc_count":
            cleaned[key] = DataValidator.validate_disc_count(value)
        elif key == "is_wishlist":
            cleaned[key] = bool(DataValidator.normalize_bool(value))
        else:
            if value is not None and (
                isinstance(value, bool) or not isinstance(value, (str, int, float))
            ):
                raise ValidationError(f"Field '{key}' must be text")
            cleaned[key] = DataValidator.normalize_string(value)
    return cleaned


class CopyManager(ProfileScopedManager):
    """Manages Copy table operations for one profile."""

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get(self, copy_id: str) -> Optional[Copy]:
        """Copy by public id, or None."""
        return self._get_by_field(Copy, "copy_id", copy_id)

    @handle_db_errors
    def get_all(self, is_wishlist: Optional[bool] = None) -> List[Copy]:
        """
        All copies in insertion order.

        Args:
            is_wishlist: Restrict to the wishlist (True) or the collection
                (False); None returns both
        """
        if is_wishlist is None:
            return self._get_all(Copy)
        return self._get_all(Copy, is_wishlist=is_wishlist)

    @handle_db_errors
    def get_unresolved(self) -> List[Copy]:
        """Unresolved copies in queue (insertion) order."""
        return self._get_all(Copy, resolved=False)

    @handle_db_errors
    def count(self, **filters: Any) -> int:
        return self._count(Copy, **filters)

    @handle_db_errors
    def format_breakdown(self) -> Dict[str, int]:
        """Number of collection copies per format ('Unknown' when unset)."""
        rows = (
            self.session.query(Copy.format, func.count(Copy.id))
            .filter_by(profile_id=self.profile_id, is_wishlist=False)
            .group_by(Copy.format)
            .all()
        )
        breakdown: Dict[str, int] = {}
        for fmt, count in rows:
            label = fmt or "Unknown"
            breakdown[label] = breakdown.get(label, 0) + count
        return dict(sorted(breakdown.items()))

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_copy")
    def create(
        self,
        fields: Dict[str, Any],
        copy_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
        resolved: bool = False,
    ) -> Copy:
        """
        Create a copy from already-cleaned fields.

        Args:
            fields: Output of clean_copy_fields (``title`` required)
            copy_id: Public id to keep (restore); generated when None
            created_at: Creation time to keep (restore); now when None
            resolved: Whether ``title_ref`` is known to name a Title

        Returns:
            The new Copy
        """
        DataValidator.validate_required_fields(fields, ["title"])
        copy = Copy(
            profile_id=self.profile_id,
            copy_id=copy_id or generate_copy_id(),
            title=fields["title"],
            format=fields.get("format"),
            region=fields.get("region"),
            edition=fields.get("edition"),
            languages=fields.get("languages"),
            notes=fields.get("notes"),
            upc=fields.get("upc"),
            disc_count=fields.get("disc_count") or 1,
            is_wishlist=bool(fields.get("is_wishlist", False)),
            title_ref=fields.get("title_ref") if resolved else None,
            resolved=resolved,
            created_at=created_at or utc_now(),
        )
        self.session.add(copy)
        self._flush()
        return copy

    @handle_db_errors
    @log_database_operation("update_copy")
    def update(self, copy: Copy, changes: Dict[str, Any]) -> Copy:
        """
        Apply cleaned field changes (``title_ref`` excluded) to a copy.

        Args:
            copy: Copy attached to this manager's session
            changes: Output of clean_copy_fields without ``title_ref``
        """
        for key, value in changes.items():
            setattr(copy, key, value)
        self._flush()
        return copy

    def link(self, copy: Copy, external_id: str) -> None:
        """Point copy at an existing title."""
        copy.title_ref = external_id
        copy.resolved = True

    def unlink(self, copy: Copy) -> None:
        copy.title_ref = None
        copy.resolved = False

    @handle_db_errors
    @log_database_operation("delete_copy")
    def delete(self, copy: Copy) -> None:
        self.session.delete(copy)
        self._flush()

    @handle_db_errors
    def delete_all(self) -> int:
        return self._delete_all(Copy)
