#!/usr/bin/env python3
"""
profile_record_manager.py
--------------------
Manages Profile rows (device-wide, not profile-scoped).

Key Features:
    - Creation with sanitized, unique keys
    - Lookup by name or key
    - Single active profile bookkeeping
    - Deletion of a profile and everything it owns (ORM cascades)

Usage:
    profile_mgr = ProfileRecordManager(session, logger)
    alice = profile_mgr.create("Alice")
    profile_mgr.set_active(alice)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import List, Optional

# --- Local imports ---
from cineshelf.core.exceptions import ValidationError
from cineshelf.core.validators import DataValidator, sanitize_identifier
from cineshelf.database.decorators import handle_db_errors, log_database_operation
from cineshelf.database.models import Profile
from .base_manager import BaseManager


class ProfileRecordManager(BaseManager):
    """Manages Profile table operations."""

    @handle_db_errors
    def get(self, name: str) -> Optional[Profile]:
        """Profile by display name, or None."""
        return self._get_by_field(Profile, "name", name)

    @handle_db_errors
    def get_by_key(self, key: str) -> Optional[Profile]:
        return self._get_by_field(Profile, "key", key)

    @handle_db_errors
    def get_all(self) -> List[Profile]:
        return self._get_all(Profile)

    @handle_db_errors
    def get_active(self) -> Optional[Profile]:
        return self._scoped(Profile, is_active=True).order_by(Profile.id).first()

    @handle_db_errors
    def count(self) -> int:
        return self._count(Profile)

    @handle_db_errors
    @log_database_operation("create_profile")
    def create(self, name: str) -> Profile:
        """
        Create a profile.

        Args:
            name: Display name; its sanitized form becomes the key

        Raises:
            ValidationError: If the name is empty or taken, or its key is
                empty or taken
        """
        normalized = DataValidator.normalize_string(name) if isinstance(name, str) else None
        if not normalized:
            raise ValidationError("Please enter a valid user name")
        if self.get(normalized) is not None:
            raise ValidationError(f"User already exists: '{normalized}'")

        key = sanitize_identifier(normalized)
        if not key:
            raise ValidationError(
                f"User name '{normalized}' must contain letters, digits, '-' or '_'"
            )
        if self.get_by_key(key) is not None:
            raise ValidationError(f"User key already taken: '{key}'")

        profile = Profile(name=normalized, key=key, is_active=False)
        self.session.add(profile)
        self._flush()
        return profile

    @handle_db_errors
    def set_active(self, profile: Profile) -> None:
        """Mark profile as the only active one."""
        self._scoped(Profile).filter(Profile.id != profile.id).update(
            {Profile.is_active: False}, synchronize_session=False
        )
        profile.is_active = True
        self._flush()

    @handle_db_errors
    @log_database_operation("delete_profile")
    def delete(self, profile: Profile) -> None:
        """Delete a profile and every row it owns."""
        self.session.delete(profile)
        self._flush()
