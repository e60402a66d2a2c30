#!/usr/bin/env python3
"""
profile_manager.py
--------------------
Local user profiles sharing one device.

ProfileManager owns the active ShelfContext: the active profile with its
CatalogStore and ResolveWorkflow. Switching profiles tears the context
down and builds a fresh one (workflow IDLE, empty skip-set); nothing
profile-specific lives anywhere else.

Rules:
    - The "default" profile always exists and cannot be deleted
    - The last remaining profile cannot be deleted
    - Exactly one profile is active; the choice survives restarts
    - A switch is refused while a backup or restore is running

Usage:
    profiles = ProfileManager(db, logger)
    profiles.switch_profile("alice")        # created if absent
    profiles.current.store.add_copy({"title": "Alien"})
    profiles.delete_profile("alice")        # back to "default"
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from typing import List, Optional

# --- Local imports ---
from cineshelf.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ProtectedResourceError,
)
from cineshelf.core.logging_manager import ShelfLogger, safe_logger
from cineshelf.workflow.resolve import ResolveWorkflow
from .catalog_store import CatalogStore
from .decorators import handle_db_errors, log_database_operation
from .manager import ShelfDB
from .managers import ProfileRecordManager
from .models import DEFAULT_PROFILE, Profile


@dataclass
class ShelfContext:
    """
    Session context of the active profile.

    Attributes:
        profile: Active profile (detached row)
        store: Its catalog
        workflow: Its resolve workflow
        busy: True while a backup or restore is running
    """

    profile: Profile
    store: CatalogStore
    workflow: ResolveWorkflow
    busy: bool = False

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def key(self) -> str:
        return self.profile.key

    def close(self) -> None:
        self.workflow.reset()
        self.store.close()


class ProfileManager:
    """
    Creates, switches and deletes profiles.

    Attributes:
        db: Database manager
        logger: Optional logger
        current: Active ShelfContext
    """

    def __init__(self, db: ShelfDB, logger: Optional[ShelfLogger] = None) -> None:
        self.db = db
        self.logger = logger
        self._current: Optional[ShelfContext] = None
        self._current = self._build_context(self._load_active())

    @property
    def current(self) -> ShelfContext:
        if self._current is None:
            raise InvalidStateError("No active profile is loaded")
        return self._current

    @handle_db_errors
    def _load_active(self) -> Profile:
        """Active profile from the database, creating 'default' as needed."""
        with self.db.session_scope() as session:
            profiles = ProfileRecordManager(session, self.logger)
            default = profiles.get(DEFAULT_PROFILE) or profiles.create(DEFAULT_PROFILE)
            active = profiles.get_active()
            if active is None:
                profiles.set_active(default)
                active = default
        return active

    def _build_context(self, profile: Profile) -> ShelfContext:
        logger = self.logger.bind(profile=profile.key) if self.logger else None
        store = CatalogStore(self.db, profile, logger)
        return ShelfContext(
            profile=profile,
            store=store,
            workflow=ResolveWorkflow(store, logger),
        )

    # ---- Queries ----
    @handle_db_errors
    def list_profiles(self) -> List[Profile]:
        """All profiles in creation order."""
        with self.db.session_scope() as session:
            return ProfileRecordManager(session).get_all()

    @handle_db_errors
    def get_profile(self, name: str) -> Optional[Profile]:
        with self.db.session_scope() as session:
            return ProfileRecordManager(session).get(name)

    # ---- Mutations ----
    @handle_db_errors
    @log_database_operation("create_profile")
    def create_profile(self, name: str) -> Profile:
        """
        Create a profile without switching to it.

        Raises:
            ValidationError: If the name is empty or taken, or its sanitized
                key is empty or taken
        """
        with self.db.session_scope() as session:
            return ProfileRecordManager(session, self.logger).create(name)

    @handle_db_errors
    @log_database_operation("switch_profile")
    def switch_profile(self, name: str) -> ShelfContext:
        """
        Make a profile active, creating it if it does not exist.

        A switch to the current profile is a no-op. Otherwise the current
        context is closed and a fresh one is built for the target.

        Raises:
            InvalidStateError: If a backup or restore is running
            ValidationError: If the profile must be created and the name is
                invalid
        """
        current = self.current
        if name == current.name:
            return current
        if current.busy:
            raise InvalidStateError(
                "Cannot switch profile while a backup or restore is in progress"
            )

        with self.db.session_scope() as session:
            profiles = ProfileRecordManager(session, self.logger)
            target = profiles.get(name)
            if target is None:
                target = profiles.create(name)
            if target.name == current.name:
                return current
            profiles.set_active(target)

        current.close()
        self._current = self._build_context(target)

        safe_logger(self.logger).log_operation(
            "profile_switched", {"from": current.name, "to": target.name}
        )
        return self._current

    @handle_db_errors
    @log_database_operation("delete_profile")
    def delete_profile(self, name: str) -> None:
        """
        Delete a profile and all of its data.

        When the active profile is deleted, 'default' becomes active.

        Raises:
            ProtectedResourceError: For 'default' or the last profile
            NotFoundError: If no profile has that name
            InvalidStateError: If it is active and a backup or restore is running
        """
        if name == DEFAULT_PROFILE:
            raise ProtectedResourceError("Cannot delete the default user")

        with self.db.session_scope() as session:
            profiles = ProfileRecordManager(session, self.logger)
            if profiles.count() <= 1:
                raise ProtectedResourceError("Cannot delete the last user")
            profile = profiles.get(name)
            if profile is None:
                raise NotFoundError(f"Profile not found: '{name}'")

            deleting_current = profile.id == self.current.profile.id
            if deleting_current and self.current.busy:
                raise InvalidStateError(
                    "Cannot delete a profile while its backup or restore is in progress"
                )
            profiles.delete(profile)

            if deleting_current:
                default = profiles.get(DEFAULT_PROFILE) or profiles.create(DEFAULT_PROFILE)
                profiles.set_active(default)

        if deleting_current:
            self.current.close()
            self._current = self._build_context(default)

        safe_logger(self.logger).log_operation(
            "profile_deleted", {"profile": name, "was_active": deleting_current}
        )
