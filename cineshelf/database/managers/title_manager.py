#!/usr/bin/env python3
"""
title_manager.py
--------------------
Manages Title rows for one profile.

Titles are unique by external id within a profile. Writes are upserts:
an existing title keeps any field the incoming record leaves empty.

Usage:
    title_mgr = TitleManager(session, profile_id, logger)
    title = title_mgr.upsert(TitleRecord("tt1160419", "Dune", year=2021))
    match = title_mgr.find_by_name("dune")
"""
from typing import Dict, List, Optional

from cineshelf.core.exceptions import ValidationError
from cineshelf.core.validators import DataValidator
from cineshelf.database.decorators import handle_db_errors, log_database_operation
from cineshelf.database.models import Title
from cineshelf.sync.snapshot import TitleRecord
from .base_manager import ProfileScopedManager

OPTIONAL_FIELDS = ("year", "rating", "poster_url", "plot", "director", "genre", "runtime")


class TitleManager(ProfileScopedManager):
    """Manages Title table operations for one profile."""

    @handle_db_errors
    def get(self, external_id: str) -> Optional[Title]:
        """Title by external id, or None."""
        return self._get_by_field(Title, "external_id", external_id)

    @handle_db_errors
    def find_by_name(self, name: str) -> Optional[Title]:
        """
        Oldest title whose name equals ``name`` ignoring case.

        Uses Unicode case folding: 'AMÉLIE' matches 'amélie'.

        Returns:
            Title or None (also for empty names)
        """
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            return None
        wanted = normalized.casefold()
        for title in self._get_all(Title):
            if title.name.casefold() == wanted:
                return title
        return None

    @handle_db_errors
    def get_all(self) -> List[Title]:
        return self._get_all(Title)

    @handle_db_errors
    def by_external_id(self) -> Dict[str, Title]:
        """All titles keyed by external id."""
        return {title.external_id: title for title in self._get_all(Title)}

    @handle_db_errors
    def count(self) -> int:
        return self._count(Title)

    @handle_db_errors
    @log_database_operation("upsert_title")
    def upsert(self, record: TitleRecord) -> Title:
        """
        Insert a title or update the one with the same external id.

        Args:
            record: Title data; ``external_id`` and ``name`` are required

        Returns:
            The stored Title

        Raises:
            ValidationError: If external_id or name is missing
        """
        external_id = DataValidator.normalize_string(record.external_id)
        name = DataValidator.normalize_string(record.name)
        if not external_id:
            raise ValidationError("Title is missing an external id")
        if not name:
            raise ValidationError("Title is missing a name")

        title = self.get(external_id)
        if title is None:
            title = Title(profile_id=self.profile_id, external_id=external_id, name=name)
            self.session.add(title)
        else:
            title.name = name

        for field_name in OPTIONAL_FIELDS:
            value = getattr(record, field_name)
            if value is not None:
                setattr(title, field_name, value)

        self._flush()
        return title

    @handle_db_errors
    def delete_all(self) -> int:
        return self._delete_all(Title)
