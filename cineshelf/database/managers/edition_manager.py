#!/usr/bin/env python3
"""
edition_manager.py
--------------------
Manages custom edition names for one profile.

Custom editions extend DEFAULT_EDITIONS. Names are 1-50 characters and
unique ignoring case, against the defaults as well as each other.
"""
from typing import List, Optional

from cineshelf.core.exceptions import NotFoundError, ValidationError
from cineshelf.core.validators import MAX_EDITION_LENGTH, DataValidator
from cineshelf.database.decorators import handle_db_errors, log_database_operation
from cineshelf.database.models import CustomEdition
from .base_manager import ProfileScopedManager

DEFAULT_EDITIONS = [
    "Standard",
    "Widescreen",
    "Full Screen",
    "Special Edition",
    "Director's Cut",
    "Extended Edition",
    "Collector's Edition",
    "Limited Edition",
    "Anniversary Edition",
    "Criterion Collection",
    "Unrated",
    "Theatrical Cut",
]

_DEFAULT_KEYS = {edition.lower() for edition in DEFAULT_EDITIONS}


def validate_edition_name(value: object) -> str:
    """
    Validate a custom edition name.

    Raises:
        ValidationError: If the name is not text or not 1-50 characters
    """
    if not isinstance(value, str):
        raise ValidationError("Edition name must be text")
    name = DataValidator.normalize_string(value)
    if not name or len(name) > MAX_EDITION_LENGTH:
        raise ValidationError(
            f"Edition name must be 1-{MAX_EDITION_LENGTH} characters"
        )
    return name


class EditionManager(ProfileScopedManager):
    """Manages CustomEdition table operations for one profile."""

    @handle_db_errors
    def get(self, name: str) -> Optional[CustomEdition]:
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            return None
        return self._get_by_field(CustomEdition, "name_key", normalized.lower())

    @handle_db_errors
    def get_all(self) -> List[str]:
        """Custom edition names in the order they were added."""
        return [edition.name for edition in self._get_all(CustomEdition)]

    @handle_db_errors
    @log_database_operation("add_custom_edition")
    def add(self, name: str) -> CustomEdition:
        """
        Add a custom edition.

        Raises:
            ValidationError: If the name is invalid or already listed
        """
        name = validate_edition_name(name)
        key = name.lower()
        if key in _DEFAULT_KEYS or self.get(name) is not None:
            raise ValidationError(f"Edition already exists: '{name}'")

        edition = CustomEdition(profile_id=self.profile_id, name=name, name_key=key)
        self.session.add(edition)
        self._flush()
        return edition

    @handle_db_errors
    @log_database_operation("remove_custom_edition")
    def remove(self, name: str) -> None:
        """
        Remove a custom edition (case-insensitive match).

        Raises:
            NotFoundError: If no custom edition has that name
        """
        edition = self.get(name)
        if edition is None:
            raise NotFoundError(f"Custom edition not found: '{name}'")
        self.session.delete(edition)
        self._flush()

    @handle_db_errors
    def replace_all(self, names: List[str]) -> List[str]:
        """
        Replace every custom edition, dropping duplicates (ignoring case),
        defaults and invalid names.

        Returns:
            The names kept, in order
        """
        self._delete_all(CustomEdition)
        kept: List[str] = []
        seen = set(_DEFAULT_KEYS)
        for raw in names:
            name = DataValidator.normalize_string(raw) if isinstance(raw, str) else None
            if not name or len(name) > MAX_EDITION_LENGTH or name.lower() in seen:
                continue
            seen.add(name.lower())
            self.session.add(
                CustomEdition(profile_id=self.profile_id, name=name, name_key=name.lower())
            )
            kept.append(name)
        self._flush()
        return kept

    @handle_db_errors
    def delete_all(self) -> int:
        return self._delete_all(CustomEdition)
