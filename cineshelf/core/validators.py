#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for all CineShelf operations.

Provides type-safe conversion, validation, and normalization functions
used by the catalog store, the snapshot boundary and the server.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError

# ---- Constants ----
MAX_TITLE_LENGTH = 200
MIN_DISC_COUNT = 1
MAX_DISC_COUNT = 50
MAX_EDITION_LENGTH = 50

_IDENTIFIER_STRIP = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_identifier(value: Any) -> str:
    """
    Reduce an identifier to ``[A-Za-z0-9_-]``.

    Used identically by the client (profile keys, backup identifiers) and the
    server (snapshot keys).

    Args:
        value: Raw identifier (profile name, query parameter, ...)

    Returns:
        Sanitized identifier, possibly empty
    """
    if value is None:
        return ""
    return _IDENTIFIER_STRIP.sub("", str(value))


def require_identifier(value: Any) -> str:
    """
    Sanitize an identifier and reject an empty result.

    Raises:
        ValidationError: If nothing is left after sanitizing
    """
    identifier = sanitize_identifier(value)
    if not identifier:
        raise ValidationError(f"Invalid identifier: {value!r}")
    return identifier


class DataValidator:
    """Centralized data validation for catalog operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        for field in required_fields:
            if field not in data or not data[field]:
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def validate_copy_title(value: Any) -> str:
        """
        Validate a copy title (1-200 characters after trimming).

        Raises:
            ValidationError: If the title is missing, not text, or out of range
        """
        if not isinstance(value, str):
            raise ValidationError("Copy title must be text")
        title = value.strip()
        if not title or len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(
                f"Please enter a valid title (1-{MAX_TITLE_LENGTH} characters)"
            )
        return title

    @staticmethod
    def validate_disc_count(value: Any) -> int:
        """
        Validate a disc count (integer 1-50).

        Raises:
            ValidationError: If the value is not an integer in range
        """
        if isinstance(value, bool):
            raise ValidationError("Number of discs must be an integer")
        try:
            count = int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Number of discs must be an integer, got {value!r}")
        if isinstance(value, float) and count != value:
            raise ValidationError(f"Number of discs must be an integer, got {value!r}")
        if count < MIN_DISC_COUNT or count > MAX_DISC_COUNT:
            raise ValidationError(
                f"Number of discs must be between {MIN_DISC_COUNT} and {MAX_DISC_COUNT}"
            )
        return count

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize string value.

        Args:
            value: Value to normalize

        Returns:
            Stripped string, or None for empty/None input
        """
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Args:
            value: Value to convert

        Returns:
            Boolean value or None

        Raises:
            ValidationError: If conversion fails
        """
        if isinstance(value, bool):
            return value
        elif isinstance(value, (int, float)):
            if value == 0:
                return False
            elif value == 1:
                return True
            else:
                raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        elif isinstance(value, str):
            if value.lower() in ("true", "1", "yes", "on"):
                return True
            elif value.lower() in ("false", "0", "no", "off"):
                return False
            else:
                raise ValidationError(f"Cannot convert '{value}' to boolean")
        elif value is not None:
            return bool(value)
        return None

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """
        Convert value to integer.

        Raises:
            ValidationError: If the value is not an integer
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"Expected an integer, got {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Expected an integer, got {value!r}")
        if not number.is_integer():
            raise ValidationError(f"Expected an integer, got {value!r}")
        return int(number)

    @staticmethod
    def normalize_float(value: Any) -> Optional[float]:
        """
        Convert value to float.

        Raises:
            ValidationError: If the value is not numeric
        """
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise ValidationError(f"Expected a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Expected a number, got {value!r}")

    @staticmethod
    def parse_timestamp(value: Any) -> Optional[datetime]:
        """
        Parse an ISO 8601 timestamp into an aware UTC datetime.

        Args:
            value: ISO string (``Z`` suffix accepted) or datetime

        Returns:
            Aware datetime, or None if the value is empty or unparseable
        """
        if isinstance(value, datetime):
            return as_utc(value)
        if not isinstance(value, str) or not value.strip():
            return None
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(text))
        except ValueError:
            return None


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo) and convert aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
