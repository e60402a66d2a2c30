#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the CineShelf project.

This module defines the hierarchy of exceptions raised by the catalog store,
the resolve workflow, the profile manager and the backup/restore layer.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Base for all persistence errors
    │   └── BackupError - Local safety snapshot / backup record failures
    ├── ValidationError - Bad input shape or range (never mutates state)
    ├── NotFoundError - Referenced copy, profile or snapshot is absent
    │   └── SnapshotNotFoundError - No remote snapshot for an identifier
    ├── InvalidStateError - Operation invalid for the current state
    ├── ProtectedResourceError - Attempt to delete the default/last profile
    └── SyncError - Remote backup/restore failures
        ├── BackupUnavailableError - Every candidate endpoint failed
        ├── RestoreConflictError - Ambiguous match, caller must pick a file
        └── RestoreApplyError - Fetched snapshot could not be stored locally

Usage:
    from cineshelf.core.exceptions import NotFoundError, ValidationError

    try:
        store.update_copy(copy_id, {"disc_count": 3})
    except NotFoundError as e:
        logger.log_warning(f"Copy vanished: {e}")
    except ValidationError as e:
        logger.log_warning(f"Invalid patch: {e}")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence


@dataclass(frozen=True)
class EndpointAttempt:
    """
    Outcome of one candidate endpoint during a backup or restore.

    Attributes:
        endpoint: Base URL that was tried
        reason: Human-readable failure reason
        status_code: HTTP status when the server answered, None otherwise
    """

    endpoint: str
    reason: str
    status_code: Optional[int] = None

    def describe(self) -> str:
        """Single-line description for status panels."""
        if self.status_code is not None:
            return f"{self.endpoint}: {self.status_code} - {self.reason}"
        return f"{self.endpoint}: {self.reason}"


class DatabaseError(Exception):
    """
    Base exception for persistence errors.

    Raised when the local SQLite store cannot be read or written, or when
    a server-side snapshot blob is unreadable.

    Examples:
        >>> raise DatabaseError("Database operation failed: disk I/O error")
    """

    pass


class BackupError(DatabaseError):
    """
    Exception for local backup bookkeeping failures.

    Raised when the safety snapshot taken before a restore cannot be
    persisted (the restore is aborted), or when the last-backup record
    cannot be written.

    Examples:
        >>> raise BackupError("Failed to save safety snapshot: database is locked")
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    Raised before any state is touched:
    - Copy title empty or longer than 200 characters
    - Disc count outside 1-50
    - Empty or duplicate profile names
    - Identifiers that sanitize to an empty string
    - Remote payloads that do not match the snapshot shape

    Examples:
        >>> raise ValidationError("Number of discs must be between 1 and 50")
    """

    pass


class NotFoundError(Exception):
    """
    Exception for references to absent records.

    Examples:
        >>> raise NotFoundError("No copy found with id: copy_1234")
        >>> raise NotFoundError("Profile not found: 'alice'")
    """

    pass


class SnapshotNotFoundError(NotFoundError):
    """
    No snapshot exists for the requested identifier or file.

    Attributes:
        available: Listing of every stored snapshot (may be empty)
        attempts: Candidate endpoints tried, when raised client-side
    """

    def __init__(
        self,
        message: str,
        available: Optional[Sequence[Any]] = None,
        attempts: Optional[Sequence[EndpointAttempt]] = None,
    ) -> None:
        super().__init__(message)
        self.available: List[Any] = list(available or [])
        self.attempts: List[EndpointAttempt] = list(attempts or [])


class InvalidStateError(Exception):
    """
    Exception for operations that are invalid in the current state.

    Raised when resolving/skipping while the workflow is idle, when starting
    on an already-resolved copy, or when a profile switch or a second sync
    operation collides with an in-flight backup/restore.

    Examples:
        >>> raise InvalidStateError("No copy is currently being resolved")
    """

    pass


class ProtectedResourceError(Exception):
    """
    Exception for attempts to delete a protected profile.

    Examples:
        >>> raise ProtectedResourceError("Cannot delete the default profile")
        >>> raise ProtectedResourceError("Cannot delete the last profile")
    """

    pass


class SyncError(Exception):
    """
    Base exception for remote backup/restore failures.

    Attributes:
        attempts: Every candidate endpoint tried, in order, with its reason
    """

    def __init__(
        self, message: str, attempts: Optional[Sequence[EndpointAttempt]] = None
    ) -> None:
        super().__init__(message)
        self.attempts: List[EndpointAttempt] = list(attempts or [])

    def details(self) -> Dict[str, Any]:
        """Structured form of the failure for logs and status panels."""
        return {
            "error": str(self),
            "attempts": [attempt.describe() for attempt in self.attempts],
        }


class BackupUnavailableError(SyncError):
    """
    Every candidate endpoint failed.

    Raised by backup when no endpoint accepted the snapshot, and by restore
    when no endpoint returned a usable snapshot. Local state is unchanged.

    Examples:
        >>> raise BackupUnavailableError("All backup endpoints failed", attempts)
    """

    pass


class RestoreConflictError(SyncError):
    """
    The server has no exact match and lists candidate snapshots instead.

    The caller must pick one of ``available`` by filename and retry the
    restore with that file forced.

    Attributes:
        available: Snapshot listings offered by the server
    """

    def __init__(
        self,
        message: str,
        available: Sequence[Any],
        attempts: Optional[Sequence[EndpointAttempt]] = None,
    ) -> None:
        super().__init__(message, attempts)
        self.available: List[Any] = list(available)


class RestoreApplyError(SyncError):
    """
    A snapshot was fetched but could not be stored in the local catalog.

    The catalog is unchanged. ``attempts`` ends with the endpoint whose
    snapshot was rejected; the underlying error is chained as the cause.

    Examples:
        >>> raise RestoreApplyError("Restored data could not be saved", attempts)
    """

    pass
