#!/usr/bin/env python3
"""
coordinator.py
-------------------
Backup and restore of the active profile against the snapshot server.

Both operations walk an ordered list of candidate endpoint base URLs and
stop at the first one that succeeds. Every failure (timeout, transport
error, error status, malformed body) is kept as an EndpointAttempt so the
caller can show what was tried.

Restore never leaves a half-replaced catalog:
    1. a safety snapshot of the current catalog is saved locally
       (failure aborts with BackupError)
    2. the fetched snapshot is cloned and repaired in memory
    3. copies, titles and editions are replaced in one transaction, the
       resolve workflow is reset and store listeners are notified (a
       failed replace rolls back and raises RestoreApplyError)

Steps 1-3 run without awaiting, so nothing can interleave with them.
While an operation runs, the active context is marked busy: profile
switches and a second backup/restore are refused with InvalidStateError.

Usage:
    coordinator = SyncCoordinator(profiles, ["http://localhost:8000"])
    await coordinator.backup()
    try:
        report = await coordinator.restore()
    except RestoreConflictError as e:
        report = await coordinator.restore(force_file=e.available[0].filename)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

# --- Third party imports ---
import httpx

# --- Local imports ---
from cineshelf.core.config import DEFAULT_ENDPOINTS, DEFAULT_TIMEOUT_SECONDS
from cineshelf.core.exceptions import (
    BackupError,
    BackupUnavailableError,
    DatabaseError,
    EndpointAttempt,
    InvalidStateError,
    NotFoundError,
    RestoreApplyError,
    RestoreConflictError,
    SnapshotNotFoundError,
    ValidationError,
)
from cineshelf.core.logging_manager import ShelfLogger, safe_logger
from cineshelf.core.validators import require_identifier
from cineshelf.database.profile_manager import ProfileManager, ShelfContext
from .client import SnapshotClient
from .repair import RepairReport, repair_snapshot
from .snapshot import Snapshot, parse_listings

SAFETY_REASON = "safety_before_restore"


@dataclass
class BackupReport:
    """Outcome of a successful backup."""

    endpoint: str
    filename: Optional[str]
    timestamp: datetime
    item_count: int
    title_count: int
    custom_edition_count: int
    attempts: List[EndpointAttempt] = field(default_factory=list)


@dataclass
class RestoreReport:
    """
    Outcome of a successful restore.

    Attributes:
        endpoint: Base URL the snapshot came from (None for a safety restore)
        filename_used: Blob the server picked
        backup_label: Label stored with the snapshot
        copies, titles, custom_editions: Counts now in the catalog
        repairs: Number of fixes the repair pass made
        repair_details: One line per fix
        attempts: Endpoints that failed before the one that answered
    """

    endpoint: Optional[str]
    filename_used: Optional[str]
    backup_label: Optional[str]
    copies: int
    titles: int
    custom_editions: int
    repairs: int
    repair_details: List[str] = field(default_factory=list)
    attempts: List[EndpointAttempt] = field(default_factory=list)


def _transport_reason(error: httpx.HTTPError, timeout: float) -> str:
    if isinstance(error, httpx.TimeoutException):
        return f"Timed out after {timeout:g}s"
    return f"{type(error).__name__}: {error}" if str(error) else type(error).__name__


class SyncCoordinator:
    """
    Runs backups and restores for whichever profile is active.

    Attributes:
        profiles: Profile manager providing the active ShelfContext
        endpoints: Candidate base URLs, tried in order
        timeout: Per-request timeout in seconds
        client: HTTP client
        logger: Optional logger
    """

    def __init__(
        self,
        profiles: ProfileManager,
        endpoints: Optional[Sequence[str]] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[ShelfLogger] = None,
        client: Optional[SnapshotClient] = None,
    ) -> None:
        self.profiles = profiles
        self.endpoints: List[str] = list(endpoints or DEFAULT_ENDPOINTS)
        if not self.endpoints:
            raise ValidationError("At least one backup endpoint is required")
        self.timeout = timeout
        self.logger = logger
        self.client = client or SnapshotClient(timeout, transport=transport, logger=logger)
        self._in_flight = False

    @property
    def busy(self) -> bool:
        return self._in_flight

    # ---- Busy flag ----
    def _begin(self, operation: str) -> ShelfContext:
        context = self.profiles.current
        if self._in_flight or context.busy:
            raise InvalidStateError(
                f"Cannot start {operation}: another backup or restore is in progress"
            )
        self._in_flight = True
        context.busy = True
        return context

    def _end(self, context: ShelfContext) -> None:
        context.busy = False
        self._in_flight = False

    def _log(self, context: ShelfContext) -> ShelfLogger:
        return safe_logger(self.logger).bind(profile=context.key)

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------

    async def backup(self) -> BackupReport:
        """
        Send the active profile's snapshot to the first endpoint that takes it.

        Returns:
            BackupReport (also stored as the profile's backup record)

        Raises:
            ValidationError: If the profile key sanitizes to nothing
            BackupUnavailableError: If every endpoint failed (nothing changes
                locally)
            InvalidStateError: If another backup or restore is running
        """
        context = self._begin("backup")
        try:
            identifier = require_identifier(context.key)
            snapshot = context.store.export_records()
            snapshot.user = identifier
            payload = snapshot.to_payload()

            attempts: List[EndpointAttempt] = []
            for endpoint in self.endpoints:
                try:
                    response = await self.client.post_backup(endpoint, payload)
                except httpx.HTTPError as e:
                    attempts.append(
                        EndpointAttempt(endpoint, _transport_reason(e, self.timeout))
                    )
                    continue

                body = response.body
                if response.ok and isinstance(body, dict) and body.get("success"):
                    filename = body.get("filename")
                    record = context.store.record_backup(endpoint, snapshot, filename)
                    self._log(context).log_operation(
                        "backup_completed",
                        {
                            "endpoint": endpoint,
                            "filename": filename,
                            "copies": record.item_count,
                            "failed_attempts": len(attempts),
                        },
                    )
                    return BackupReport(
                        endpoint=endpoint,
                        filename=filename,
                        timestamp=record.backed_up_at,
                        item_count=record.item_count,
                        title_count=record.title_count,
                        custom_edition_count=record.custom_edition_count,
                        attempts=attempts,
                    )

                attempts.append(
                    EndpointAttempt(
                        endpoint,
                        response.error_message("Backup rejected"),
                        response.status_code,
                    )
                )

            error = BackupUnavailableError("All backup endpoints failed", attempts)
            self._log(context).log_warning("backup_failed", error.details())
            raise error
        finally:
            self._end(context)

    # -------------------------------------------------------------------------
    # Restore
    # -------------------------------------------------------------------------

    async def restore(self, force_file: Optional[str] = None) -> RestoreReport:
        """
        Replace the active profile's catalog with its server snapshot.

        Args:
            force_file: Blob filename chosen from a RestoreConflictError
                listing; when None the server picks by profile key

        Returns:
            RestoreReport

        Raises:
            RestoreConflictError: The server has no exact match and lists
                candidates (nothing changes locally)
            SnapshotNotFoundError: No snapshot exists (nothing changes)
            BackupUnavailableError: No endpoint produced a usable snapshot
            BackupError: The safety snapshot could not be saved
            RestoreApplyError: The fetched snapshot could not be stored
                (catalog unchanged)
            InvalidStateError: If another backup or restore is running
        """
        context = self._begin("restore")
        try:
            identifier = require_identifier(context.key)
            if force_file is not None:
                force_file = os.path.basename(force_file.strip())
                if not force_file:
                    raise ValidationError("Backup file name is empty")

            snapshot, endpoint, attempts = await self._fetch(context, identifier, force_file)
            return self._apply(context, snapshot, endpoint, attempts)
        finally:
            self._end(context)

    async def _fetch(
        self, context: ShelfContext, identifier: str, force_file: Optional[str]
    ) -> Tuple[Snapshot, str, List[EndpointAttempt]]:
        attempts: List[EndpointAttempt] = []
        not_found = False

        for endpoint in self.endpoints:
            try:
                response = await self.client.fetch_snapshot(endpoint, identifier, force_file)
            except httpx.HTTPError as e:
                attempts.append(EndpointAttempt(endpoint, _transport_reason(e, self.timeout)))
                continue

            if response.status_code == 404:
                try:
                    listing = parse_listings(response.body)
                except ValidationError as e:
                    attempts.append(
                        EndpointAttempt(endpoint, f"Invalid backup listing: {e}", 404)
                    )
                    continue
                if listing:
                    attempts.append(
                        EndpointAttempt(endpoint, "No exact match, choose a backup", 404)
                    )
                    raise RestoreConflictError(
                        f"No backup named for '{identifier}'; "
                        f"{len(listing)} backup(s) available",
                        listing,
                        attempts,
                    )
                not_found = True
                attempts.append(
                    EndpointAttempt(endpoint, response.error_message("Backup not found"), 404)
                )
                continue

            if not response.ok:
                attempts.append(
                    EndpointAttempt(
                        endpoint,
                        response.error_message("Restore failed"),
                        response.status_code,
                    )
                )
                continue

            try:
                snapshot = Snapshot.from_payload(response.body)
            except ValidationError as e:
                attempts.append(
                    EndpointAttempt(
                        endpoint, f"Invalid data structure: {e}", response.status_code
                    )
                )
                continue
            return snapshot, endpoint, attempts

        if not_found:
            target = f"file '{force_file}'" if force_file else f"'{identifier}'"
            error: Exception = SnapshotNotFoundError(
                f"No backup found for {target}", attempts=attempts
            )
        else:
            error = BackupUnavailableError("No valid backup found", attempts)
        self._log(context).log_warning(
            "restore_failed",
            {"error": str(error), "attempts": [a.describe() for a in attempts]},
        )
        raise error

    def _apply(
        self,
        context: ShelfContext,
        fetched: Snapshot,
        endpoint: str,
        attempts: List[EndpointAttempt],
    ) -> RestoreReport:
        """Safety snapshot, repair and replace; no awaits in here."""
        store = context.store
        log = self._log(context).bind(endpoint=endpoint)
        try:
            store.save_safety_snapshot(SAFETY_REASON)
        except BackupError as e:
            log.log_error(e, {"operation": "restore", "step": "safety_snapshot"})
            raise

        working = fetched.clone()
        repairs = repair_snapshot(working)
        try:
            counts = store.replace_contents(
                working.copies, working.titles, working.custom_editions
            )
        except (ValidationError, DatabaseError) as e:
            failed = attempts + [
                EndpointAttempt(endpoint, f"Snapshot could not be stored: {e}")
            ]
            error = RestoreApplyError("Restored data could not be saved", failed)
            log.log_error(e, {"operation": "restore", "step": "replace_contents"})
            raise error from e
        context.workflow.reset()

        report = self._report(endpoint, fetched, counts, repairs)
        report.attempts = attempts
        log.log_operation(
            "restore_completed",
            {
                "filename": report.filename_used,
                "copies": report.copies,
                "repairs": report.repairs,
                "failed_attempts": len(attempts),
            },
        )
        return report

    @staticmethod
    def _report(
        endpoint: Optional[str],
        fetched: Snapshot,
        counts: Dict[str, int],
        repairs: RepairReport,
    ) -> RestoreReport:
        return RestoreReport(
            endpoint=endpoint,
            filename_used=fetched.filename_used,
            backup_label=fetched.backup_label,
            copies=counts["copies"],
            titles=counts["titles"],
            custom_editions=counts["custom_editions"],
            repairs=repairs.fixed,
            repair_details=list(repairs.details),
        )

    # -------------------------------------------------------------------------
    # Undo
    # -------------------------------------------------------------------------

    def restore_safety_snapshot(self) -> RestoreReport:
        """
        Put back the catalog saved before the last restore.

        Raises:
            NotFoundError: If the profile has no safety snapshot
            InvalidStateError: If a backup or restore is running
        """
        context = self._begin("undo")
        try:
            saved = context.store.safety_snapshot()
            if saved is None:
                raise NotFoundError(f"No safety snapshot for profile '{context.name}'")

            snapshot = Snapshot.from_payload(saved.payload)
            repairs = repair_snapshot(snapshot)
            counts = context.store.replace_contents(
                snapshot.copies, snapshot.titles, snapshot.custom_editions
            )
            context.workflow.reset()

            self._log(context).log_operation(
                "safety_snapshot_restored",
                {"taken_at": saved.taken_at, "reason": saved.reason},
            )
            return self._report(None, snapshot, counts, repairs)
        finally:
            self._end(context)

    def last_backup(self) -> Optional[Dict[str, Any]]:
        """Last backup record of the active profile, as a dict."""
        record = self.profiles.current.store.last_backup()
        return record.to_dict() if record else None
