#!/usr/bin/env python3
"""
repository.py
-------------------
Server-side storage of snapshot blobs.

One JSON file per identifier, ``cineshelf_backup_<identifier>.json``, in
a single storage directory. Writes go to a temporary file first and are
moved into place, so a reader never sees a partial blob.

Lookup order for ``get(identifier)``:
    1. the exact blob for the identifier
    2. the most recently modified blob whose identifier part contains it
    3. SnapshotNotFoundError carrying the listing of every stored blob

Usage:
    repo = SnapshotRepository(Path("server/data"))
    repo.put("alice", payload)
    payload = repo.get("alice")
    payload = repo.get("alice", exact_key="cineshelf_backup_alice_old.json")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

# --- Local imports ---
from cineshelf.core.exceptions import DatabaseError, SnapshotNotFoundError, ValidationError
from cineshelf.core.logging_manager import ShelfLogger, safe_logger
from cineshelf.core.validators import require_identifier, utc_now
from cineshelf.sync.snapshot import SNAPSHOT_VERSION, BackupListing, Snapshot

FILENAME_PREFIX = "cineshelf_backup_"
FILENAME_SUFFIX = ".json"


class SnapshotRepository:
    """
    Directory of snapshot blobs.

    Attributes:
        storage_dir: Directory holding the blobs (created on first write)
        logger: Optional logger
    """

    def __init__(
        self, storage_dir: Union[str, Path], logger: Optional[ShelfLogger] = None
    ) -> None:
        self.storage_dir = Path(storage_dir).expanduser()
        self.logger = logger

    @staticmethod
    def filename_for(identifier: str) -> str:
        return f"{FILENAME_PREFIX}{identifier}{FILENAME_SUFFIX}"

    # ---- Write ----
    def put(self, identifier: Any, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Store a snapshot for an identifier, replacing any previous one.

        Args:
            identifier: Raw identifier (sanitized to ``[A-Za-z0-9_-]``)
            payload: Snapshot in wire format

        Returns:
            ``{success, message, filename, user, timestamp}``

        Raises:
            ValidationError: If the identifier sanitizes to nothing or the
                payload is not a snapshot
            DatabaseError: If the blob cannot be written
        """
        key = require_identifier(identifier)
        Snapshot.from_payload(payload)

        filename = self.filename_for(key)
        timestamp = utc_now().isoformat()
        document = dict(payload)
        document.update(
            {
                "user": key,
                "backupLabel": f"Backup for {key}",
                "backupTime": timestamp,
                "serverVersion": SNAPSHOT_VERSION,
                "filenameCreated": filename,
            }
        )

        try:
            self.storage_dir.mkdir(parents=True, exist_ok=True)
            self._write_atomic(self.storage_dir / filename, document)
        except (OSError, TypeError, ValueError) as e:
            safe_logger(self.logger).log_error(e, {"operation": "put", "user": key})
            raise DatabaseError(f"Failed to save backup: {e}") from e

        safe_logger(self.logger).log_operation(
            "snapshot_stored",
            {
                "user": key,
                "filename": filename,
                "copies": len(document.get("copies") or []),
            },
        )
        return {
            "success": True,
            "message": f"Backup saved for {key}",
            "filename": filename,
            "user": key,
            "timestamp": timestamp,
        }

    def _write_atomic(self, path: Path, document: Dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self.storage_dir, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    # ---- Read ----
    def get(self, identifier: Any, exact_key: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch the snapshot for an identifier.

        Args:
            identifier: Raw identifier (sanitized)
            exact_key: Blob filename to use instead of searching; only its
                base name is considered

        Returns:
            The stored payload with ``_restoreMetadata`` added

        Raises:
            ValidationError: If the identifier sanitizes to nothing
            SnapshotNotFoundError: No blob matches (``available`` lists every
                stored blob when searching; empty for a forced file)
            DatabaseError: If the blob is unreadable or not a JSON object
        """
        key = require_identifier(identifier)

        if exact_key:
            name = os.path.basename(exact_key.strip())
            path = self.storage_dir / name if name else None
            if path is None or not path.is_file():
                raise SnapshotNotFoundError(f"Specified file not found: {exact_key}")
        else:
            path = self._find(key)

        payload = self._read(path)
        payload["_restoreMetadata"] = {
            "filenameUsed": path.name,
            "restoredAt": utc_now().isoformat(),
            "userRequested": key,
            "fileForced": bool(exact_key),
        }
        safe_logger(self.logger).log_operation(
            "snapshot_served",
            {"user": key, "filename": path.name, "forced": bool(exact_key)},
        )
        return payload

    def _find(self, key: str) -> Path:
        exact = self.storage_dir / self.filename_for(key)
        if exact.is_file():
            return exact

        candidates = [
            path
            for path in self._blob_paths()
            if key in path.name[len(FILENAME_PREFIX) : -len(FILENAME_SUFFIX)]
        ]
        if candidates:
            return max(candidates, key=lambda p: p.stat().st_mtime)

        raise SnapshotNotFoundError(
            "No backup found for this user", available=self.list_snapshots()
        )

    @staticmethod
    def _read(path: Path) -> Dict[str, Any]:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise DatabaseError(f"Failed to read backup file: {path.name}") from e
        except ValueError as e:
            raise DatabaseError(f"Backup file contains invalid JSON: {path.name}") from e
        if not isinstance(data, dict):
            raise DatabaseError(f"Backup file is not a snapshot: {path.name}")
        return data

    # ---- Listing ----
    def _blob_paths(self) -> List[Path]:
        if not self.storage_dir.is_dir():
            return []
        return sorted(self.storage_dir.glob(f"{FILENAME_PREFIX}*{FILENAME_SUFFIX}"))

    def list_snapshots(self) -> List[BackupListing]:
        """Every stored blob, newest first."""
        listings = []
        for path in self._blob_paths():
            stat = path.stat()
            listings.append(
                BackupListing(
                    filename=path.name,
                    user_part=path.name[len(FILENAME_PREFIX) : -len(FILENAME_SUFFIX)],
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                    size=stat.st_size,
                )
            )
        listings.sort(key=lambda listing: listing.modified, reverse=True)
        return listings
