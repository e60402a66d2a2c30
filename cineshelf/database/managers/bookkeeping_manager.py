#!/usr/bin/env python3
"""
bookkeeping_manager.py
--------------------
Per-profile backup bookkeeping: the last remote backup record and the
local safety snapshot taken before a restore. Each profile has at most
one of each; writes replace the previous row.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from cineshelf.database.decorators import handle_db_errors, log_database_operation
from cineshelf.database.models import BackupRecord, SafetySnapshot
from .base_manager import ProfileScopedManager


class BookkeepingManager(ProfileScopedManager):
    """Manages BackupRecord and SafetySnapshot rows for one profile."""

    @handle_db_errors
    def get_backup_record(self) -> Optional[BackupRecord]:
        return self._scoped(BackupRecord).first()

    @handle_db_errors
    @log_database_operation("record_backup")
    def set_backup_record(
        self,
        backed_up_at: datetime,
        endpoint: str,
        item_count: int,
        title_count: int,
        custom_edition_count: int,
        filename: Optional[str] = None,
    ) -> BackupRecord:
        record = self.get_backup_record()
        if record is None:
            record = BackupRecord(profile_id=self.profile_id)
            self.session.add(record)
        record.backed_up_at = backed_up_at
        record.endpoint = endpoint
        record.item_count = item_count
        record.title_count = title_count
        record.custom_edition_count = custom_edition_count
        record.filename = filename
        self._flush()
        return record

    @handle_db_errors
    def get_safety_snapshot(self) -> Optional[SafetySnapshot]:
        return self._scoped(SafetySnapshot).first()

    @handle_db_errors
    @log_database_operation("save_safety_snapshot")
    def set_safety_snapshot(
        self, reason: str, taken_at: datetime, payload: Dict[str, Any]
    ) -> SafetySnapshot:
        snapshot = self.get_safety_snapshot()
        if snapshot is None:
            snapshot = SafetySnapshot(profile_id=self.profile_id)
            self.session.add(snapshot)
        snapshot.reason = reason
        snapshot.taken_at = taken_at
        snapshot.payload = payload
        self._flush()
        return snapshot
