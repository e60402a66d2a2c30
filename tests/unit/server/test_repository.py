"""
Tests for the server-side snapshot repository.
"""
import json
import os
import time

import pytest

from cineshelf.core.exceptions import DatabaseError, SnapshotNotFoundError, ValidationError
from cineshelf.server.repository import SnapshotRepository
from conftest import make_snapshot


@pytest.fixture
def repo(storage_dir):
    return SnapshotRepository(storage_dir)


def _age(path, seconds):
    """Push a file's mtime into the past."""
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))


class TestPut:
    def test_writes_annotated_blob(self, repo, storage_dir):
        result = repo.put("alice", make_snapshot())

        assert result["success"] is True
        assert result["filename"] == "cineshelf_backup_alice.json"
        stored = json.loads((storage_dir / result["filename"]).read_text())
        assert stored["user"] == "alice"
        assert stored["backupLabel"] == "Backup for alice"
        assert stored["filenameCreated"] == "cineshelf_backup_alice.json"
        assert stored["copies"][0]["id"] == "copy_1"

    def test_identifier_is_sanitized(self, repo):
        assert repo.put("../al ice", make_snapshot())["filename"] == "cineshelf_backup_alice.json"

    def test_overwrites(self, repo):
        repo.put("alice", make_snapshot(copies=[]))
        repo.put("alice", make_snapshot())
        assert len(repo.get("alice")["copies"]) == 1
        assert len(repo.list_snapshots()) == 1

    def test_no_temp_files_left(self, repo, storage_dir):
        repo.put("alice", make_snapshot())
        assert [p.name for p in storage_dir.iterdir()] == ["cineshelf_backup_alice.json"]

    def test_rejects_empty_identifier(self, repo):
        with pytest.raises(ValidationError):
            repo.put("!!", make_snapshot())

    def test_rejects_non_snapshot(self, repo):
        with pytest.raises(ValidationError):
            repo.put("alice", {"copies": "nope"})


class TestGet:
    def test_exact_match(self, repo):
        repo.put("alice", make_snapshot())
        repo.put("alice2", make_snapshot(copies=[]))
        payload = repo.get("alice")
        meta = payload["_restoreMetadata"]
        assert meta["filenameUsed"] == "cineshelf_backup_alice.json"
        assert meta["userRequested"] == "alice"
        assert meta["fileForced"] is False

    def test_substring_match_prefers_newest(self, repo, storage_dir):
        repo.put("alice_old", make_snapshot())
        repo.put("alice_new", make_snapshot())
        _age(storage_dir / "cineshelf_backup_alice_old.json", 3600)

        payload = repo.get("alice")
        assert payload["_restoreMetadata"]["filenameUsed"] == "cineshelf_backup_alice_new.json"

    def test_substring_is_case_sensitive(self, repo):
        repo.put("Alice", make_snapshot())
        with pytest.raises(SnapshotNotFoundError):
            repo.get("alice")

    def test_not_found_lists_everything(self, repo, storage_dir):
        repo.put("bob", make_snapshot())
        repo.put("carol", make_snapshot())
        _age(storage_dir / "cineshelf_backup_bob.json", 60)

        with pytest.raises(SnapshotNotFoundError) as excinfo:
            repo.get("alice")
        assert [listing.filename for listing in excinfo.value.available] == [
            "cineshelf_backup_carol.json",
            "cineshelf_backup_bob.json",
        ]

    def test_forced_file(self, repo):
        repo.put("bob", make_snapshot())
        payload = repo.get("alice", exact_key="cineshelf_backup_bob.json")
        assert payload["_restoreMetadata"]["fileForced"] is True
        assert payload["_restoreMetadata"]["userRequested"] == "alice"

    def test_forced_file_uses_basename(self, repo):
        repo.put("bob", make_snapshot())
        payload = repo.get("bob", exact_key="../../etc/cineshelf_backup_bob.json")
        assert payload["_restoreMetadata"]["filenameUsed"] == "cineshelf_backup_bob.json"

    def test_forced_file_missing(self, repo):
        repo.put("alice", make_snapshot())
        with pytest.raises(SnapshotNotFoundError) as excinfo:
            repo.get("alice", exact_key="cineshelf_backup_zed.json")
        assert excinfo.value.available == []

    def test_empty_storage(self, repo):
        with pytest.raises(SnapshotNotFoundError) as excinfo:
            repo.get("alice")
        assert excinfo.value.available == []

    def test_corrupt_blob(self, repo, storage_dir):
        storage_dir.mkdir(parents=True)
        (storage_dir / "cineshelf_backup_alice.json").write_text("{not json")
        with pytest.raises(DatabaseError):
            repo.get("alice")


class TestListSnapshots:
    def test_listing_fields(self, repo):
        repo.put("alice", make_snapshot())
        listing = repo.list_snapshots()[0]
        assert listing.filename == "cineshelf_backup_alice.json"
        assert listing.user_part == "alice"
        assert listing.size > 0
        assert listing.modified is not None
