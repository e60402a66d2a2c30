"""
Tests for the snapshot repair pass.
"""
from datetime import datetime, timezone

from cineshelf.sync.repair import UNKNOWN_TITLE, repair_snapshot
from cineshelf.sync.snapshot import Snapshot
from conftest import make_copy, make_snapshot, make_title

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


def _repaired(**kwargs):
    snapshot = Snapshot.from_payload(make_snapshot(**kwargs))
    report = repair_snapshot(snapshot, now=NOW)
    return snapshot, report


class TestRepairCopies:
    def test_clean_snapshot_needs_nothing(self, sample_snapshot):
        snapshot = Snapshot.from_payload(sample_snapshot)
        report = repair_snapshot(snapshot, now=NOW)
        assert report.fixed == 0
        assert report.details == []

    def test_dangling_title_ref(self):
        snapshot, report = _repaired(
            copies=[make_copy(titleRef="tt404", resolved=True)], titles=[]
        )
        copy = snapshot.copies[0]
        assert copy.title_ref is None
        assert copy.resolved is False
        assert report.fixed >= 1
        assert any("dangling" in line for line in report.details)

    def test_resolved_flag_corrected(self):
        snapshot, report = _repaired(
            copies=[make_copy(titleRef="tt1", resolved=False)],
            titles=[make_title("tt1", "Heat")],
        )
        assert snapshot.copies[0].resolved is True
        assert report.fixed == 1

    def test_missing_and_duplicate_ids(self):
        snapshot, report = _repaired(
            copies=[make_copy("c1"), make_copy("c1"), make_copy(None)]
        )
        ids = [c.id for c in snapshot.copies]
        assert ids[0] == "c1"
        assert len(set(ids)) == 3 and all(ids)
        assert report.fixed == 2

    def test_missing_fields_filled(self):
        raw = {"title": None, "discCount": 99}
        snapshot, report = _repaired(copies=[raw])
        copy = snapshot.copies[0]
        assert copy.id
        assert copy.title == UNKNOWN_TITLE
        assert copy.disc_count == 1
        assert copy.created_at == NOW
        assert copy.resolved is False
        assert report.fixed == 5

    def test_long_title_truncated(self):
        snapshot, _ = _repaired(copies=[make_copy(title="x" * 250)])
        assert len(snapshot.copies[0].title) == 200


class TestRepairTitles:
    def test_missing_id_and_name(self):
        snapshot, report = _repaired(copies=[], titles=[{"year": 1990}])
        title = snapshot.titles[0]
        assert title.external_id == "unknown_0"
        assert title.name == UNKNOWN_TITLE
        assert report.fixed == 2

    def test_duplicate_external_id_last_wins(self):
        snapshot, report = _repaired(
            copies=[],
            titles=[make_title("tt1", "First"), make_title("tt1", "Second")],
        )
        assert [t.name for t in snapshot.titles] == ["Second"]
        assert report.fixed == 1


class TestRepairEditions:
    def test_drops_invalid_defaults_and_duplicates(self):
        snapshot, report = _repaired(
            copies=[],
            editions=["Arrow", "arrow", "  ", "Standard", "y" * 51, "Criterion"],
        )
        assert snapshot.custom_editions == ["Arrow", "Criterion"]
        assert report.fixed == 4
