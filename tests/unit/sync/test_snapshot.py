"""
Tests for the snapshot wire format.
"""
import pytest
from datetime import datetime, timezone

from cineshelf.core.exceptions import ValidationError
from cineshelf.sync.snapshot import (
    BackupListing,
    CopyRecord,
    Snapshot,
    TitleRecord,
    parse_listings,
)
from conftest import make_copy, make_snapshot, make_title


class TestSnapshotParsing:
    def test_wire_payload(self, sample_snapshot):
        snapshot = Snapshot.from_payload(sample_snapshot)
        assert snapshot.user == "alice"
        assert [c.id for c in snapshot.copies] == ["copy_1", "copy_2"]
        assert snapshot.copies[0].title_ref == "tt0083658"
        assert snapshot.copies[1].format == "DVD"
        assert snapshot.titles[0].year == 1982
        assert snapshot.custom_editions == ["Criterion"]
        assert snapshot.timestamp == datetime(2024, 3, 2, 8, 30, tzinfo=timezone.utc)

    def test_legacy_payload(self):
        snapshot = Snapshot.from_payload(
            {
                "user": "bob",
                "copies": [
                    {"id": "c1", "title": "Heat", "discs": "2", "movieId": "tt1",
                     "created": "2020-01-01T00:00:00Z"}
                ],
                "movies": [
                    {"imdbID": "tt1", "title": "Heat", "imdbRating": "8.3",
                     "posterIMG": "heat.jpg"}
                ],
            }
        )
        copy = snapshot.copies[0]
        assert copy.disc_count == 2
        assert copy.title_ref == "tt1"
        assert copy.created_at.year == 2020
        title = snapshot.titles[0]
        assert (title.external_id, title.name, title.rating) == ("tt1", "Heat", 8.3)
        assert title.poster_url == "heat.jpg"

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"titles": []},
            {"copies": []},
            {"copies": {}, "titles": []},
            {"copies": ["x"], "titles": []},
            {"copies": [], "titles": [], "customEditions": [1]},
            {"copies": [{"id": "c1", "title": {"nested": 1}}], "titles": []},
        ],
    )
    def test_invalid_structure(self, payload):
        with pytest.raises(ValidationError):
            Snapshot.from_payload(payload)

    def test_restore_metadata(self):
        payload = make_snapshot()
        payload["_restoreMetadata"] = {"filenameUsed": "cineshelf_backup_alice.json"}
        assert Snapshot.from_payload(payload).filename_used == "cineshelf_backup_alice.json"

    def test_payload_round_trip(self, sample_snapshot):
        snapshot = Snapshot.from_payload(sample_snapshot)
        again = Snapshot.from_payload(snapshot.to_payload())
        assert again.copies == snapshot.copies
        assert again.titles == snapshot.titles

    def test_clone_is_independent(self, sample_snapshot):
        snapshot = Snapshot.from_payload(sample_snapshot)
        clone = snapshot.clone()
        clone.copies[0].title = "Changed"
        clone.custom_editions.append("Arrow")
        assert snapshot.copies[0].title == "Blade Runner"
        assert snapshot.custom_editions == ["Criterion"]


class TestRecords:
    def test_title_coerce_passes_records_through(self):
        record = TitleRecord("tt1", "Heat")
        assert TitleRecord.coerce(record) is record

    def test_title_year_from_text(self):
        assert TitleRecord.from_payload(make_title(year="1995–1996")).year == 1995

    def test_copy_missing_fields_left_for_repair(self):
        record = CopyRecord.from_payload({"title": "Heat"})
        assert record.id is None
        assert record.disc_count is None
        assert record.resolved is None
        assert record.created_at is None

    def test_copy_bad_flag(self):
        with pytest.raises(ValidationError):
            CopyRecord.from_payload(make_copy(isWishlist="sometimes"))


class TestListings:
    def test_parse_listing(self):
        body = {
            "error": "No backup found for this user",
            "availableBackups": [
                {"filename": "cineshelf_backup_alice2.json", "userPart": "alice2",
                 "modified": "2024-03-01T00:00:00+00:00", "size": 120}
            ],
        }
        listings = parse_listings(body)
        assert listings == [
            BackupListing(
                "cineshelf_backup_alice2.json",
                "alice2",
                datetime(2024, 3, 1, tzinfo=timezone.utc),
                120,
            )
        ]

    def test_snake_case_listing(self):
        body = {"available_backups": [{"filename": "f.json", "user_part": "f"}]}
        assert parse_listings(body)[0].user_part == "f"

    def test_no_listing(self):
        assert parse_listings({"error": "nope"}) == []
        assert parse_listings(None) == []

    def test_listing_without_filename(self):
        with pytest.raises(ValidationError):
            parse_listings({"availableBackups": [{"size": 3}]})
