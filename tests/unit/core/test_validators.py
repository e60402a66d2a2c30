"""
Tests for identifier sanitizing and DataValidator.
"""
import pytest
from datetime import datetime, timezone

from cineshelf.core.exceptions import ValidationError
from cineshelf.core.validators import (
    DataValidator,
    as_utc,
    require_identifier,
    sanitize_identifier,
)


class TestSanitizeIdentifier:
    def test_keeps_allowed_characters(self):
        assert sanitize_identifier("alice_B-2") == "alice_B-2"

    def test_strips_everything_else(self):
        assert sanitize_identifier("../al ice!.json") == "alicejson"

    def test_none_is_empty(self):
        assert sanitize_identifier(None) == ""

    def test_require_rejects_empty_result(self):
        with pytest.raises(ValidationError):
            require_identifier("!!!")

    def test_require_returns_sanitized(self):
        assert require_identifier(" bob ") == "bob"


class TestCopyFieldValidation:
    def test_title_is_trimmed(self):
        assert DataValidator.validate_copy_title("  Dune ") == "Dune"

    @pytest.mark.parametrize("value", ["", "   ", "x" * 201, None, 42])
    def test_invalid_titles(self, value):
        with pytest.raises(ValidationError):
            DataValidator.validate_copy_title(value)

    def test_title_at_limit(self):
        assert len(DataValidator.validate_copy_title("x" * 200)) == 200

    @pytest.mark.parametrize("value,expected", [(1, 1), ("3", 3), (50, 50), (2.0, 2)])
    def test_valid_disc_counts(self, value, expected):
        assert DataValidator.validate_disc_count(value) == expected

    @pytest.mark.parametrize("value", [0, 51, -1, 1.5, "two", True, None])
    def test_invalid_disc_counts(self, value):
        with pytest.raises(ValidationError):
            DataValidator.validate_disc_count(value)


class TestNormalizers:
    def test_normalize_string(self):
        assert DataValidator.normalize_string("  x ") == "x"
        assert DataValidator.normalize_string("   ") is None
        assert DataValidator.normalize_string(None) is None

    def test_normalize_bool(self):
        assert DataValidator.normalize_bool("yes") is True
        assert DataValidator.normalize_bool(0) is False
        assert DataValidator.normalize_bool(None) is None
        with pytest.raises(ValidationError):
            DataValidator.normalize_bool("maybe")

    def test_normalize_int(self):
        assert DataValidator.normalize_int("1982") == 1982
        assert DataValidator.normalize_int("") is None
        with pytest.raises(ValidationError):
            DataValidator.normalize_int("19.5")

    def test_normalize_float(self):
        assert DataValidator.normalize_float("8.1") == 8.1
        with pytest.raises(ValidationError):
            DataValidator.normalize_float("high")


class TestTimestamps:
    def test_parse_z_suffix(self):
        parsed = DataValidator.parse_timestamp("2024-03-01T12:00:00Z")
        assert parsed == datetime(2024, 3, 1, 12, tzinfo=timezone.utc)

    def test_parse_garbage_is_none(self):
        assert DataValidator.parse_timestamp("yesterday") is None
        assert DataValidator.parse_timestamp(12) is None

    def test_as_utc_attaches_zone_to_naive(self):
        assert as_utc(datetime(2024, 1, 1)).tzinfo == timezone.utc
