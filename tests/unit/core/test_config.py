"""
Tests for YAML configuration loading.
"""
import pytest
from pathlib import Path

from cineshelf.core.config import (
    DEFAULT_ENDPOINTS,
    DEFAULT_TIMEOUT_SECONDS,
    ShelfConfig,
    load_config,
)
from cineshelf.core.exceptions import ValidationError


class TestShelfConfig:
    def test_defaults(self):
        config = ShelfConfig()
        assert config.endpoints == DEFAULT_ENDPOINTS
        assert config.timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    def test_from_dict(self):
        config = ShelfConfig.from_dict(
            {
                "endpoints": ["http://a:8000/", "http://b:8000"],
                "timeout_seconds": 2,
                "db_path": "/tmp/x.db",
            }
        )
        assert config.endpoints == ["http://a:8000", "http://b:8000"]
        assert config.timeout_seconds == 2.0
        assert config.db_path == Path("/tmp/x.db")

    def test_single_endpoint_string(self):
        assert ShelfConfig.from_dict({"endpoints": "http://a"}).endpoints == ["http://a"]

    @pytest.mark.parametrize(
        "data",
        [
            {"endpoint": "http://a"},
            {"endpoints": []},
            {"endpoints": [1]},
            {"timeout_seconds": "fast"},
            {"timeout_seconds": 0},
            {"db_path": 3},
        ],
    )
    def test_invalid(self, data):
        with pytest.raises(ValidationError):
            ShelfConfig.from_dict(data)


class TestLoadConfig:
    def test_reads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("endpoints:\n  - http://nas:8000\ntimeout_seconds: 1.5\n")
        config = load_config(path)
        assert config.endpoints == ["http://nas:8000"]
        assert config.timeout_seconds == 1.5

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).endpoints == DEFAULT_ENDPOINTS

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ValidationError):
            load_config(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_bad_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("endpoints: [unclosed\n")
        with pytest.raises(ValidationError):
            load_config(path)
