#!/usr/bin/env python3
"""
config.py
-------------------
YAML-backed settings for CineShelf.

The configuration file is optional. When present it may define:

    endpoints:            # ordered candidate backup servers
      - https://shelf.example.org
      - http://localhost:8000
    timeout_seconds: 5
    db_path: ~/.cineshelf/cineshelf.db
    log_dir: ~/.cineshelf/logs
    storage_dir: ~/.cineshelf/server/data

Usage:
    from cineshelf.core.config import load_config

    config = load_config()               # defaults + CONFIG_PATH if present
    config = load_config(Path("x.yaml"))  # explicit file (must exist)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

# --- Third party imports ---
import yaml

# --- Local imports ---
from .exceptions import ValidationError
from .paths import CONFIG_PATH, DB_PATH, LOG_DIR, STORAGE_DIR

DEFAULT_ENDPOINTS = ["http://localhost:8000"]
DEFAULT_TIMEOUT_SECONDS = 5.0


@dataclass
class ShelfConfig:
    """
    Runtime settings.

    Attributes:
        endpoints: Candidate backup server base URLs, tried in order
        timeout_seconds: Per-request network timeout
        db_path: SQLite catalog file
        log_dir: Directory for rotating logs
        storage_dir: Snapshot directory for the backup server
    """

    endpoints: List[str] = field(default_factory=lambda: list(DEFAULT_ENDPOINTS))
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    db_path: Path = DB_PATH
    log_dir: Path = LOG_DIR
    storage_dir: Path = STORAGE_DIR

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ShelfConfig":
        """
        Build a config from a parsed YAML mapping.

        Raises:
            ValidationError: On unknown keys or values of the wrong type
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown configuration keys: {', '.join(unknown)}")

        config = cls()

        if "endpoints" in data:
            endpoints = data["endpoints"]
            if isinstance(endpoints, str):
                endpoints = [endpoints]
            if not isinstance(endpoints, list) or not all(
                isinstance(e, str) and e.strip() for e in endpoints
            ):
                raise ValidationError("'endpoints' must be a list of URLs")
            if not endpoints:
                raise ValidationError("'endpoints' must not be empty")
            config.endpoints = [e.strip().rstrip("/") for e in endpoints]

        if "timeout_seconds" in data:
            timeout = data["timeout_seconds"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                raise ValidationError("'timeout_seconds' must be a number")
            if timeout <= 0:
                raise ValidationError("'timeout_seconds' must be positive")
            config.timeout_seconds = float(timeout)

        for key in ("db_path", "log_dir", "storage_dir"):
            if key in data:
                value = data[key]
                if not isinstance(value, str) or not value.strip():
                    raise ValidationError(f"'{key}' must be a path")
                setattr(config, key, Path(value).expanduser())

        return config


def load_config(path: Optional[Path] = None) -> ShelfConfig:
    """
    Load settings from YAML.

    Args:
        path: Explicit config file. If None, CONFIG_PATH is used when it
            exists and defaults are returned otherwise.

    Returns:
        ShelfConfig instance

    Raises:
        ValidationError: If an explicit file is missing, or the file is not a
            YAML mapping of known settings
    """
    if path is None:
        if not CONFIG_PATH.exists():
            return ShelfConfig()
        path = CONFIG_PATH

    path = Path(path).expanduser()
    if not path.exists():
        raise ValidationError(f"Config file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return ShelfConfig()
    if not isinstance(data, dict):
        raise ValidationError(f"Config file must contain a mapping: {path}")

    return ShelfConfig.from_dict(data)
