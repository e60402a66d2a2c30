#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the CineShelf project.

All local state lives under a single home directory, ``CINESHELF_HOME``
(default ``~/.cineshelf``):

    CINESHELF_HOME/
    ├── cineshelf.db     # SQLite catalog (every profile)
    ├── config.yaml      # Optional settings (endpoints, timeout, ...)
    ├── logs/            # Rotating application logs
    └── server/          # Snapshot blobs when running the backup server

Paths are resolved at import time; nothing is created until a component
needs it.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from pathlib import Path


def _get_home_dir() -> Path:
    """
    Determine the CineShelf home directory.

    Returns:
        ``$CINESHELF_HOME`` if set, otherwise ``~/.cineshelf``
    """
    override = os.environ.get("CINESHELF_HOME")
    if override:
        return Path(override).expanduser().resolve()
    return Path.home() / ".cineshelf"


# ----- Home directory -----
HOME_DIR: Path = _get_home_dir()

# --- Database ---
DB_PATH = HOME_DIR / "cineshelf.db"

# --- Configuration ---
CONFIG_PATH = HOME_DIR / "config.yaml"

# ---- Logs ----
LOG_DIR = HOME_DIR / "logs"

# ---- Server-side snapshot storage ----
STORAGE_DIR = HOME_DIR / "server" / "data"
