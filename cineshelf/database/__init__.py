#!/usr/bin/env python3
"""
CineShelf Database Package
--------------------------
Local catalog storage.

This package provides:
- ShelfDB: engine, sessions and schema
- CatalogStore: the catalog of one profile
- ProfileManager / ShelfContext: local profiles and the active context
- Decorators for logging and SQLAlchemy error translation
"""

from .manager import ShelfDB
from .catalog_store import CatalogStore
from .profile_manager import ProfileManager, ShelfContext
from .decorators import log_database_operation, handle_db_errors

__all__ = [
    "ShelfDB",
    "CatalogStore",
    "ProfileManager",
    "ShelfContext",
    "log_database_operation",
    "handle_db_errors",
]
