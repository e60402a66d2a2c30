"""
CineShelf
=========

A personal media-collection tracker: a local-first catalog of physical
media ("copies") and their metadata ("titles"), kept per local user
profile and backed up to / restored from a snapshot server.

Main Components:
    - core: Logging, validation, paths, configuration, exceptions
    - database: SQLAlchemy models, entity managers, catalog store, profiles
    - workflow: Resolve workflow linking copies to titles
    - sync: Snapshot format, repair pass, backup/restore coordinator
    - server: Snapshot repository and FastAPI server
    - cli: ``shelf`` command-line interface

Example Usage:
    >>> from cineshelf import ShelfDB, ProfileManager
    >>> from cineshelf.core.paths import DB_PATH
    >>> profiles = ProfileManager(ShelfDB(DB_PATH))
    >>> copy = profiles.current.store.add_copy({"title": "Dune", "discs": 2})
"""

__version__ = "2.1.0"

from cineshelf.database.manager import ShelfDB
from cineshelf.database.catalog_store import CatalogStore
from cineshelf.database.profile_manager import ProfileManager, ShelfContext
from cineshelf.core.paths import DB_PATH, LOG_DIR, STORAGE_DIR

__all__ = [
    "ShelfDB",
    "CatalogStore",
    "ProfileManager",
    "ShelfContext",
    "DB_PATH",
    "LOG_DIR",
    "STORAGE_DIR",
]
