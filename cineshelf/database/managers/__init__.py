#!/usr/bin/env python3
"""
managers package
--------------------
Modular entity managers for the CineShelf database.

Each manager handles the rows of one table (or one small group of tables)
and inherits from BaseManager; catalog managers are scoped to a profile
through ProfileScopedManager.

Available Managers:
    BaseManager: Abstract base class with common utilities
    ProfileScopedManager: Base class restricting queries to one profile
    CopyManager: Copy rows
    TitleManager: Title rows (upsert by external id)
    EditionManager: Custom edition names
    BookkeepingManager: Backup record and safety snapshot
    ProfileRecordManager: Profile rows

Usage:
    from cineshelf.database.managers import CopyManager, TitleManager

    copy_mgr = CopyManager(session, profile_id, logger)
    title_mgr = TitleManager(session, profile_id, logger)
"""
from .base_manager import BaseManager, ProfileScopedManager
from .copy_manager import CopyManager, clean_copy_fields, generate_copy_id
from .title_manager import TitleManager
from .edition_manager import DEFAULT_EDITIONS, EditionManager, validate_edition_name
from .bookkeeping_manager import BookkeepingManager
from .profile_record_manager import ProfileRecordManager

__all__ = [
    "BaseManager",
    "ProfileScopedManager",
    "CopyManager",
    "clean_copy_fields",
    "generate_copy_id",
    "TitleManager",
    "DEFAULT_EDITIONS",
    "EditionManager",
    "validate_edition_name",
    "BookkeepingManager",
    "ProfileRecordManager",
]
