"""
Database Models Package
------------------------

SQLAlchemy ORM models for the CineShelf catalog database.

This package provides a modular organization of database models:
- base: Base class and the profile-scoping mixin
- core: SchemaInfo
- profiles: Profile, BackupRecord, SafetySnapshot
- catalog: Copy, Title, CustomEdition

Usage:
    from cineshelf.database.models import Copy, Profile, Title
"""
# Base classes
from .base import Base, ProfileScopedMixin

# Core models
from .core import SCHEMA_VERSION, SchemaInfo

# Profiles and bookkeeping
from .profiles import DEFAULT_PROFILE, BackupRecord, Profile, SafetySnapshot

# Catalog
from .catalog import Copy, CustomEdition, Title

__all__ = [
    # Base
    "Base",
    "ProfileScopedMixin",
    # Core
    "SCHEMA_VERSION",
    "SchemaInfo",
    # Profiles
    "DEFAULT_PROFILE",
    "Profile",
    "BackupRecord",
    "SafetySnapshot",
    # Catalog
    "Copy",
    "Title",
    "CustomEdition",
]
