"""
Profile Models
--------------

Local user profiles and their per-profile bookkeeping.

Models:
    - Profile: A named local user sharing the device
    - BackupRecord: Metadata of the last successful remote backup
    - SafetySnapshot: Local copy of the catalog taken before a restore

Deleting a Profile deletes every row it owns (catalog rows included)
through ORM cascades.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

# --- Third party imports ---
from sqlalchemy import JSON, Boolean, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

# --- Local imports ---
from cineshelf.core.validators import as_utc
from .base import Base, ProfileScopedMixin

if TYPE_CHECKING:
    from .catalog import Copy, CustomEdition, Title


DEFAULT_PROFILE = "default"


class Profile(Base):
    """
    A local user profile.

    Attributes:
        id: Primary key
        name: Display name (unique)
        key: Sanitized name, ``[A-Za-z0-9_-]`` (unique); namespace key and
            remote backup identifier
        is_active: Whether this is the active profile (exactly one is)
        created_at: Creation timestamp

    Relationships:
        copies, titles, custom_editions: Catalog rows (cascade delete)
        backup_record: Last remote backup (one-to-one)
        safety_snapshot: Pre-restore snapshot (one-to-one)
    """

    __tablename__ = "profiles"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    copies: Mapped[List["Copy"]] = relationship(
        "Copy", cascade="all, delete-orphan"
    )
    titles: Mapped[List["Title"]] = relationship(
        "Title", cascade="all, delete-orphan"
    )
    custom_editions: Mapped[List["CustomEdition"]] = relationship(
        "CustomEdition", cascade="all, delete-orphan"
    )
    backup_record: Mapped[Optional["BackupRecord"]] = relationship(
        "BackupRecord", cascade="all, delete-orphan", uselist=False
    )
    safety_snapshot: Mapped[Optional["SafetySnapshot"]] = relationship(
        "SafetySnapshot", cascade="all, delete-orphan", uselist=False
    )

    @property
    def is_default(self) -> bool:
        """Whether this is the undeletable default profile."""
        return self.name == DEFAULT_PROFILE

    def __repr__(self) -> str:
        return f"<Profile(name='{self.name}', key='{self.key}')>"


class BackupRecord(ProfileScopedMixin, Base):
    """
    Last successful remote backup of a profile.

    Attributes:
        backed_up_at: When the server accepted the snapshot
        item_count: Number of copies sent
        title_count: Number of titles sent
        custom_edition_count: Number of custom editions sent
        endpoint: Base URL that accepted the backup
        filename: Blob name reported by the server
    """

    __tablename__ = "backup_records"
    __table_args__ = (UniqueConstraint("profile_id", name="uq_backup_record_profile"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    backed_up_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    item_count: Mapped[int] = mapped_column(Integer, default=0)
    title_count: Mapped[int] = mapped_column(Integer, default=0)
    custom_edition_count: Mapped[int] = mapped_column(Integer, default=0)
    endpoint: Mapped[str] = mapped_column(String(500))
    filename: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": (
                as_utc(self.backed_up_at).isoformat() if self.backed_up_at else None
            ),
            "itemCount": self.item_count,
            "titleCount": self.title_count,
            "customEditionsCount": self.custom_edition_count,
            "endpoint": self.endpoint,
            "filename": self.filename,
        }


class SafetySnapshot(ProfileScopedMixin, Base):
    """
    The catalog as it was before the last restore.

    Attributes:
        reason: Why it was taken (``safety_before_restore``)
        taken_at: Timestamp
        payload: Serialized snapshot (wire format)
    """

    __tablename__ = "safety_snapshots"
    __table_args__ = (UniqueConstraint("profile_id", name="uq_safety_snapshot_profile"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    reason: Mapped[str] = mapped_column(String(100))
    taken_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    payload: Mapped[Dict[str, Any]] = mapped_column(JSON)
