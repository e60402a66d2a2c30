"""
Catalog Models
--------------

The per-profile media catalog.

Models:
    - Copy: One physical (or wishlist) item
    - Title: Metadata for a work, unique by external id within a profile
    - CustomEdition: User-defined edition names

A Copy refers to its Title by external id (``title_ref``), not by foreign
key: the reference is weak and may be cleared by a restore repair, and
``resolved`` is kept equal to "title_ref names an existing Title".
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import re
from datetime import datetime, timezone
from typing import Optional

# --- Third party imports ---
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

# --- Local imports ---
from .base import Base, ProfileScopedMixin

_RUNTIME_MINUTES = re.compile(r"\d+")


class Copy(ProfileScopedMixin, Base):
    """
    A physical copy or wishlist entry.

    The integer primary key doubles as the stable insertion order used by
    listings and by the resolve queue.

    Attributes:
        id: Primary key (insertion order)
        copy_id: Public identifier, ``copy_<hex>``, unique per profile
        title: Free-text title as entered (1-200 characters)
        format: Media format (DVD, Blu-ray, 4K UHD, ...)
        region: Region code
        edition: Edition name
        languages: Audio/subtitle languages
        notes: Free-form notes
        upc: Barcode
        disc_count: Number of discs (1-50)
        is_wishlist: True for wishlist entries, False for the collection
        title_ref: External id of the linked Title, if any
        resolved: Whether title_ref names an existing Title
        created_at: Creation timestamp (immutable)
    """

    __tablename__ = "copies"
    __table_args__ = (
        UniqueConstraint("profile_id", "copy_id", name="uq_copy_profile_copy_id"),
        CheckConstraint(
            "disc_count >= 1 AND disc_count <= 50", name="ck_copy_disc_count"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    copy_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    format: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    edition: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    languages: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    upc: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    disc_count: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    is_wishlist: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    title_ref: Mapped[Optional[str]] = mapped_column(
        String(100), nullable=True, index=True
    )
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    @property
    def view(self) -> str:
        """Listing this copy belongs to: 'collection' or 'wishlist'."""
        return "wishlist" if self.is_wishlist else "collection"

    def __repr__(self) -> str:
        return f"<Copy(copy_id='{self.copy_id}', title='{self.title}')>"


class Title(ProfileScopedMixin, Base):
    """
    Metadata for a work.

    Attributes:
        external_id: Identifier from the metadata source (e.g. an IMDb id)
        name: Title of the work
        year: Release year
        rating: Rating (0-10)
        poster_url: Poster image URL
        plot: Synopsis
        director: Director(s)
        genre: Genre(s)
        runtime: Runtime as text, e.g. ``"142 min"``
    """

    __tablename__ = "titles"
    __table_args__ = (
        UniqueConstraint("profile_id", "external_id", name="uq_title_profile_external"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    external_id: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    poster_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    plot: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    director: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    genre: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    runtime: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    @property
    def runtime_minutes(self) -> int:
        """Leading number of the runtime text, 0 if there is none."""
        if not self.runtime:
            return 0
        match = _RUNTIME_MINUTES.search(self.runtime)
        return int(match.group()) if match else 0

    def __repr__(self) -> str:
        return f"<Title(external_id='{self.external_id}', name='{self.name}')>"


class CustomEdition(ProfileScopedMixin, Base):
    """
    A user-defined edition name.

    Attributes:
        name: Edition as entered (1-50 characters)
        name_key: Lowercased name; uniqueness is case-insensitive
    """

    __tablename__ = "custom_editions"
    __table_args__ = (
        UniqueConstraint("profile_id", "name_key", name="uq_edition_profile_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    name_key: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<CustomEdition(name='{self.name}')>"
