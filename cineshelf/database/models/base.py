"""
Base Classes and Mixins
------------------------

Foundational ORM classes for the CineShelf database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - ProfileScopedMixin: Foreign key to the owning profile

Every catalog row belongs to exactly one profile; the mixin keeps that
column identical across tables so purging a profile is a single filter.
"""
# --- Annotations ---
from __future__ import annotations

# --- Third party ---
from sqlalchemy import ForeignKey, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Serves as the declarative base for SQLAlchemy models and provides
    access to the metadata object for table creation.
    """

    pass


# --- Profile scoping ---
class ProfileScopedMixin:
    """
    Mixin adding the owning profile to a model.

    Attributes:
        profile_id: Foreign key to profiles.id (cascade on delete)
    """

    @declared_attr
    def profile_id(cls) -> Mapped[int]:
        return mapped_column(
            Integer,
            ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            doc="Owning profile",
        )
