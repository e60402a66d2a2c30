"""
Core Models
-----------

Schema bookkeeping for the CineShelf database.

Models:
    - SchemaInfo: Applied schema versions
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone
from typing import Optional

# --- Third party imports ---
from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

# --- Local imports ---
from .base import Base

SCHEMA_VERSION = 1


class SchemaInfo(Base):
    """
    Tracks schema versions.

    A row is written by ShelfDB.initialize_schema the first time a given
    version is created.

    Attributes:
        version: Schema version number (primary key)
        applied_at: When this version was applied
        description: Human-readable description of changes
    """

    __tablename__ = "schema_info"

    version: Mapped[int] = mapped_column(
        Integer, primary_key=True, doc="Schema version number"
    )
    applied_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        doc="Timestamp when the schema was created",
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, doc="Description of schema changes in this version"
    )

    def __repr__(self) -> str:
        return f"<SchemaInfo(version={self.version})>"
