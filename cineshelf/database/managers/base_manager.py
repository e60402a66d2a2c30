#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base managers providing common query utilities.
All entity managers inherit from one of these classes.

Key Features:
    - Retry logic for database lock handling
    - Generic lookup, listing and counting helpers
    - Profile scoping for catalog tables (ProfileScopedManager)

Usage:
    Subclass ProfileScopedManager for tables carrying ``profile_id`` and
    BaseManager for device-wide tables:

    class CopyManager(ProfileScopedManager):
        def get(self, copy_id: str) -> Optional[Copy]:
            return self._get_by_field(Copy, "copy_id", copy_id)

Managers never commit; the caller's ``ShelfDB.session_scope`` does.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, List, Optional, Type, TypeVar

# --- Third party imports ---
from sqlalchemy.orm import Session
from sqlalchemy.exc import OperationalError

# --- Local imports ---
from cineshelf.core.exceptions import DatabaseError
from cineshelf.core.logging_manager import ShelfLogger, safe_logger
from cineshelf.core.validators import DataValidator

T = TypeVar("T")


class BaseManager(ABC):
    """
    Abstract base manager.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[ShelfLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable[[], T],
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> T:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If all retries exhausted
            DatabaseError: If retry loop completes without success
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)

                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )

                    time.sleep(wait_time)
                    continue

                raise

        raise DatabaseError("Retry loop completed without success")

    def _flush(self) -> None:
        """Flush pending changes, retrying while the database is locked."""
        self._execute_with_retry(self.session.flush)

    def _scoped(self, model_class: Type[T], **filters: Any):
        """Query for model_class with filters applied."""
        query = self.session.query(model_class)
        if filters:
            query = query.filter_by(**filters)
        return query

    # -------------------------------------------------------------------------
    # Generic Query Helpers
    # -------------------------------------------------------------------------

    def _get_by_field(
        self,
        model_class: Type[T],
        field_name: str,
        value: Any,
        normalize: bool = True,
    ) -> Optional[T]:
        """
        Get entity by a specific field value.

        Args:
            model_class: ORM model class
            field_name: Field name to filter by
            value: Value to look up
            normalize: Whether to normalize string values

        Returns:
            Entity if found, None otherwise
        """
        if value is None:
            return None

        if normalize and isinstance(value, str):
            value = DataValidator.normalize_string(value)
            if not value:
                return None

        return self._scoped(model_class, **{field_name: value}).first()

    def _get_all(
        self,
        model_class: Type[T],
        order_by: Optional[str] = "id",
        **filters: Any,
    ) -> List[T]:
        """
        Get all entities of a type with optional filtering and ordering.

        Args:
            model_class: ORM model class
            order_by: Column name to order by (default: insertion order)
            **filters: Additional filter conditions

        Returns:
            List of entities
        """
        query = self._scoped(model_class, **filters)
        if order_by and hasattr(model_class, order_by):
            query = query.order_by(getattr(model_class, order_by))
        return query.all()

    def _count(self, model_class: Type[T], **filters: Any) -> int:
        """Count entities with optional filtering."""
        return self._scoped(model_class, **filters).count()


class ProfileScopedManager(BaseManager):
    """
    Base manager for tables owned by a profile.

    Every query issued through the helpers is restricted to ``profile_id``.

    Attributes:
        profile_id: Primary key of the owning profile
    """

    def __init__(
        self,
        session: Session,
        profile_id: int,
        logger: Optional[ShelfLogger] = None,
    ):
        super().__init__(session, logger)
        self.profile_id = profile_id

    def _scoped(self, model_class: Type[T], **filters: Any):
        query = self.session.query(model_class).filter_by(profile_id=self.profile_id)
        if filters:
            query = query.filter_by(**filters)
        return query

    def _delete_all(self, model_class: Type[T]) -> int:
        """Delete every row of model_class owned by the profile."""
        count = self._scoped(model_class).delete(synchronize_session=False)
        self._flush()
        return count
