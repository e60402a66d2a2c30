#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the CineShelf catalog.

Provides the ShelfDB class that owns the SQLite engine for one device.
Handles:
    - Initialization of the database engine and sessionmaker
    - Schema creation and version bookkeeping
    - Transactional session scopes with automatic rollback
    - Logging of session lifecycle and failures

Every profile shares the same database file; per-profile isolation is
done by the ``profile_id`` column on catalog rows (see CatalogStore).

Notes
==============
- Tables are created with ``Base.metadata.create_all``; the applied
  version is recorded in ``schema_info``
- Sessions do not expire on commit, so returned ORM objects stay readable
  after their session closes
- All datetime fields are UTC-aware
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.exc import SQLAlchemyError

# --- Local imports ---
from cineshelf.core.exceptions import DatabaseError
from cineshelf.core.logging_manager import ShelfLogger
from .models import SCHEMA_VERSION, Base, SchemaInfo


class ShelfDB:
    """
    Main database manager for the CineShelf catalog.

    Attributes:
        db_path (Path): Filesystem path to the SQLite database file.
        engine (Engine): SQLAlchemy engine instance.
        SessionLocal (sessionmaker): SQLAlchemy session factory.
        logger (ShelfLogger | None): Logger for database operations.

    Usage:
        db = ShelfDB("~/.cineshelf/cineshelf.db", log_dir="~/.cineshelf/logs")
        with db.session_scope() as session:
            copies = session.query(Copy).all()
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
        logger: Optional[ShelfLogger] = None,
    ) -> None:
        """
        Initialize database engine, session factory and schema.

        Args:
            db_path (str | Path): Path to the SQLite file.
            log_dir (str | Path): Directory for log files (optional)
            logger: Existing logger to use instead of creating one (optional)
        """
        self.db_path = Path(db_path).expanduser().resolve()

        # --- Logging ---
        if logger is not None:
            self.logger = logger
        elif log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve() / "system"
            self.logger = ShelfLogger(self.log_dir, component_name="database")
        else:
            self.logger = None

        self._setup_engine()

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            if self.logger:
                self.logger.log_operation(
                    "database_init_start", {"db_path": str(self.db_path)}
                )

            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                pool_pre_ping=True,
            )

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.initialize_schema()

            if self.logger:
                self.logger.log_operation("database_init_complete", {"success": True})

        except (SQLAlchemyError, OSError) as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    def initialize_schema(self) -> None:
        """Create missing tables and record the schema version."""
        Base.metadata.create_all(bind=self.engine)

        with self.session_scope() as session:
            existing = session.get(SchemaInfo, SCHEMA_VERSION)
            if existing is None:
                session.add(
                    SchemaInfo(
                        version=SCHEMA_VERSION,
                        description="Initial catalog schema",
                    )
                )
                if self.logger:
                    self.logger.log_operation(
                        "schema_initialized", {"version": SCHEMA_VERSION}
                    )

    def get_schema_version(self) -> Optional[int]:
        """Return the highest applied schema version, or None."""
        with self.session_scope() as session:
            return session.scalar(
                select(SchemaInfo.version).order_by(SchemaInfo.version.desc())
            )

    # ---- Session Management ----
    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """
        Provide a transactional scope around operations with logging.

        Commits when the block exits normally, rolls back and re-raises
        otherwise, and always closes the session.

        Usage:
            with db.session_scope() as session:
                session.add(copy)
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")

        if self.logger:
            self.logger.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            session.commit()
            if self.logger:
                self.logger.log_debug("session_commit", {"session_id": session_id})

        except Exception as e:
            session.rollback()
            if self.logger:
                self.logger.log_error(
                    e, {"operation": "session_rollback", "session_id": session_id}
                )
            raise
        finally:
            session.close()
            if self.logger:
                self.logger.log_debug("session_close", {"session_id": session_id})

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self.engine.dispose()
        if self.logger:
            self.logger.log_debug("database_closed", {"db_path": str(self.db_path)})
