#!/usr/bin/env python3
"""
decorators.py
--------------------
Decorators shared by the catalog store, the profile manager and the
table managers.

- ``log_database_operation`` times a method and logs its outcome through
  ``self.logger``. Rejected input (validation, missing rows, protected
  profiles) is a warning; anything else is an error.
- ``handle_db_errors`` turns SQLAlchemy failures into ``DatabaseError``.
"""
import time
from functools import wraps
from typing import Any, Callable, Dict

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from cineshelf.core.exceptions import (
    DatabaseError,
    InvalidStateError,
    NotFoundError,
    ProtectedResourceError,
    ValidationError,
)

REJECTIONS = (ValidationError, NotFoundError, InvalidStateError, ProtectedResourceError)


def _row_ref(result: Any) -> Dict[str, Any]:
    """Public identifier of a returned row, for the log line."""
    for attr in ("copy_id", "external_id", "key"):
        value = getattr(result, attr, None)
        if isinstance(value, str):
            return {attr: value}
    return {}


def log_database_operation(operation_name: str):
    """
    Log the outcome and duration of a method call.

    Args:
        operation_name: Name used in the log records
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            logger = getattr(self, "logger", None)
            started = time.perf_counter()
            try:
                result = function(self, *args, **kwargs)
            except REJECTIONS as e:
                if logger:
                    logger.log_warning(
                        f"{operation_name}_rejected",
                        {"reason": str(e), "error": type(e).__name__},
                    )
                raise
            except Exception as e:
                if logger:
                    logger.log_error(
                        e,
                        {
                            "operation": operation_name,
                            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                        },
                    )
                raise

            if logger:
                details = {"duration_ms": round((time.perf_counter() - started) * 1000, 2)}
                details.update(_row_ref(result))
                logger.log_operation(operation_name, details)
            return result

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Raise SQLAlchemy failures as DatabaseError.

    Domain errors pass through untouched.
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError(f"Conflicting catalog data: {e.orig}") from e
        except OperationalError as e:
            raise DatabaseError(f"Catalog database unavailable: {e.orig}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database operation failed: {e}") from e

    return wrapper
