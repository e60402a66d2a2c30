"""Tests for database decorators."""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from cineshelf.core.exceptions import DatabaseError, ValidationError
from cineshelf.core.logging_manager import ShelfLogger
from cineshelf.database.decorators import handle_db_errors, log_database_operation


class Row:
    copy_id = "copy_1"


class Worker:
    def __init__(self, logger=None):
        self.logger = logger

    @log_database_operation("add_copy")
    def add(self):
        return Row()

    @log_database_operation("count")
    def count(self, value):
        return value * 2

    @log_database_operation("update_copy")
    def reject(self):
        raise ValidationError("Number of discs must be between 1 and 50")

    @log_database_operation("replace_contents")
    def crash(self):
        raise RuntimeError("disk gone")


class TestLogDatabaseOperation:
    def test_logs_row_reference(self):
        mock_logger = MagicMock(spec=ShelfLogger)
        Worker(mock_logger).add()

        name, details = mock_logger.log_operation.call_args[0]
        assert name == "add_copy"
        assert details["copy_id"] == "copy_1"
        assert details["duration_ms"] >= 0

    def test_plain_results(self):
        mock_logger = MagicMock(spec=ShelfLogger)
        assert Worker(mock_logger).count(2) == 4
        assert "copy_id" not in mock_logger.log_operation.call_args[0][1]

    def test_without_logger(self):
        assert Worker().count(3) == 6

    def test_rejection_is_a_warning(self):
        mock_logger = MagicMock(spec=ShelfLogger)
        with pytest.raises(ValidationError):
            Worker(mock_logger).reject()

        name, details = mock_logger.log_warning.call_args[0]
        assert name == "update_copy_rejected"
        assert details["error"] == "ValidationError"
        mock_logger.log_error.assert_not_called()
        mock_logger.log_operation.assert_not_called()

    def test_failure_is_an_error(self):
        mock_logger = MagicMock(spec=ShelfLogger)
        with pytest.raises(RuntimeError):
            Worker(mock_logger).crash()
        assert mock_logger.log_error.call_args[0][1]["operation"] == "replace_contents"


class TestHandleDbErrors:
    def test_integrity_error(self):
        @handle_db_errors
        def insert():
            raise IntegrityError("statement", {}, Exception("duplicate"))

        with pytest.raises(DatabaseError) as exc_info:
            insert()
        assert "Conflicting catalog data: duplicate" in str(exc_info.value)

    def test_operational_error(self):
        @handle_db_errors
        def query():
            raise OperationalError("statement", {}, Exception("database is locked"))

        with pytest.raises(DatabaseError) as exc_info:
            query()
        assert "unavailable: database is locked" in str(exc_info.value)

    def test_sqlalchemy_error(self):
        @handle_db_errors
        def query():
            raise SQLAlchemyError("boom")

        with pytest.raises(DatabaseError) as exc_info:
            query()
        assert "Database operation failed" in str(exc_info.value)

    def test_domain_errors_pass_through(self):
        @handle_db_errors
        def validate():
            raise ValidationError("nope")

        with pytest.raises(ValidationError):
            validate()
