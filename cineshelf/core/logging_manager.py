#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Logging for CineShelf components.

Each component (cli, database, server, ...) writes one rotating
``<component>.log`` in its log directory; errors are mirrored into a
shared ``errors.log`` next to it. Records are single lines:

    OPERATION - restore_completed: {"profile": "alice", "copies": 12, ...}

A logger can be bound to context that repeats on every line, usually the
profile being worked on or the endpoint being talked to:

    store_logger = logger.bind(profile="alice")
    store_logger.log_operation("copy_added", {"copy_id": "copy_3f2a"})
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click

RECORD_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _render(details: Dict[str, Any]) -> str:
    return json.dumps(details, default=str, ensure_ascii=False)


def format_cli_error(error: Exception, show_traceback: bool = False) -> str:
    """One-line CLI message for an error, with its traceback if asked."""
    message = f"❌ {type(error).__name__}: {error}"
    if show_traceback and error.__traceback__ is not None:
        trace = "".join(
            traceback.format_exception(type(error), error, error.__traceback__)
        )
        message = f"{message}\n\n{trace}"
    return message


class ShelfLogger:
    """
    Rotating logger for one component, optionally bound to context.

    Attributes:
        log_dir: Directory holding ``<component>.log`` and ``errors.log``
        component_name: Component the log belongs to
        context: Fields merged into every record (profile, endpoint, ...)
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "cineshelf",
        max_bytes: int = 5 * 1024 * 1024,
        backup_count: int = 3,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.context: Dict[str, Any] = {}
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._main = logging.getLogger(f"cineshelf.{component_name}")
        self._errors = logging.getLogger(f"cineshelf.{component_name}.errors")
        for logger in (self._main, self._errors):
            logger.propagate = False
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

        self._main.setLevel(logging.DEBUG)
        self._errors.setLevel(logging.ERROR)
        self._main.addHandler(
            self._file_handler(f"{component_name}.log", logging.DEBUG, max_bytes, backup_count)
        )
        self._errors.addHandler(
            self._file_handler("errors.log", logging.ERROR, max_bytes, backup_count)
        )

        console = logging.StreamHandler()
        console.setLevel(logging.WARNING)
        console.setFormatter(logging.Formatter(RECORD_FORMAT, datefmt="%H:%M:%S"))
        self._main.addHandler(console)

    def _file_handler(
        self, filename: str, level: int, max_bytes: int, backup_count: int
    ) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(RECORD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        return handler

    def bind(self, **context: Any) -> "ShelfLogger":
        """
        Logger writing to the same files with extra context on every line.

        Bound loggers share handlers with their parent; close the parent.
        """
        bound = object.__new__(ShelfLogger)
        bound.__dict__.update(self.__dict__)
        bound.context = {**self.context, **context}
        return bound

    def close(self) -> None:
        """Flush and release the log files."""
        for logger in (self._main, self._errors):
            for handler in list(logger.handlers):
                handler.flush()
                handler.close()
                logger.removeHandler(handler)

    def _line(self, tag: str, message: str, details: Optional[Dict[str, Any]]) -> str:
        merged = {**self.context, **(details or {})}
        if merged:
            return f"{tag} - {message}: {_render(merged)}"
        return f"{tag} - {message}"

    # ---- Records ----
    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Completed operation (catalog mutation, profile switch, backup...)."""
        self._main.info(self._line("OPERATION", operation, details))

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._main.debug(self._line("DEBUG", message, details))

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._main.warning(self._line("WARNING", message, details))

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Error with its context, into both the component log and errors.log.

        Context is written as ``key=value`` pairs after the bound context;
        the traceback is added when the error was raised.
        """
        merged = {**self.context, **(context or {})}
        lines = [f"ERROR - {type(error).__name__}: {error}"]
        if merged:
            lines.append("Context: " + ", ".join(f"{k}={v}" for k, v in merged.items()))
        if error.__traceback__ is not None:
            lines.append(
                "".join(traceback.format_exception(type(error), error, error.__traceback__))
            )
        record = "\n".join(lines)
        self._main.error(record)
        self._errors.error(f"[{self.component_name}] {record}")

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """Log an error raised by a command and return its CLI message."""
        self.log_error(error, context or {"source": "cli"})
        return format_cli_error(error, show_traceback)


class NullLogger:
    """Stands in for a ShelfLogger where logging is optional."""

    context: Dict[str, Any] = {}

    def bind(self, **context: Any) -> "NullLogger":
        return self

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return format_cli_error(error, show_traceback)


_null_logger = NullLogger()


def safe_logger(logger: Optional[ShelfLogger]) -> ShelfLogger:
    """The given logger, or a no-op one when it is None."""
    return logger if logger is not None else _null_logger  # type: ignore[return-value]


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Log a command failure, print it to stderr and exit.

    The logger and the ``--verbose`` flag come from ``ctx.obj``. Remote
    failures also log every endpoint that was tried.

    Args:
        ctx: Click context
        error: Exception raised by the command
        operation: Failed operation (e.g. 'backup', 'add_copy')
        additional_context: Extra fields for the log (copy id, file, ...)
        exit_code: Process exit status
    """
    obj = ctx.obj or {}
    context: Dict[str, Any] = {"operation": operation}
    profiles = obj.get("profiles")
    if profiles is not None:
        context["profile"] = profiles.current.name
    context.update(additional_context or {})
    attempts = getattr(error, "attempts", None)
    if attempts:
        context["attempts"] = "; ".join(attempt.describe() for attempt in attempts)

    message = safe_logger(obj.get("logger")).log_cli_error(
        error, context, show_traceback=obj.get("verbose", False)
    )
    click.echo(message, err=True)
    sys.exit(exit_code)
