#!/usr/bin/env python3
"""
cli_utils.py
-------------------
Shared CLI utilities for CineShelf commands.

Functions:
    setup_logger: Initialize ShelfLogger for CLI operations

Usage:
    from cineshelf.core.cli_utils import setup_logger

    logger = setup_logger(log_dir, "catalog")
"""
from pathlib import Path
from cineshelf.core.logging_manager import ShelfLogger


def setup_logger(log_dir: Path, component_name: str) -> ShelfLogger:
    """
    Setup logging for CLI operations.

    Creates the operations log directory if it doesn't exist and initializes
    a ShelfLogger instance for the specified component.

    Args:
        log_dir: Base log directory (typically from paths.LOG_DIR)
        component_name: Component identifier for logging (e.g., 'catalog', 'sync')

    Returns:
        Configured ShelfLogger instance
    """
    operations_log_dir = Path(log_dir) / "operations"
    operations_log_dir.mkdir(parents=True, exist_ok=True)
    return ShelfLogger(operations_log_dir, component_name=component_name)
