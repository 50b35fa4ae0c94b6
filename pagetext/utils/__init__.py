"""Utility functions and classes."""

from .errors import AccessorError, DiffComputationError, PageTextError
from .logger import SnapshotLogger, snapshot_logger, console

__all__ = [
    "AccessorError",
    "DiffComputationError",
    "PageTextError",
    "SnapshotLogger",
    "snapshot_logger",
    "console",
]
