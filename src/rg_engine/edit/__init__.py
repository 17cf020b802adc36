"""Propagation of result-view edits back to files."""

from .propagation import EditEvent, SessionBusyError, propagate_edit
from .store import DiskFileStore, EditRangeError, FileStore, line_column_to_offset

__all__ = [
    "DiskFileStore",
    "EditEvent",
    "EditRangeError",
    "FileStore",
    "SessionBusyError",
    "line_column_to_offset",
    "propagate_edit",
]
