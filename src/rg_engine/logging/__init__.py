"""Structured logging utilities."""

from .audit import (
    JsonlEventLogger,
    SessionEvent,
    describe_session,
    sanitize_metadata,
    utc_timestamp,
)

__all__ = [
    "JsonlEventLogger",
    "SessionEvent",
    "describe_session",
    "sanitize_metadata",
    "utc_timestamp",
]
