"""Render model for grouped, navigable search results."""

from .model import (
    LINE_NUMBER_WIDTH,
    TRUNCATION_MARKER,
    RenderedRow,
    RenderModel,
    RowKind,
    format_gutter,
    render_text,
)

__all__ = [
    "LINE_NUMBER_WIDTH",
    "RenderModel",
    "RenderedRow",
    "RowKind",
    "TRUNCATION_MARKER",
    "format_gutter",
    "render_text",
]
