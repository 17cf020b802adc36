"""Interactive search-result engine for ripgrep-compatible processes."""

from .engine import SearchEngine, create_engine

__all__ = ["SearchEngine", "create_engine"]
