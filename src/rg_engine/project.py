"""Default search directory detection."""

from __future__ import annotations

from pathlib import Path

VCS_MARKERS: tuple[str, ...] = (".git", ".hg", ".svn", ".bzr", "_darcs")


def find_project_root(start: Path | str) -> Path:
    """Return the nearest ancestor holding a VCS marker, else the start directory."""
    path = Path(start).resolve()
    origin = path if path.is_dir() else path.parent
    for candidate in (origin, *origin.parents):
        if any((candidate / marker).exists() for marker in VCS_MARKERS):
            return candidate
    return origin
