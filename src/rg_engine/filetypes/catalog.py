"""File-type catalog parsing and relevance ranking."""

from __future__ import annotations

import subprocess
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePath

from rg_engine.filetypes.glob import glob_matches

TYPE_LIST_FLAG = "--type-list"
_ELISP_TIE = frozenset({"lisp", "elisp"})


@dataclass(slots=True, frozen=True)
class FileType:
    """Named file type and the globs that select it."""

    name: str
    globs: tuple[str, ...]

    def matches(self, filename: str) -> bool:
        """Return True when any glob matches the filename."""
        return any(glob_matches(glob, filename) for glob in self.globs)


class TypeCatalogError(RuntimeError):
    """Raised when the executable cannot report its type catalog."""


def parse_type_list(text: str) -> tuple[FileType, ...]:
    """Parse ``name: glob, glob`` lines into catalog entries."""
    entries: list[FileType] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or ":" not in line:
            continue
        name, _, raw_globs = line.partition(":")
        name = name.strip()
        if not name:
            continue
        globs = tuple(glob.strip() for glob in raw_globs.split(",") if glob.strip())
        entries.append(FileType(name=name, globs=globs))
    return tuple(entries)


def query_type_catalog(executable: str, timeout_seconds: float = 10.0) -> tuple[FileType, ...]:
    """Ask the search executable for its file-type catalog."""
    try:
        completed = subprocess.run(
            [executable, TYPE_LIST_FLAG],
            check=False,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_seconds,
        )
    except (OSError, subprocess.TimeoutExpired) as error:
        raise TypeCatalogError(f"Could not run {executable} {TYPE_LIST_FLAG}: {error}") from error
    if completed.returncode != 0:
        detail = completed.stderr.strip() or f"exit code {completed.returncode}"
        raise TypeCatalogError(f"{executable} {TYPE_LIST_FLAG} failed: {detail}")
    return parse_type_list(completed.stdout)


def relevant_file_type(filename: str, catalog: Iterable[FileType]) -> str | None:
    """Pick the single most relevant type name for filename, or None."""
    basename = PurePath(filename).name
    candidates = [entry for entry in catalog if entry.matches(basename)]
    if not candidates:
        return None

    longest = max(len(entry.name) for entry in candidates)
    candidates = [entry for entry in candidates if len(entry.name) == longest]

    most_globs = max(len(entry.globs) for entry in candidates)
    candidates = [entry for entry in candidates if len(entry.globs) == most_globs]

    if {entry.name for entry in candidates} == _ELISP_TIE and len(candidates) == 2:
        return "elisp"
    return candidates[0].name
