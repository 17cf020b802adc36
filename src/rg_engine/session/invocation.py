"""Deterministic argument lists for the search executable."""

from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TypeVar

_E = TypeVar("_E", bound=StrEnum)

FIXED_FLAGS: tuple[str, ...] = (
    "--color=ansi",
    "--line-number",
    "--no-heading",
    "--no-column",
    "--with-filename",
)
END_OF_OPTIONS = "--"
SEARCH_DIRECTORY_ARGUMENT = "."


class SearchType(StrEnum):
    LITERAL = "literal"
    WORD = "word"
    REGEX = "regex"


class CaseMode(StrEnum):
    SMART = "smart"
    SENSITIVE = "sensitive"
    IGNORE = "ignore"


class InvalidConfigurationError(ValueError):
    """Raised when session settings cannot be turned into an invocation."""


@dataclass(slots=True, frozen=True)
class FileFilter:
    """Restricts a search to all files, one file type, or one glob."""

    kind: str = "all"
    value: str | None = None

    @classmethod
    def all_files(cls) -> FileFilter:
        return cls()

    @classmethod
    def of_type(cls, name: str) -> FileFilter:
        return cls(kind="type", value=name)

    @classmethod
    def of_glob(cls, pattern: str) -> FileFilter:
        return cls(kind="glob", value=pattern)


@dataclass(slots=True, frozen=True)
class ContextDepth:
    """Number of context lines before and after each match."""

    before: int
    after: int


@dataclass(slots=True, frozen=True)
class SearchSettings:
    """Everything besides term and directory that shapes one search."""

    search_type: SearchType | str = SearchType.REGEX
    case_mode: CaseMode | str = CaseMode.SMART
    file_filter: FileFilter = field(default_factory=FileFilter)
    context: ContextDepth | None = None
    skip_hidden: bool = False
    skip_vcs_ignored: bool = True
    extra_args: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class InvocationSpec:
    """Executable, ordered arguments and working directory for one launch."""

    executable: str
    arguments: tuple[str, ...]
    cwd: Path

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.arguments]

    def command_line(self) -> str:
        """Return a shell-quoted preview of the command."""
        return shlex.join(self.argv)


def build_invocation(
    executable: str,
    term: str,
    directory: Path,
    settings: SearchSettings,
) -> InvocationSpec:
    """Build the argument list in precedence order; later flags win."""
    arguments: list[str] = list(settings.extra_args)
    arguments.extend(FIXED_FLAGS)
    arguments.extend(search_type_flags(settings.search_type))
    arguments.append(case_mode_flag(settings.case_mode))
    arguments.extend(file_filter_flags(settings.file_filter))
    if settings.context is not None:
        arguments.extend(context_flags(settings.context))
    if not settings.skip_hidden:
        arguments.append("--hidden")
    arguments.append("--glob=!.git" if settings.skip_vcs_ignored else "--no-ignore-vcs")
    arguments.extend((END_OF_OPTIONS, term, SEARCH_DIRECTORY_ARGUMENT))
    return InvocationSpec(executable=executable, arguments=tuple(arguments), cwd=directory)


def search_type_flags(value: SearchType | str) -> tuple[str, ...]:
    match _coerce(SearchType, value, "search type"):
        case SearchType.LITERAL:
            return ("--fixed-strings",)
        case SearchType.WORD:
            return ("--fixed-strings", "--word-regexp")
        case SearchType.REGEX:
            return ()


def case_mode_flag(value: CaseMode | str) -> str:
    match _coerce(CaseMode, value, "case mode"):
        case CaseMode.SMART:
            return "--smart-case"
        case CaseMode.SENSITIVE:
            return "--case-sensitive"
        case CaseMode.IGNORE:
            return "--ignore-case"


def file_filter_flags(file_filter: FileFilter) -> tuple[str, ...]:
    if file_filter.kind == "all":
        return ()
    if file_filter.kind in {"type", "glob"}:
        if not file_filter.value:
            raise InvalidConfigurationError(
                f"File filter '{file_filter.kind}' requires a non-empty value."
            )
        return (f"--{file_filter.kind}={file_filter.value}",)
    raise InvalidConfigurationError(f"Unknown file filter: {file_filter.kind!r}")


def context_flags(context: ContextDepth) -> tuple[str, ...]:
    if context.before < 0 or context.after < 0:
        raise InvalidConfigurationError("Context depth must be >= 0.")
    return (f"--before-context={context.before}", f"--after-context={context.after}")


def _coerce(enum_type: type[_E], value: object, label: str) -> _E:
    try:
        return enum_type(value)
    except ValueError:
        raise InvalidConfigurationError(f"Unknown {label}: {value!r}") from None
