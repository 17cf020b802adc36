"""Command-line entrypoint that runs one search and prints the rendered rows."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, TextIO

from rg_engine.config import CliOverrides
from rg_engine.engine import SearchEngine, create_engine
from rg_engine.filetypes import TypeCatalogError
from rg_engine.project import find_project_root
from rg_engine.render import render_text
from rg_engine.session import (
    CaseMode,
    ContextDepth,
    FileFilter,
    InvalidConfigurationError,
    ProcessLaunchError,
    SearchType,
    SessionState,
    SessionStateError,
    TerminationKind,
)

EXIT_OK = 0
EXIT_ERROR = 2


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for one-shot searches."""
    parser = argparse.ArgumentParser(prog="rg-engine")
    parser.add_argument("term", nargs="?", default=None)
    parser.add_argument("directory", nargs="?", default=None)
    search_type = parser.add_mutually_exclusive_group()
    search_type.add_argument("--literal", action="store_true")
    search_type.add_argument("--word", action="store_true")
    parser.add_argument("--case", choices=[mode.value for mode in CaseMode], default=None)
    file_filter = parser.add_mutually_exclusive_group()
    file_filter.add_argument("--type", dest="file_type", default=None)
    file_filter.add_argument("--glob", default=None)
    file_filter.add_argument("--guess-type-from", default=None)
    parser.add_argument("--context", default=None, help="BEFORE:AFTER context lines")
    parser.add_argument("--skip-hidden", action="store_true")
    parser.add_argument("--no-ignore-vcs", action="store_true")
    parser.add_argument("--type-list", action="store_true")
    parser.add_argument("--config-root", default=".")
    parser.add_argument("--executable", default=None)
    parser.add_argument("--max-sessions", default=None)
    parser.add_argument("--timeout", type=float, default=None)
    parser.add_argument("--no-log", action="store_true")
    return parser


def parse_context(value: str) -> ContextDepth:
    """Parse ``B:A`` or a single ``N`` into a context depth."""
    before, _, after = value.partition(":")
    try:
        parsed_before = int(before)
        parsed_after = int(after) if after else parsed_before
    except ValueError:
        raise InvalidConfigurationError(f"Invalid context value: {value!r}") from None
    return ContextDepth(before=parsed_before, after=parsed_after)


def settings_from_args(engine: SearchEngine, args: argparse.Namespace) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    if args.literal:
        changes["search_type"] = SearchType.LITERAL
    if args.word:
        changes["search_type"] = SearchType.WORD
    if args.case is not None:
        changes["case_mode"] = CaseMode(args.case)
    if args.file_type is not None:
        changes["file_filter"] = FileFilter.of_type(args.file_type)
    if args.glob is not None:
        changes["file_filter"] = FileFilter.of_glob(args.glob)
    if args.guess_type_from is not None:
        changes["file_filter"] = engine.guess_file_filter(args.guess_type_from)
    if args.context is not None:
        changes["context"] = parse_context(args.context)
    if args.skip_hidden:
        changes["skip_hidden"] = True
    if args.no_ignore_vcs:
        changes["skip_vcs_ignored"] = False
    return changes


def run(args: argparse.Namespace, out_stream: TextIO, err_stream: TextIO) -> int:
    max_sessions: int | str | None = args.max_sessions
    if isinstance(max_sessions, str) and max_sessions.isdigit():
        max_sessions = int(max_sessions)
    overrides = CliOverrides(
        executable=args.executable,
        max_sessions=max_sessions,
        logging_enabled=False if args.no_log else None,
    )
    engine = create_engine(config_root=args.config_root, overrides=overrides)
    try:
        if args.type_list:
            for entry in engine.file_types():
                out_stream.write(f"{entry.name}: {', '.join(entry.globs)}\n")
            return EXIT_OK
        if args.term is None:
            err_stream.write("rg-engine: a search term is required\n")
            return EXIT_ERROR

        directory = Path(args.directory) if args.directory else find_project_root(Path.cwd())
        session = engine.search(
            args.term,
            directory,
            deferred=True,
            **settings_from_args(engine, args),
        )
        session.start()
        if not session.wait_until_idle(args.timeout):
            try:
                session.interrupt()
            except SessionStateError:
                # The process finished between the timeout and the interrupt.
                if session.state is not SessionState.IDLE:
                    raise
            else:
                session.wait_until_idle(engine.config.process.timing.termination_timeout_seconds)
                err_stream.write("rg-engine: search timed out\n")
                return EXIT_ERROR

        for row in session.render.visible_rows():
            out_stream.write(render_text(row) + "\n")
        status = session.termination
        if status is not None and status.kind is TerminationKind.ABNORMAL:
            err_stream.write(f"{status.message}\n")
            return EXIT_ERROR
        return EXIT_OK
    finally:
        engine.close()


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for the rg-engine command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        return run(args, out_stream=sys.stdout, err_stream=sys.stderr)
    except (ValueError, ProcessLaunchError, TypeCatalogError) as error:
        sys.stderr.write(f"rg-engine: {error}\n")
        return EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
