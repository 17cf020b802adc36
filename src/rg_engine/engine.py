"""Engine facade wiring configuration, sessions, logging and edits together."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from functools import partial
from pathlib import Path
from typing import Any

from rg_engine.config import CliOverrides, EngineConfig, load_effective_config
from rg_engine.edit import DiskFileStore, EditEvent, FileStore, propagate_edit
from rg_engine.filetypes import FileType, query_type_catalog, relevant_file_type
from rg_engine.logging import JsonlEventLogger
from rg_engine.session import (
    FileFilter,
    ProcessLauncher,
    Session,
    SessionCache,
    SubprocessLauncher,
)

CatalogLoader = Callable[[], tuple[FileType, ...]]


class SearchEngine:
    """Entry point a host UI calls to run, reuse, filter and edit searches."""

    def __init__(
        self,
        config: EngineConfig,
        launcher: ProcessLauncher | None = None,
        file_store: FileStore | None = None,
        catalog_loader: CatalogLoader | None = None,
    ) -> None:
        self._config = config
        self._launcher: ProcessLauncher = launcher or SubprocessLauncher()
        self._file_store: FileStore = file_store or DiskFileStore()
        self._logger: JsonlEventLogger | None = None
        if config.logging.enabled:
            self._logger = JsonlEventLogger(path=config.logging.data_dir / "events.jsonl")
        self._cache = SessionCache(
            factory=self._new_session,
            capacity=config.sessions.max_sessions,
            logger=self._logger,
        )
        self._catalog_loader = catalog_loader or partial(
            query_type_catalog, config.process.executable
        )
        self._catalog: tuple[FileType, ...] | None = None

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def sessions(self) -> SessionCache:
        return self._cache

    @property
    def logger(self) -> JsonlEventLogger | None:
        return self._logger

    @property
    def file_store(self) -> FileStore:
        return self._file_store

    def search(
        self,
        term: str,
        directory: Path | str,
        *,
        deferred: bool = False,
        **changes: Any,
    ) -> Session:
        """Return the session for (term, directory), started unless deferred."""
        session = self._cache.get_or_create(term, directory, deferred=True)
        if changes:
            session.configure(**changes)
            session.restart()
        if not deferred:
            session.start()
        return session

    def file_types(self, refresh: bool = False) -> tuple[FileType, ...]:
        """Return the executable's type catalog, queried once and cached."""
        if self._catalog is None or refresh:
            self._catalog = self._catalog_loader()
        return self._catalog

    def guess_file_filter(self, filename: str) -> FileFilter:
        """Pick a type filter matching filename, falling back to all files."""
        name = relevant_file_type(filename, self.file_types())
        if name is None:
            return FileFilter.all_files()
        return FileFilter.of_type(name)

    def propagate_edit(self, session: Session, edit: EditEvent) -> bool:
        """Write an edit on a result row back to its file."""
        return propagate_edit(session, edit, self._file_store, logger=self._logger)

    def close(self) -> None:
        """Destroy every cached session."""
        self._cache.close_all()

    def _new_session(self, term: str, directory: Path, deferred: bool) -> Session:
        settings = replace(self._config.defaults, extra_args=self._config.process.extra_args)
        return Session.create(
            term,
            directory,
            deferred=deferred,
            settings=settings,
            executable=self._config.process.executable,
            launcher=self._launcher,
            timing=self._config.process.timing,
            max_line_length=self._config.sessions.max_line_length,
            logger=self._logger,
        )


def create_engine(
    config_root: str | Path = ".",
    overrides: CliOverrides | None = None,
    launcher: ProcessLauncher | None = None,
    file_store: FileStore | None = None,
) -> SearchEngine:
    """Build an engine from the effective configuration under config_root."""
    config = load_effective_config(Path(config_root), overrides)
    return SearchEngine(config, launcher=launcher, file_store=file_store)
