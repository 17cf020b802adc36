"""Lifecycle state machine for one search session."""

from __future__ import annotations

import signal
import threading
import time
from dataclasses import dataclass, replace
from enum import StrEnum
from functools import partial
from pathlib import Path
from typing import Any

from rg_engine.logging import JsonlEventLogger, describe_session
from rg_engine.parsing import MAX_LINE_LENGTH, WARNING_PREFIX, Diagnostic, LineClassifier
from rg_engine.render import RenderModel
from rg_engine.session.invocation import InvocationSpec, SearchSettings, build_invocation
from rg_engine.session.process import ProcessHandle, ProcessLauncher, SubprocessLauncher

DEFAULT_EXECUTABLE = "rg"
FIRST_OUTPUT_SNIPPET_CHARS = 500
MAX_REPORTED_DIAGNOSTICS = 5
SIGINT_EXIT_CODES = frozenset({-int(signal.SIGINT), 128 + int(signal.SIGINT)})


class SessionState(StrEnum):
    IDLE = "idle"
    CONFIGURING = "configuring"
    RUNNING = "running"
    SETTLING = "settling"


class TerminationKind(StrEnum):
    NORMAL = "normal"
    ABNORMAL = "abnormal"
    ZERO_MATCHES = "zero_matches"
    INTERRUPTED = "interrupted"


@dataclass(slots=True, frozen=True)
class TerminationStatus:
    """How the most recent process ended."""

    kind: TerminationKind
    exit_code: int | None
    message: str | None = None

    @property
    def is_error(self) -> bool:
        return self.kind is TerminationKind.ABNORMAL


@dataclass(slots=True, frozen=True)
class ProcessTiming:
    """Bounds for the synchronous termination wait in restart."""

    termination_timeout_seconds: float = 5.0
    poll_interval_seconds: float = 0.05
    debounce_seconds: float = 0.05


class SessionStateError(RuntimeError):
    """Raised when an operation is invalid in the session's current state."""


class ProcessTerminationTimeout(TimeoutError):
    """Raised when an interrupted process outlives the termination timeout."""


def classify_exit(
    exit_code: int,
    *,
    interrupted: bool,
    diagnostics: list[str],
) -> TerminationStatus:
    """Map an exit code plus collected diagnostics to a termination status."""
    if interrupted or exit_code in SIGINT_EXIT_CODES:
        return TerminationStatus(kind=TerminationKind.INTERRUPTED, exit_code=exit_code)
    if exit_code == 0:
        return TerminationStatus(kind=TerminationKind.NORMAL, exit_code=exit_code)
    if exit_code == 1 and not diagnostics:
        return TerminationStatus(kind=TerminationKind.ZERO_MATCHES, exit_code=exit_code)
    lines = [f"Search process exited abnormally with code {exit_code}"]
    lines.extend(diagnostics[:MAX_REPORTED_DIAGNOSTICS])
    return TerminationStatus(
        kind=TerminationKind.ABNORMAL,
        exit_code=exit_code,
        message="\n".join(lines),
    )


class Session:
    """One (search term, directory) search with its process and rendered results.

    Process notifications arrive on a reader thread and are serialized by the
    session lock. Each launch gets a fresh generation number; notifications
    carrying an older generation are dropped, so output from a superseded
    process never reaches the current classifier or render model.
    """

    def __init__(
        self,
        term: str,
        directory: Path | str,
        *,
        settings: SearchSettings | None = None,
        executable: str = DEFAULT_EXECUTABLE,
        launcher: ProcessLauncher | None = None,
        timing: ProcessTiming | None = None,
        max_line_length: int = MAX_LINE_LENGTH,
        logger: JsonlEventLogger | None = None,
    ) -> None:
        self._term = term
        self._directory = Path(directory)
        self._settings = settings or SearchSettings()
        self._executable = executable
        self._launcher: ProcessLauncher = launcher or SubprocessLauncher()
        self._timing = timing or ProcessTiming()
        self._logger = logger
        self._lock = threading.RLock()
        self._idle = threading.Event()
        self._idle.set()
        self._state = SessionState.IDLE
        self._handle: ProcessHandle | None = None
        self._generation = 0
        self._classifier = LineClassifier(max_line_length=max_line_length)
        self._render = RenderModel()
        self._invocation: InvocationSpec | None = None
        self._first_output: str | None = None
        self._diagnostics: list[str] = []
        self._termination: TerminationStatus | None = None

    @classmethod
    def create(
        cls,
        term: str,
        directory: Path | str,
        *,
        deferred: bool = False,
        settings: SearchSettings | None = None,
        executable: str = DEFAULT_EXECUTABLE,
        launcher: ProcessLauncher | None = None,
        timing: ProcessTiming | None = None,
        max_line_length: int = MAX_LINE_LENGTH,
        logger: JsonlEventLogger | None = None,
    ) -> Session:
        """Build a session and either start it or hold it in CONFIGURING."""
        session = cls(
            term,
            directory,
            settings=settings,
            executable=executable,
            launcher=launcher,
            timing=timing,
            max_line_length=max_line_length,
            logger=logger,
        )
        session.begin(deferred=deferred)
        return session

    @property
    def key(self) -> tuple[str, Path]:
        return self._term, self._directory

    @property
    def term(self) -> str:
        return self._term

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def settings(self) -> SearchSettings:
        return self._settings

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def render(self) -> RenderModel:
        return self._render

    @property
    def match_count(self) -> int:
        return self._render.match_count

    @property
    def invocation(self) -> InvocationSpec | None:
        return self._invocation

    @property
    def termination(self) -> TerminationStatus | None:
        return self._termination

    @property
    def error_message(self) -> str | None:
        """Return the user-visible message of an abnormal exit, if any."""
        if self._termination is None:
            return None
        return self._termination.message

    @property
    def has_process(self) -> bool:
        return self._handle is not None

    def begin(self, deferred: bool = False) -> None:
        """Enter CONFIGURING when deferred, otherwise start immediately."""
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise SessionStateError(f"Cannot begin a session in state {self._state}.")
            if not deferred:
                self.start()
                return
            self._invocation = self._build_invocation()
            self._state = SessionState.CONFIGURING
            self._log("session.configure")

    def configure(self, **changes: Any) -> SearchSettings:
        """Replace search settings; values are validated at the next build."""
        with self._lock:
            self._settings = replace(self._settings, **changes)
            return self._settings

    def start(self) -> None:
        """Launch the process for the current settings."""
        with self._lock:
            if self._state not in (SessionState.IDLE, SessionState.CONFIGURING):
                raise SessionStateError(f"Cannot start a session in state {self._state}.")
            spec = self._build_invocation()
            self._reset_results()
            self._termination = None
            self._invocation = spec
            self._generation += 1
            generation = self._generation
            previous_state = self._state
            self._state = SessionState.RUNNING
            self._idle.clear()
            try:
                handle = self._launcher.launch(
                    spec,
                    on_output=partial(self._deliver_output, generation),
                    on_exit=partial(self._deliver_exit, generation),
                )
            except Exception:
                self._state = previous_state
                self._idle.set()
                raise
            if self._generation == generation and self._state is SessionState.RUNNING:
                self._handle = handle
            self._log("session.start", {"command": spec.command_line()})

    def restart(self) -> None:
        """Stop any running process, discard its output and start again."""
        with self._lock:
            if self._state is SessionState.CONFIGURING:
                self._invocation = self._build_invocation()
                return
            if self._state in (SessionState.RUNNING, SessionState.SETTLING):
                self._settle()
            self._log("session.restart")
            self.start()

    def interrupt(self) -> None:
        """Ask the running process to stop; termination arrives asynchronously."""
        with self._lock:
            if self._state is SessionState.SETTLING:
                return
            if self._state is not SessionState.RUNNING:
                raise SessionStateError(f"Cannot interrupt a session in state {self._state}.")
            self._state = SessionState.SETTLING
            if self._handle is not None:
                self._handle.disable_output()
                self._handle.interrupt()
            self._log("session.interrupt")

    def on_output(self, chunk: str) -> None:
        """Feed one chunk of process output; only valid while RUNNING."""
        with self._lock:
            if self._state is not SessionState.RUNNING:
                raise SessionStateError(f"Cannot accept output in state {self._state}.")
            self._consume(chunk)

    def on_terminate(self, exit_code: int) -> TerminationStatus:
        """Record process termination and return to IDLE."""
        with self._lock:
            if self._state not in (SessionState.RUNNING, SessionState.SETTLING):
                raise SessionStateError(f"Cannot terminate a session in state {self._state}.")
            return self._finish(exit_code)

    def reset(self, deferred: bool = False) -> None:
        """Reuse this session in place: stop, clear results and begin again."""
        with self._lock:
            if self._state in (SessionState.RUNNING, SessionState.SETTLING):
                self._settle()
            self._reset_results()
            self._termination = None
            self._state = SessionState.IDLE
            self.begin(deferred=deferred)

    def destroy(self) -> None:
        """Drop the process handle and render state without waiting."""
        with self._lock:
            handle = self._handle
            if handle is not None:
                handle.disable_output()
                handle.interrupt()
            self._generation += 1
            self._handle = None
            self._reset_results()
            self._state = SessionState.IDLE
            self._idle.set()
            self._log("session.destroy")

    def wait_until_idle(self, timeout: float | None = None) -> bool:
        """Block until no process is running; return False on timeout."""
        return self._idle.wait(timeout)

    def debug_info(self) -> dict[str, object]:
        """Return the last command line and the first raw output for diagnosis."""
        with self._lock:
            spec = self._invocation
            return {
                "state": str(self._state),
                "command": spec.command_line() if spec is not None else None,
                "cwd": str(spec.cwd) if spec is not None else None,
                "first_output": self._first_output,
                "match_count": self._render.match_count,
            }

    def _build_invocation(self) -> InvocationSpec:
        return build_invocation(
            executable=self._executable,
            term=self._term,
            directory=self._directory,
            settings=self._settings,
        )

    def _reset_results(self) -> None:
        self._classifier.reset()
        self._render.clear()
        self._diagnostics.clear()
        self._first_output = None

    def _deliver_output(self, generation: int, chunk: str) -> None:
        with self._lock:
            if generation != self._generation or self._state is not SessionState.RUNNING:
                return
            self._consume(chunk)

    def _deliver_exit(self, generation: int, exit_code: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if self._state not in (SessionState.RUNNING, SessionState.SETTLING):
                return
            self._finish(exit_code)

    def _consume(self, chunk: str, end_of_stream: bool = False) -> None:
        if self._first_output is None and chunk:
            self._first_output = chunk[:FIRST_OUTPUT_SNIPPET_CHARS]
        records = self._classifier.feed(chunk, end_of_stream=end_of_stream)
        for record in records:
            if isinstance(record, Diagnostic) and not record.text.startswith(WARNING_PREFIX):
                self._diagnostics.append(record.text)
        self._render.extend(records)

    def _finish(self, exit_code: int) -> TerminationStatus:
        interrupted = self._state is SessionState.SETTLING
        if interrupted:
            self._classifier.reset()
        else:
            self._consume("", end_of_stream=True)
        status = classify_exit(exit_code, interrupted=interrupted, diagnostics=self._diagnostics)
        self._termination = status
        self._handle = None
        self._state = SessionState.IDLE
        self._idle.set()
        self._log(
            "session.terminate",
            {
                "kind": str(status.kind),
                "exit_code": exit_code,
                "match_count": self._render.match_count,
            },
        )
        return status

    def _settle(self) -> None:
        handle = self._handle
        already_interrupted = self._state is SessionState.SETTLING
        self._state = SessionState.SETTLING
        if handle is not None:
            handle.disable_output()
            if not already_interrupted:
                handle.interrupt()
            self._await_termination(handle)
        self._generation += 1
        self._handle = None
        self._reset_results()
        self._termination = TerminationStatus(kind=TerminationKind.INTERRUPTED, exit_code=None)
        self._state = SessionState.IDLE
        self._idle.set()

    def _await_termination(self, handle: ProcessHandle) -> None:
        deadline = time.monotonic() + self._timing.termination_timeout_seconds
        while handle.is_alive():
            if time.monotonic() >= deadline:
                raise ProcessTerminationTimeout(
                    "Search process did not stop within "
                    f"{self._timing.termination_timeout_seconds:.1f}s of an interrupt."
                )
            time.sleep(self._timing.poll_interval_seconds)
        time.sleep(self._timing.debounce_seconds)

    def _log(self, event: str, metadata: dict[str, object] | None = None) -> None:
        if self._logger is None:
            return
        self._logger.log(
            event,
            session=describe_session(self._term, self._directory),
            state=str(self._state),
            metadata=metadata,
        )
