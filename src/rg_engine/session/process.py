"""Launching the search executable and pumping its output."""

from __future__ import annotations

import codecs
import signal
import subprocess
import threading
from collections.abc import Callable
from typing import Protocol

from rg_engine.session.invocation import InvocationSpec

OutputCallback = Callable[[str], None]
ExitCallback = Callable[[int], None]

DEFAULT_READ_SIZE = 8192


class ProcessLaunchError(RuntimeError):
    """Raised when the search executable cannot be started."""


class ProcessHandle(Protocol):
    """Live process owned by one session."""

    def is_alive(self) -> bool: ...

    def interrupt(self) -> None: ...

    def disable_output(self) -> None: ...


class ProcessLauncher(Protocol):
    """Starts a process for an invocation and wires its notifications."""

    def launch(
        self,
        spec: InvocationSpec,
        on_output: OutputCallback,
        on_exit: ExitCallback,
    ) -> ProcessHandle: ...


class SubprocessHandle:
    """Popen-backed handle with one reader thread delivering decoded chunks in order."""

    def __init__(
        self,
        process: subprocess.Popen[bytes],
        on_output: OutputCallback,
        on_exit: ExitCallback,
        read_size: int = DEFAULT_READ_SIZE,
    ) -> None:
        self._process = process
        self._on_output = on_output
        self._on_exit = on_exit
        self._read_size = read_size
        self._output_enabled = threading.Event()
        self._output_enabled.set()
        self._reader = threading.Thread(
            target=self._pump,
            name=f"rg-engine-output-{process.pid}",
            daemon=True,
        )

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def output_enabled(self) -> bool:
        return self._output_enabled.is_set()

    def start(self) -> None:
        self._reader.start()

    def is_alive(self) -> bool:
        return self._process.poll() is None

    def interrupt(self) -> None:
        """Request graceful termination with SIGINT."""
        if not self.is_alive():
            return
        try:
            self._process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            return

    def disable_output(self) -> None:
        """Drop every later chunk instead of delivering it."""
        self._output_enabled.clear()

    def join(self, timeout: float | None = None) -> None:
        self._reader.join(timeout)

    def _pump(self) -> None:
        stream = self._process.stdout
        try:
            if stream is None:
                return
            decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
            with stream:
                while True:
                    data = stream.read1(self._read_size)
                    if not data:
                        break
                    self._emit(decoder.decode(data))
                self._emit(decoder.decode(b"", final=True))
        finally:
            self._on_exit(self._process.wait())

    def _emit(self, text: str) -> None:
        if text and self._output_enabled.is_set():
            self._on_output(text)


class SubprocessLauncher:
    """Default launcher running the executable with stderr merged into stdout."""

    def __init__(self, read_size: int = DEFAULT_READ_SIZE) -> None:
        self._read_size = read_size

    def launch(
        self,
        spec: InvocationSpec,
        on_output: OutputCallback,
        on_exit: ExitCallback,
    ) -> SubprocessHandle:
        try:
            process = subprocess.Popen(
                spec.argv,
                cwd=spec.cwd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except OSError as error:
            raise ProcessLaunchError(f"Could not start {spec.executable}: {error}") from error
        handle = SubprocessHandle(
            process,
            on_output=on_output,
            on_exit=on_exit,
            read_size=self._read_size,
        )
        handle.start()
        return handle
