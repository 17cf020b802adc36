from __future__ import annotations

from collections.abc import Callable

import pytest

from rg_engine.session import InvocationSpec, ProcessTiming

RESET = "\x1b[0m"
FILENAME_COLOR = "\x1b[35m"
LINE_NUMBER_COLOR = "\x1b[32m"
MATCH_COLOR = "\x1b[1m\x1b[31m"


class FakeHandle:
    """Scriptable stand-in for a running search process."""

    def __init__(
        self,
        spec: InvocationSpec,
        on_output: Callable[[str], None],
        on_exit: Callable[[int], None],
        die_on_interrupt: bool,
    ) -> None:
        self.spec = spec
        self.on_output = on_output
        self.on_exit = on_exit
        self.die_on_interrupt = die_on_interrupt
        self.alive = True
        self.output_enabled = True
        self.interrupts = 0

    def is_alive(self) -> bool:
        return self.alive

    def interrupt(self) -> None:
        self.interrupts += 1
        if self.die_on_interrupt:
            self.alive = False

    def disable_output(self) -> None:
        self.output_enabled = False

    def emit(self, chunk: str) -> None:
        if self.output_enabled:
            self.on_output(chunk)

    def exit(self, code: int) -> None:
        self.alive = False
        self.on_exit(code)


class FakeLauncher:
    """Records launches and hands out FakeHandles."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []
        self.die_on_interrupt = True

    def launch(
        self,
        spec: InvocationSpec,
        on_output: Callable[[str], None],
        on_exit: Callable[[int], None],
    ) -> FakeHandle:
        handle = FakeHandle(spec, on_output, on_exit, die_on_interrupt=self.die_on_interrupt)
        self.handles.append(handle)
        return handle

    @property
    def last(self) -> FakeHandle:
        return self.handles[-1]


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def fast_timing() -> ProcessTiming:
    return ProcessTiming(
        termination_timeout_seconds=0.5,
        poll_interval_seconds=0.001,
        debounce_seconds=0.001,
    )


def build_rg_line(
    filename: str,
    line_number: int,
    content: str,
    *,
    context: bool = False,
) -> str:
    """Build one line the way ripgrep --color=ansi prints it.

    Matched runs are written as ``[[text]]`` in content.
    """
    delimiter = "-" if context else ":"
    coded = content.replace("[[", RESET + MATCH_COLOR).replace("]]", RESET)
    return (
        f"{RESET}{FILENAME_COLOR}{filename}{RESET}{delimiter}"
        f"{RESET}{LINE_NUMBER_COLOR}{line_number}{RESET}{delimiter}{coded}"
    )


@pytest.fixture
def rg_line() -> Callable[..., str]:
    return build_rg_line
