from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path

import pytest

from rg_engine.session import (
    ProcessTerminationTimeout,
    ProcessTiming,
    Session,
    SessionState,
    TerminationKind,
)


def test_restart_discards_stale_output_and_exit(
    tmp_path: Path, fake_launcher, fast_timing, rg_line: Callable[..., str]
) -> None:
    session = Session.create("needle", tmp_path, launcher=fake_launcher, timing=fast_timing)
    old = fake_launcher.last
    old.emit(rg_line("old.py", 1, "[[needle]]") + "\n")
    old.emit(rg_line("old.py", 2, "partial [[nee"))

    session.restart()
    new = fake_launcher.last

    assert new is not old
    assert old.interrupts == 1
    assert session.state is SessionState.RUNNING
    assert len(session.render) == 0

    old.output_enabled = True
    old.emit(rg_line("old.py", 3, "[[needle]]") + "\n")
    old.exit(130)
    assert session.state is SessionState.RUNNING
    assert len(session.render) == 0

    new.emit("dle]]\n" + rg_line("new.py", 5, "[[needle]]") + "\n")
    new.exit(0)

    assert [row.filename for row in session.render.rows if row.line_number] == ["new.py"]
    assert session.termination.kind is TerminationKind.NORMAL


def test_restart_after_interrupt_does_not_interrupt_twice(
    tmp_path: Path, fake_launcher, fast_timing
) -> None:
    session = Session.create("needle", tmp_path, launcher=fake_launcher, timing=fast_timing)
    old = fake_launcher.last
    fake_launcher.die_on_interrupt = False
    old.die_on_interrupt = False
    session.interrupt()
    old.alive = False

    session.restart()

    assert old.interrupts == 1
    assert session.state is SessionState.RUNNING
    assert len(fake_launcher.handles) == 2


def test_restart_waits_for_process_to_exit(tmp_path: Path, fake_launcher) -> None:
    timing = ProcessTiming(
        termination_timeout_seconds=2.0,
        poll_interval_seconds=0.005,
        debounce_seconds=0.0,
    )
    session = Session.create("needle", tmp_path, launcher=fake_launcher, timing=timing)
    old = fake_launcher.last
    old.die_on_interrupt = False

    def die_later() -> None:
        old.alive = False

    timer = threading.Timer(0.05, die_later)
    timer.start()
    try:
        session.restart()
    finally:
        timer.cancel()

    assert old.alive is False
    assert len(fake_launcher.handles) == 2


def test_restart_raises_when_process_never_exits(tmp_path: Path, fake_launcher) -> None:
    timing = ProcessTiming(
        termination_timeout_seconds=0.02,
        poll_interval_seconds=0.005,
        debounce_seconds=0.0,
    )
    session = Session.create("needle", tmp_path, launcher=fake_launcher, timing=timing)
    fake_launcher.last.die_on_interrupt = False

    with pytest.raises(ProcessTerminationTimeout):
        session.restart()
    assert len(fake_launcher.handles) == 1


def test_concurrent_output_during_restart_is_serialized(
    tmp_path: Path, fake_launcher, fast_timing, rg_line: Callable[..., str]
) -> None:
    session = Session.create("needle", tmp_path, launcher=fake_launcher, timing=fast_timing)
    old = fake_launcher.last
    line = rg_line("old.py", 1, "[[needle]]") + "\n"
    stop = threading.Event()

    def flood() -> None:
        while not stop.is_set():
            old.on_output(line)

    worker = threading.Thread(target=flood)
    worker.start()
    try:
        for _ in range(5):
            session.restart()
    finally:
        stop.set()
        worker.join(timeout=2.0)

    assert session.state is SessionState.RUNNING
    assert all(row.filename != "old.py" for row in session.render.rows)
