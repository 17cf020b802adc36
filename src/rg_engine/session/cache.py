"""Bounded most-recently-used collection of search sessions."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from pathlib import Path

from rg_engine.logging import JsonlEventLogger, describe_session
from rg_engine.session.machine import Session

SessionKey = tuple[str, Path]
SessionFactory = Callable[[str, Path, bool], Session]


class SessionCache:
    """Sessions keyed by (term, directory), most recently used first."""

    def __init__(
        self,
        factory: SessionFactory,
        capacity: int | None = None,
        logger: JsonlEventLogger | None = None,
    ) -> None:
        if capacity is not None and capacity < 1:
            raise ValueError("Session cache capacity must be a positive integer or None.")
        self._factory = factory
        self._capacity = capacity
        self._logger = logger
        self._sessions: OrderedDict[SessionKey, Session] = OrderedDict()

    @property
    def capacity(self) -> int | None:
        return self._capacity

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def keys(self) -> list[SessionKey]:
        """Return keys, most recently used first."""
        return list(self._sessions.keys())

    def sessions(self) -> list[Session]:
        """Return sessions, most recently used first."""
        return list(self._sessions.values())

    def get(self, term: str, directory: Path | str) -> Session | None:
        """Return an existing session without touching recency."""
        return self._sessions.get(make_key(term, directory))

    def get_or_create(
        self,
        term: str,
        directory: Path | str,
        deferred: bool = False,
    ) -> Session:
        """Reuse and reset the session for this key, or create it, evicting as needed."""
        key = make_key(term, directory)
        existing = self._sessions.get(key)
        if existing is not None:
            self._sessions.move_to_end(key, last=False)
            existing.reset(deferred=deferred)
            return existing

        if self._capacity is not None:
            while self._sessions and len(self._sessions) >= self._capacity:
                self._evict_oldest()

        session = self._factory(key[0], key[1], deferred)
        self._sessions[key] = session
        self._sessions.move_to_end(key, last=False)
        return session

    def remove(self, term: str, directory: Path | str) -> bool:
        """Destroy and drop one session; return False when absent."""
        session = self._sessions.pop(make_key(term, directory), None)
        if session is None:
            return False
        session.destroy()
        return True

    def close_all(self) -> None:
        """Destroy every session."""
        while self._sessions:
            _, session = self._sessions.popitem(last=True)
            session.destroy()

    def _evict_oldest(self) -> None:
        key, session = self._sessions.popitem(last=True)
        session.destroy()
        if self._logger is not None:
            self._logger.log(
                "session.evict",
                session=describe_session(key[0], key[1]),
                state=str(session.state),
                metadata={"remaining": len(self._sessions)},
            )


def make_key(term: str, directory: Path | str) -> SessionKey:
    """Normalize a (term, directory) pair into a cache key."""
    return term, Path(directory).resolve()
