"""
Session Store - txid -> GameSession, with one lock per txid.

Locking discipline:
- A mutation (draw / continue / end) holds the txid's lock for its whole
  read-modify-write.
- A reader holds the same lock only while copying a snapshot, so it
  never sees half of a draw.
- Different txids never share a lock; there is no cross-session order.
- The registry lock guards only the dict of sessions and locks; it is
  never held while a session lock is being waited on.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
import threading

from ..errors import NotFoundError
from .state import GameSession


class SessionStore(ABC):
    """Interface the manager depends on."""

    @abstractmethod
    def get(self, txid: str) -> GameSession | None:
        """Session for txid, or None. Readers must hold the lock to use it."""

    @abstractmethod
    def add_if_absent(self, session: GameSession) -> tuple[GameSession, bool]:
        """
        Insert session unless its txid exists.

        Returns (stored session, created).
        """

    @abstractmethod
    def locked(self, txid: str) -> Iterator[GameSession]:
        """Context manager yielding the session with its lock held."""

    @abstractmethod
    def remove(self, txid: str) -> bool:
        """Drop a session. Eviction policy lives outside the engine."""

    @abstractmethod
    def txids(self) -> list[str]:
        """Known txids."""

    def __contains__(self, txid: str) -> bool:
        return self.get(txid) is not None

    def __len__(self) -> int:
        return len(self.txids())


class InMemorySessionStore(SessionStore):
    """
    Process-local store.

    Sessions are ephemeral and disappear with the process.
    """

    def __init__(self):
        self._sessions: dict[str, GameSession] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def get(self, txid: str) -> GameSession | None:
        with self._registry_lock:
            return self._sessions.get(txid)

    def add_if_absent(self, session: GameSession) -> tuple[GameSession, bool]:
        with self._registry_lock:
            existing = self._sessions.get(session.txid)
            if existing is not None:
                return existing, False
            self._sessions[session.txid] = session
            self._locks[session.txid] = threading.Lock()
            return session, True

    @contextmanager
    def locked(self, txid: str) -> Iterator[GameSession]:
        with self._registry_lock:
            session = self._sessions.get(txid)
            lock = self._locks.get(txid)
        if session is None or lock is None:
            raise NotFoundError("Game not found.", details={"txid": txid})

        with lock:
            yield session

    def remove(self, txid: str) -> bool:
        with self._registry_lock:
            self._locks.pop(txid, None)
            return self._sessions.pop(txid, None) is not None

    def txids(self) -> list[str]:
        with self._registry_lock:
            return list(self._sessions)
