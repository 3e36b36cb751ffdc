"""
Session Module - per-game state and the draw protocol.

A session represents one game anchored to one transaction:
- Created once, when the transaction is confirmed
- Holds the cards, the drawn numbers and the win flags
- Mutated only by draw / continue / end, one caller at a time

Sessions are EPHEMERAL:
- No persistence; they live as long as the process
- Everything except the GM token can be re-derived from the seed
"""

from .state import (
    DrawResult,
    EndGameResult,
    GameMode,
    GameSession,
    GameStateView,
    InitializeResult,
    SessionState,
    WinnerInfo,
    normalize_participants,
)
from .store import InMemorySessionStore, SessionStore
from .manager import SessionManager

__all__ = [
    "DrawResult",
    "EndGameResult",
    "GameMode",
    "GameSession",
    "GameStateView",
    "InitializeResult",
    "SessionState",
    "WinnerInfo",
    "normalize_participants",
    "InMemorySessionStore",
    "SessionStore",
    "SessionManager",
]
