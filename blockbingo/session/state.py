"""
Session State - the mutable record for one game.

A GameSession is keyed by the anchoring transaction id. It is created
once by the manager, mutated only by draw / continue / end, and frozen
once is_over is set.

STATE MACHINE:
    INITIALIZED          no number drawn yet
    ACTIVE               drawing
    PARTIAL_WIN_PENDING  line win recorded, GM has not continued or ended
                         (PartialAndFull mode only)
    GAME_OVER            terminal

The state is derived from the flags rather than stored, so it can never
disagree with them.
"""

from __future__ import annotations
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..engine_core.card import Card
from ..engine_core.drawer import MAX_NUMBER, DrawRecord
from ..engine_core.wins import LineCell, ProgressSummary
from ..errors import ValidationError


class GameMode(str, Enum):
    """Which wins a session recognises."""
    FULL_CARD_ONLY = "FullCardOnly"
    PARTIAL_AND_FULL = "PartialAndFull"

    @classmethod
    def parse(cls, value: GameMode | str) -> GameMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(mode.value for mode in cls)
            raise ValidationError(
                f"Invalid game mode {value!r}; expected one of: {allowed}"
            ) from None


class SessionState(Enum):
    """Lifecycle state of a game session."""
    INITIALIZED = "initialized"
    ACTIVE = "active"
    PARTIAL_WIN_PENDING = "partial_win_pending"
    GAME_OVER = "game_over"


@dataclass(frozen=True)
class WinnerInfo:
    """A winning card and the line that won it."""
    username: str
    card_id: str
    sequence: tuple[LineCell, ...] = ()


def normalize_participants(participants: Iterable[Any]) -> list[str]:
    """
    Reduce a participant list to ordered names.

    Accepts mappings with a "name" key, objects with a .name attribute,
    or plain strings. Order is kept exactly: it decides every card.
    """
    if participants is None or isinstance(participants, (str, bytes)):
        raise ValidationError("participants must be a list")

    names = []
    for position, participant in enumerate(participants):
        if isinstance(participant, str):
            name = participant
        elif isinstance(participant, Mapping):
            name = participant.get("name")
        else:
            name = getattr(participant, "name", None)

        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                f"Participant at position {position} has no name",
                details={"position": position},
            )
        names.append(name)
    return names


@dataclass
class GameSession:
    """
    All mutable state for one game.

    Fields are read and written only under the session's store lock.
    """
    txid: str
    seed: str
    participants: list[str]
    cards: list[Card]
    mode: GameMode
    gm_token: str
    creation_time: float

    drawn_numbers: list[int] = field(default_factory=list)
    next_derivation_index: int = 0
    draw_sequence: list[DrawRecord] = field(default_factory=list)
    last_draw_time: float | None = None

    is_over: bool = False
    partial_win_occurred: bool = False
    continue_after_partial_win: bool = False
    partial_winners: list[WinnerInfo] | None = None
    full_card_winners: list[WinnerInfo] | None = None
    winners: list[WinnerInfo] | None = None

    @property
    def state(self) -> SessionState:
        if self.is_over:
            return SessionState.GAME_OVER
        if self.partial_win_pending:
            return SessionState.PARTIAL_WIN_PENDING
        if not self.drawn_numbers:
            return SessionState.INITIALIZED
        return SessionState.ACTIVE

    @property
    def partial_win_pending(self) -> bool:
        """Callers must not draw while this is true."""
        return (
            self.partial_win_occurred
            and not self.continue_after_partial_win
            and not self.is_over
        )

    @property
    def all_numbers_drawn(self) -> bool:
        return len(self.drawn_numbers) >= MAX_NUMBER

    def cards_for(self, name: str) -> list[Card]:
        """Cards whose owner matches name, ignoring case and outer spaces."""
        wanted = name.strip().casefold()
        return [card for card in self.cards if card.owner_name.strip().casefold() == wanted]


@dataclass(frozen=True)
class InitializeResult:
    """
    Outcome of initialize.

    gm_token is only set when this call created the session.
    """
    session: GameSession
    created: bool
    gm_token: str | None

    @property
    def block_hash(self) -> str:
        return self.session.seed

    @property
    def participant_count(self) -> int:
        return len(self.session.participants)


@dataclass(frozen=True)
class DrawResult:
    """Snapshot returned by a successful draw."""
    drawn_number: int
    derivation_index: int
    total_drawn: int
    next_derivation_index: int
    mode: GameMode
    is_over: bool
    partial_win_occurred: bool
    partial_win_pending: bool
    new_partial_win: bool
    partial_winners: tuple[WinnerInfo, ...] | None
    full_card_winners: tuple[WinnerInfo, ...] | None


@dataclass(frozen=True)
class EndGameResult:
    is_over: bool
    partial_winners: tuple[WinnerInfo, ...] | None
    winners: tuple[WinnerInfo, ...] | None


@dataclass(frozen=True)
class GameStateView:
    """
    Consistent copy of a session for readers.

    statistics is None unless the requester is the GM.
    """
    txid: str
    state: SessionState
    mode: GameMode
    drawn_numbers: tuple[int, ...]
    next_derivation_index: int
    draw_sequence_length: int
    last_draw_time: float | None
    is_over: bool
    partial_win_occurred: bool
    continue_after_partial_win: bool
    partial_winners: tuple[WinnerInfo, ...] | None
    full_card_winners: tuple[WinnerInfo, ...] | None
    winners: tuple[WinnerInfo, ...] | None
    statistics: ProgressSummary | None = None
