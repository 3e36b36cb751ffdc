"""
Session Manager - creates games and runs the draw protocol.

LIFECYCLE:
1. Collaborators confirm the anchoring transaction and resolve the
   participant list, then call initialize(txid, seed, participants, mode)
2. initialize derives one card per participant and issues the GM token
3. The GM calls draw repeatedly; every draw is checked for wins
4. PartialAndFull mode only: the first line win flags the session and
   the GM chooses continue_game (play on for a full card) or end_game
5. A full-card win ends the game immediately, in either mode

AUTHORIZATION:
- draw / continue_game / end_game require the session's GM token
- get_state is open to everyone; progress statistics only go to the GM
  so players cannot see how close everyone else is

DRAW GATING:
- After a line win the caller must stop drawing until the GM continues
  or ends. The engine reports partial_win_pending but does not refuse
  the draw itself; every client applies the same rule.
"""

from __future__ import annotations
from collections.abc import Iterable
from dataclasses import asdict, replace
from typing import Any
import logging
import secrets
import time

from ..engine_core.card import Card, CardGenerator, generate_all_cards
from ..engine_core.drawer import MAX_NUMBER, DrawRecord, NumberDrawer
from ..engine_core.keys import KeyDerivationEngine, validate_seed
from ..engine_core.wins import check_full_card_win, check_line_win, summarize_progress
from ..errors import AuthError, NotFoundError, StateError, ValidationError
from .state import (
    DrawResult,
    EndGameResult,
    GameMode,
    GameSession,
    GameStateView,
    InitializeResult,
    WinnerInfo,
    normalize_participants,
)
from .store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


def _tokens_match(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def _frozen(winners: list[WinnerInfo] | None) -> tuple[WinnerInfo, ...] | None:
    return tuple(winners) if winners is not None else None


class SessionManager:
    """
    Owns the state machine for every game.

    Usage:
        manager = SessionManager()
        result = manager.initialize(txid, block_hash, [{"name": "Alice"}], "PartialAndFull")
        manager.draw(txid, result.gm_token)

    The store is injected; by default sessions live in process memory.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        key_engine: KeyDerivationEngine | None = None,
        card_generator: CardGenerator | None = None,
        drawer: NumberDrawer | None = None,
    ):
        self.store = store or InMemorySessionStore()
        self.key_engine = key_engine or KeyDerivationEngine()
        self.card_generator = card_generator or CardGenerator()
        self.drawer = drawer or NumberDrawer(self.key_engine)

    # =========================================================================
    # Creation
    # =========================================================================

    def initialize(
        self,
        txid: str,
        seed: str,
        participants: Iterable[Any],
        mode: GameMode | str,
    ) -> InitializeResult:
        """
        Create the session for txid, or return the existing one.

        An existing session is returned untouched and its token is not
        handed out again.
        """
        if not isinstance(txid, str) or not txid.strip():
            raise ValidationError("Transaction ID (txid) is required")

        # A repeat call is a no-op whatever else it carries
        existing = self.store.get(txid)
        if existing is not None:
            return InitializeResult(session=existing, created=False, gm_token=None)

        validate_seed(seed)
        game_mode = GameMode.parse(mode)
        names = normalize_participants(participants)

        cards = generate_all_cards(
            names,
            seed,
            key_engine=self.key_engine,
            generator=self.card_generator,
        )
        session = GameSession(
            txid=txid,
            seed=seed,
            participants=names,
            cards=cards,
            mode=game_mode,
            gm_token=secrets.token_urlsafe(32),
            creation_time=time.time(),
        )

        stored, created = self.store.add_if_absent(session)
        if not created:
            return InitializeResult(session=stored, created=False, gm_token=None)

        logger.info(
            "Initialized game %s: %d participant(s), mode %s",
            txid, len(names), game_mode.value,
        )
        return InitializeResult(session=stored, created=True, gm_token=stored.gm_token)

    # =========================================================================
    # GM actions
    # =========================================================================

    def draw(self, txid: str, caller_token: str | None) -> DrawResult:
        """Draw one number and evaluate every card."""
        with self.store.locked(txid) as session:
            self._authorize(
                session,
                caller_token,
                missing_message="Authorization token required for drawing numbers.",
            )
            if session.is_over:
                raise StateError(
                    "Game is already over.",
                    details={
                        "winners": [asdict(w) for w in session.winners or []],
                        "drawn_numbers": list(session.drawn_numbers),
                        "total_drawn": len(session.drawn_numbers),
                    },
                )
            if session.all_numbers_drawn:
                raise StateError(f"All {MAX_NUMBER} numbers have been drawn.")

            number = self.drawer.draw_next(session)
            derivation_index = session.next_derivation_index - 1
            drawn = set(session.drawn_numbers)
            new_partial_win = False

            full_card_winners = [
                self._winner(card, drawn)
                for card in session.cards
                if check_full_card_win(card.grid, drawn)
            ]
            if full_card_winners:
                session.full_card_winners = full_card_winners
                session.winners = full_card_winners
                session.is_over = True
                logger.info(
                    "Full card win in %s on %d: %s",
                    txid, number, ", ".join(w.username for w in full_card_winners),
                )
            elif session.mode is GameMode.PARTIAL_AND_FULL and not session.partial_win_occurred:
                partial_winners = [
                    self._winner(card, drawn)
                    for card in session.cards
                    if check_line_win(card.grid, drawn) is not None
                ]
                if partial_winners:
                    session.partial_winners = partial_winners
                    session.partial_win_occurred = True
                    new_partial_win = True
                    logger.info(
                        "Line win in %s on %d: %s",
                        txid, number, ", ".join(w.username for w in partial_winners),
                    )

            return DrawResult(
                drawn_number=number,
                derivation_index=derivation_index,
                total_drawn=len(session.drawn_numbers),
                next_derivation_index=session.next_derivation_index,
                mode=session.mode,
                is_over=session.is_over,
                partial_win_occurred=session.partial_win_occurred,
                partial_win_pending=session.partial_win_pending,
                new_partial_win=new_partial_win,
                partial_winners=_frozen(session.partial_winners),
                full_card_winners=_frozen(session.full_card_winners),
            )

    def continue_game(self, txid: str, caller_token: str | None) -> bool:
        """Keep playing for a full card after a line win."""
        with self.store.locked(txid) as session:
            self._authorize(session, caller_token)
            self._require_partial_win(
                session,
                "Game can only be continued after a partial win in PartialAndFull mode.",
            )
            session.continue_after_partial_win = True
            logger.info("GM continued %s after line win", txid)
            return True

    def end_game(self, txid: str, caller_token: str | None) -> EndGameResult:
        """Finish the game with the line winners as the winners."""
        with self.store.locked(txid) as session:
            self._authorize(session, caller_token)
            self._require_partial_win(
                session,
                "Game can only be ended manually after a partial win in PartialAndFull mode.",
            )
            session.is_over = True
            session.winners = list(session.partial_winners or [])
            logger.info("GM ended %s with %d winner(s)", txid, len(session.winners))
            return EndGameResult(
                is_over=True,
                partial_winners=_frozen(session.partial_winners),
                winners=_frozen(session.winners),
            )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_state(self, txid: str, requester_is_gm: bool = False) -> GameStateView:
        """Consistent snapshot; statistics for the GM only."""
        with self.store.locked(txid) as session:
            view = GameStateView(
                txid=session.txid,
                state=session.state,
                mode=session.mode,
                drawn_numbers=tuple(session.drawn_numbers),
                next_derivation_index=session.next_derivation_index,
                draw_sequence_length=len(session.draw_sequence),
                last_draw_time=session.last_draw_time,
                is_over=session.is_over,
                partial_win_occurred=session.partial_win_occurred,
                continue_after_partial_win=session.continue_after_partial_win,
                partial_winners=_frozen(session.partial_winners),
                full_card_winners=_frozen(session.full_card_winners),
                winners=_frozen(session.winners),
            )
            cards = session.cards

        if not requester_is_gm:
            return view

        # Cards never change after creation; the drawn numbers are a copy
        statistics = summarize_progress(cards, view.drawn_numbers)
        return replace(view, statistics=statistics)

    def get_draw_sequence(self, txid: str) -> tuple[DrawRecord, ...]:
        """Audit trail of every draw so far, in order."""
        with self.store.locked(txid) as session:
            return tuple(session.draw_sequence)

    def get_cards_for_participant(self, txid: str, name: str) -> list[Card]:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Nickname is required")
        session = self._require(txid)
        cards = session.cards_for(name)
        if not cards:
            raise NotFoundError(
                f"Nickname '{name}' not found in the participant list for this transaction.",
                details={"txid": txid, "nickname": name},
            )
        return cards

    def get_session(self, txid: str) -> GameSession | None:
        return self.store.get(txid)

    def is_game_master(self, txid: str, caller_token: str | None) -> bool:
        session = self._require(txid)
        if not caller_token or not isinstance(caller_token, str):
            return False
        return _tokens_match(caller_token, session.gm_token)

    def list_active_sessions(self) -> list[str]:
        """Txids of games that are not over."""
        active = []
        for txid in self.store.txids():
            try:
                with self.store.locked(txid) as session:
                    if not session.is_over:
                        active.append(txid)
            except NotFoundError:
                # Removed since txids() was read
                continue
        return active

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require(self, txid: str) -> GameSession:
        session = self.store.get(txid)
        if session is None:
            raise NotFoundError("Game not found.", details={"txid": txid})
        return session

    @staticmethod
    def _authorize(
        session: GameSession,
        caller_token: str | None,
        missing_message: str = "Authorization token required.",
    ) -> None:
        if not caller_token:
            raise AuthError(missing_message, missing=True)
        if not isinstance(caller_token, str) or not _tokens_match(caller_token, session.gm_token):
            raise AuthError("Invalid authorization token.")

    @staticmethod
    def _require_partial_win(session: GameSession, message: str) -> None:
        if session.is_over:
            raise StateError("Game is already over.")
        if session.mode is not GameMode.PARTIAL_AND_FULL or not session.partial_win_occurred:
            raise StateError(message)

    @staticmethod
    def _winner(card: Card, drawn: set[int]) -> WinnerInfo:
        line = check_line_win(card.grid, drawn)
        return WinnerInfo(
            username=card.owner_name,
            card_id=card.card_id,
            sequence=tuple(line or ()),
        )
