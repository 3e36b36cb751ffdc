"""
API Service - translation layer between the HTTP adapter and the engine.

The service:
1. Turns request models into SessionManager calls
2. Turns engine results into response models
3. Decides the transport status for every engine error
4. Pulls GM tokens out of Authorization headers

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Engine errors propagate out of it unchanged; the adapter renders them
with error_response().
"""

from __future__ import annotations
from collections.abc import Iterable
from dataclasses import dataclass, field

from .. import __version__
from ..config import Settings, get_settings
from ..engine_core.card import Card
from ..engine_core.wins import ProgressSummary
from ..errors import (
    AuthError,
    BingoError,
    DerivationExhaustionError,
    NotFoundError,
    StateError,
    ValidationError,
)
from ..session import SessionManager, WinnerInfo as EngineWinner
from .schemas import (
    CardInfo,
    CardsResponse,
    ContinueResponse,
    DrawRecordInfo,
    DrawResponse,
    DrawSequenceResponse,
    EndGameResponse,
    ErrorCode,
    ErrorResponse,
    GameStateResponse,
    HealthResponse,
    InitializeRequest,
    InitializeResponse,
    StatBucket,
    StatisticsInfo,
    WinnerInfo,
)

DRAW_SUCCESS_MESSAGE = "Number drawn successfully!"
CONTINUE_SUCCESS_MESSAGE = "Game will continue until a full card winner."
END_SUCCESS_MESSAGE = "Game successfully ended by Game Master."
CREATED_MESSAGE = "Game initialized."
EXISTING_MESSAGE = "Game already initialized for this transaction."


def status_for(error: BingoError) -> int:
    """HTTP status for an engine error."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, AuthError):
        return 401 if error.missing else 403
    if isinstance(error, StateError):
        return 400
    if isinstance(error, DerivationExhaustionError):
        return 500
    return 500


def error_code_for(error: BingoError) -> ErrorCode:
    if isinstance(error, ValidationError):
        return ErrorCode.VALIDATION_ERROR
    if isinstance(error, NotFoundError):
        return ErrorCode.GAME_NOT_FOUND
    if isinstance(error, AuthError):
        return ErrorCode.AUTH_REQUIRED if error.missing else ErrorCode.AUTH_INVALID
    if isinstance(error, StateError):
        return ErrorCode.INVALID_STATE
    if isinstance(error, DerivationExhaustionError):
        return ErrorCode.DERIVATION_EXHAUSTED
    return ErrorCode.INTERNAL_ERROR


def token_from_authorization(header: str | None) -> str | None:
    """
    Extract the token from an `Authorization: Bearer <token>` header.

    Returns None for a missing header or a non-bearer scheme, so the
    engine reports the token as absent rather than wrong.
    """
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def _card_info(card: Card) -> CardInfo:
    return CardInfo(
        card_id=card.card_id,
        owner_name=card.owner_name,
        line_index=card.line_index,
        grid=card.grid.to_dict(),
    )


def _winners(winners: Iterable[EngineWinner] | None) -> list[WinnerInfo] | None:
    if winners is None:
        return None
    return [
        WinnerInfo(username=w.username, card_id=w.card_id, sequence=list(w.sequence))
        for w in winners
    ]


def _statistics(summary: ProgressSummary | None) -> StatisticsInfo | None:
    if summary is None:
        return None
    return StatisticsInfo(
        buckets=[StatBucket(needed=b.needed, count=b.count) for b in summary.buckets],
        summary=summary.text,
    )


@dataclass
class BingoService:
    """
    Main API service.

    Usage:
        service = BingoService()

        created = service.initialize_game(txid, InitializeRequest(...))
        draw = service.draw(txid, "Bearer " + created.gm_token)
        state = service.get_game_state(txid)
    """
    session_manager: SessionManager = field(default_factory=SessionManager)
    settings: Settings = field(default_factory=get_settings)

    # =========================================================================
    # Game lifecycle
    # =========================================================================

    def initialize_game(self, txid: str, request: InitializeRequest) -> InitializeResponse:
        result = self.session_manager.initialize(
            txid,
            request.block_hash,
            [{"name": p.name} for p in request.participants],
            request.mode.value,
        )
        session = result.session
        return InitializeResponse(
            txid=session.txid,
            created=result.created,
            gm_token=result.gm_token,
            block_hash=result.block_hash,
            participant_count=result.participant_count,
            mode=session.mode.value,
            cards=[_card_info(card) for card in session.cards],
            message=CREATED_MESSAGE if result.created else EXISTING_MESSAGE,
        )

    def draw(self, txid: str, authorization: str | None) -> DrawResponse:
        result = self.session_manager.draw(txid, token_from_authorization(authorization))
        return DrawResponse(
            message=DRAW_SUCCESS_MESSAGE,
            drawn_number=result.drawn_number,
            derivation_index=result.derivation_index,
            total_drawn=result.total_drawn,
            next_derivation_index=result.next_derivation_index,
            mode=result.mode.value,
            is_over=result.is_over,
            partial_win_occurred=result.partial_win_occurred,
            partial_win_pending=result.partial_win_pending,
            new_partial_win=result.new_partial_win,
            partial_winners=_winners(result.partial_winners),
            full_card_winners=_winners(result.full_card_winners),
        )

    def continue_game(self, txid: str, authorization: str | None) -> ContinueResponse:
        ok = self.session_manager.continue_game(txid, token_from_authorization(authorization))
        return ContinueResponse(message=CONTINUE_SUCCESS_MESSAGE, ok=ok)

    def end_game(self, txid: str, authorization: str | None) -> EndGameResponse:
        result = self.session_manager.end_game(txid, token_from_authorization(authorization))
        return EndGameResponse(
            message=END_SUCCESS_MESSAGE,
            is_over=result.is_over,
            partial_winners=_winners(result.partial_winners),
            winners=_winners(result.winners),
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def get_game_state(self, txid: str, authorization: str | None = None) -> GameStateResponse:
        """
        Snapshot for anyone; a valid GM token adds the statistics.

        A missing or wrong token is not an error here, it just yields the
        player view.
        """
        is_gm = self.session_manager.is_game_master(
            txid, token_from_authorization(authorization)
        )
        view = self.session_manager.get_state(txid, requester_is_gm=is_gm)
        return GameStateResponse(
            txid=view.txid,
            status=view.state.value,
            mode=view.mode.value,
            drawn_numbers=list(view.drawn_numbers),
            total_drawn=len(view.drawn_numbers),
            next_derivation_index=view.next_derivation_index,
            last_draw_time=view.last_draw_time,
            is_over=view.is_over,
            partial_win_occurred=view.partial_win_occurred,
            continue_after_partial_win=view.continue_after_partial_win,
            partial_winners=_winners(view.partial_winners),
            full_card_winners=_winners(view.full_card_winners),
            winners=_winners(view.winners),
            statistics=_statistics(view.statistics),
        )

    def get_cards(self, txid: str | None, nickname: str | None) -> CardsResponse:
        if not txid or not txid.strip():
            raise ValidationError("Transaction ID (txId) is required")
        if not nickname or not nickname.strip():
            raise ValidationError("Nickname is required")

        session = self.session_manager.get_session(txid)
        if session is None:
            raise NotFoundError("Game not found.", details={"txid": txid})
        cards = self.session_manager.get_cards_for_participant(txid, nickname)
        return CardsResponse(
            cards=[_card_info(card) for card in cards],
            block_hash=session.seed,
        )

    def get_draw_sequence(self, txid: str) -> DrawSequenceResponse:
        records = self.session_manager.get_draw_sequence(txid)
        session = self.session_manager.get_session(txid)
        return DrawSequenceResponse(
            txid=txid,
            block_hash=session.seed if session else "",
            draws=[
                DrawRecordInfo(
                    number=r.number,
                    derivation_index=r.derivation_index,
                    attempts=r.attempts,
                    public_key_hex=r.public_key_hex,
                    drawn_at=r.drawn_at,
                )
                for r in records
            ],
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="blockbingo",
            version=__version__,
            env=self.settings.env,
            active_games=len(self.session_manager.list_active_sessions()),
        )

    # =========================================================================
    # Errors
    # =========================================================================

    @staticmethod
    def error_response(error: BingoError) -> tuple[int, ErrorResponse]:
        """Status code and body for an engine error."""
        return status_for(error), ErrorResponse(
            message=error.message,
            error_code=error_code_for(error),
            details=error.details,
        )
