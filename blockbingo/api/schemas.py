"""
Pydantic Schemas for API - request/response models for OpenAPI.

These models define the wire contract between the game clients and the
engine. Field names are snake_case in Python and camelCase on the wire
(drawnNumber, partialWinners, ...) so existing clients keep working.

Error Codes:
- VALIDATION_ERROR: malformed txid, seed, mode or participant list
- GAME_NOT_FOUND: unknown txid or nickname
- AUTH_REQUIRED: GM token missing
- AUTH_INVALID: GM token does not match
- INVALID_STATE: action not allowed in the game's current state
- DERIVATION_EXHAUSTED: derivation attempt bound exceeded
- INTERNAL_ERROR: anything else
"""

from enum import Enum
from typing import Optional, Any, Union
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    VALIDATION_ERROR = "VALIDATION_ERROR"
    GAME_NOT_FOUND = "GAME_NOT_FOUND"
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"
    INVALID_STATE = "INVALID_STATE"
    DERIVATION_EXHAUSTED = "DERIVATION_EXHAUSTED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class GameModeName(str, Enum):
    FULL_CARD_ONLY = "FullCardOnly"
    PARTIAL_AND_FULL = "PartialAndFull"


class GameStatus(str, Enum):
    """Lifecycle state as reported to clients."""
    INITIALIZED = "initialized"
    ACTIVE = "active"
    PARTIAL_WIN_PENDING = "partial_win_pending"
    GAME_OVER = "game_over"


class CamelModel(BaseModel):
    """Base model serialising to camelCase and accepting either spelling."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }


# =============================================================================
# Shared Models
# =============================================================================

class ParticipantIn(CamelModel):
    """One participant, in list order."""
    name: str = Field(..., min_length=1)


class CardInfo(CamelModel):
    """A bingo card; N[2] is null (the free cell)."""
    card_id: str
    owner_name: str
    line_index: Optional[int] = None
    grid: dict[str, list[Optional[int]]] = Field(
        description="Columns B, I, N, G, O with five cells each"
    )


class WinnerInfo(CamelModel):
    """A winning card and its winning line."""
    username: str
    card_id: str
    sequence: list[Union[int, str]] = Field(
        default_factory=list,
        description="Winning line cells; the free cell appears as \"FREE\"",
    )


class StatBucket(CamelModel):
    """Number of cards that need `needed` more numbers for a line."""
    needed: int
    count: int


class StatisticsInfo(CamelModel):
    buckets: list[StatBucket] = Field(default_factory=list)
    summary: str


class DrawRecordInfo(CamelModel):
    """Audit entry: which derivation index produced which number."""
    number: int
    derivation_index: int
    attempts: int
    public_key_hex: str
    drawn_at: float


# =============================================================================
# Request Models
# =============================================================================

class InitializeRequest(CamelModel):
    """Create the game for a confirmed transaction."""
    block_hash: str = Field(..., description="Hex seed, normally the confirming block hash")
    participants: list[ParticipantIn]
    mode: GameModeName = GameModeName.FULL_CARD_ONLY


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(CamelModel):
    """Standard error response."""
    message: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[Any] = Field(None, description="Additional error context")


class InitializeResponse(CamelModel):
    txid: str
    created: bool
    gm_token: Optional[str] = Field(
        None, description="Only returned by the call that created the game"
    )
    block_hash: str
    participant_count: int
    mode: GameModeName
    cards: list[CardInfo] = Field(default_factory=list)
    message: str


class DrawResponse(CamelModel):
    message: str
    drawn_number: int
    derivation_index: int
    total_drawn: int
    next_derivation_index: int
    mode: GameModeName
    is_over: bool
    partial_win_occurred: bool
    partial_win_pending: bool
    new_partial_win: bool
    partial_winners: Optional[list[WinnerInfo]] = None
    full_card_winners: Optional[list[WinnerInfo]] = None


class ContinueResponse(CamelModel):
    message: str
    ok: bool = True
    continue_after_partial_win: bool = True


class EndGameResponse(CamelModel):
    message: str
    is_over: bool
    partial_winners: Optional[list[WinnerInfo]] = None
    winners: Optional[list[WinnerInfo]] = None


class GameStateResponse(CamelModel):
    """Snapshot of one game; `statistics` is only present for the GM."""
    txid: str
    status: GameStatus
    mode: GameModeName
    drawn_numbers: list[int] = Field(default_factory=list)
    total_drawn: int
    next_derivation_index: int
    last_draw_time: Optional[float] = None
    is_over: bool
    partial_win_occurred: bool
    continue_after_partial_win: bool
    partial_winners: Optional[list[WinnerInfo]] = None
    full_card_winners: Optional[list[WinnerInfo]] = None
    winners: Optional[list[WinnerInfo]] = None
    statistics: Optional[StatisticsInfo] = None


class CardsResponse(CamelModel):
    status: str = "success"
    cards: list[CardInfo]
    block_hash: str


class DrawSequenceResponse(CamelModel):
    txid: str
    block_hash: str
    draws: list[DrawRecordInfo] = Field(default_factory=list)


class HealthResponse(CamelModel):
    """Health check response."""
    status: str
    service: str
    version: str
    env: str
    active_games: int
