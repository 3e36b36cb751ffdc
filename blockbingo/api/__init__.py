"""
API Module - HTTP interface for game clients.

Exposes the engine via REST API. A client:
1. Initializes the game once its transaction is confirmed
2. Fetches a participant's cards by nickname
3. Draws numbers (GM only, bearer token)
4. Continues or ends after a line win (GM only)
5. Polls the game state

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    InitializeRequest,
    ParticipantIn,
    # Responses
    InitializeResponse,
    DrawResponse,
    ContinueResponse,
    EndGameResponse,
    GameStateResponse,
    DrawSequenceResponse,
    CardsResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    CardInfo,
    WinnerInfo,
    StatBucket,
    StatisticsInfo,
    DrawRecordInfo,
    ErrorCode,
)
from .service import BingoService, status_for, token_from_authorization
from .app import create_app

__all__ = [
    # Requests
    "InitializeRequest",
    "ParticipantIn",
    # Responses
    "InitializeResponse",
    "DrawResponse",
    "ContinueResponse",
    "EndGameResponse",
    "GameStateResponse",
    "DrawSequenceResponse",
    "CardsResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "CardInfo",
    "WinnerInfo",
    "StatBucket",
    "StatisticsInfo",
    "DrawRecordInfo",
    "ErrorCode",
    # Service
    "BingoService",
    "status_for",
    "token_from_authorization",
    "create_app",
]
