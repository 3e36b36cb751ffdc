"""
FastAPI Application - REST API for game clients.

Endpoints:
    POST   /api/games/{txid}           Initialize the game for a confirmed transaction
    POST   /api/draw/{txid}            Draw the next number (GM)
    POST   /api/continue-game/{txid}   Play on for a full card after a line win (GM)
    POST   /api/end-game/{txid}        End the game with the line winners (GM)
    GET    /api/game-state/{txid}      Game snapshot; statistics for the GM
    GET    /api/draw-sequence/{txid}   Audit trail of every draw
    GET    /api/cards                  A participant's cards (?txId=&nickname=)
    GET    /api/health                 Health check

GM endpoints expect `Authorization: Bearer <gmToken>`, where the token is
the one returned by the call that initialized the game.

All responses are JSON with explicit Pydantic schemas and camelCase keys.
"""

from typing import Annotated, Optional
import logging

from ..config import get_settings
from ..logging_config import configure_logging

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional BingoService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Header, Query, Request
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .. import __version__
    from ..errors import BingoError
    from .service import BingoService
    from .schemas import (
        # Request models
        InitializeRequest,
        # Response models
        InitializeResponse,
        DrawResponse,
        ContinueResponse,
        EndGameResponse,
        GameStateResponse,
        DrawSequenceResponse,
        CardsResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    settings = service.settings if service is not None else get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="BlockBingo API",
        description="""
Provably fair bingo: cards and draws are derived from a block hash.

## Game Flow

1. `POST /api/games/{txid}` once the anchoring transaction is confirmed.
   The response carries the `gmToken`; keep it.
2. The GM calls `POST /api/draw/{txid}` repeatedly.
3. In `PartialAndFull` mode, after the first line win (`partialWinPending`),
   the GM calls either `POST /api/continue-game/{txid}` or
   `POST /api/end-game/{txid}`.
4. A full card ends the game in either mode.

## Error Codes

| Code | Status | Description |
|------|--------|-------------|
| `VALIDATION_ERROR` | 400 | Malformed input |
| `GAME_NOT_FOUND` | 404 | Unknown txid or nickname |
| `AUTH_REQUIRED` | 401 | GM token missing |
| `AUTH_INVALID` | 403 | GM token wrong |
| `INVALID_STATE` | 400 | Not allowed in the current game state |
| `DERIVATION_EXHAUSTED` | 500 | Derivation bound exceeded |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.allowed_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or BingoService(settings=settings)

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                message=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json", by_alias=True),
        )

    @app.exception_handler(BingoError)
    async def handle_bingo_error(request: Request, exc: BingoError) -> JSONResponse:
        status_code, body = api_service.error_response(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected (%d): %s", request.method, request.url.path, status_code, exc.message)
        return JSONResponse(
            status_code=status_code,
            content=body.model_dump(mode="json", by_alias=True),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return make_error_response(
            ErrorCode.INTERNAL_ERROR,
            "Internal server error.",
            status_code=500,
        )

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/games/{txid}",
        response_model=InitializeResponse,
        responses={400: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Initialize the game for a confirmed transaction",
    )
    async def initialize_game(txid: str, body: InitializeRequest) -> InitializeResponse:
        """
        Derive every participant's card and create the game.

        Calling this again for the same txid returns the existing game
        without its `gmToken`.
        """
        return api_service.initialize_game(txid, body)

    @app.post(
        "/api/draw/{txid}",
        response_model=DrawResponse,
        responses={
            400: {"model": ErrorResponse, "description": "Game over or all numbers drawn"},
            401: {"model": ErrorResponse, "description": "Token missing"},
            403: {"model": ErrorResponse, "description": "Token invalid"},
            404: {"model": ErrorResponse, "description": "Game not found"},
        },
        tags=["Game Master"],
        summary="Draw the next number",
    )
    async def draw_number(
        txid: str,
        authorization: Annotated[Optional[str], Header()] = None,
    ) -> DrawResponse:
        """
        Draw one number and check every card.

        Clients must stop drawing while `partialWinPending` is true.
        """
        return api_service.draw(txid, authorization)

    @app.post(
        "/api/continue-game/{txid}",
        response_model=ContinueResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            403: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
        tags=["Game Master"],
        summary="Continue for a full card after a line win",
    )
    async def continue_game(
        txid: str,
        authorization: Annotated[Optional[str], Header()] = None,
    ) -> ContinueResponse:
        return api_service.continue_game(txid, authorization)

    @app.post(
        "/api/end-game/{txid}",
        response_model=EndGameResponse,
        responses={
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            403: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
        tags=["Game Master"],
        summary="End the game with the line winners",
    )
    async def end_game(
        txid: str,
        authorization: Annotated[Optional[str], Header()] = None,
    ) -> EndGameResponse:
        return api_service.end_game(txid, authorization)

    # =========================================================================
    # Read Endpoints
    # =========================================================================

    @app.get(
        "/api/game-state/{txid}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Get the game state",
    )
    async def get_game_state(
        txid: str,
        authorization: Annotated[Optional[str], Header()] = None,
    ) -> JSONResponse:
        """Snapshot of the game; `statistics` is only included for the GM."""
        body = api_service.get_game_state(txid, authorization)
        # Null winners stay on the wire; only the GM view carries statistics
        exclude = {"statistics"} if body.statistics is None else None
        return JSONResponse(content=body.model_dump(mode="json", by_alias=True, exclude=exclude))

    @app.get(
        "/api/draw-sequence/{txid}",
        response_model=DrawSequenceResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Games"],
        summary="Audit trail of every draw",
    )
    async def get_draw_sequence(txid: str) -> DrawSequenceResponse:
        """Which derivation index produced which number, in draw order."""
        return api_service.get_draw_sequence(txid)

    @app.get(
        "/api/cards",
        response_model=CardsResponse,
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
        },
        tags=["Games"],
        summary="Get a participant's cards",
    )
    async def get_cards(
        tx_id: Annotated[Optional[str], Query(alias="txId")] = None,
        nickname: Annotated[Optional[str], Query()] = None,
    ) -> CardsResponse:
        """Cards for a nickname, matched ignoring case and outer spaces."""
        return api_service.get_cards(tx_id, nickname)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return api_service.health()

    return app


# For running directly: uvicorn blockbingo.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
