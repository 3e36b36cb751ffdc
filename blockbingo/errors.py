"""
Error taxonomy for the bingo engine.

Every failure the engine reports is one of these types. None of them are
retried internally: the engine is deterministic, so an identical call fails
identically. Mapping to transport status codes belongs to the boundary
(see api.service.status_for).
"""

from __future__ import annotations
from typing import Any


class BingoError(Exception):
    """Base engine error."""

    code = "bingo_error"

    def __init__(self, message: str, details: Any | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(BingoError):
    """Malformed seed, index, public key, mode or participant list."""

    code = "validation_error"


class NotFoundError(BingoError):
    """Unknown txid or participant name."""

    code = "not_found"


class AuthError(BingoError):
    """
    GM token check failed.

    `missing` distinguishes an absent token from a wrong one.
    """

    code = "auth_error"

    def __init__(self, message: str, missing: bool = False, details: Any | None = None):
        self.missing = missing
        super().__init__(message, details)


class StateError(BingoError):
    """Action not valid for the session's current state."""

    code = "state_error"


class DerivationExhaustionError(BingoError):
    """
    An attempt bound inside card or number derivation was exceeded.

    Unreachable in practice; signals a broken invariant, never retried.
    """

    code = "derivation_exhausted"
