"""
Engine Core - deterministic derivation of cards, draws and wins.

Everything here is a pure function of public inputs (a hex seed and an
integer index), so any third party can re-run it and get the same
bytes. Nothing in this package knows about sessions, tokens or HTTP.
"""

from .keys import KeyDerivationEngine, derive_public_key, card_seed, derivation_path
from .entropy import EntropyStream
from .card import (
    BingoGrid,
    Card,
    CardGenerator,
    ColumnRange,
    COLUMN_RANGES,
    COLUMNS,
    generate_all_cards,
)
from .drawer import DrawRecord, NumberDrawer, hash_public_key_to_number, replay_draws
from .wins import (
    FREE,
    ProgressBucket,
    ProgressSummary,
    candidate_lines,
    check_full_card_win,
    check_line_win,
    max_marked_in_any_line,
    summarize_progress,
)

__all__ = [
    "KeyDerivationEngine",
    "derive_public_key",
    "card_seed",
    "derivation_path",
    "EntropyStream",
    "BingoGrid",
    "Card",
    "CardGenerator",
    "ColumnRange",
    "COLUMN_RANGES",
    "COLUMNS",
    "generate_all_cards",
    "DrawRecord",
    "NumberDrawer",
    "hash_public_key_to_number",
    "replay_draws",
    "FREE",
    "ProgressBucket",
    "ProgressSummary",
    "candidate_lines",
    "check_full_card_win",
    "check_line_win",
    "max_marked_in_any_line",
    "summarize_progress",
]
