"""
Win Detection - line wins, full-card wins and progress statistics.

A cell is marked when it is the free space or its value has been drawn.

Candidate lines, in tie-break priority order:
    rows 0..4 (top to bottom)
    columns B, I, N, G, O
    diagonal B0 I1 N2 G3 O4
    diagonal B4 I3 N2 G1 O0

When several lines complete on the same draw, the first in this order
is the one reported.
"""

from __future__ import annotations
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .card import COLUMNS, GRID_SIZE, BingoGrid, Card, Cell

FREE = "FREE"

LineCell = int | str


def candidate_lines(grid: BingoGrid) -> list[tuple[Cell, ...]]:
    """All 12 lines in priority order."""
    lines = [grid.row(row) for row in range(GRID_SIZE)]
    lines.extend(grid.column(name) for name in COLUMNS)
    lines.append(tuple(grid.cell(i, i) for i in range(GRID_SIZE)))
    lines.append(tuple(grid.cell(GRID_SIZE - 1 - i, i) for i in range(GRID_SIZE)))
    return lines


def _is_marked(value: Cell, drawn: set[int] | frozenset[int]) -> bool:
    return value is None or value in drawn


def _as_set(drawn_numbers: Iterable[int]) -> set[int] | frozenset[int]:
    if isinstance(drawn_numbers, (set, frozenset)):
        return drawn_numbers
    return set(drawn_numbers)


def check_line_win(grid: BingoGrid, drawn_numbers: Iterable[int]) -> list[LineCell] | None:
    """
    First complete line, or None.

    The free cell is rendered as the "FREE" sentinel.
    """
    drawn = _as_set(drawn_numbers)
    for line in candidate_lines(grid):
        if all(_is_marked(value, drawn) for value in line):
            return [FREE if value is None else value for value in line]
    return None


def check_full_card_win(grid: BingoGrid, drawn_numbers: Iterable[int]) -> bool:
    """True when all 24 non-free cells are marked."""
    drawn = _as_set(drawn_numbers)
    return all(value in drawn for value in grid.numbers())


def max_marked_in_any_line(grid: BingoGrid, drawn_numbers: Iterable[int]) -> int:
    """Highest count of marked cells across the 12 lines (0..5)."""
    drawn = _as_set(drawn_numbers)
    return max(
        sum(1 for value in line if _is_marked(value, drawn))
        for line in candidate_lines(grid)
    )


@dataclass(frozen=True)
class ProgressBucket:
    """`count` cards are `needed` marks away from their best line."""
    needed: int
    count: int


@dataclass(frozen=True)
class ProgressSummary:
    buckets: tuple[ProgressBucket, ...]
    text: str


# Cards with fewer marks than this in their best line are not mentioned
SUMMARY_MIN_MARKS = 2


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def summarize_progress(cards: Sequence[Card], drawn_numbers: Iterable[int]) -> ProgressSummary:
    """
    Bucket cards by how many more marks their best line needs.

    Used for the GM's progress view only; never for win decisions.
    """
    drawn = _as_set(drawn_numbers)
    needed = Counter(
        GRID_SIZE - max_marked_in_any_line(card.grid, drawn) for card in cards
    )
    buckets = tuple(
        ProgressBucket(needed=k, count=needed[k]) for k in sorted(needed)
    )

    parts = []
    for bucket in buckets:
        if GRID_SIZE - bucket.needed < SUMMARY_MIN_MARKS:
            continue
        if bucket.needed == 0:
            parts.append(
                f"{bucket.count} {_plural(bucket.count, 'card has', 'cards have')} a complete line"
            )
        else:
            parts.append(
                f"{bucket.count} {_plural(bucket.count, 'card needs', 'cards need')} "
                f"{bucket.needed} more {_plural(bucket.needed, 'number', 'numbers')}"
            )

    if not parts:
        text = f"No players have {SUMMARY_MIN_MARKS} or more marks in a line yet."
    else:
        text = "; ".join(parts) + "."
    return ProgressSummary(buckets=buckets, text=text)
