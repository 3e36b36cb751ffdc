"""
BlockBingo - Provably Fair Bingo Engine

A deterministic bingo engine whose every card and every drawn number is
derived from a public seed (the hash of the block confirming the game's
anchoring transaction). Anyone holding the seed can re-derive:
- Each participant's card
- The full draw order
- Who won, and on which line

The engine itself has no network access; fetching transactions, blocks
and participant lists belongs to the caller.
"""

__version__ = "0.1.0"
