"""
BlockBingo CLI - independent verification of a published game.

Usage:
    blockbingo key --seed <hex> --index <n>       Derived public key
    blockbingo card --seed <hex> --index <n>      Card of participant n
    blockbingo draws --seed <hex> --count <n>     First n draws with their indices
    blockbingo verify --seed <hex> <numbers...>   Check a claimed draw order
    blockbingo serve [--host] [--port]            Run the HTTP API (needs uvicorn)

Everything except `serve` is offline: given the block hash, anyone can
re-derive the cards and the draw order and compare them to what the
game reported.
"""

import argparse
import sys

from .config import get_settings
from .errors import BingoError
from .logging_config import configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="BlockBingo - provably fair bingo verifier",
        prog="blockbingo",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Key command
    key_parser = subparsers.add_parser("key", help="Derive a public key")
    key_parser.add_argument("--seed", required=True, help="Hex seed (block hash)")
    key_parser.add_argument("--index", type=int, required=True, help="Derivation index")

    # Card command
    card_parser = subparsers.add_parser("card", help="Show a participant's card")
    card_parser.add_argument("--seed", required=True, help="Hex seed (block hash)")
    card_parser.add_argument("--index", type=int, required=True, help="Participant position")
    card_parser.add_argument("--name", default="", help="Owner name to print")

    # Draws command
    draws_parser = subparsers.add_parser("draws", help="Replay the draw order")
    draws_parser.add_argument("--seed", required=True, help="Hex seed (block hash)")
    draws_parser.add_argument("--count", type=int, default=75, help="Number of draws")

    # Verify command
    verify_parser = subparsers.add_parser("verify", help="Check a claimed draw order")
    verify_parser.add_argument("--seed", required=True, help="Hex seed (block hash)")
    verify_parser.add_argument("numbers", nargs="+", type=int, help="Numbers in drawn order")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    commands = {
        "key": cmd_key,
        "card": cmd_card,
        "draws": cmd_draws,
        "verify": cmd_verify,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        code = command(args)
    except BingoError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(2)
    if code:
        sys.exit(code)


def cmd_key(args):
    """Print the compressed public key for (seed, index)."""
    from .engine_core import derive_public_key, derivation_path

    public_key = derive_public_key(args.seed, args.index)
    print(f"Path: {derivation_path(args.index)}")
    print(f"Public key: {public_key.hex()}")
    return 0


def cmd_card(args):
    """Print the card a participant at `index` receives."""
    from .engine_core import COLUMNS, CardGenerator, card_seed, derive_public_key

    public_key = derive_public_key(card_seed(args.seed), args.index)
    card = CardGenerator().generate(public_key, owner_name=args.name)

    title = f"{card.card_id}"
    if card.owner_name:
        title += f" ({card.owner_name})"
    print(title)
    print("  ".join(f"{name:>4}" for name in COLUMNS))
    for row in range(5):
        cells = card.grid.row(row)
        print("  ".join(f"{'FREE' if v is None else v:>4}" for v in cells))
    return 0


def cmd_draws(args):
    """Print the first `count` draws of a fresh game."""
    from .engine_core import replay_draws

    records = replay_draws(args.seed, args.count)
    for position, record in enumerate(records, start=1):
        print(
            f"{position:>2}. {record.number:>2}  "
            f"index={record.derivation_index} attempts={record.attempts}"
        )
    return 0


def cmd_verify(args):
    """Compare a claimed draw order with the re-derived one."""
    from .engine_core import replay_draws

    claimed = args.numbers
    if len(claimed) > 75:
        print(f"Error: at most 75 numbers can be drawn, got {len(claimed)}", file=sys.stderr)
        return 1

    expected = [record.number for record in replay_draws(args.seed, len(claimed))]
    for position, (got, want) in enumerate(zip(claimed, expected), start=1):
        if got != want:
            print(f"MISMATCH at draw {position}: claimed {got}, derived {want}")
            return 1

    print(f"OK: {len(claimed)} draw(s) match the seed")
    return 0


def cmd_serve(args):
    """Run the API with uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install uvicorn", file=sys.stderr)
        return 1

    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    main()
