"""
Tests for the verification CLI.
"""

import pytest

from ..cli import main
from ..engine_core.drawer import replay_draws
from .conftest import SEED, SEED_INDEX0_PUBKEY


class TestCLI:
    """Tests for blockbingo subcommands."""

    def test_key(self, capsys):
        main(["key", "--seed", SEED, "--index", "0"])
        out = capsys.readouterr().out
        assert SEED_INDEX0_PUBKEY in out
        assert "m/44'/0'/0'/0/0" in out

    def test_card(self, capsys):
        main(["card", "--seed", SEED, "--index", "0", "--name", "Alice"])
        out = capsys.readouterr().out
        assert "card-" in out
        assert "(Alice)" in out
        assert "FREE" in out

    def test_draws(self, capsys):
        main(["draws", "--seed", SEED, "--count", "3"])
        lines = capsys.readouterr().out.rstrip().splitlines()
        assert len(lines) == 3
        assert lines[0].startswith(" 1. 20")

    def test_verify_ok(self, capsys):
        numbers = [str(r.number) for r in replay_draws(SEED, 5)]
        main(["verify", "--seed", SEED, *numbers])
        assert "OK: 5 draw(s)" in capsys.readouterr().out

    def test_verify_mismatch(self, capsys):
        numbers = [str(r.number) for r in replay_draws(SEED, 3)]
        numbers[1] = "76"
        with pytest.raises(SystemExit) as excinfo:
            main(["verify", "--seed", SEED, *numbers])
        assert excinfo.value.code == 1
        assert "MISMATCH at draw 2" in capsys.readouterr().out

    def test_engine_error_exit_code(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["key", "--seed", "nothex", "--index", "0"])
        assert excinfo.value.code == 2
        assert "seedHash" in capsys.readouterr().err

    def test_no_command(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 1
