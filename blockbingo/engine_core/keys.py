"""
Key Derivation - (seed, index) -> public key.

Every card and every drawn number starts here. The master key is built
from the raw bytes of the hex seed (BIP32 "fromSeed") and the child is
taken along a fixed path whose only parameter is the index:

    m/44'/0'/0'/0/{index}

Anyone holding the seed can re-derive the same 33-byte compressed public
key with any conforming BIP32 implementation.
"""

from __future__ import annotations
import hashlib
import logging
import string

from bip32 import BIP32

from ..errors import ValidationError

logger = logging.getLogger(__name__)

DERIVATION_PATH_TEMPLATE = "m/44'/0'/0'/0/{index}"

# Last path component is non-hardened
MAX_INDEX = 2**31 - 1


def validate_seed(seed: object) -> bytes:
    """Return the raw seed bytes or raise ValidationError."""
    if not isinstance(seed, str) or not seed:
        raise ValidationError("Invalid seedHash provided for key derivation.")
    if len(seed) % 2 or any(ch not in string.hexdigits for ch in seed):
        raise ValidationError(
            "Invalid seedHash provided for key derivation: not a hex string.",
            details={"seed": seed},
        )
    return bytes.fromhex(seed)


def validate_index(index: object) -> int:
    """Return the index or raise ValidationError."""
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        raise ValidationError(f"Invalid index provided for key derivation: {index!r}")
    if index > MAX_INDEX:
        raise ValidationError(
            f"Invalid index provided for key derivation: {index} exceeds {MAX_INDEX}"
        )
    return index


def derivation_path(index: int) -> str:
    return DERIVATION_PATH_TEMPLATE.format(index=validate_index(index))


def card_seed(seed: str) -> str:
    """
    Seed used for card keys.

    Cards and draws both index from 0; deriving cards under
    sha256(seed text) keeps the two key spaces disjoint.
    """
    validate_seed(seed)
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()


class KeyDerivationEngine:
    """
    Deterministic hierarchical key derivation.

    Usage:
        engine = KeyDerivationEngine()
        pubkey = engine.derive(block_hash, 0)
    """

    def derive(self, seed: str, index: int) -> bytes:
        """Derive the compressed public key for (seed, index)."""
        seed_bytes = validate_seed(seed)
        path = derivation_path(index)

        root = BIP32.from_seed(seed_bytes)
        pubkey = bytes(root.get_pubkey_from_path(path))

        logger.debug("Derived %s -> %s", path, pubkey.hex())
        return pubkey


def derive_public_key(seed: str, index: int) -> bytes:
    """Module-level shortcut for KeyDerivationEngine().derive."""
    return KeyDerivationEngine().derive(seed, index)
