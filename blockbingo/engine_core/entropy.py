"""
Entropy Stream - an unbounded, deterministic byte source over SHA-256.

The stream starts at sha256(seed_material). Integers are read big-endian
from the current digest; when fewer bytes remain than requested the
stream re-seeds:

    digest = sha256(digest || bytes([offset & 0xFF]))
    offset = 0

The position marker is the offset at which the old digest ran out, so
successive digests differ even if a digest were ever to repeat.
"""

from __future__ import annotations
import hashlib
import logging

logger = logging.getLogger(__name__)


class EntropyStream:
    """
    Stateful reader over a chain of SHA-256 digests.

    Usage:
        stream = EntropyStream(public_key)
        value = stream.next_uint(2)
    """

    def __init__(self, seed_material: bytes):
        self._digest = hashlib.sha256(seed_material).digest()
        self._offset = 0
        self.reseed_count = 0

    @property
    def digest(self) -> bytes:
        return self._digest

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def remaining(self) -> int:
        return len(self._digest) - self._offset

    def reseed(self) -> None:
        """Replace the digest with sha256(digest || position marker)."""
        marker = bytes([self._offset & 0xFF])
        self._digest = hashlib.sha256(self._digest + marker).digest()
        self._offset = 0
        self.reseed_count += 1
        logger.debug("Entropy stream re-seeded (%d)", self.reseed_count)

    def next_uint(self, byte_width: int = 2) -> int:
        """Read the next unsigned big-endian integer of byte_width bytes."""
        if not 1 <= byte_width <= len(self._digest):
            raise ValueError(f"byte_width must be 1..{len(self._digest)}, got {byte_width}")
        if byte_width > self.remaining:
            self.reseed()
        chunk = self._digest[self._offset:self._offset + byte_width]
        self._offset += byte_width
        return int.from_bytes(chunk, "big")
