from __future__ import annotations

import secrets
from typing import Iterator

from .errors import InvalidInputError


class CandidateStream:
    """Unbounded stream of random odd integers with exactly ``bits`` significant bits.

    The top bit is forced so the bit length is exact and the low bit is forced
    so every draw is odd. Draws are independent; the stream never ends, so
    consumers bring their own stopping condition.
    """

    def __init__(self, bits: int) -> None:
        if bits < 2:
            raise InvalidInputError(
                f"candidate bit length must be >= 2 (got {bits})",
                detail={"bits": bits},
            )
        self.bits = bits
        self._mask = (1 << (bits - 1)) | 1

    def __iter__(self) -> Iterator[int]:
        return self

    def __next__(self) -> int:
        return secrets.randbits(self.bits) | self._mask

    def __repr__(self) -> str:
        return f"CandidateStream(bits={self.bits})"
