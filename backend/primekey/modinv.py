"""Extended Euclidean algorithm and the modular inverse built on it."""

from __future__ import annotations

from typing import Tuple

from .errors import InvalidInputError, InvariantViolation
from .logging_utils import get_logger

logger = get_logger(__name__)


def egcd(a: int, b: int) -> Tuple[int, int, int]:
    """Extended Euclidean algorithm: returns (g, s, t) s.t. a*s + b*t = g = gcd(a, b).

    Iterative, so it handles operands of thousands of bits without recursion.
    """
    old_r, r = a, b
    old_s, s = 1, 0
    old_t, t = 0, 1
    while r != 0:
        q = old_r // r
        old_r, r = r, old_r - q * r
        old_s, s = s, old_s - q * s
        old_t, t = t, old_t - q * t
    if old_r < 0:
        return -old_r, -old_s, -old_t
    return old_r, old_s, old_t


def modular_inverse(a: int, modulus: int) -> int:
    """Return the unique ``x`` in ``[0, modulus)`` with ``a * x % modulus == 1``.

    ``a`` must be coprime to ``modulus``. Key derivation guarantees that, so a
    failure here is reported as ``InvariantViolation`` rather than bad input.
    """
    if modulus <= 1:
        raise InvalidInputError(f"modulus must be > 1 (got {modulus})")

    g, s, _t = egcd(a, modulus)
    if g != 1:
        logger.error(
            "Modular inverse requested for non-coprime operands",
            extra={"gcd": str(g), "modulus_bits": modulus.bit_length()},
        )
        raise InvariantViolation(
            f"no modular inverse: gcd(a, modulus) = {g}",
            detail={"gcd": g},
        )

    # Normalize the Bezout coefficient into the non-negative residue class.
    if s < 0:
        s %= modulus
    return s
