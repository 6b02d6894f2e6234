"""Small-prime table used as a fast rejection filter before Miller-Rabin."""

from __future__ import annotations

from bisect import bisect_left
from threading import Lock
from typing import Optional, Tuple

from .config import settings
from .errors import InvalidInputError


def first_primes(limit: int) -> Tuple[int, ...]:
    """Return every prime strictly below ``limit``, in ascending order.

    Each candidate is tested by trial division up to its square root using the
    primes found so far.
    """
    primes: list[int] = []
    for d in range(2, limit):
        if d > 2 and d % 2 == 0:
            continue
        if all(d % p for p in primes if p * p <= d):
            primes.append(d)
    return tuple(primes)


class SmallPrimeSieve:
    """Immutable table of small primes.

    ``has_small_factor`` only ever proves compositeness (or that the value *is*
    one of the table primes); it never declares a number prime.
    """

    __slots__ = ("_primes", "_limit")

    def __init__(self, limit: int) -> None:
        if limit < 2:
            raise InvalidInputError("sieve limit must be >= 2")
        self._limit = limit
        self._primes = first_primes(limit)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def primes(self) -> Tuple[int, ...]:
        return self._primes

    @property
    def largest(self) -> int:
        return self._primes[-1] if self._primes else 0

    def __len__(self) -> int:
        return len(self._primes)

    def __contains__(self, n: object) -> bool:
        if not isinstance(n, int) or n > self.largest:
            return False
        i = bisect_left(self._primes, n)
        return i < len(self._primes) and self._primes[i] == n

    def has_small_factor(self, candidate: int) -> bool:
        """True iff some table prime evenly divides ``candidate``."""
        return any(candidate % p == 0 for p in self._primes)

    def __repr__(self) -> str:
        return f"SmallPrimeSieve(limit={self._limit}, primes={len(self._primes)})"


_DEFAULT: Optional[SmallPrimeSieve] = None
_DEFAULT_LOCK = Lock()


def default_sieve() -> SmallPrimeSieve:
    """Process-wide table built from ``settings.sieve_limit`` exactly once."""
    global _DEFAULT
    if _DEFAULT is None:
        with _DEFAULT_LOCK:
            if _DEFAULT is None:
                _DEFAULT = SmallPrimeSieve(settings.sieve_limit)
    return _DEFAULT
