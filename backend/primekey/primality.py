"""Miller-Rabin probabilistic primality test with a small-prime pre-filter.

The oracle first settles the trivial cases, then rejects anything with a factor
in the small-prime table, and finally runs a configurable number of independent
Miller-Rabin rounds. A composite survives all rounds with probability at most
``4 ** -rounds``.
"""

from __future__ import annotations

import secrets
from enum import Enum
from threading import Lock
from typing import Callable, Optional

from .config import settings
from .errors import InvalidInputError
from .sieve import SmallPrimeSieve, default_sieve


class Verdict(str, Enum):
    TRIVIAL_REJECT = "trivial_reject"
    TRIVIAL_ACCEPT = "trivial_accept"
    SIEVE_MEMBER = "sieve_member"
    SIEVE_REJECT = "sieve_reject"
    MR_REJECT = "mr_reject"
    ACCEPTED = "accepted"

    @property
    def is_prime(self) -> bool:
        return self in (Verdict.TRIVIAL_ACCEPT, Verdict.SIEVE_MEMBER, Verdict.ACCEPTED)


def split_even_part(n: int) -> tuple[int, int]:
    """Write ``n - 1 = 2**s * d`` with ``d`` odd and return ``(s, d)``."""
    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1
    return s, d


class PrimalityOracle:
    def __init__(
        self,
        sieve: Optional[SmallPrimeSieve] = None,
        rounds: Optional[int] = None,
        randbelow: Callable[[int], int] = secrets.randbelow,
    ) -> None:
        rounds = settings.miller_rabin_rounds if rounds is None else rounds
        if rounds < 1:
            raise InvalidInputError("Miller-Rabin needs at least one round")
        self.sieve = sieve if sieve is not None else default_sieve()
        self.rounds = rounds
        self._randbelow = randbelow

    def witness(self, n: int) -> int:
        """Draw a uniform witness from ``[2, n - 2]``."""
        return self._randbelow(n - 3) + 2

    def miller_round(self, d: int, n: int) -> bool:
        """One Miller-Rabin round; ``False`` means ``n`` is definitely composite.

        ``d`` is the odd part of ``n - 1``. The tracked exponent doubles with
        every squaring until it reaches ``n - 1``.
        """
        a = self.witness(n)
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            return True

        while d != n - 1:
            x = x * x % n
            d *= 2
            if x == 1:
                return False
            if x == n - 1:
                return True

        return False

    def verdict(self, n: int) -> Verdict:
        # Corner cases
        if n <= 1 or n == 4:
            return Verdict.TRIVIAL_REJECT
        if n <= 3:
            return Verdict.TRIVIAL_ACCEPT

        if n in self.sieve:
            return Verdict.SIEVE_MEMBER
        if n % 2 == 0 or self.sieve.has_small_factor(n):
            return Verdict.SIEVE_REJECT

        _s, d = split_even_part(n)
        for _ in range(self.rounds):
            if not self.miller_round(d, n):
                return Verdict.MR_REJECT
        return Verdict.ACCEPTED

    def is_probably_prime(self, n: int) -> bool:
        return self.verdict(n).is_prime


_DEFAULT_ORACLE: Optional[PrimalityOracle] = None
_DEFAULT_LOCK = Lock()


def default_oracle() -> PrimalityOracle:
    global _DEFAULT_ORACLE
    if _DEFAULT_ORACLE is None:
        with _DEFAULT_LOCK:
            if _DEFAULT_ORACLE is None:
                _DEFAULT_ORACLE = PrimalityOracle()
    return _DEFAULT_ORACLE


def is_probably_prime(n: int) -> bool:
    """Miller-Rabin probabilistic primality test using the default oracle."""
    return default_oracle().is_probably_prime(n)
