from concurrent.futures import ThreadPoolExecutor

import pytest

from primekey import sieve as sieve_module
from primekey.errors import InvalidInputError
from primekey.sieve import SmallPrimeSieve, first_primes


def _trial_division_is_prime(n: int) -> bool:
    if n < 2:
        return False
    d = 2
    while d * d <= n:
        if n % d == 0:
            return False
        d += 1
    return True


def test_first_primes_small_limit():
    assert first_primes(30) == (2, 3, 5, 7, 11, 13, 17, 19, 23, 29)
    assert first_primes(2) == ()
    assert first_primes(3) == (2,)


def test_first_primes_matches_trial_division():
    primes = first_primes(4000)
    assert len(primes) == 550
    assert primes[-1] == 3989
    assert list(primes) == [n for n in range(4000) if _trial_division_is_prime(n)]


def test_has_small_factor_detects_multiple_of_table_prime():
    table = SmallPrimeSieve(4000)
    assert table.has_small_factor(3347 * 4)
    assert table.has_small_factor(3989 * 1_000_003)


def test_has_small_factor_false_for_primes_beyond_table():
    table = SmallPrimeSieve(4000)
    beyond = [n for n in range(table.largest + 1, table.largest + 400) if _trial_division_is_prime(n)]
    assert beyond
    for p in beyond:
        assert not table.has_small_factor(p)
    assert not table.has_small_factor(2**127 - 1)


def test_membership_and_metadata():
    table = SmallPrimeSieve(100)
    assert 97 in table
    assert 91 not in table
    assert 101 not in table
    assert len(table) == 25
    assert table.limit == 100


def test_invalid_limit_rejected():
    with pytest.raises(InvalidInputError):
        SmallPrimeSieve(1)


def test_default_sieve_built_once_under_concurrency(monkeypatch):
    monkeypatch.setattr(sieve_module, "_DEFAULT", None)
    builds: list[int] = []
    original_init = SmallPrimeSieve.__init__

    def counting_init(self, limit):
        builds.append(limit)
        original_init(self, limit)

    monkeypatch.setattr(SmallPrimeSieve, "__init__", counting_init)

    with ThreadPoolExecutor(max_workers=8) as executor:
        tables = list(executor.map(lambda _i: sieve_module.default_sieve(), range(32)))

    assert len(builds) == 1
    assert all(t is tables[0] for t in tables)
