from concurrent.futures import ThreadPoolExecutor

import pytest

from primekey import primality
from primekey.errors import InvalidInputError
from primekey.primality import PrimalityOracle, Verdict, is_probably_prime, split_even_part
from primekey.sieve import SmallPrimeSieve, first_primes


def test_boundaries():
    assert is_probably_prime(1) is False
    assert is_probably_prime(0) is False
    assert is_probably_prime(-7) is False
    assert is_probably_prime(2) is True
    assert is_probably_prime(3) is True
    assert is_probably_prime(4) is False


def test_agrees_with_table_below_limit():
    oracle = PrimalityOracle(SmallPrimeSieve(200))
    expected = set(first_primes(5000))
    for n in range(5000):
        assert oracle.is_probably_prime(n) == (n in expected), n


@pytest.mark.parametrize("n", [561, 41041, 825265, 321197185])
def test_carmichael_numbers_rejected(n):
    assert not is_probably_prime(n)


@pytest.mark.parametrize("exponent", [61, 89, 107, 127, 521, 607])
def test_mersenne_primes_accepted(exponent):
    assert is_probably_prime(2**exponent - 1)


def test_semiprime_of_large_primes_rejected():
    assert not is_probably_prime((2**127 - 1) * (2**89 - 1))


def test_verdict_stages():
    oracle = PrimalityOracle(SmallPrimeSieve(100))
    assert oracle.verdict(4) is Verdict.TRIVIAL_REJECT
    assert oracle.verdict(3) is Verdict.TRIVIAL_ACCEPT
    assert oracle.verdict(97) is Verdict.SIEVE_MEMBER
    assert oracle.verdict(91) is Verdict.SIEVE_REJECT
    assert oracle.verdict(101 * 103) is Verdict.MR_REJECT
    assert oracle.verdict(2**61 - 1) is Verdict.ACCEPTED


def test_split_even_part():
    assert split_even_part(2047) == (1, 1023)
    assert split_even_part(561) == (4, 35)
    s, d = split_even_part(2**89 - 1)
    assert d % 2 == 1
    assert 2**s * d == 2**89 - 2


def test_strong_pseudoprime_depends_on_witness():
    # 2047 = 23 * 89 passes a base-2 round but not a base-3 round.
    tiny = SmallPrimeSieve(3)
    _s, d = split_even_part(2047)
    base_two = PrimalityOracle(tiny, rounds=1, randbelow=lambda k: 0)
    base_three = PrimalityOracle(tiny, rounds=1, randbelow=lambda k: 1)
    assert base_two.miller_round(d, 2047) is True
    assert base_three.miller_round(d, 2047) is False


def test_witness_within_range():
    seen: list[int] = []

    def recording_randbelow(k: int) -> int:
        seen.append(k)
        return k - 1

    oracle = PrimalityOracle(SmallPrimeSieve(3), rounds=4, randbelow=recording_randbelow)
    n = 2**61 - 1
    assert oracle.witness(n) == n - 2
    assert oracle.is_probably_prime(n)
    assert seen and all(k == n - 3 for k in seen)


def test_small_numbers_with_empty_sieve():
    oracle = PrimalityOracle(SmallPrimeSieve(2), rounds=8)
    assert oracle.is_probably_prime(5)
    assert oracle.is_probably_prime(7)
    assert not oracle.is_probably_prime(9)
    assert not oracle.is_probably_prime(10)


def test_rounds_configurable():
    calls: list[int] = []

    def counting_randbelow(k: int) -> int:
        calls.append(k)
        return 0

    oracle = PrimalityOracle(SmallPrimeSieve(100), rounds=7, randbelow=counting_randbelow)
    assert oracle.is_probably_prime(2**89 - 1)
    assert len(calls) == 7

    with pytest.raises(InvalidInputError):
        PrimalityOracle(rounds=0)


def test_default_oracle_built_once_under_concurrency(monkeypatch):
    monkeypatch.setattr(primality, "_DEFAULT_ORACLE", None)
    with ThreadPoolExecutor(max_workers=8) as executor:
        oracles = list(executor.map(lambda _i: primality.default_oracle(), range(32)))
    assert all(o is oracles[0] for o in oracles)
