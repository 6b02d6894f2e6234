import secrets
from math import gcd

import pytest

from primekey.errors import InvalidInputError, InvariantViolation
from primekey.modinv import egcd, modular_inverse


def test_egcd_bezout_identity():
    g, s, t = egcd(240, 46)
    assert g == 2
    assert 240 * s + 46 * t == 2


def test_egcd_with_zero():
    assert egcd(0, 5)[0] == 5
    assert egcd(5, 0) == (5, 1, 0)


def test_small_inverses():
    assert modular_inverse(3, 11) == 4
    # Bezout coefficient for 7 mod 40 is negative before normalization.
    assert egcd(7, 40)[1] < 0
    assert modular_inverse(7, 40) == 23


def test_public_exponent_inverse_for_16_bit_primes():
    p, q = 65521, 65519
    phi = (p - 1) * (q - 1)
    d = modular_inverse(65537, phi)
    assert 0 <= d < phi
    assert (65537 * d) % phi == 1
    assert d == pow(65537, -1, phi)


def test_random_large_coprime_pairs():
    for _ in range(50):
        modulus = secrets.randbits(2048) | (1 << 2047)
        a = secrets.randbits(1024) | 1
        if gcd(a, modulus) != 1:
            continue
        inv = modular_inverse(a, modulus)
        assert 0 <= inv < modulus
        assert (a * inv) % modulus == 1


def test_not_coprime_is_invariant_violation():
    with pytest.raises(InvariantViolation) as excinfo:
        modular_inverse(6, 9)
    assert excinfo.value.detail == {"gcd": 3}


@pytest.mark.parametrize("modulus", [1, 0, -7])
def test_invalid_modulus(modulus):
    with pytest.raises(InvalidInputError):
        modular_inverse(3, modulus)
