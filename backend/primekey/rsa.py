"""Textbook RSA keys and key pair generation.

This is raw modular exponentiation:
- No OAEP / PKCS#1 padding
- One big-integer block per call; messages must be smaller than the modulus
- Not constant-time
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from math import gcd
from typing import Optional, Tuple

from .config import settings
from .errors import InvalidInputError
from .logging_utils import get_logger, log_context
from .metrics_recorder import KeygenMetricsRecorder, keygen_metrics
from .models import KeyGenReport, StepTiming
from .modinv import modular_inverse
from .search import ParallelPrimeSearch, default_search

logger = get_logger(__name__)

# Each prime needs at least 8 bits.
MIN_KEY_BITS = 16


@dataclass(frozen=True)
class Key:
    exponent: int
    modulus: int

    def crypt(self, message: int) -> int:
        """Return ``message ** exponent mod modulus``."""
        if not 0 <= message < self.modulus:
            raise InvalidInputError(
                "message must satisfy 0 <= m < modulus for raw RSA (no padding)",
                detail={"message_bits": message.bit_length(), "modulus_bits": self.modulus.bit_length()},
            )
        return pow(message, self.exponent, self.modulus)

    encrypt = crypt
    decrypt = crypt

    def __repr__(self) -> str:
        return f"Key(exponent=<{self.exponent.bit_length()} bits>, modulus=<{self.modulus.bit_length()} bits>)"


@dataclass(frozen=True)
class KeyPair:
    public_key: Key
    private_key: Key

    @property
    def modulus(self) -> int:
        return self.public_key.modulus


def split_key_bits(key_bits: int) -> Tuple[int, int]:
    """Prime sizes for a modulus of ``key_bits``; the product has ``key_bits - 1`` or ``key_bits`` bits."""
    return (key_bits + 1) // 2, key_bits // 2


class KeyPairFactory:
    def __init__(
        self,
        search: Optional[ParallelPrimeSearch] = None,
        *,
        public_exponent: Optional[int] = None,
        metrics: KeygenMetricsRecorder = keygen_metrics,
    ) -> None:
        self.search = search if search is not None else default_search()
        e = public_exponent if public_exponent is not None else settings.public_exponent
        if e < 3 or e % 2 == 0:
            raise InvalidInputError(
                f"public exponent must be odd and >= 3 (got {e})",
                action_hint="Use a standard exponent such as 65537.",
                detail={"public_exponent": e},
            )
        self.public_exponent = e
        self._metrics = metrics

    def generate(self, key_bits: int) -> KeyPair:
        keypair, _report = self.generate_with_report(key_bits)
        return keypair

    def generate_with_report(self, key_bits: int) -> Tuple[KeyPair, KeyGenReport]:
        """Generate a key pair whose modulus has ``key_bits`` (or one fewer) bits.

        The second prime is redrawn when it equals the first or when the public
        exponent is not coprime to the totient.
        """
        if key_bits < MIN_KEY_BITS:
            raise InvalidInputError(
                f"key size must be >= {MIN_KEY_BITS} bits (got {key_bits})",
                action_hint="Request a larger key size.",
                detail={"key_bits": key_bits},
            )
        e = self.public_exponent
        p_bits, q_bits = split_key_bits(key_bits)
        steps: list[StepTiming] = []

        with log_context(key_bits=key_bits):
            logger.info("Key generation started", extra={"prime_bits": [p_bits, q_bits]})
            t0 = time.perf_counter()

            p_attempt, p = self.search.find_prime(p_bits)
            t1 = time.perf_counter()
            steps.append(StepTiming(name="prime_p", ms=(t1 - t0) * 1000, attempts=p_attempt))

            while True:
                q_attempt, q = self.search.find_prime(q_bits)
                phi = (p - 1) * (q - 1)
                if q != p and gcd(e, phi) == 1:
                    break
                self._metrics.record_redraw()
                logger.info("Redrawing second prime", extra={"same_prime": q == p})
            t2 = time.perf_counter()
            steps.append(StepTiming(name="prime_q", ms=(t2 - t1) * 1000, attempts=q_attempt))

            n = p * q
            d = modular_inverse(e, phi)
            t3 = time.perf_counter()
            steps.append(StepTiming(name="derive_exponents", ms=(t3 - t2) * 1000))

            keypair = KeyPair(public_key=Key(e, n), private_key=Key(d, n))
            elapsed = t3 - t0
            self._metrics.record_keypair(key_bits, elapsed)
            logger.info(
                "Key generation finished",
                extra={"modulus_bits": n.bit_length(), "latency_s": elapsed},
            )

        report = KeyGenReport(
            key_bits=key_bits,
            modulus_bits=n.bit_length(),
            prime_bits=[p_bits, q_bits],
            attempts=[p_attempt, q_attempt],
            public_exponent=e,
            private_exponent_bits=d.bit_length(),
            runtime_ms=elapsed * 1000,
            steps=steps,
        )
        return keypair, report


def generate_keypair(bit_length: Optional[int] = None) -> KeyPair:
    """Generate a fresh key pair with the default search and settings."""
    return KeyPairFactory().generate(bit_length or settings.default_key_bits)
