"""Raw RSA key generation built on a parallel Miller-Rabin prime search."""

from .errors import InvalidInputError, InvariantViolation, PrimekeyError, PrimeSearchTimeout
from .modinv import egcd, modular_inverse
from .primality import PrimalityOracle, is_probably_prime
from .rsa import Key, KeyPair, KeyPairFactory, generate_keypair
from .search import ParallelPrimeSearch, PrimeSearchResult, find_prime
from .sieve import SmallPrimeSieve, default_sieve

__all__ = [
    "InvalidInputError",
    "InvariantViolation",
    "Key",
    "KeyPair",
    "KeyPairFactory",
    "ParallelPrimeSearch",
    "PrimalityOracle",
    "PrimeSearchResult",
    "PrimeSearchTimeout",
    "PrimekeyError",
    "SmallPrimeSieve",
    "default_sieve",
    "egcd",
    "find_prime",
    "generate_keypair",
    "is_probably_prime",
    "modular_inverse",
]
