"""Generate a raw RSA key pair and round-trip one message through it.

Example:
    python backend/scripts/keygen_demo.py --bits 2048 --message 9238 --workers 8

Prints the JSON key generation report on stdout; logs go to stdout as JSON lines.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Ensure the project root is importable when executed directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from primekey.config import settings
from primekey.errors import PrimekeyError
from primekey.logging_utils import configure_json_logging, get_logger
from primekey.primality import PrimalityOracle
from primekey.rsa import KeyPairFactory
from primekey.search import ParallelPrimeSearch

logger = get_logger("primekey.demo")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Raw RSA key generation demo")
    parser.add_argument("--bits", type=int, default=settings.default_key_bits, help="Modulus size in bits")
    parser.add_argument("--message", type=int, default=9238, help="Integer message to encrypt and decrypt")
    parser.add_argument("--workers", type=int, default=None, help="Prime search worker threads")
    parser.add_argument(
        "--backend", choices=["process", "thread"], default=None, help="Run search workers as processes or threads"
    )
    parser.add_argument("--rounds", type=int, default=None, help="Miller-Rabin rounds per candidate")
    parser.add_argument("--timeout", type=float, default=None, help="Deadline per prime search in seconds")
    parser.add_argument("--verbose", action="store_true", help="Log per-search events")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_json_logging(logging.DEBUG if args.verbose else logging.INFO)

    search = ParallelPrimeSearch(
        PrimalityOracle(rounds=args.rounds),
        max_workers=args.workers,
        timeout_seconds=args.timeout,
        backend=args.backend,
    )
    factory = KeyPairFactory(search)
    try:
        keypair, report = factory.generate_with_report(args.bits)
        ciphertext = keypair.public_key.crypt(args.message)
        plaintext = keypair.private_key.crypt(ciphertext)
    except PrimekeyError as exc:
        logger.error("Key generation failed", extra={"error_code": exc.code.value})
        print(exc.to_report().model_dump_json(indent=2))
        return 1

    output = report.model_dump()
    output["round_trip"] = {
        "message": args.message,
        "ciphertext": hex(ciphertext),
        "ok": plaintext == args.message,
    }
    print(json.dumps(output, indent=2))
    return 0 if plaintext == args.message else 2


if __name__ == "__main__":
    sys.exit(main())
