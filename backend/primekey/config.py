from __future__ import annotations

import os
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


SearchBackend = Literal["process", "thread"]


def _default_workers() -> int:
    return os.cpu_count() or 1


class PrimekeySettings(BaseSettings):
    """Environment-backed configuration for key generation."""

    model_config = SettingsConfigDict(
        env_prefix="PRIMEKEY_",
        env_file=".env",
        extra="ignore",
    )

    # Small-prime pre-filter: primes strictly below this value
    sieve_limit: int = Field(default=4000, ge=2)

    # Soundness/performance trade-off; false positives are bounded by 4^-rounds
    miller_rabin_rounds: int = Field(default=3, ge=1)

    # Prime search
    worker_pool_size: int = Field(default_factory=_default_workers, ge=1)
    search_backend: SearchBackend = Field(
        default="process",
        description="Run search workers as OS processes (parallel) or threads of this process",
    )
    search_timeout_seconds: float = Field(
        default=0.0,
        ge=0,
        description="Deadline for a single prime search; 0 disables",
    )

    # Key derivation
    public_exponent: int = Field(default=65537, ge=3)
    default_key_bits: int = Field(default=1024, ge=16)

    # Metrics / observability
    enable_metrics: bool = Field(
        default=True, description="Record Prometheus counters for searches and key generation"
    )

    @field_validator("public_exponent")
    @classmethod
    def _odd_exponent(cls, value: int) -> int:
        if value % 2 == 0:
            raise ValueError("PRIMEKEY_PUBLIC_EXPONENT must be odd")
        return value


settings = PrimekeySettings()
