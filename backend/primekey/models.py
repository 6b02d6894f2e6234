from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Structured error code taxonomy for callers and logs."""

    INVALID_INPUT = "INVALID_INPUT"
    INVARIANT_VIOLATED = "INVARIANT_VIOLATED"
    SEARCH_TIMEOUT = "SEARCH_TIMEOUT"


class ErrorReport(BaseModel):
    """Uniform error payload surfaced to logs and the demo script."""

    error_code: ErrorCode
    error_message: str
    error_detail: Optional[dict] = None
    action_hint: Optional[str] = Field(
        default=None,
        description="Hint for recovering from the failure.",
    )


class StepTiming(BaseModel):
    name: str
    ms: float
    attempts: Optional[int] = None


class KeyGenReport(BaseModel):
    """Summary of a single key pair generation."""

    key_bits: int = Field(description="Requested modulus size in bits.")
    modulus_bits: int
    prime_bits: List[int] = Field(description="Bit lengths requested for p and q.")
    attempts: List[int] = Field(
        description="Attempt index of the winning candidate in each prime search."
    )
    public_exponent: int
    private_exponent_bits: int
    runtime_ms: float
    steps: List[StepTiming] = Field(default_factory=list)
