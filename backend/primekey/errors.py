from __future__ import annotations

from typing import Optional

from .models import ErrorCode, ErrorReport


class PrimekeyError(Exception):
    """Base class for errors raised by key generation and raw RSA operations."""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(
        self,
        message: str,
        *,
        action_hint: Optional[str] = None,
        detail: Optional[dict] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.action_hint = action_hint
        self.detail = detail

    def to_report(self) -> ErrorReport:
        return ErrorReport(
            error_code=self.code,
            error_message=self.message,
            error_detail=self.detail,
            action_hint=self.action_hint,
        )


class InvalidInputError(PrimekeyError, ValueError):
    """Caller supplied a key size, bit length or message the operation cannot accept."""

    code = ErrorCode.INVALID_INPUT


class InvariantViolation(PrimekeyError, RuntimeError):
    """An internal invariant that the algorithms guarantee by construction was broken.

    Seeing this means there is a logic defect; it is never raised for bad input.
    """

    code = ErrorCode.INVARIANT_VIOLATED


class PrimeSearchTimeout(PrimekeyError, TimeoutError):
    """A prime search did not finish before its deadline and was cancelled."""

    code = ErrorCode.SEARCH_TIMEOUT
