"""Ledger error taxonomy.

Every error is detected locally and synchronously; none is retried by the
ledger itself. A raised error always means no state was written.
"""

from __future__ import annotations

from typing import Any


class LedgerError(Exception):
    """Base class for all ledger rejections."""

    code: str = "LEDGER_ERROR"
    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidInput(LedgerError):
    """Malformed, zero, or empty argument."""

    code = "INVALID_INPUT"
    status_code = 400


class PaymentRequired(LedgerError):
    """The attached payment does not cover the analysis fee."""

    code = "PAYMENT_REQUIRED"
    status_code = 402


class OutOfRange(LedgerError):
    """Report index outside the caller's report sequence."""

    code = "OUT_OF_RANGE"
    status_code = 404


class AlreadyReconciled(LedgerError):
    """The report has already been reconciled once."""

    code = "ALREADY_RECONCILED"
    status_code = 409


class NoSavings(LedgerError):
    """The measured gas would not reduce the original figure."""

    code = "NO_SAVINGS"
    status_code = 422
