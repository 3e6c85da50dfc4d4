"""Database models package."""

from gasopt.models.base import Base, TimestampMixin  # noqa: F401
from gasopt.models.ledger import (  # noqa: F401
    CallerLedger,
    LedgerEvent,
    LedgerState,
    OptimizationReport,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "OptimizationReport",
    "CallerLedger",
    "LedgerState",
    "LedgerEvent",
]
