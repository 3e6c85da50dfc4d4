"""GasOpt SDK — Python client for the GasOpt ledger API."""

from gasopt_sdk.client import GasOptAuthError, GasOptClient, GasOptError, GasOptPaymentRequired
from gasopt_sdk.models import (
    CallerStats,
    GlobalStats,
    LedgerEvent,
    Report,
    ReportCreated,
)

__version__ = "1.0.0"

__all__ = [
    "GasOptClient",
    "GasOptError",
    "GasOptAuthError",
    "GasOptPaymentRequired",
    "CallerStats",
    "GlobalStats",
    "LedgerEvent",
    "Report",
    "ReportCreated",
]
