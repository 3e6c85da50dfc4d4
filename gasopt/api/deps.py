"""Shared FastAPI dependencies — the process-wide report store."""

from __future__ import annotations

from fastapi import Depends

from gasopt.core.config import get_settings
from gasopt.core.database import get_session_factory
from gasopt.core.events import EventBus
from gasopt.core.stats import StatsAggregator
from gasopt.core.store import ReportStore

_store: ReportStore | None = None


def get_report_store() -> ReportStore:
    """Return the shared store, creating it on first call."""
    global _store
    if _store is None:
        _store = ReportStore(
            get_session_factory(),
            EventBus(),
            default_fee=get_settings().analysis_fee,
        )
    return _store


def get_stats_aggregator(store: ReportStore = Depends(get_report_store)) -> StatsAggregator:
    return StatsAggregator(store)


def reset_store() -> None:
    """Drop the shared store — used in tests alongside ``reset_engine``."""
    global _store
    _store = None
