"""Efficiency statistics endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from gasopt.api.deps import get_stats_aggregator
from gasopt.api.middleware.auth import get_current_caller
from gasopt.core.stats import StatsAggregator
from gasopt.core.types import CallerStats, GlobalStats

router = APIRouter()


@router.get("/me", response_model=CallerStats)
async def my_stats(
    caller: str = Depends(get_current_caller),
    stats: StatsAggregator = Depends(get_stats_aggregator),
) -> CallerStats:
    return await stats.snapshot(caller)


@router.get("/global", response_model=GlobalStats)
async def global_stats(
    stats: StatsAggregator = Depends(get_stats_aggregator),
) -> GlobalStats:
    """Ledger-wide totals; public."""
    return await stats.global_snapshot()


@router.get("/{caller}", response_model=CallerStats)
async def caller_stats(
    caller: str,
    stats: StatsAggregator = Depends(get_stats_aggregator),
) -> CallerStats:
    """Snapshot for any caller; public, for observers."""
    return await stats.snapshot(caller)
