"""Efficiency statistics over a caller's report history.

The arithmetic deliberately mirrors the ledger's counters rather than a
per-report average:

- ``total_gas_saved`` is the caller's running counter, which only grows on
  reconciliation;
- ``average_gas_saved_per_reconciled`` divides that counter by the number of
  reconciled reports (floor);
- ``efficiency_percent`` divides it by the original gas of *every* report,
  reconciled or not (floor).
"""

from __future__ import annotations

from collections.abc import Iterable

from gasopt.core.errors import InvalidInput
from gasopt.core.store import ReportStore
from gasopt.core.types import CallerStats, GlobalStats, ReportView


def summarize(caller: str, reports: Iterable[ReportView], total_gas_saved: int) -> CallerStats:
    """Reduce a report sequence and saved-gas counter to a snapshot."""
    total_reports = 0
    reconciled = 0
    original_total = 0
    for report in reports:
        total_reports += 1
        original_total += report.original_gas_used
        if report.is_reconciled:
            reconciled += 1

    average = total_gas_saved // reconciled if reconciled > 0 else 0
    efficiency = (total_gas_saved * 100) // original_total if original_total > 0 else 0

    return CallerStats(
        caller=caller,
        total_reports=total_reports,
        reconciled_count=reconciled,
        total_gas_saved=total_gas_saved,
        average_gas_saved_per_reconciled=average,
        efficiency_percent=efficiency,
        total_original_gas_analyzed=original_total,
    )


class StatsAggregator:
    """Read-only view over the report store."""

    def __init__(self, store: ReportStore) -> None:
        self._store = store

    async def snapshot(self, caller: str | None) -> CallerStats:
        if not caller:
            raise InvalidInput("Caller identity is required")
        reports, total_gas_saved = await self._store.caller_history(caller)
        return summarize(caller, reports, total_gas_saved)

    async def global_snapshot(self) -> GlobalStats:
        return await self._store.global_totals()
