"""Report store — the single writer for reports, caller counters, and
the global ledger state.

Every mutation runs under one ``asyncio.Lock`` and inside one database
transaction. The transaction commits before the lock is released and rolls
back on any error, so a rejected call never leaves a partial write behind.
Domain events are written to ``ledger_events`` in the same transaction and
handed to the event bus after the commit.

Report lifecycle::

    Created ──reconcile (ok)──▶ Reconciled   (terminal)
       │
       └──reconcile (rejected)──▶ Created    (unchanged)
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from gasopt.core.errors import AlreadyReconciled, InvalidInput, NoSavings, OutOfRange
from gasopt.core.estimator import estimate
from gasopt.core.events import (
    AnalysisCompleted,
    DomainEvent,
    EventBus,
    OptimizationApplied,
    ReportGenerated,
)
from gasopt.core.fees import FeeGate, validate_fee
from gasopt.core.recommendations import recommend
from gasopt.core.types import EventView, GlobalStats, ReportView
from gasopt.models.base import utcnow
from gasopt.models.ledger import (
    GLOBAL_STATE_ID,
    CallerLedger,
    LedgerEvent,
    LedgerState,
    OptimizationReport,
)

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x" + "0" * 40

# Every gas, fee and counter column is a signed 64-bit BIGINT
MAX_INT64 = 2**63 - 1


# ── Validation helpers ───────────────────────────────────────────────────────


def _require_caller(caller: str | None) -> str:
    if not caller or not isinstance(caller, str):
        raise InvalidInput("Caller identity is required")
    return caller


def _require_positive(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInput(f"{name} must be a positive integer", {name: value})
    if value > MAX_INT64:
        raise InvalidInput(f"{name} exceeds the 64-bit range", {name: value})
    return value


def _require_counter_room(name: str, current: int, increment: int) -> int:
    total = current + increment
    if total > MAX_INT64:
        raise InvalidInput(
            f"{name} would exceed the 64-bit range",
            {name: current, "increment": increment},
        )
    return total


def _require_target(target_contract: str | None) -> str:
    if (
        not target_contract
        or not isinstance(target_contract, str)
        or target_contract.lower() == ZERO_ADDRESS
    ):
        raise InvalidInput("Target contract is required")
    return target_contract


class ReportStore:
    """Owns every caller's report sequence and the ledger counters."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        event_bus: EventBus | None = None,
        default_fee: int = 0,
    ) -> None:
        self._session_factory = session_factory
        self._bus = event_bus or EventBus()
        self._default_fee = validate_fee(default_fee)
        self._lock = asyncio.Lock()

    @property
    def events(self) -> EventBus:
        return self._bus

    # ── Internals ────────────────────────────────────────────────────────

    async def _load_state(self, session: AsyncSession) -> LedgerState:
        """Return the global state row, creating it inside the open transaction."""
        state = await session.get(LedgerState, GLOBAL_STATE_ID)
        if state is None:
            state = LedgerState(
                id=GLOBAL_STATE_ID,
                total_optimizations=0,
                analysis_fee=self._default_fee,
                collected_fees=0,
            )
            session.add(state)
            await session.flush()
        return state

    async def _load_report(
        self, session: AsyncSession, caller: str, report_index: int
    ) -> OptimizationReport:
        if isinstance(report_index, bool) or not isinstance(report_index, int) or report_index < 0:
            raise OutOfRange(f"Report index {report_index!r} is out of range")
        result = await session.execute(
            select(OptimizationReport).where(
                OptimizationReport.caller == caller,
                OptimizationReport.report_index == report_index,
            )
        )
        report = result.scalar_one_or_none()
        if report is None:
            raise OutOfRange(
                f"Report index {report_index} is out of range",
                {"report_index": report_index},
            )
        return report

    @staticmethod
    def _record(session: AsyncSession, event: DomainEvent, caller: str) -> None:
        session.add(
            LedgerEvent(
                name=event.name.value,
                caller=caller,
                target_contract=event.target_contract,
                payload=event.to_dict(),
            )
        )

    # ── Mutations ────────────────────────────────────────────────────────

    async def create_report(
        self,
        caller: str,
        target_contract: str,
        original_gas_used: int,
        function_signatures: Sequence[str],
        fee_paid: int = 0,
    ) -> int:
        """Record a new analysis and return its 0-based index for ``caller``.

        Raises:
            PaymentRequired: ``fee_paid`` is below the current analysis fee.
            InvalidInput: a missing caller or target, non-positive or
                out-of-range gas, no function signatures, or a fee that
                would overflow the collected balance.
        """
        async with self._lock:
            async with self._session_factory() as session:
                async with session.begin():
                    state = await self._load_state(session)
                    FeeGate(state.analysis_fee).require(fee_paid)

                    _require_caller(caller)
                    _require_target(target_contract)
                    _require_positive("original_gas_used", original_gas_used)
                    if not function_signatures:
                        raise InvalidInput("At least one function signature is required")
                    collected = _require_counter_room(
                        "collected_fees", state.collected_fees, fee_paid
                    )

                    signatures = [str(sig) for sig in function_signatures]
                    function_count = len(signatures)
                    optimized = estimate(original_gas_used, function_count)
                    gas_saved = max(0, original_gas_used - optimized)
                    created_at = utcnow()

                    ledger = await session.get(CallerLedger, caller)
                    if ledger is None:
                        ledger = CallerLedger(caller=caller, report_count=0, total_gas_saved=0)
                        session.add(ledger)

                    report_index = ledger.report_count
                    session.add(
                        OptimizationReport(
                            caller=caller,
                            report_index=report_index,
                            target_contract=target_contract,
                            original_gas_used=original_gas_used,
                            optimized_gas_used=optimized,
                            gas_saved=gas_saved,
                            function_count=function_count,
                            function_signatures=signatures,
                            recommendations=list(recommend(function_count)),
                            fee_paid=fee_paid,
                            is_reconciled=False,
                            created_at=created_at,
                        )
                    )
                    ledger.report_count = report_index + 1
                    state.collected_fees = collected

                    emitted: list[DomainEvent] = [
                        AnalysisCompleted(
                            target_contract=target_contract,
                            caller=caller,
                            original_gas_used=original_gas_used,
                        ),
                        ReportGenerated(
                            target_contract=target_contract,
                            gas_saved=gas_saved,
                            created_at=created_at,
                        ),
                    ]
                    for event in emitted:
                        self._record(session, event, caller)

            logger.info(
                "Report %d created for %s on %s (estimate %d → %d)",
                report_index,
                caller,
                target_contract,
                original_gas_used,
                optimized,
                extra={"caller": caller, "report_index": report_index},
            )
            await self._bus.publish(emitted)
        return report_index

    async def reconcile(
        self, caller: str, report_index: int, actual_optimized_gas: int
    ) -> ReportView:
        """Replace a report's estimate with a measured figure, exactly once.

        Raises:
            InvalidInput: missing caller or non-positive measured gas.
            OutOfRange: no report at ``report_index`` for ``caller``.
            AlreadyReconciled: the report was reconciled before.
            NoSavings: ``actual_optimized_gas`` is not below the original.
        """
        async with self._lock:
            async with self._session_factory() as session:
                async with session.begin():
                    _require_caller(caller)
                    _require_positive("actual_optimized_gas", actual_optimized_gas)
                    report = await self._load_report(session, caller, report_index)
                    if report.is_reconciled:
                        raise AlreadyReconciled(
                            f"Report {report_index} is already reconciled",
                            {"report_index": report_index},
                        )
                    if actual_optimized_gas >= report.original_gas_used:
                        raise NoSavings(
                            f"Measured gas {actual_optimized_gas} does not reduce "
                            f"original {report.original_gas_used}",
                            {
                                "original_gas_used": report.original_gas_used,
                                "actual_optimized_gas": actual_optimized_gas,
                            },
                        )

                    gas_saved = report.original_gas_used - actual_optimized_gas
                    ledger = await session.get(CallerLedger, caller)
                    new_total = _require_counter_room(
                        "total_gas_saved", ledger.total_gas_saved, gas_saved
                    )

                    report.optimized_gas_used = actual_optimized_gas
                    report.gas_saved = gas_saved
                    report.is_reconciled = True
                    report.reconciled_at = utcnow()
                    ledger.total_gas_saved = new_total
                    state = await self._load_state(session)
                    state.total_optimizations += 1

                    event = OptimizationApplied(
                        target_contract=report.target_contract,
                        original_gas_used=report.original_gas_used,
                        actual_optimized_gas=actual_optimized_gas,
                    )
                    self._record(session, event, caller)
                    await session.flush()
                    view = ReportView.model_validate(report)

            logger.info(
                "Report %d reconciled for %s: saved %d gas",
                report_index,
                caller,
                view.gas_saved,
                extra={"caller": caller, "report_index": report_index},
            )
            await self._bus.publish([event])
        return view

    async def set_fee(self, fee: int) -> int:
        """Change the analysis fee; returns the previous fee."""
        validate_fee(fee)
        async with self._lock:
            async with self._session_factory() as session:
                async with session.begin():
                    state = await self._load_state(session)
                    previous = state.analysis_fee
                    state.analysis_fee = fee
        logger.info("Analysis fee changed from %d to %d wei", previous, fee)
        return previous

    # ── Reads ────────────────────────────────────────────────────────────

    async def get_report(self, caller: str, report_index: int) -> ReportView:
        _require_caller(caller)
        async with self._session_factory() as session:
            report = await self._load_report(session, caller, report_index)
            return ReportView.model_validate(report)

    async def list_reports(self, caller: str) -> list[ReportView]:
        """Return the caller's reports in index order."""
        _require_caller(caller)
        async with self._session_factory() as session:
            return await self._list(session, caller)

    async def caller_history(self, caller: str) -> tuple[list[ReportView], int]:
        """Return ``(reports, total_gas_saved)`` read from one session."""
        _require_caller(caller)
        async with self._session_factory() as session:
            async with session.begin():
                reports = await self._list(session, caller)
                ledger = await session.get(CallerLedger, caller)
                return reports, ledger.total_gas_saved if ledger else 0

    async def total_gas_saved(self, caller: str) -> int:
        _require_caller(caller)
        async with self._session_factory() as session:
            ledger = await session.get(CallerLedger, caller)
            return ledger.total_gas_saved if ledger else 0

    async def total_optimizations(self) -> int:
        async with self._session_factory() as session:
            state = await session.get(LedgerState, GLOBAL_STATE_ID)
            return state.total_optimizations if state else 0

    async def analysis_fee(self) -> int:
        async with self._session_factory() as session:
            state = await session.get(LedgerState, GLOBAL_STATE_ID)
            return state.analysis_fee if state else self._default_fee

    async def collected_fees(self) -> int:
        async with self._session_factory() as session:
            state = await session.get(LedgerState, GLOBAL_STATE_ID)
            return state.collected_fees if state else 0

    async def global_totals(self) -> GlobalStats:
        async with self._session_factory() as session:
            async with session.begin():
                state = await session.get(LedgerState, GLOBAL_STATE_ID)
                # summed here: the per-caller totals together can pass BIGINT
                saved = (
                    await session.execute(select(CallerLedger.total_gas_saved))
                ).scalars().all()
                reports = (
                    await session.execute(select(func.count(OptimizationReport.id)))
                ).scalar_one()
        return GlobalStats(
            total_optimizations=state.total_optimizations if state else 0,
            total_callers=len(saved),
            total_reports=reports or 0,
            total_gas_saved=sum(saved),
        )

    async def recent_events(
        self, limit: int = 50, name: str | None = None, caller: str | None = None
    ) -> list[EventView]:
        """Return persisted events, newest first."""
        query = select(LedgerEvent).order_by(LedgerEvent.id.desc()).limit(limit)
        if name:
            query = query.where(LedgerEvent.name == name)
        if caller:
            query = query.where(LedgerEvent.caller == caller)
        async with self._session_factory() as session:
            result = await session.execute(query)
            return [EventView.model_validate(row) for row in result.scalars().all()]

    @staticmethod
    async def _list(session: AsyncSession, caller: str) -> list[ReportView]:
        result = await session.execute(
            select(OptimizationReport)
            .where(OptimizationReport.caller == caller)
            .order_by(OptimizationReport.report_index)
        )
        return [ReportView.model_validate(r) for r in result.scalars().all()]
