"""Report, per-caller ledger, global state, and event log models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from gasopt.models.base import Base, TimestampMixin

GLOBAL_STATE_ID = 1


class OptimizationReport(Base, TimestampMixin):
    """One analysis record, addressed by ``(caller, report_index)``.

    Rows are never deleted. Only ``optimized_gas_used``, ``gas_saved``,
    ``is_reconciled`` and ``reconciled_at`` change, and only once.
    """

    __tablename__ = "optimization_reports"
    __table_args__ = (
        UniqueConstraint("caller", "report_index", name="uq_reports_caller_index"),
        Index("ix_reports_target_contract", "target_contract"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    caller: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    report_index: Mapped[int] = mapped_column(Integer, nullable=False)

    target_contract: Mapped[str] = mapped_column(String(128), nullable=False)
    original_gas_used: Mapped[int] = mapped_column(BigInteger, nullable=False)
    optimized_gas_used: Mapped[int] = mapped_column(BigInteger, nullable=False)
    gas_saved: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    function_count: Mapped[int] = mapped_column(Integer, nullable=False)
    function_signatures: Mapped[list] = mapped_column(JSON, default=list)
    recommendations: Mapped[list] = mapped_column(JSON, default=list)
    fee_paid: Mapped[int] = mapped_column(BigInteger, default=0)

    is_reconciled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    reconciled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class CallerLedger(Base, TimestampMixin):
    """Running counters owned by a single caller."""

    __tablename__ = "caller_ledgers"

    caller: Mapped[str] = mapped_column(String(128), primary_key=True)
    report_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_gas_saved: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class LedgerState(Base, TimestampMixin):
    """Singleton row holding the global counters and fee configuration."""

    __tablename__ = "ledger_state"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=GLOBAL_STATE_ID)
    total_optimizations: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    analysis_fee: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    collected_fees: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)


class LedgerEvent(Base, TimestampMixin):
    """Append-only log of emitted domain events, for indexers."""

    __tablename__ = "ledger_events"
    __table_args__ = (
        Index("ix_ledger_events_name", "name"),
        Index("ix_ledger_events_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    caller: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    target_contract: Mapped[str] = mapped_column(String(128), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, default=dict)
