"""Shared read-side schemas used across the ledger."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on round-trip
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ReportView(BaseModel):
    """Immutable snapshot of one optimization report."""

    caller: str
    report_index: int
    target_contract: str
    original_gas_used: int
    optimized_gas_used: int
    gas_saved: int
    function_count: int
    function_signatures: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    fee_paid: int = 0
    is_reconciled: bool = False
    created_at: datetime
    reconciled_at: datetime | None = None

    model_config = {"from_attributes": True, "frozen": True}

    @field_validator("created_at", "reconciled_at")
    @classmethod
    def ensure_utc(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class CallerStats(BaseModel):
    """Efficiency snapshot for a single caller."""

    caller: str
    total_reports: int = 0
    reconciled_count: int = 0
    total_gas_saved: int = 0
    average_gas_saved_per_reconciled: int = 0
    efficiency_percent: int = 0
    total_original_gas_analyzed: int = 0


class GlobalStats(BaseModel):
    """Ledger-wide totals."""

    total_optimizations: int = 0
    total_callers: int = 0
    total_reports: int = 0
    total_gas_saved: int = 0


class EventView(BaseModel):
    """A persisted domain event."""

    id: int
    name: str
    caller: str | None = None
    target_contract: str
    payload: dict = Field(default_factory=dict)
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)
