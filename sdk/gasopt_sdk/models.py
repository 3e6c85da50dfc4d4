"""Pydantic models for GasOpt SDK responses."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class Report(BaseModel):
    """One optimization report."""

    caller: str
    report_index: int
    target_contract: str
    original_gas_used: int
    optimized_gas_used: int
    gas_saved: int
    function_count: int = 0
    function_signatures: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    fee_paid: int = 0
    is_reconciled: bool = False
    created_at: datetime
    reconciled_at: datetime | None = None


class ReportCreated(BaseModel):
    report_index: int
    report: Report


class CallerStats(BaseModel):
    caller: str
    total_reports: int = 0
    reconciled_count: int = 0
    total_gas_saved: int = 0
    average_gas_saved_per_reconciled: int = 0
    efficiency_percent: int = 0
    total_original_gas_analyzed: int = 0


class GlobalStats(BaseModel):
    total_optimizations: int = 0
    total_callers: int = 0
    total_reports: int = 0
    total_gas_saved: int = 0


class LedgerEvent(BaseModel):
    id: int
    name: str
    caller: str | None = None
    target_contract: str
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
