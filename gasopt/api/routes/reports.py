"""Optimization report endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from gasopt.api.deps import get_report_store
from gasopt.api.middleware.auth import get_current_caller
from gasopt.api.middleware.metrics import (
    reconcile_rejections_total,
    reconciliations_total,
    reports_created_total,
)
from gasopt.core.errors import LedgerError
from gasopt.core.store import ReportStore
from gasopt.core.types import ReportView

router = APIRouter()

MAX_INT64 = 2**63 - 1


class ReportCreate(BaseModel):
    """Schema for requesting a new analysis.

    Range checks live in the store so rejections carry ledger error codes.
    """

    target_contract: str | None = None
    original_gas_used: int = Field(..., le=MAX_INT64)
    function_signatures: list[str] = Field(default_factory=list)
    fee_paid: int = Field(0, le=MAX_INT64)


class ReportCreated(BaseModel):
    report_index: int
    report: ReportView


class ReconcileRequest(BaseModel):
    actual_optimized_gas: int = Field(..., le=MAX_INT64)


@router.post("/", response_model=ReportCreated, status_code=201)
async def create_report(
    payload: ReportCreate,
    caller: str = Depends(get_current_caller),
    store: ReportStore = Depends(get_report_store),
) -> ReportCreated:
    """Run the gas estimate for a contract and append it to the caller's reports."""
    index = await store.create_report(
        caller,
        payload.target_contract,
        payload.original_gas_used,
        payload.function_signatures,
        fee_paid=payload.fee_paid,
    )
    reports_created_total.inc()
    report = await store.get_report(caller, index)
    return ReportCreated(report_index=index, report=report)


@router.get("/", response_model=list[ReportView])
async def list_reports(
    caller: str = Depends(get_current_caller),
    store: ReportStore = Depends(get_report_store),
) -> list[ReportView]:
    """List the caller's reports in index order."""
    return await store.list_reports(caller)


@router.get("/{report_index}", response_model=ReportView)
async def get_report(
    report_index: int,
    caller: str = Depends(get_current_caller),
    store: ReportStore = Depends(get_report_store),
) -> ReportView:
    return await store.get_report(caller, report_index)


@router.post("/{report_index}/reconcile", response_model=ReportView)
async def reconcile_report(
    report_index: int,
    payload: ReconcileRequest,
    caller: str = Depends(get_current_caller),
    store: ReportStore = Depends(get_report_store),
) -> ReportView:
    """Replace the estimate with a measured optimized gas figure (once)."""
    try:
        report = await store.reconcile(caller, report_index, payload.actual_optimized_gas)
    except LedgerError as exc:
        reconcile_rejections_total.inc((exc.code,))
        raise
    reconciliations_total.inc()
    return report
