"""Owner administration — analysis fee and collected balance."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from gasopt.api.deps import get_report_store
from gasopt.api.middleware.auth import require_owner
from gasopt.core.store import ReportStore

logger = logging.getLogger(__name__)

router = APIRouter()


class FeeResponse(BaseModel):
    analysis_fee: int


class FeeUpdate(BaseModel):
    fee: int = Field(..., le=2**63 - 1)


class FeeUpdated(BaseModel):
    previous_fee: int
    analysis_fee: int


class BalanceResponse(BaseModel):
    collected_fees: int
    total_optimizations: int


@router.get("/fee", response_model=FeeResponse)
async def get_fee(store: ReportStore = Depends(get_report_store)) -> FeeResponse:
    """Current fee required per analysis, in wei."""
    return FeeResponse(analysis_fee=await store.analysis_fee())


@router.put("/fee", response_model=FeeUpdated)
async def update_fee(
    payload: FeeUpdate,
    owner: str = Depends(require_owner),
    store: ReportStore = Depends(get_report_store),
) -> FeeUpdated:
    previous = await store.set_fee(payload.fee)
    logger.info("Owner %s set analysis fee to %d", owner, payload.fee)
    return FeeUpdated(previous_fee=previous, analysis_fee=payload.fee)


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    owner: str = Depends(require_owner),
    store: ReportStore = Depends(get_report_store),
) -> BalanceResponse:
    return BalanceResponse(
        collected_fees=await store.collected_fees(),
        total_optimizations=await store.total_optimizations(),
    )
