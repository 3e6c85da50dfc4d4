"""Persisted event log endpoint, for indexers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from gasopt.api.deps import get_report_store
from gasopt.core.events import EventName
from gasopt.core.store import ReportStore
from gasopt.core.types import EventView

router = APIRouter()


@router.get("/", response_model=list[EventView])
async def list_events(
    name: EventName | None = Query(None, description="Only events of this type"),
    caller: str | None = Query(None, description="Only events raised for this caller"),
    limit: int = Query(50, ge=1, le=500),
    store: ReportStore = Depends(get_report_store),
) -> list[EventView]:
    """Most recent events first."""
    return await store.recent_events(
        limit=limit,
        name=name.value if name else None,
        caller=caller,
    )
