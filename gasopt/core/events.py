"""Domain events and the in-process event bus.

Events are fire-and-forget: the ledger persists them alongside the state
change, then hands them to subscribers in emission order once the change
is committed. A failing subscriber is logged and skipped; nothing is
retried and the originating operation is never affected.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, ClassVar, Iterable, Union

logger = logging.getLogger(__name__)


class EventName(str, Enum):
    ANALYSIS_COMPLETED = "AnalysisCompleted"
    REPORT_GENERATED = "ReportGenerated"
    OPTIMIZATION_APPLIED = "OptimizationApplied"


@dataclass(frozen=True)
class DomainEvent:
    """Base for all ledger events."""

    name: ClassVar[EventName]

    target_contract: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        return data


@dataclass(frozen=True)
class AnalysisCompleted(DomainEvent):
    name: ClassVar[EventName] = EventName.ANALYSIS_COMPLETED

    caller: str
    original_gas_used: int


@dataclass(frozen=True)
class ReportGenerated(DomainEvent):
    name: ClassVar[EventName] = EventName.REPORT_GENERATED

    gas_saved: int
    created_at: datetime


@dataclass(frozen=True)
class OptimizationApplied(DomainEvent):
    name: ClassVar[EventName] = EventName.OPTIMIZATION_APPLIED

    original_gas_used: int
    actual_optimized_gas: int


EventHandler = Callable[[DomainEvent], Union[Awaitable[None], None]]


class EventBus:
    """Ordered, in-process dispatcher for domain events."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe(self, handler: EventHandler) -> bool:
        try:
            self._handlers.remove(handler)
        except ValueError:
            return False
        return True

    @property
    def handlers(self) -> list[EventHandler]:
        return list(self._handlers)

    async def publish(self, events: Iterable[DomainEvent]) -> None:
        """Deliver each event to every subscriber, in order."""
        for event in events:
            logger.debug("Dispatching %s for %s", event.name.value, event.target_contract)
            for handler in list(self._handlers):
                try:
                    result = handler(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    logger.warning(
                        "Event handler %r failed on %s: %s",
                        handler,
                        event.name.value,
                        exc,
                        extra={"event": event.name.value},
                    )
