"""Webhook relay — forwards ledger events to external indexers.

Subscribed to the event bus at startup when ``GASOPT_EVENT_WEBHOOK_URLS``
is set. Deliveries run as background tasks so a slow receiver never holds
up the ledger; failures are logged and dropped.

Body posted to every URL::

    {
        "event": "ReportGenerated",
        "payload": {...event fields...},
        "timestamp": 1735689600.0
    }
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import httpx

from gasopt.core.events import DomainEvent

logger = logging.getLogger(__name__)


class WebhookRelay:
    """Event-bus subscriber that POSTs events to webhook URLs."""

    def __init__(
        self,
        urls: list[str],
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._urls = list(urls)
        self._timeout = timeout
        self._transport = transport
        self._pending: set[asyncio.Task] = set()

    @property
    def urls(self) -> list[str]:
        return list(self._urls)

    def __call__(self, event: DomainEvent) -> None:
        task = asyncio.create_task(self.deliver(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    def build_body(event: DomainEvent) -> dict[str, Any]:
        return {
            "event": event.name.value,
            "payload": event.to_dict(),
            "timestamp": time.time(),
        }

    async def deliver(self, event: DomainEvent) -> dict[str, bool]:
        """Send ``event`` to every URL. Returns url → success."""
        body = self.build_body(event)
        results: dict[str, bool] = {}
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for url in self._urls:
                try:
                    resp = await client.post(
                        url,
                        json=body,
                        headers={"Content-Type": "application/json"},
                    )
                    ok = 200 <= resp.status_code < 300
                    if not ok:
                        logger.warning("Webhook %s returned %d: %s", url, resp.status_code, resp.text)
                    results[url] = ok
                except httpx.HTTPError as exc:
                    logger.warning("Webhook delivery to %s failed: %s", url, exc)
                    results[url] = False
        return results

    async def drain(self) -> None:
        """Wait for in-flight deliveries (used on shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
