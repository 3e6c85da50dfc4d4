"""Prometheus metrics middleware.

Exposes /api/metrics with request counts, latencies, and ledger
counters in the Prometheus text exposition format.
"""

from __future__ import annotations

import re
import time
from typing import Callable

from fastapi import FastAPI, HTTPException, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import PlainTextResponse

# Lightweight in-process metrics (no dependency on prometheus_client)


class _Counter:
    """Labelled monotonically increasing counter."""

    def __init__(self, name: str, help_text: str, labels: list[str]) -> None:
        self.name = name
        self.help = help_text
        self.labels = labels
        self._values: dict[tuple, float] = {}

    def inc(self, label_values: tuple = (), amount: float = 1.0) -> None:
        self._values[label_values] = self._values.get(label_values, 0) + amount

    def value(self, label_values: tuple = ()) -> float:
        return self._values.get(label_values, 0)

    def collect(self) -> list[str]:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} counter"]
        for labels, value in sorted(self._values.items()):
            if labels:
                label_str = ",".join(f'{k}="{v}"' for k, v in zip(self.labels, labels))
                lines.append(f"{self.name}{{{label_str}}} {value}")
            else:
                lines.append(f"{self.name} {value}")
        return lines


class _Histogram:
    """Histogram with fixed buckets."""

    BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]

    def __init__(self, name: str, help_text: str, labels: list[str]) -> None:
        self.name = name
        self.help = help_text
        self.labels = labels
        self._observations: dict[tuple, list[float]] = {}

    def observe(self, label_values: tuple, value: float) -> None:
        self._observations.setdefault(label_values, []).append(value)

    def collect(self) -> list[str]:
        lines = [f"# HELP {self.name} {self.help}", f"# TYPE {self.name} histogram"]
        for labels, observations in sorted(self._observations.items()):
            label_str = ",".join(f'{k}="{v}"' for k, v in zip(self.labels, labels))
            count = len(observations)
            for bucket in self.BUCKETS:
                le_count = sum(1 for o in observations if o <= bucket)
                lines.append(f'{self.name}_bucket{{{label_str},le="{bucket}"}} {le_count}')
            lines.append(f'{self.name}_bucket{{{label_str},le="+Inf"}} {count}')
            lines.append(f"{self.name}_sum{{{label_str}}} {sum(observations):.6f}")
            lines.append(f"{self.name}_count{{{label_str}}} {count}")
        return lines


# ── Global metrics ───────────────────────────────────────────────────────────

http_requests_total = _Counter(
    "gasopt_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration = _Histogram(
    "gasopt_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

reports_created_total = _Counter(
    "gasopt_reports_created_total",
    "Optimization reports created",
    [],
)

reconciliations_total = _Counter(
    "gasopt_reconciliations_total",
    "Successful report reconciliations",
    [],
)

reconcile_rejections_total = _Counter(
    "gasopt_reconcile_rejections_total",
    "Rejected reconciliation attempts",
    ["reason"],
)

_ALL_METRICS = (
    http_requests_total,
    http_request_duration,
    reports_created_total,
    reconciliations_total,
    reconcile_rejections_total,
)


def collect_all_metrics() -> str:
    """Collect all metrics in Prometheus text exposition format."""
    all_lines: list[str] = []
    for metric in _ALL_METRICS:
        all_lines.extend(metric.collect())
    return "\n".join(all_lines) + "\n"


# ── Middleware ────────────────────────────────────────────────────────────────

_NUMERIC_SEGMENT = re.compile(r"/\d+")
_ADDRESS_SEGMENT = re.compile(r"/0x[0-9a-fA-F]+")


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path == "/api/metrics":
            return await call_next(request)

        # Report indices and addresses would blow up label cardinality
        normalized = _ADDRESS_SEGMENT.sub("/{addr}", path)
        normalized = _NUMERIC_SEGMENT.sub("/{id}", normalized)

        method = request.method
        start = time.perf_counter()
        status_code = "500"
        try:
            response = await call_next(request)
            status_code = str(response.status_code)
        finally:
            duration = time.perf_counter() - start
            http_requests_total.inc((method, normalized, status_code))
            http_request_duration.observe((method, normalized), duration)

        return response


def _is_internal(host: str) -> bool:
    return (
        host in ("127.0.0.1", "::1", "localhost", "testclient")
        or host.startswith("10.")
        or host.startswith("192.168.")
        or any(host.startswith(f"172.{i}.") for i in range(16, 32))
    )


def setup_metrics_route(app: FastAPI) -> None:
    """Register the /api/metrics endpoint (internal only)."""

    @app.get("/api/metrics", include_in_schema=False)
    async def metrics_endpoint(request: Request) -> PlainTextResponse:
        client_host = request.client.host if request.client else ""
        if not _is_internal(client_host):
            raise HTTPException(status_code=403, detail="Metrics endpoint restricted to internal access")
        return PlainTextResponse(
            collect_all_metrics(),
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )
