"""GasOpt API client."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from gasopt_sdk.models import CallerStats, GlobalStats, LedgerEvent, Report, ReportCreated


class GasOptError(Exception):
    """Base exception for GasOpt SDK errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        code: str | None = None,
        response: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.response = response


class GasOptAuthError(GasOptError):
    """Missing, invalid, or expired token; or not the owner."""


class GasOptPaymentRequired(GasOptError):
    """The attached fee does not cover the analysis fee."""


class GasOptClient:
    """Async Python client for the GasOpt ledger API.

    Usage::

        async with GasOptClient(token="eyJ...", base_url="http://localhost:8000") as client:
            created = await client.create_report(
                "0xC0ffee...", 120_000, ["transfer(address,uint256)"], fee_paid=10**15
            )
            await client.reconcile(created.report_index, 95_000)
            print(await client.my_stats())
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._max_retries = max_retries

        headers: dict[str, str] = {
            "User-Agent": "gasopt-sdk/1.0.0",
            "Accept": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    # ── Context manager ──────────────────────────────────────────────

    async def __aenter__(self) -> GasOptClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── HTTP primitives ──────────────────────────────────────────────

    @staticmethod
    def _raise_for_error(resp: httpx.Response) -> None:
        try:
            body = resp.json()
        except ValueError:
            body = None
        error = (body or {}).get("error", {}) if isinstance(body, dict) else {}
        message = error.get("message") or f"HTTP {resp.status_code}"
        code = error.get("code")

        if resp.status_code in (401, 403):
            raise GasOptAuthError(message, status_code=resp.status_code, code=code, response=body)
        if resp.status_code == 402:
            raise GasOptPaymentRequired(message, status_code=402, code=code, response=body)
        raise GasOptError(message, status_code=resp.status_code, code=code, response=body)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        """Make an HTTP request, retrying transport errors and 5xx responses."""
        url = f"/api/v1{path}" if not path.startswith("/api") else path
        last_exc: Exception | None = None

        for attempt in range(self._max_retries):
            try:
                resp = await self._client.request(method, url, **kwargs)
            except httpx.RequestError as exc:
                last_exc = exc
                if attempt < self._max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                    continue
                break

            if resp.status_code >= 500 and attempt < self._max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue
            if resp.status_code >= 400:
                self._raise_for_error(resp)
            return resp

        raise GasOptError(f"Request failed after {self._max_retries} attempts: {last_exc}")

    async def _get(self, path: str, **kwargs) -> Any:
        resp = await self._request("GET", path, **kwargs)
        return resp.json()

    async def _post(self, path: str, **kwargs) -> Any:
        resp = await self._request("POST", path, **kwargs)
        return resp.json()

    # ── Reports ──────────────────────────────────────────────────────

    async def create_report(
        self,
        target_contract: str,
        original_gas_used: int,
        function_signatures: list[str],
        fee_paid: int = 0,
    ) -> ReportCreated:
        """Request an analysis. Returns the new report and its index."""
        data = await self._post(
            "/reports/",
            json={
                "target_contract": target_contract,
                "original_gas_used": original_gas_used,
                "function_signatures": function_signatures,
                "fee_paid": fee_paid,
            },
        )
        return ReportCreated(**data)

    async def reconcile(self, report_index: int, actual_optimized_gas: int) -> Report:
        """Replace a report's estimate with the measured optimized gas."""
        data = await self._post(
            f"/reports/{report_index}/reconcile",
            json={"actual_optimized_gas": actual_optimized_gas},
        )
        return Report(**data)

    async def get_report(self, report_index: int) -> Report:
        return Report(**await self._get(f"/reports/{report_index}"))

    async def list_reports(self) -> list[Report]:
        return [Report(**item) for item in await self._get("/reports/")]

    # ── Stats ────────────────────────────────────────────────────────

    async def my_stats(self) -> CallerStats:
        return CallerStats(**await self._get("/stats/me"))

    async def caller_stats(self, caller: str) -> CallerStats:
        return CallerStats(**await self._get(f"/stats/{caller}"))

    async def global_stats(self) -> GlobalStats:
        return GlobalStats(**await self._get("/stats/global"))

    # ── Events & fees ────────────────────────────────────────────────

    async def list_events(self, name: str | None = None, limit: int = 50) -> list[LedgerEvent]:
        params: dict[str, Any] = {"limit": limit}
        if name:
            params["name"] = name
        return [LedgerEvent(**item) for item in await self._get("/events/", params=params)]

    async def get_fee(self) -> int:
        data = await self._get("/admin/fee")
        return int(data["analysis_fee"])
