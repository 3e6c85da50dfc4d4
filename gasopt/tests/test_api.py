"""HTTP tests for the ledger API — routes, auth, and the error envelope."""

from __future__ import annotations

import logging

import pytest

CALLER_A = "0x1111111111111111111111111111111111111111"
CALLER_B = "0x2222222222222222222222222222222222222222"
OWNER = "0x9999999999999999999999999999999999999999"
TARGET = "0xC0FFEE0000000000000000000000000000000001"
FEE = 1_000

SIGNATURES = [
    "transfer(address,uint256)",
    "approve(address,uint256)",
    "transferFrom(address,address,uint256)",
    "balanceOf(address)",
    "allowance(address,address)",
    "totalSupply()",
]


def _create_body(**overrides):
    body = {
        "target_contract": TARGET,
        "original_gas_used": 1000,
        "function_signatures": SIGNATURES,
        "fee_paid": FEE,
    }
    body.update(overrides)
    return body


async def _create(client, **overrides):
    resp = await client.post("/api/v1/reports/", json=_create_body(**overrides))
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── Health ───────────────────────────────────────────────────────────────────


class TestHealth:
    @pytest.mark.asyncio
    async def test_liveness(self, anon_client):
        resp = await anon_client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy", "service": "gasopt-ledger"}

    @pytest.mark.asyncio
    async def test_readiness_checks_database(self, anon_client):
        resp = await anon_client.get("/api/health/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["checks"]["database"]["status"] == "up"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, anon_client):
        resp = await anon_client.get("/api/health", headers={"X-Request-ID": "trace-42"})
        assert resp.headers["X-Request-ID"] == "trace-42"

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, anon_client):
        resp = await anon_client.get("/api/health")
        assert resp.headers.get("X-Request-ID")

    @pytest.mark.asyncio
    async def test_access_log_carries_request_id(self, anon_client, caplog):
        with caplog.at_level(logging.INFO, logger="gasopt.api.main"):
            await anon_client.get("/api/health", headers={"X-Request-ID": "trace-7"})
        records = [
            r for r in caplog.records
            if r.name == "gasopt.api.main" and getattr(r, "path", None) == "/api/health"
        ]
        assert records
        assert records[-1].request_id == "trace-7"

    @pytest.mark.asyncio
    async def test_unknown_route_uses_envelope(self, anon_client):
        resp = await anon_client.get("/api/v1/nowhere")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_security_headers(self, anon_client):
        resp = await anon_client.get("/api/health")
        assert resp.headers["X-Content-Type-Options"] == "nosniff"
        assert resp.headers["X-Frame-Options"] == "DENY"


# ── Auth ─────────────────────────────────────────────────────────────────────


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_token(self, anon_client):
        resp = await anon_client.post("/api/v1/reports/", json=_create_body())
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHORIZED"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_garbage_token(self, anon_client):
        resp = await anon_client.get(
            "/api/v1/reports/", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert resp.status_code == 401
        assert resp.json()["error"]["message"] == "Invalid token"


# ── Reports ──────────────────────────────────────────────────────────────────


class TestReports:
    @pytest.mark.asyncio
    async def test_create_report(self, client):
        data = await _create(client)
        assert data["report_index"] == 0
        report = data["report"]
        assert report["caller"] == CALLER_A
        assert report["optimized_gas_used"] == 850
        assert report["gas_saved"] == 150
        assert report["function_count"] == 6
        assert report["is_reconciled"] is False
        assert len(report["recommendations"]) == 3
        assert report["fee_paid"] == FEE

    @pytest.mark.asyncio
    async def test_list_and_get(self, client):
        await _create(client)
        await _create(client, original_gas_used=2000, function_signatures=["a()"])

        listed = (await client.get("/api/v1/reports/")).json()
        assert [r["report_index"] for r in listed] == [0, 1]

        resp = await client.get("/api/v1/reports/1")
        assert resp.status_code == 200
        assert resp.json()["optimized_gas_used"] == 1800

    @pytest.mark.asyncio
    async def test_get_out_of_range(self, client):
        resp = await client.get("/api/v1/reports/7")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "OUT_OF_RANGE"

    @pytest.mark.asyncio
    async def test_underpaid(self, client):
        resp = await client.post("/api/v1/reports/", json=_create_body(fee_paid=FEE - 1))
        assert resp.status_code == 402
        error = resp.json()["error"]
        assert error["code"] == "PAYMENT_REQUIRED"
        assert error["details"] == {"required": FEE, "paid": FEE - 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"target_contract": None},
            {"target_contract": "0x0000000000000000000000000000000000000000"},
            {"original_gas_used": 0},
            {"function_signatures": []},
        ],
    )
    async def test_invalid_input(self, client, overrides):
        resp = await client.post("/api/v1/reports/", json=_create_body(**overrides))
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_INPUT"

    @pytest.mark.asyncio
    async def test_malformed_body(self, client):
        resp = await client.post("/api/v1/reports/", json={"original_gas_used": "lots"})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["details"][0]["field"] == "original_gas_used"

    @pytest.mark.asyncio
    async def test_reports_are_per_caller(self, client, anon_client, auth_headers):
        await _create(client)
        resp = await anon_client.get("/api/v1/reports/", headers=auth_headers(CALLER_B))
        assert resp.status_code == 200
        assert resp.json() == []


# ── Reconciliation ───────────────────────────────────────────────────────────


class TestReconcile:
    @pytest.mark.asyncio
    async def test_reconcile(self, client):
        await _create(client)
        resp = await client.post(
            "/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 800}
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["gas_saved"] == 200
        assert data["is_reconciled"] is True

        stats = (await client.get("/api/v1/stats/me")).json()
        assert stats["total_gas_saved"] == 200
        assert stats["efficiency_percent"] == 20

    @pytest.mark.asyncio
    async def test_already_reconciled(self, client):
        await _create(client)
        await client.post("/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 800})
        resp = await client.post(
            "/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 700}
        )
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "ALREADY_RECONCILED"

        report = (await client.get("/api/v1/reports/0")).json()
        assert report["optimized_gas_used"] == 800

    @pytest.mark.asyncio
    async def test_no_savings(self, client):
        await _create(client)
        resp = await client.post(
            "/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 1000}
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "NO_SAVINGS"

    @pytest.mark.asyncio
    async def test_out_of_range(self, client):
        resp = await client.post(
            "/api/v1/reports/3/reconcile", json={"actual_optimized_gas": 800}
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "OUT_OF_RANGE"

    @pytest.mark.asyncio
    async def test_saved_counter_overflow_is_invalid_input(self, client):
        max_gas = 2**63 - 1
        await _create(client, original_gas_used=max_gas, function_signatures=["f()"])
        await _create(client, original_gas_used=max_gas, function_signatures=["f()"])
        first = await client.post(
            "/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 1}
        )
        assert first.status_code == 200

        resp = await client.post(
            "/api/v1/reports/1/reconcile", json={"actual_optimized_gas": 1}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_INPUT"
        assert (await client.get("/api/v1/reports/1")).json()["is_reconciled"] is False

    @pytest.mark.asyncio
    async def test_zero_measurement(self, client):
        await _create(client)
        resp = await client.post(
            "/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 0}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_INPUT"


# ── Stats ────────────────────────────────────────────────────────────────────


class TestStats:
    @pytest.mark.asyncio
    async def test_my_stats_requires_auth(self, anon_client):
        resp = await anon_client.get("/api/v1/stats/me")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_empty_stats(self, client):
        resp = await client.get("/api/v1/stats/me")
        assert resp.status_code == 200
        data = resp.json()
        assert data["caller"] == CALLER_A
        assert data["total_reports"] == 0
        assert data["efficiency_percent"] == 0

    @pytest.mark.asyncio
    async def test_public_caller_stats(self, client, anon_client):
        await _create(client)
        resp = await anon_client.get(f"/api/v1/stats/{CALLER_A}")
        assert resp.status_code == 200
        assert resp.json()["total_reports"] == 1

    @pytest.mark.asyncio
    async def test_global_stats(self, client, anon_client):
        await _create(client)
        await client.post("/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 800})

        resp = await anon_client.get("/api/v1/stats/global")
        assert resp.status_code == 200
        assert resp.json() == {
            "total_optimizations": 1,
            "total_callers": 1,
            "total_reports": 1,
            "total_gas_saved": 200,
        }


# ── Events ───────────────────────────────────────────────────────────────────


class TestEvents:
    @pytest.mark.asyncio
    async def test_lists_newest_first(self, client, anon_client):
        await _create(client)
        await client.post("/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 800})

        resp = await anon_client.get("/api/v1/events/")
        assert resp.status_code == 200
        names = [e["name"] for e in resp.json()]
        assert names == ["OptimizationApplied", "ReportGenerated", "AnalysisCompleted"]

    @pytest.mark.asyncio
    async def test_filter_by_name(self, client, anon_client):
        await _create(client)
        await _create(client)

        resp = await anon_client.get("/api/v1/events/", params={"name": "ReportGenerated"})
        events = resp.json()
        assert len(events) == 2
        assert all(e["payload"]["gas_saved"] == 150 for e in events)

    @pytest.mark.asyncio
    async def test_unknown_name_rejected(self, anon_client):
        resp = await anon_client.get("/api/v1/events/", params={"name": "Bogus"})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_filter_by_caller(self, client, anon_client):
        await _create(client)
        resp = await anon_client.get("/api/v1/events/", params={"caller": CALLER_B})
        assert resp.json() == []


# ── Admin ────────────────────────────────────────────────────────────────────


class TestAdmin:
    @pytest.mark.asyncio
    async def test_fee_is_public(self, anon_client):
        resp = await anon_client.get("/api/v1/admin/fee")
        assert resp.status_code == 200
        assert resp.json() == {"analysis_fee": FEE}

    @pytest.mark.asyncio
    async def test_non_owner_cannot_set_fee(self, client):
        resp = await client.put("/api/v1/admin/fee", json={"fee": 5})
        assert resp.status_code == 403
        assert resp.json()["error"]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_owner_sets_fee(self, anon_client, auth_headers):
        headers = auth_headers(OWNER)
        resp = await anon_client.put("/api/v1/admin/fee", json={"fee": 5_000}, headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"previous_fee": FEE, "analysis_fee": 5_000}
        assert (await anon_client.get("/api/v1/admin/fee")).json()["analysis_fee"] == 5_000

    @pytest.mark.asyncio
    async def test_owner_negative_fee(self, anon_client, auth_headers):
        resp = await anon_client.put(
            "/api/v1/admin/fee", json={"fee": -1}, headers=auth_headers(OWNER)
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_INPUT"

    @pytest.mark.asyncio
    async def test_balance(self, client, anon_client, auth_headers):
        await _create(client, fee_paid=FEE + 500)
        resp = await anon_client.get("/api/v1/admin/balance", headers=auth_headers(OWNER))
        assert resp.status_code == 200
        assert resp.json() == {"collected_fees": FEE + 500, "total_optimizations": 0}


# ── Metrics ──────────────────────────────────────────────────────────────────


class TestMetrics:
    @pytest.mark.asyncio
    async def test_exposes_ledger_counters(self, client):
        await _create(client)
        await client.post("/api/v1/reports/0/reconcile", json={"actual_optimized_gas": 1000})

        resp = await client.get("/api/metrics")
        assert resp.status_code == 200
        text = resp.text
        assert "gasopt_reports_created_total" in text
        assert 'gasopt_reconcile_rejections_total{reason="NO_SAVINGS"}' in text
        assert 'path="/api/v1/reports/{id}/reconcile"' in text
