"""
tests/test_server.py

HTTP surface, exercised through FastAPI's TestClient.
"""

from __future__ import annotations

import inspect
from datetime import timedelta
from typing import Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from rental_analytics import server
from rental_analytics.dataset import AnalyticsSnapshot
from rental_analytics.models import PaymentStatus
from rental_analytics.repository import AnalyticsRepository, DataFetchError, InMemoryAnalyticsRepository

from conftest import NOW


class _BrokenRepository(AnalyticsRepository):
    def load(self, property_ids: Optional[Sequence[str]] = None) -> AnalyticsSnapshot:
        raise DataFetchError("Failed to load users: timeout")


def _iso(days: float) -> str:
    return (NOW - timedelta(days=days)).isoformat()


PAYLOAD = {
    "time_range": "30d",
    "now": NOW.isoformat(),
    "users": [
        {"role": "Owner", "created_at": _iso(2)},
        {"role": "tenant", "is_active": False, "created_at": _iso(45)},
    ],
    "properties": [
        {
            "id": "p1",
            "name": "Makati Suites",
            "status": "active",
            "monthly_rent": 1500,
            "city": "Makati",
            "created_at": _iso(3),
        },
    ],
    "tenancies": [{"status": "active", "created_at": _iso(3), "property_id": "p1"}],
    "payments": [
        {
            "status": "PAID",
            "amount": 1000,
            "created_at": _iso(1),
            "paid_at": _iso(1),
            "payment_type": "rent",
            "property_id": "p1",
        },
        {"status": "paid", "amount": 500, "created_at": _iso(40)},
        {"status": "failed", "amount": 200, "created_at": _iso(5)},
    ],
    "maintenance": [
        {
            "status": "completed",
            "category": "electrical",
            "actual_cost": 250,
            "created_at": _iso(4),
            "updated_at": _iso(1),
        }
    ],
}


@pytest.fixture()
def client() -> TestClient:
    return TestClient(server.app)


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_inline_summary(client) -> None:
    response = client.post("/analytics", json=PAYLOAD)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["source"] == "inline"
    data = body["data"]
    assert data["revenue"] == {"total": 1500, "monthly": 1000, "growth": 100.0, "trend": "up"}
    assert data["users"]["breakdown"] == {"owners": 1, "tenants": 1, "admins": 0}
    assert data["properties"]["occupancyRate"] == 100.0
    assert data["payments"]["successRate"] == 66.67
    assert data["maintenance"]["averageResolutionTime"] == 3.0
    assert data["geographic"]["topCities"] == [{"city": "Makati", "properties": 1, "revenue": 1000.0}]


def test_inline_summary_empty_body(client) -> None:
    body = client.post("/analytics", json={}).json()
    assert body["success"] is True
    assert body["data"]["payments"]["successRate"] == 0


def test_rejects_unknown_status(client) -> None:
    payload = {"payments": [{"status": "refunded", "amount": 1, "created_at": _iso(1)}]}
    assert client.post("/analytics", json=payload).status_code == 422


def test_inline_breakdown(client) -> None:
    body = client.post("/analytics/breakdown", json=PAYLOAD).json()
    data = body["data"]
    assert data["revenue"]["monthlyRevenue"] == [{"month": "2026-10", "revenue": 1000.0, "payments": 1}]
    assert data["maintenance"]["maintenanceByCategory"] == [
        {"category": "electrical", "count": 1, "avgCost": 250.0}
    ]
    assert data["overview"]["totalTenants"] == 1
    assert data["properties"]["topPerformingProperties"] == [
        {"propertyId": "p1", "propertyName": "Makati Suites", "revenue": 1000.0, "occupancy": 0, "tenantCount": 1}
    ]


def test_database_route_requires_repository(client, monkeypatch) -> None:
    monkeypatch.setattr(server, "repository", None)
    assert client.get("/analytics").status_code == 503


def test_database_route_success(client, monkeypatch, snapshot) -> None:
    monkeypatch.setattr(server, "repository", InMemoryAnalyticsRepository(snapshot))
    body = client.get("/analytics", params={"time_range": "1y"}).json()
    assert body["success"] is True
    assert body["source"] == "database"
    assert body["data"]["users"]["total"] == 4


def test_database_route_scopes_by_property(client, monkeypatch, snapshot) -> None:
    monkeypatch.setattr(server, "repository", InMemoryAnalyticsRepository(snapshot))
    body = client.get("/analytics", params=[("property_ids", "p1"), ("property_ids", "p3")]).json()
    assert body["data"]["properties"]["total"] == 2


def test_database_route_failure(client, monkeypatch) -> None:
    monkeypatch.setattr(server, "repository", _BrokenRepository())
    response = client.get("/analytics")
    assert response.status_code == 502
    assert response.json() == {
        "success": False,
        "data": None,
        "message": "Failed to load users: timeout",
        "source": "database",
    }


def test_logging_configured_on_startup_not_import(monkeypatch) -> None:
    calls = []
    monkeypatch.setattr(server, "configure_logging", calls.append)
    TestClient(server.app).get("/health")
    assert calls == []
    with TestClient(server.app) as started:
        assert started.get("/health").status_code == 200
    assert calls == [server.config]


def test_payload_status_validators_normalize_tokens() -> None:
    payload = server.PaymentPayload.model_validate(
        {"status": " Paid ", "amount": 5, "created_at": NOW.isoformat()}
    )
    assert payload.status is PaymentStatus.PAID
    decorators = server.PaymentPayload.__pydantic_decorators__
    assert "normalize_status" in decorators.field_validators
    assert not decorators.validators


@pytest.mark.parametrize(
    "handler",
    [server.analytics_from_database, server.analytics_from_payload, server.breakdown_from_payload],
)
def test_blocking_routes_are_sync_handlers(handler) -> None:
    assert not inspect.iscoroutinefunction(handler)
