# This project was developed with assistance from AI tools.
"""Functional tests: tax calculator and health check."""

from decimal import Decimal
from unittest.mock import AsyncMock, patch

from db import get_db_service

from placement.services.tax import TaxLookupResult

from .personas import agency_user


def test_tax_calculate(make_client):
    result = TaxLookupResult(
        state="California",
        state_code="CA",
        premium_usd=Decimal("1000.00"),
        tax_rate=Decimal("3.0"),
        tax_amount_usd=Decimal("30.00"),
    )
    client = make_client(agency_user())
    with patch("placement.routes.tax.lookup_tax", new_callable=AsyncMock, return_value=result) as mock_lookup:
        resp = client.get("/api/tax/calculate", params={"state": "ca", "premium": "1000"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["auto_calculated"] is True
    assert body["tax_amount_usd"] == "30.00"
    assert mock_lookup.call_args.args == ("ca", Decimal("1000"))


def test_tax_calculate_soft_failure(make_client):
    result = TaxLookupResult(
        state="California",
        state_code="CA",
        premium_usd=Decimal("1000.00"),
        message="Tax service unavailable; enter tax manually",
    )
    client = make_client(agency_user())
    with patch("placement.routes.tax.lookup_tax", new_callable=AsyncMock, return_value=result):
        resp = client.get("/api/tax/calculate", params={"state": "CA", "premium": "1000"})

    assert resp.status_code == 200
    assert resp.json()["auto_calculated"] is False
    assert resp.json()["tax_amount_usd"] is None


def test_tax_calculate_requires_state(make_client):
    resp = make_client(agency_user()).get("/api/tax/calculate", params={"premium": "1000"})
    assert resp.status_code == 422


class _FakeDbService:
    def __init__(self, status: str):
        self.status = status

    async def health_check(self) -> dict:
        return {"name": "Database", "status": self.status, "message": "PostgreSQL"}


def test_health_ok(make_client, app):
    client = make_client(agency_user())
    app.dependency_overrides[get_db_service] = lambda: _FakeDbService("healthy")
    resp = client.get("/health/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


def test_health_degraded(make_client, app):
    client = make_client(agency_user())
    app.dependency_overrides[get_db_service] = lambda: _FakeDbService("unhealthy")
    resp = client.get("/health/")
    assert resp.status_code == 503
    assert resp.json()["components"][0]["status"] == "unhealthy"
