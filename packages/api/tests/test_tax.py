# This project was developed with assistance from AI tools.
"""Tests for jurisdiction normalization and the soft-failing tax lookup."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from placement.errors import CollaboratorFailure, WorkflowValidationError
from placement.services.jurisdictions import is_known_jurisdiction, normalize_jurisdiction
from placement.services.tax import jurisdiction_from_payload, lookup_tax, to_calculation_response


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("CA", "CA"),
        ("ca", "CA"),
        ("California", "CA"),
        ("  new york ", "NY"),
        ("West Virginia", "WV"),
        ("State of Texas", "TX"),
        ("Washington DC", "DC"),
    ],
)
def test_normalize_jurisdiction(raw, expected):
    assert normalize_jurisdiction(raw) == expected


def test_unknown_jurisdiction_passes_through_upper_cased():
    code = normalize_jurisdiction("Atlantis")
    assert code == "ATLANTIS"
    assert not is_known_jurisdiction(code)


def test_empty_jurisdiction():
    assert normalize_jurisdiction(None) == ""
    assert normalize_jurisdiction("") == ""


def _tax_client(rate="7.25", amount="72.5"):
    client = MagicMock()
    client.calculate = AsyncMock(return_value=(Decimal(rate), Decimal(amount)))
    return client


@patch("placement.services.tax.get_tax_client")
async def test_lookup_tax_success(mock_get_client):
    client = _tax_client()
    mock_get_client.return_value = client

    result = await lookup_tax("california", "1000")

    client.calculate.assert_awaited_once_with("CA", Decimal("1000.00"))
    assert result.auto_calculated
    assert result.state == "California"
    assert result.tax_amount_usd == Decimal("72.50")


@patch("placement.services.tax.get_tax_client")
async def test_lookup_tax_service_failure_is_soft(mock_get_client):
    client = MagicMock()
    client.calculate = AsyncMock(side_effect=CollaboratorFailure("tax", "tax timed out after 5.0s"))
    mock_get_client.return_value = client

    result = await lookup_tax("TX", "1000")

    assert not result.auto_calculated
    assert result.tax_amount_usd is None
    assert "manually" in result.message


@patch("placement.services.tax.get_tax_client")
async def test_lookup_tax_unknown_jurisdiction_skips_service(mock_get_client):
    result = await lookup_tax("Atlantis", "1000")

    mock_get_client.assert_not_called()
    assert not result.auto_calculated
    assert "Unrecognized" in result.message


@pytest.mark.parametrize("state,premium", [("", "1000"), ("   ", "1000"), ("CA", "0"), ("CA", "-10")])
async def test_lookup_tax_validates_inputs(state, premium):
    with pytest.raises(WorkflowValidationError):
        await lookup_tax(state, premium)


def test_jurisdiction_from_payload():
    assert jurisdiction_from_payload({"state": "Ohio"}) == "Ohio"
    assert jurisdiction_from_payload({"address": {"state": "NV"}}) == "NV"
    assert jurisdiction_from_payload({"state": "  "}) is None
    assert jurisdiction_from_payload(None) is None


@patch("placement.services.tax.get_tax_client")
async def test_calculation_response_flags_auto_calculated(mock_get_client):
    mock_get_client.return_value = _tax_client()
    response = to_calculation_response(await lookup_tax("CA", "1000"))
    assert response.auto_calculated is True
    assert response.state_code == "CA"
