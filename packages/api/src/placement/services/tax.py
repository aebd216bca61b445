# This project was developed with assistance from AI tools.
"""Premium tax lookup adapter.

Normalizes the jurisdiction and asks the external rate service for the tax
on a premium. Any failure (unrecognized jurisdiction, service unset,
timeout, bad response) is a soft outcome: the quote keeps its prior tax
values and the admin enters them manually.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..errors import CollaboratorFailure, WorkflowValidationError
from ..schemas.tax import TaxCalculationResponse
from .collaborators import get_tax_client
from .jurisdictions import STATE_CODES, is_known_jurisdiction, normalize_jurisdiction
from .premium import CENT, to_money

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaxLookupResult:
    state: str
    state_code: str
    premium_usd: Decimal
    tax_rate: Decimal | None = None
    tax_amount_usd: Decimal | None = None
    message: str | None = None

    @property
    def auto_calculated(self) -> bool:
        return self.tax_rate is not None and self.tax_amount_usd is not None


async def lookup_tax(state: str | None, premium_usd) -> TaxLookupResult:
    """Query the rate service. Never raises for collaborator problems."""
    if not state or not state.strip():
        raise WorkflowValidationError("State is required")
    premium = to_money(premium_usd, "premium")
    if premium <= 0:
        raise WorkflowValidationError("Premium amount must be greater than 0")

    code = normalize_jurisdiction(state)
    if not is_known_jurisdiction(code):
        return TaxLookupResult(
            state=state,
            state_code=code,
            premium_usd=premium,
            message=f"Unrecognized jurisdiction '{state}'; enter tax manually",
        )

    try:
        rate, amount = await get_tax_client().calculate(code, premium)
    except CollaboratorFailure as exc:
        logger.warning("Tax lookup failed for %s: %s", code, exc.detail)
        return TaxLookupResult(
            state=state,
            state_code=code,
            premium_usd=premium,
            message="Tax service unavailable; enter tax manually",
        )

    return TaxLookupResult(
        state=STATE_CODES[code],
        state_code=code,
        premium_usd=premium,
        tax_rate=rate,
        tax_amount_usd=amount.quantize(CENT, rounding=ROUND_HALF_UP),
    )


def jurisdiction_from_payload(payload: dict | None) -> str | None:
    """Best-effort state pulled from the submission's application data."""
    if not payload:
        return None
    for key in ("state", "State", "mailingState", "locationState"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    address = payload.get("address")
    if isinstance(address, dict):
        value = address.get("state")
        if isinstance(value, str) and value.strip():
            return value
    return None


def to_calculation_response(result: TaxLookupResult) -> TaxCalculationResponse:
    return TaxCalculationResponse(
        state=result.state,
        state_code=result.state_code,
        premium_usd=result.premium_usd,
        tax_rate=result.tax_rate,
        tax_amount_usd=result.tax_amount_usd,
        auto_calculated=result.auto_calculated,
        message=result.message,
    )
