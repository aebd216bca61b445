# This project was developed with assistance from AI tools.
"""Premium tax lookup schemas."""

from decimal import Decimal

from pydantic import BaseModel

from .workflow import WorkflowActionResponse


class TaxCalculationResponse(BaseModel):
    """Outcome of a tax lookup.

    ``auto_calculated`` is False when the rate service was unavailable or the
    jurisdiction was not recognized; the caller then enters tax manually.
    """

    state: str
    state_code: str
    premium_usd: Decimal
    tax_rate: Decimal | None = None
    tax_amount_usd: Decimal | None = None
    auto_calculated: bool
    message: str | None = None


class QuoteTaxLookupResponse(BaseModel):
    """Lookup outcome plus the quote's workflow state after applying it."""

    tax: TaxCalculationResponse
    workflow: WorkflowActionResponse
