# This project was developed with assistance from AI tools.
"""Quote request/response schemas.

Money fields are Decimal end to end. Amount validation (positivity, numeric
broker fee) lives in ``services.premium`` so that direct service callers and
HTTP callers get the same ``WorkflowValidationError``.
"""

from datetime import datetime
from decimal import Decimal

from db.enums import QuoteStatus
from pydantic import BaseModel, ConfigDict, Field


class QuoteCreate(BaseModel):
    """Admin entry of carrier terms for a submission."""

    carrier_id: int | None = None
    carrier_quote_usd: Decimal | None = None
    premium_tax_percent: Decimal | None = None
    premium_tax_amount_usd: Decimal | None = None
    policy_fee_usd: Decimal | None = None
    broker_fee_amount_usd: Decimal | None = None
    limits: dict | None = None
    endorsements: list[str] | None = None
    effective_date: datetime | None = None
    expiration_date: datetime | None = None
    policy_number: str | None = None
    carrier_reference: str | None = None
    special_notes: str | None = None
    admin_notes: str | None = None
    post: bool = Field(default=True, description="Post to the agency immediately.")


class BrokerFeeUpdate(BaseModel):
    broker_fee_amount_usd: Decimal | str | None = None


class TaxUpdate(BaseModel):
    """Manual premium tax entry. A percent re-derives the amount."""

    premium_tax_percent: Decimal | None = None
    premium_tax_amount_usd: Decimal | None = None


class TaxLookupRequest(BaseModel):
    """Jurisdiction for a tax lookup. Falls back to the submission payload's state."""

    state: str | None = None


class QuoteResponse(BaseModel):
    """Single quote response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    submission_id: int
    carrier_id: int
    status: QuoteStatus
    carrier_quote_usd: Decimal
    premium_tax_percent: Decimal | None = None
    premium_tax_amount_usd: Decimal | None = None
    tax_auto_calculated: bool = False
    policy_fee_usd: Decimal | None = None
    broker_fee_amount_usd: Decimal = Decimal("0")
    final_amount_usd: Decimal
    limits: dict | None = None
    endorsements: list[str] | None = None
    effective_date: datetime | None = None
    expiration_date: datetime | None = None
    policy_number: str | None = None
    carrier_reference: str | None = None
    special_notes: str | None = None
    admin_notes: str | None = None
    binder_pdf_url: str | None = None
    entered_by: str | None = None
    entered_at: datetime | None = None
    posted_at: datetime | None = None
    approved_by: str | None = None
    approved_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class QuoteListResponse(BaseModel):
    data: list[QuoteResponse]
    count: int
