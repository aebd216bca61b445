# This project was developed with assistance from AI tools.
"""Finance plan request/response schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class FinancePlanRequest(BaseModel):
    down_payment_usd: Decimal = Field(ge=0)
    tenure_months: int = Field(ge=1, le=60)
    annual_interest_percent: Decimal = Field(ge=0, le=100)


class FinancePlanResponse(BaseModel):
    """Installment schedule for a quote's final amount."""

    model_config = ConfigDict(from_attributes=True)

    quote_id: int
    down_payment_usd: Decimal
    tenure_months: int
    annual_interest_percent: Decimal
    monthly_installment_usd: Decimal
    total_payable_usd: Decimal
