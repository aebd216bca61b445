# This project was developed with assistance from AI tools.
"""Payment request/response schemas."""

from datetime import datetime
from decimal import Decimal

from db.enums import PaymentMethod, PaymentStatus
from pydantic import BaseModel


class PaymentRequest(BaseModel):
    """Amount must equal the approved quote's final amount to the cent."""

    amount: Decimal | None = None
    method: PaymentMethod


class PaymentStatusResponse(BaseModel):
    submission_id: int
    payment_status: PaymentStatus
    payment_date: datetime | None = None
    payment_amount: Decimal | None = None
    payment_method: PaymentMethod | None = None
    amount_due: Decimal | None = None
