# This project was developed with assistance from AI tools.
"""Immutable view of the records a workflow decision depends on.

Gates and transition planning read only from a ``WorkflowSnapshot``. A
snapshot is captured from ORM rows at the start of an operation and is
never updated in place; after a write, capture a new one.
"""

from datetime import datetime
from decimal import Decimal

from db.enums import (
    DocumentType,
    PaymentStatus,
    QuoteStatus,
    SignatureStatus,
    SubmissionStatus,
)
from pydantic import BaseModel, ConfigDict


class SubmissionState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    agency_id: int
    status: SubmissionStatus
    esign_completed: bool = False
    esign_completed_at: datetime | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    bind_requested: bool = False
    bind_requested_at: datetime | None = None
    bind_approved: bool = False


class QuoteState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    submission_id: int
    carrier_id: int
    status: QuoteStatus
    carrier_quote_usd: Decimal
    premium_tax_percent: Decimal | None = None
    premium_tax_amount_usd: Decimal | None = None
    policy_fee_usd: Decimal | None = None
    broker_fee_amount_usd: Decimal = Decimal("0")
    final_amount_usd: Decimal
    has_finance_plan: bool = False


class DocumentState(BaseModel):
    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    quote_id: int
    document_type: DocumentType
    document_url: str
    signature_status: SignatureStatus


class WorkflowSnapshot(BaseModel):
    """Submission, the quote under consideration, and that quote's documents."""

    model_config = ConfigDict(frozen=True)

    submission: SubmissionState
    quote: QuoteState | None = None
    documents: tuple[DocumentState, ...] = ()

    @classmethod
    def capture(
        cls,
        submission,
        quote=None,
        documents=(),
        *,
        has_finance_plan: bool = False,
    ) -> "WorkflowSnapshot":
        """Build a snapshot from ORM rows (or any attribute-bearing objects)."""
        quote_state = None
        if quote is not None:
            quote_state = QuoteState.model_validate(quote).model_copy(
                update={"has_finance_plan": has_finance_plan}
            )
        return cls(
            submission=SubmissionState.model_validate(submission),
            quote=quote_state,
            documents=tuple(
                DocumentState.model_validate(d)
                for d in documents
                if quote is None or d.quote_id == quote.id
            ),
        )

    def document_of_type(self, document_type: DocumentType) -> DocumentState | None:
        for doc in self.documents:
            if doc.document_type == document_type:
                return doc
        return None
