# This project was developed with assistance from AI tools.
"""Workflow and final policy document schemas."""

from datetime import datetime

from db.enums import DocumentType, FinalDocumentKind, SignatureStatus
from pydantic import BaseModel, ConfigDict


class QuoteDocumentResponse(BaseModel):
    """Generated document awaiting or carrying a signature."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    quote_id: int
    submission_id: int
    document_type: DocumentType
    document_name: str | None = None
    document_url: str
    signature_status: SignatureStatus
    generated_at: datetime
    sent_for_signature_at: datetime | None = None
    signed_at: datetime | None = None


class FinalDocument(BaseModel):
    kind: FinalDocumentKind
    url: str | None = None
    uploaded_at: datetime | None = None


class FinalDocumentsResponse(BaseModel):
    """Binder, policy, and certificate slots for a bound submission."""

    submission_id: int
    documents: list[FinalDocument]
