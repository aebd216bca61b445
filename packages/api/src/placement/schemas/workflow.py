# This project was developed with assistance from AI tools.
"""Response returned by every workflow action endpoint."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .activity import ActivityEntry
from .document import QuoteDocumentResponse
from .quote import QuoteResponse
from .status import GateState
from .submission import SubmissionResponse


class WorkflowActionResponse(BaseModel):
    """Updated records, freshly evaluated gates, and the entries just logged."""

    submission: SubmissionResponse
    quote: QuoteResponse | None = None
    documents: list[QuoteDocumentResponse] = Field(default_factory=list)
    gates: GateState
    activity: list[ActivityEntry] = Field(default_factory=list)
    signing_url: str | None = None


class EsignWebhookPayload(BaseModel):
    """Out-of-band signature notification from the e-sign provider."""

    model_config = ConfigDict(populate_by_name=True)

    submission_id: int = Field(alias="submissionId")
    status: str


class EsignStatusResponse(BaseModel):
    submission_id: int
    esign_completed: bool
    esign_completed_at: datetime | None = None
    documents: list[QuoteDocumentResponse]
