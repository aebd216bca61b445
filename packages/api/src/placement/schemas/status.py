# This project was developed with assistance from AI tools.
"""Workflow status response schemas."""

from db.enums import PaymentStatus
from pydantic import BaseModel


class PendingAction(BaseModel):
    """A single action the agency or admin needs to take."""

    action_type: str
    description: str


class StageInfo(BaseModel):
    """Human-readable info about the current submission status."""

    label: str
    description: str
    next_step: str


class GateState(BaseModel):
    """Evaluated workflow gates for the submission's active quote."""

    can_generate_documents: bool
    has_all_documents: bool
    can_send_for_signature: bool
    can_pay: bool
    can_request_bind: bool


class WorkflowStatusResponse(BaseModel):
    """Aggregated workflow view for a submission."""

    submission_id: int
    status: str
    stage_info: StageInfo
    active_quote_id: int | None = None
    gates: GateState
    provided_doc_count: int
    required_doc_count: int
    esign_completed: bool = False
    payment_status: PaymentStatus = PaymentStatus.PENDING
    bind_requested: bool = False
    bind_approved: bool = False
    pending_actions: list[PendingAction]
