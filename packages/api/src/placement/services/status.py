# This project was developed with assistance from AI tools.
"""Workflow status aggregation.

Combines the submission's stage, its active quote, evaluated gates and
document progress into a single view for the agency or admin.
"""

import logging

from db.enums import QuoteStatus, SignatureStatus, SubmissionStatus
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.auth import UserContext
from ..schemas.status import PendingAction, StageInfo, WorkflowStatusResponse
from .gates import evaluate_gates, missing_document_types, required_document_count
from .workflow import load_for_submission

logger = logging.getLogger(__name__)

STAGE_INFO: dict[str, StageInfo] = {
    SubmissionStatus.SUBMITTED.value: StageInfo(
        label="Submitted",
        description="The application has been received and is awaiting review.",
        next_step="An administrator will route it to carriers.",
    ),
    SubmissionStatus.ROUTED.value: StageInfo(
        label="Routed",
        description="The application has been sent to one or more carriers.",
        next_step="Carrier quotes will be entered as they arrive.",
    ),
    SubmissionStatus.QUOTED.value: StageInfo(
        label="Quoted",
        description="At least one carrier quote is available.",
        next_step="Approve a quote, sign the documents and pay the premium.",
    ),
    SubmissionStatus.BIND_REQUESTED.value: StageInfo(
        label="Bind Requested",
        description="Signed and paid; the agency has asked for coverage to be bound.",
        next_step="An administrator will approve the bind.",
    ),
    SubmissionStatus.BOUND.value: StageInfo(
        label="Bound",
        description="Coverage is bound.",
        next_step="Final policy documents will be uploaded when issued.",
    ),
    SubmissionStatus.DECLINED.value: StageInfo(
        label="Declined",
        description="This submission was declined.",
        next_step="No further action required.",
    ),
}

_TERMINAL = SubmissionStatus.terminal_statuses()


def _pending_actions(ctx, gates) -> list[PendingAction]:
    submission = ctx.submission
    if submission.status in _TERMINAL:
        return []
    if submission.status == SubmissionStatus.SUBMITTED:
        return [PendingAction(action_type="route", description="Route the submission to carriers")]
    if ctx.quote is None:
        if submission.status == SubmissionStatus.QUOTED:
            return [PendingAction(action_type="approve_quote", description="Review and approve a posted quote")]
        return [PendingAction(action_type="enter_quote", description="Enter a carrier quote")]

    snapshot = ctx.snapshot()
    actions: list[PendingAction] = []
    if ctx.quote.status == QuoteStatus.APPROVED and not submission.esign_completed:
        for document_type in missing_document_types(snapshot):
            actions.append(
                PendingAction(
                    action_type="generate_document",
                    description=f"Generate {document_type.value.replace('_', ' ').lower()}",
                )
            )
        awaiting_signature = bool(snapshot.documents) and all(
            d.signature_status == SignatureStatus.SENT for d in snapshot.documents
        )
        if gates.can_send_for_signature and not awaiting_signature:
            actions.append(PendingAction(action_type="send_for_signature", description="Send documents for signature"))
        elif gates.has_all_documents:
            actions.append(PendingAction(action_type="sign_documents", description="Complete e-signature"))
    if gates.can_pay:
        actions.append(PendingAction(action_type="pay", description=f"Pay ${ctx.quote.final_amount_usd}"))
    if gates.can_request_bind:
        actions.append(PendingAction(action_type="request_bind", description="Request bind"))
    if submission.bind_requested and not submission.bind_approved:
        actions.append(PendingAction(action_type="approve_bind", description="Approve the bind request"))
    return actions


async def get_workflow_status(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> WorkflowStatusResponse | None:
    """Build an aggregated workflow summary for a submission.

    Returns None if the submission is not found or not accessible.
    """
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None

    status = ctx.submission.status.value
    stage_info = STAGE_INFO.get(
        status,
        StageInfo(
            label=status.replace("_", " ").title(),
            description="The submission is being processed.",
            next_step="Contact your administrator for details.",
        ),
    )
    snapshot = ctx.snapshot()
    gates = evaluate_gates(snapshot)
    required = required_document_count(snapshot.quote) if snapshot.quote else 0

    return WorkflowStatusResponse(
        submission_id=submission_id,
        status=status,
        stage_info=stage_info,
        active_quote_id=ctx.quote.id if ctx.quote else None,
        gates=gates,
        provided_doc_count=len(ctx.documents),
        required_doc_count=required,
        esign_completed=ctx.submission.esign_completed,
        payment_status=ctx.submission.payment_status,
        bind_requested=ctx.submission.bind_requested,
        bind_approved=ctx.submission.bind_approved,
        pending_actions=_pending_actions(ctx, gates),
    )
