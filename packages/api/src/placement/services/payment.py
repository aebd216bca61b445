# This project was developed with assistance from AI tools.
"""Payment against the approved quote.

Payment is a critical collaborator: a processor failure fails the request
and leaves the submission exactly as it was. Retrying is the caller's job.
"""

import logging
from datetime import UTC, datetime
from decimal import Decimal

from db import Submission
from db.enums import ActivityType, PaymentMethod, PaymentStatus
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import WorkflowValidationError
from ..schemas.auth import UserContext
from ..schemas.payment import PaymentStatusResponse
from ..schemas.workflow import WorkflowActionResponse
from .activity import write_activity
from .collaborators import get_payment_client
from .gates import pay_blocker, require
from .guarded import guarded_update
from .premium import RateComponents, calculate_final_amount, to_money
from .workflow import build_action_response, load_for_submission

logger = logging.getLogger(__name__)


def amount_due(quote) -> Decimal:
    """Final amount recomputed from the quote's components."""
    return calculate_final_amount(RateComponents.of(quote))


async def pay(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    amount,
    method: PaymentMethod,
) -> WorkflowActionResponse | None:
    """Charge the approved quote's final amount and mark the submission PAID."""
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    snapshot = ctx.snapshot()
    require(pay_blocker(snapshot))
    if snapshot.quote is None:
        require("no_quote")

    if amount is None:
        raise WorkflowValidationError("Missing required field: amount")
    paid = to_money(amount, "amount")
    due = amount_due(ctx.quote)
    if paid != due:
        raise WorkflowValidationError(
            f"Payment amount {paid} does not match the amount due {due}"
        )

    processor_status = await get_payment_client().charge(submission_id, paid, method.value)

    now = datetime.now(UTC)
    await guarded_update(
        session,
        Submission,
        submission_id,
        guards=(
            Submission.payment_status == PaymentStatus.PENDING,
            Submission.esign_completed.is_(True),
        ),
        values={
            "payment_status": PaymentStatus.PAID,
            "payment_date": now,
            "payment_amount": paid,
            "payment_method": method,
        },
        conflict_detail="Payment was already recorded for this submission",
    )
    entry = await write_activity(
        session,
        activity_type=ActivityType.PAYMENT_RECEIVED,
        description=f"Payment of ${paid} received by {method.value}",
        user=user,
        submission_id=submission_id,
        quote_id=ctx.quote.id,
        details={
            "amountUSD": str(paid),
            "method": method.value,
            "processorStatus": processor_status,
        },
    )
    await session.commit()
    logger.info("Submission %s paid %s via %s", submission_id, paid, method.value)

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])


async def get_payment_status(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> PaymentStatusResponse | None:
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    submission = ctx.submission
    return PaymentStatusResponse(
        submission_id=submission_id,
        payment_status=submission.payment_status,
        payment_date=submission.payment_date,
        payment_amount=submission.payment_amount,
        payment_method=submission.payment_method,
        amount_due=amount_due(ctx.quote) if ctx.quote is not None else None,
    )
