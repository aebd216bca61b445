# This project was developed with assistance from AI tools.
"""Bind request (agency) and bind approval (admin)."""

import logging
from datetime import UTC, datetime

from db import Quote, Submission
from db.enums import PaymentStatus, QuoteStatus
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError
from ..schemas.auth import UserContext
from ..schemas.workflow import WorkflowActionResponse
from .activity import write_activity
from .effects import EffectQueue
from .gates import request_bind_blocker, require
from .guarded import guarded_update
from .notifications import notify_agency
from .transitions import plan_bind_approval, plan_bind_request
from .workflow import build_action_response, load_for_submission

logger = logging.getLogger(__name__)

_TERMINAL_QUOTES = QuoteStatus.terminal_statuses()


async def decline_sibling_quotes(session: AsyncSession, submission_id: int, keep_quote_id: int) -> list[int]:
    """Decline every other open quote of the submission; returns their ids.

    A submission in bind never keeps ENTERED or POSTED quotes beside the one
    being bound.
    """
    result = await session.execute(
        update(Quote)
        .where(
            Quote.submission_id == submission_id,
            Quote.id != keep_quote_id,
            Quote.status.notin_(_TERMINAL_QUOTES),
        )
        .values(status=QuoteStatus.DECLINED)
        .returning(Quote.id)
        .execution_options(synchronize_session=False)
    )
    return list(result.scalars().all())


async def request_bind(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> WorkflowActionResponse | None:
    """Agency asks the carrier to bind. A second request is a conflict."""
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    snapshot = ctx.snapshot()
    if snapshot.submission.bind_requested:
        raise ConflictError("Bind has already been requested for this submission")
    if snapshot.quote is None:
        require("no_quote")
    require(request_bind_blocker(snapshot))
    plan = plan_bind_request(snapshot)

    await guarded_update(
        session,
        Submission,
        submission_id,
        guards=(
            Submission.status == plan.submission_from,
            Submission.bind_requested.is_(False),
            Submission.esign_completed.is_(True),
            Submission.payment_status == PaymentStatus.PAID,
        ),
        values={
            "status": plan.submission_to,
            "bind_requested": True,
            "bind_requested_at": datetime.now(UTC),
        },
        conflict_detail="Bind has already been requested for this submission",
    )
    await guarded_update(
        session,
        Quote,
        snapshot.quote.id,
        guards=(Quote.status == plan.quote_from,),
        values={"status": plan.quote_to},
        conflict_detail="Quote changed while requesting bind; reload and retry",
    )
    declined_quote_ids = await decline_sibling_quotes(session, submission_id, snapshot.quote.id)
    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description="Bind requested",
        user=user,
        submission_id=submission_id,
        quote_id=snapshot.quote.id,
        details={
            "finalAmountUSD": str(snapshot.quote.final_amount_usd),
            "declinedQuoteIds": declined_quote_ids,
        },
    )
    await session.commit()
    logger.info("Submission %s bind requested (declined quotes %s)", submission_id, declined_quote_ids)

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])


async def approve_bind(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> WorkflowActionResponse | None:
    """Admin finalizes the bind: quote and submission both become BOUND."""
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    snapshot = ctx.snapshot()
    if snapshot.submission.bind_approved:
        raise ConflictError("Bind has already been approved for this submission")
    if snapshot.quote is None:
        require("no_quote")
    plan = plan_bind_approval(snapshot)

    await guarded_update(
        session,
        Submission,
        submission_id,
        guards=(
            Submission.status == plan.submission_from,
            Submission.bind_requested.is_(True),
            Submission.bind_approved.is_(False),
        ),
        values={
            "status": plan.submission_to,
            "bind_approved": True,
            "bind_approved_at": datetime.now(UTC),
        },
        conflict_detail="Bind has already been approved for this submission",
    )
    await guarded_update(
        session,
        Quote,
        snapshot.quote.id,
        guards=(Quote.status == plan.quote_from,),
        values={"status": plan.quote_to},
        conflict_detail="Quote changed while approving bind; reload and retry",
    )
    declined_quote_ids = await decline_sibling_quotes(session, submission_id, snapshot.quote.id)
    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description="Bind approved, policy bound",
        user=user,
        submission_id=submission_id,
        quote_id=snapshot.quote.id,
        details={"quoteId": snapshot.quote.id, "declinedQuoteIds": declined_quote_ids},
    )
    await session.commit()
    logger.info("Submission %s bound (quote %s)", submission_id, snapshot.quote.id)

    effects = EffectQueue(session=session)
    effects.add(
        "notify_agency",
        notify_agency,
        session,
        ctx.submission.agency_id,
        f"Submission #{submission_id} bound",
        f"Coverage for submission #{submission_id} is bound. Final documents will follow.",
    )
    await effects.dispatch()

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])
