# This project was developed with assistance from AI tools.
"""Submission service: intake, routing, decline, admin notes.

Every query is filtered through the caller's DataScope so agency users see
only their own agency's submissions. Lookups of out-of-scope submissions
return None, which the routes map to 404.
"""

import logging

from db import Agency, Carrier, Quote, Submission
from db.enums import ActivityType, QuoteStatus, SubmissionStatus
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, WorkflowValidationError
from ..schemas.auth import UserContext
from ..schemas.submission import SubmissionCreate
from ..schemas.workflow import WorkflowActionResponse
from .activity import write_activity
from .effects import EffectQueue
from .guarded import guarded_update
from .notifications import notify_agency
from .scope import apply_data_scope
from .transitions import plan_decline, plan_route
from .workflow import build_action_response, get_scoped_submission, load_for_submission

logger = logging.getLogger(__name__)

_TERMINAL_QUOTES = QuoteStatus.terminal_statuses()


async def list_submissions(
    session: AsyncSession,
    user: UserContext,
    *,
    offset: int = 0,
    limit: int = 20,
    filter_status: SubmissionStatus | None = None,
) -> tuple[list[Submission], int]:
    """Return submissions visible to the current user, newest first."""
    count_stmt = apply_data_scope(select(func.count(Submission.id)), user.data_scope)
    stmt = apply_data_scope(
        select(Submission).order_by(Submission.created_at.desc(), Submission.id.desc()),
        user.data_scope,
    )
    if filter_status is not None:
        count_stmt = count_stmt.where(Submission.status == filter_status)
        stmt = stmt.where(Submission.status == filter_status)

    total = (await session.execute(count_stmt)).scalar() or 0
    result = await session.execute(stmt.offset(offset).limit(limit))
    return list(result.scalars().all()), total


async def get_submission(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> Submission | None:
    return await get_scoped_submission(session, user, submission_id)


async def create_submission(
    session: AsyncSession,
    user: UserContext,
    body: SubmissionCreate,
) -> Submission:
    """Intake a new submission in SUBMITTED.

    Agency users always submit for their own agency; a system admin must
    name the agency explicitly.
    """
    agency_id = user.agency_id if user.data_scope.agency_id is not None else body.agency_id
    if agency_id is None:
        raise WorkflowValidationError("Missing required field: agency_id")

    agency = await session.get(Agency, agency_id)
    if agency is None:
        raise NotFoundError(f"Agency {agency_id} not found")

    submission = Submission(
        agency_id=agency_id,
        template_id=body.template_id,
        program_name=body.program_name,
        status=SubmissionStatus.SUBMITTED,
        client_contact=body.client_contact,
        payload=body.payload,
    )
    session.add(submission)
    await session.flush()

    await write_activity(
        session,
        activity_type=ActivityType.SUBMISSION_CREATED,
        description=f"Submission created for {body.program_name or body.template_id}",
        user=user,
        submission_id=submission.id,
        details={"templateId": body.template_id, "programName": body.program_name},
    )
    submission_id = submission.id  # capture before commit
    await session.commit()
    logger.info("Submission %s created for agency %s", submission_id, agency_id)
    return await get_scoped_submission(session, user, submission_id)


async def route_submission(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    carrier_ids: list[int],
) -> WorkflowActionResponse | None:
    """SUBMITTED -> ROUTED, recording which carriers were approached."""
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    plan = plan_route(ctx.snapshot())

    carrier_ids = list(dict.fromkeys(carrier_ids))
    result = await session.execute(select(Carrier.id).where(Carrier.id.in_(carrier_ids)))
    found = set(result.scalars().all())
    missing = [cid for cid in carrier_ids if cid not in found]
    if missing:
        raise NotFoundError(f"Carrier(s) not found: {missing}")

    await guarded_update(
        session,
        Submission,
        submission_id,
        guards=(Submission.status == plan.submission_from,),
        values={"status": plan.submission_to, "routed_carrier_ids": carrier_ids},
        conflict_detail="Submission changed while routing; reload and retry",
    )
    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description=f"Submission routed to {len(carrier_ids)} carrier(s)",
        user=user,
        submission_id=submission_id,
        details={"carrierIds": carrier_ids},
    )
    await session.commit()
    logger.info("Submission %s routed to carriers %s", submission_id, carrier_ids)

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])


async def decline_submission(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    reason: str,
) -> WorkflowActionResponse | None:
    """Decline the submission and every quote of it that is still open."""
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    plan = plan_decline(ctx.snapshot())

    await guarded_update(
        session,
        Submission,
        submission_id,
        guards=(Submission.status == plan.submission_from,),
        values={"status": plan.submission_to, "decline_reason": reason},
        conflict_detail="Submission changed while declining; reload and retry",
    )
    result = await session.execute(
        update(Quote)
        .where(Quote.submission_id == submission_id, Quote.status.notin_(_TERMINAL_QUOTES))
        .values(status=QuoteStatus.DECLINED)
        .returning(Quote.id)
        .execution_options(synchronize_session=False)
    )
    declined_quote_ids = list(result.scalars().all())

    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description=f"Submission declined: {reason}",
        user=user,
        submission_id=submission_id,
        details={
            "from": plan.submission_from.value,
            "to": plan.submission_to.value,
            "reason": reason,
            "declinedQuoteIds": declined_quote_ids,
        },
    )
    await session.commit()
    logger.info("Submission %s declined (quotes %s)", submission_id, declined_quote_ids)

    effects = EffectQueue(session=session)
    effects.add(
        "notify_agency",
        notify_agency,
        session,
        ctx.submission.agency_id,
        f"Submission #{submission_id} declined",
        f"Your submission #{submission_id} was declined. Reason: {reason}",
    )
    await effects.dispatch()

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])


async def set_admin_notes(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    admin_notes: str | None,
) -> Submission | None:
    submission = await get_scoped_submission(session, user, submission_id)
    if submission is None:
        return None

    await guarded_update(
        session,
        Submission,
        submission_id,
        values={"admin_notes": admin_notes},
        conflict_detail="Submission no longer exists",
    )
    await write_activity(
        session,
        activity_type=ActivityType.ADMIN_NOTE_ADDED,
        description="Admin notes updated" if admin_notes else "Admin notes cleared",
        user=user,
        submission_id=submission_id,
        details={"adminNotes": admin_notes},
    )
    await session.commit()
    return await get_scoped_submission(session, user, submission_id)
