# This project was developed with assistance from AI tools.
"""Scoped loading of the records one workflow action works on.

A ``WorkflowContext`` bundles the submission, the quote under
consideration, that quote's documents and its finance plan, all re-read
from the database (``populate_existing``) so that rows updated by a
conditional write are never served stale from the identity map.
"""

from dataclasses import dataclass, field

from db import ActivityLog, FinancePlan, Quote, QuoteDocument, Submission
from db.enums import QuoteStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.activity import ActivityEntry
from ..schemas.auth import UserContext
from ..schemas.document import QuoteDocumentResponse
from ..schemas.quote import QuoteResponse
from ..schemas.submission import SubmissionResponse
from ..schemas.workflow import WorkflowActionResponse
from .gates import evaluate_gates
from .scope import apply_data_scope
from .snapshot import WorkflowSnapshot

_ACTIVE = QuoteStatus.active_statuses()


@dataclass
class WorkflowContext:
    submission: Submission
    quote: Quote | None = None
    documents: list[QuoteDocument] = field(default_factory=list)
    finance_plan: FinancePlan | None = None

    def snapshot(self) -> WorkflowSnapshot:
        return WorkflowSnapshot.capture(
            self.submission,
            self.quote,
            self.documents,
            has_finance_plan=self.finance_plan is not None,
        )


async def get_scoped_submission(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> Submission | None:
    """Return the submission if visible to the caller, else None."""
    stmt = (
        select(Submission)
        .where(Submission.id == submission_id)
        .execution_options(populate_existing=True)
    )
    stmt = apply_data_scope(stmt, user.data_scope)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_scoped_quote(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> Quote | None:
    """Return the quote if its submission is visible to the caller, else None."""
    stmt = select(Quote).where(Quote.id == quote_id).execution_options(populate_existing=True)
    stmt = apply_data_scope(stmt, user.data_scope, join_to_submission=Quote.submission)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_active_quote(session: AsyncSession, submission_id: int) -> Quote | None:
    """The quote the agency approved (APPROVED, BIND_REQUESTED or BOUND)."""
    stmt = (
        select(Quote)
        .where(Quote.submission_id == submission_id, Quote.status.in_(_ACTIVE))
        .order_by(Quote.id)
        .limit(1)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def _load_quote_children(
    session: AsyncSession,
    quote_id: int,
) -> tuple[list[QuoteDocument], FinancePlan | None]:
    docs_result = await session.execute(
        select(QuoteDocument)
        .where(QuoteDocument.quote_id == quote_id)
        .order_by(QuoteDocument.generated_at, QuoteDocument.id)
        .execution_options(populate_existing=True)
    )
    plan_result = await session.execute(
        select(FinancePlan)
        .where(FinancePlan.quote_id == quote_id)
        .execution_options(populate_existing=True)
    )
    return list(docs_result.scalars().all()), plan_result.scalar_one_or_none()


async def load_for_quote(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> WorkflowContext | None:
    quote = await get_scoped_quote(session, user, quote_id)
    if quote is None:
        return None
    submission = await get_scoped_submission(session, user, quote.submission_id)
    if submission is None:
        return None
    documents, plan = await _load_quote_children(session, quote.id)
    return WorkflowContext(submission=submission, quote=quote, documents=documents, finance_plan=plan)


async def load_for_submission(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> WorkflowContext | None:
    """Submission plus its active quote (if any)."""
    submission = await get_scoped_submission(session, user, submission_id)
    if submission is None:
        return None
    quote = await get_active_quote(session, submission.id)
    if quote is None:
        return WorkflowContext(submission=submission)
    documents, plan = await _load_quote_children(session, quote.id)
    return WorkflowContext(submission=submission, quote=quote, documents=documents, finance_plan=plan)


def build_action_response(
    ctx: WorkflowContext,
    activity: list[ActivityLog] | None = None,
    *,
    signing_url: str | None = None,
) -> WorkflowActionResponse:
    """Serialize a freshly loaded context with gates evaluated on it."""
    return WorkflowActionResponse(
        submission=SubmissionResponse.model_validate(ctx.submission),
        quote=QuoteResponse.model_validate(ctx.quote) if ctx.quote is not None else None,
        documents=[QuoteDocumentResponse.model_validate(d) for d in ctx.documents],
        gates=evaluate_gates(ctx.snapshot()),
        activity=[ActivityEntry.from_log(a) for a in activity or []],
        signing_url=signing_url,
    )
