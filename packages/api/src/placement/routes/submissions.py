# This project was developed with assistance from AI tools.
"""Submission routes for agencies (and admins acting across agencies)."""

from db import get_db
from db.enums import SubmissionStatus, UserRole
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas import Pagination
from ..schemas.activity import ActivityEntry, ActivityTimelineResponse
from ..schemas.document import FinalDocumentsResponse
from ..schemas.payment import PaymentRequest, PaymentStatusResponse
from ..schemas.quote import QuoteListResponse, QuoteResponse
from ..schemas.status import WorkflowStatusResponse
from ..schemas.submission import SubmissionCreate, SubmissionListResponse, SubmissionResponse
from ..schemas.workflow import EsignStatusResponse, WorkflowActionResponse
from ..services import submission as submission_service
from ..services.activity import list_activity
from ..services.bind import request_bind
from ..services.esign import get_esign_status
from ..services.final_documents import final_documents_view
from ..services.payment import get_payment_status, pay
from ..services.quote import list_quotes
from ..services.status import get_workflow_status

router = APIRouter()

_ALL_ROLES = (UserRole.SYSTEM_ADMIN, UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER)
_AGENCY_ROLES = (UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")


@router.get(
    "/",
    response_model=SubmissionListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def list_submissions(
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
    filter_status: SubmissionStatus | None = None,
) -> SubmissionListResponse:
    """List submissions visible to the caller's agency (or all, for admins)."""
    submissions, total = await submission_service.list_submissions(
        session, user, offset=offset, limit=limit, filter_status=filter_status,
    )
    return SubmissionListResponse(
        data=[SubmissionResponse.model_validate(s) for s in submissions],
        pagination=Pagination(
            total=total,
            offset=offset,
            limit=limit,
            has_more=(offset + limit < total),
        ),
    )


@router.post(
    "/",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def create_submission(
    body: SubmissionCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    submission = await submission_service.create_submission(session, user, body)
    return SubmissionResponse.model_validate(submission)


@router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_submission(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    """Get a single submission. Returns 404 for out-of-scope resources."""
    submission = await submission_service.get_submission(session, user, submission_id)
    if submission is None:
        raise _not_found()
    return SubmissionResponse.model_validate(submission)


@router.get(
    "/{submission_id}/workflow",
    response_model=WorkflowStatusResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_workflow(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowStatusResponse:
    """Stage, gates, document progress and pending actions."""
    result = await get_workflow_status(session, user, submission_id)
    if result is None:
        raise _not_found()
    return result


@router.get(
    "/{submission_id}/quotes",
    response_model=QuoteListResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_quotes(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> QuoteListResponse:
    """Quotes visible to the caller. Agencies do not see unposted quotes."""
    quotes = await list_quotes(session, user, submission_id)
    if quotes is None:
        raise _not_found()
    return QuoteListResponse(data=[QuoteResponse.model_validate(q) for q in quotes], count=len(quotes))


@router.get(
    "/{submission_id}/activity",
    response_model=ActivityTimelineResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_activity(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ActivityTimelineResponse:
    """Activity timeline, newest first."""
    submission = await submission_service.get_submission(session, user, submission_id)
    if submission is None:
        raise _not_found()
    entries = await list_activity(session, submission_id)
    return ActivityTimelineResponse(
        submission_id=submission_id,
        count=len(entries),
        entries=[ActivityEntry.from_log(e) for e in entries],
    )


@router.get(
    "/{submission_id}/esign",
    response_model=EsignStatusResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_esign(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> EsignStatusResponse:
    result = await get_esign_status(session, user, submission_id)
    if result is None:
        raise _not_found()
    return result


@router.get(
    "/{submission_id}/payment",
    response_model=PaymentStatusResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_payment(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> PaymentStatusResponse:
    result = await get_payment_status(session, user, submission_id)
    if result is None:
        raise _not_found()
    return result


@router.post(
    "/{submission_id}/payment",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(require_roles(*_AGENCY_ROLES))],
)
async def submit_payment(
    submission_id: int,
    body: PaymentRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Pay the approved quote's final amount. Requires completed e-signature."""
    result = await pay(session, user, submission_id, body.amount, body.method)
    if result is None:
        raise _not_found()
    return result


@router.post(
    "/{submission_id}/bind-request",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(require_roles(*_AGENCY_ROLES))],
)
async def submit_bind_request(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Ask for coverage to be bound. Requires signature and payment."""
    result = await request_bind(session, user, submission_id)
    if result is None:
        raise _not_found()
    return result


@router.get(
    "/{submission_id}/final-documents",
    response_model=FinalDocumentsResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_final_documents(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FinalDocumentsResponse:
    submission = await submission_service.get_submission(session, user, submission_id)
    if submission is None:
        raise _not_found()
    return final_documents_view(submission)
