# This project was developed with assistance from AI tools.
"""Admin routes: routing, decline, quote entry and tax, bind approval, final documents."""

import logging

from db import get_db
from db.enums import FinalDocumentKind, UserRole
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.activity import ActivityChainVerifyResponse
from ..schemas.document import FinalDocumentsResponse
from ..schemas.quote import QuoteCreate, TaxLookupRequest, TaxUpdate
from ..schemas.submission import AdminNotesUpdate, DeclineRequest, RouteRequest, SubmissionResponse
from ..schemas.tax import QuoteTaxLookupResponse
from ..schemas.workflow import WorkflowActionResponse
from ..services import submission as submission_service
from ..services.activity import verify_activity_chain
from ..services.bind import approve_bind
from ..services.esign import complete_signature
from ..services.final_documents import UploadedFile, upload_final_documents
from ..services.quote import create_quote, lookup_and_apply_tax, post_quote, update_tax

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_roles(UserRole.SYSTEM_ADMIN))])


def _submission_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")


def _quote_not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")


@router.post("/submissions/{submission_id}/route", response_model=WorkflowActionResponse)
async def route(
    submission_id: int,
    body: RouteRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    result = await submission_service.route_submission(session, user, submission_id, body.carrier_ids)
    if result is None:
        raise _submission_not_found()
    return result


@router.post("/submissions/{submission_id}/decline", response_model=WorkflowActionResponse)
async def decline(
    submission_id: int,
    body: DeclineRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Decline the submission and every open quote on it."""
    result = await submission_service.decline_submission(session, user, submission_id, body.reason)
    if result is None:
        raise _submission_not_found()
    return result


@router.put("/submissions/{submission_id}/notes", response_model=SubmissionResponse)
async def set_notes(
    submission_id: int,
    body: AdminNotesUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> SubmissionResponse:
    submission = await submission_service.set_admin_notes(session, user, submission_id, body.admin_notes)
    if submission is None:
        raise _submission_not_found()
    return SubmissionResponse.model_validate(submission)


@router.post(
    "/submissions/{submission_id}/quotes",
    response_model=WorkflowActionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enter_quote(
    submission_id: int,
    body: QuoteCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Enter a carrier quote. Posts it to the agency unless ``post`` is false."""
    result = await create_quote(session, user, submission_id, body)
    if result is None:
        raise _submission_not_found()
    return result


@router.post("/quotes/{quote_id}/post", response_model=WorkflowActionResponse)
async def post(
    quote_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    result = await post_quote(session, user, quote_id)
    if result is None:
        raise _quote_not_found()
    return result


@router.patch("/quotes/{quote_id}/tax", response_model=WorkflowActionResponse)
async def edit_tax(
    quote_id: int,
    body: TaxUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Manual premium tax entry; a percent re-derives the amount."""
    result = await update_tax(session, user, quote_id, body)
    if result is None:
        raise _quote_not_found()
    return result


@router.post("/quotes/{quote_id}/tax/lookup", response_model=QuoteTaxLookupResponse)
async def tax_lookup(
    quote_id: int,
    body: TaxLookupRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> QuoteTaxLookupResponse:
    """Look up and apply premium tax. A failed lookup leaves the quote unchanged."""
    result = await lookup_and_apply_tax(session, user, quote_id, body.state)
    if result is None:
        raise _quote_not_found()
    return result


@router.post("/submissions/{submission_id}/esign/complete", response_model=WorkflowActionResponse)
async def confirm_signature(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Record a signature confirmation received outside the provider webhook."""
    result = await complete_signature(session, user, submission_id)
    if result is None:
        raise _submission_not_found()
    return result


@router.post("/submissions/{submission_id}/bind/approve", response_model=WorkflowActionResponse)
async def bind_approve(
    submission_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    result = await approve_bind(session, user, submission_id)
    if result is None:
        raise _submission_not_found()
    return result


@router.post("/submissions/{submission_id}/final-documents", response_model=FinalDocumentsResponse)
async def upload_documents(
    submission_id: int,
    user: CurrentUser,
    final_binder: UploadFile | None = File(default=None),
    final_policy: UploadFile | None = File(default=None),
    certificate: UploadFile | None = File(default=None),
    session: AsyncSession = Depends(get_db),
) -> FinalDocumentsResponse:
    """Upload any of the final binder, final policy and certificate (PDF)."""
    uploads = []
    for kind, file in (
        (FinalDocumentKind.FINAL_BINDER, final_binder),
        (FinalDocumentKind.FINAL_POLICY, final_policy),
        (FinalDocumentKind.CERTIFICATE, certificate),
    ):
        if file is None:
            continue
        uploads.append(
            UploadedFile(
                kind=kind,
                filename=file.filename or f"{kind.value}.pdf",
                content_type=file.content_type,
                data=await file.read(),
            )
        )

    result = await upload_final_documents(session, user, submission_id, uploads)
    if result is None:
        raise _submission_not_found()
    return result


@router.get("/activity/verify", response_model=ActivityChainVerifyResponse)
async def verify_activity(
    session: AsyncSession = Depends(get_db),
) -> ActivityChainVerifyResponse:
    """Walk the activity hash chain and report the first break, if any."""
    result = await verify_activity_chain(session)
    if result["status"] != "OK":
        logger.error("Activity chain verification failed at entry %s", result.get("first_break_id"))
    return ActivityChainVerifyResponse(**result)
