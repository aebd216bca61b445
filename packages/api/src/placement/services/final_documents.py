# This project was developed with assistance from AI tools.
"""Final policy document upload (admin, after bind).

Up to three PDFs -- final binder, final policy, certificate of insurance --
each optional and independently overwritable. Uploading changes no status.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from botocore.exceptions import BotoCoreError, ClientError
from db import Submission
from db.enums import ActivityType, FinalDocumentKind, SubmissionStatus
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..errors import CollaboratorFailure, PreconditionError, WorkflowValidationError
from ..schemas.auth import UserContext
from ..schemas.document import FinalDocument, FinalDocumentsResponse
from .activity import write_activity
from .effects import EffectQueue
from .guarded import guarded_update
from .notifications import notify_agency
from .storage import PDF_CONTENT_TYPE, get_storage_service
from .workflow import get_scoped_submission

logger = logging.getLogger(__name__)

# kind -> (url column, uploaded-at column)
FINAL_DOCUMENT_COLUMNS = {
    FinalDocumentKind.FINAL_BINDER: ("final_binder_url", "final_binder_uploaded_at"),
    FinalDocumentKind.FINAL_POLICY: ("final_policy_url", "final_policy_uploaded_at"),
    FinalDocumentKind.CERTIFICATE: ("certificate_url", "certificate_uploaded_at"),
}


@dataclass(frozen=True)
class UploadedFile:
    kind: FinalDocumentKind
    filename: str
    content_type: str | None
    data: bytes


def validate_upload(upload: UploadedFile, max_bytes: int) -> None:
    if upload.content_type != PDF_CONTENT_TYPE:
        raise WorkflowValidationError(
            f"{upload.kind.value}: only PDF files are accepted (got {upload.content_type or 'unknown'})"
        )
    if not upload.data:
        raise WorkflowValidationError(f"{upload.kind.value}: file is empty")
    if len(upload.data) > max_bytes:
        raise WorkflowValidationError(
            f"{upload.kind.value}: file exceeds {max_bytes // (1024 * 1024)}MB"
        )


def final_documents_view(submission: Submission) -> FinalDocumentsResponse:
    return FinalDocumentsResponse(
        submission_id=submission.id,
        documents=[
            FinalDocument(
                kind=kind,
                url=getattr(submission, url_col),
                uploaded_at=getattr(submission, at_col),
            )
            for kind, (url_col, at_col) in FINAL_DOCUMENT_COLUMNS.items()
        ],
    )


async def upload_final_documents(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    uploads: list[UploadedFile],
) -> FinalDocumentsResponse | None:
    submission = await get_scoped_submission(session, user, submission_id)
    if submission is None:
        return None
    if not uploads:
        raise WorkflowValidationError("At least one file is required")
    kinds = [u.kind for u in uploads]
    if len(set(kinds)) != len(kinds):
        raise WorkflowValidationError("Each final document may be uploaded once per request")
    if submission.status != SubmissionStatus.BOUND or not submission.bind_approved:
        raise PreconditionError("not_bound", "Final documents can only be uploaded after bind approval")

    max_bytes = settings.FINAL_DOCUMENT_MAX_SIZE_MB * 1024 * 1024
    for upload in uploads:
        validate_upload(upload, max_bytes)

    storage = get_storage_service()
    now = datetime.now(UTC)
    values: dict = {}
    stored: dict[str, str] = {}
    for upload in uploads:
        key = storage.build_object_key(submission_id, "final", f"{upload.kind.value}.pdf")
        try:
            url = await storage.upload_pdf(upload.data, key)
        except (BotoCoreError, ClientError) as exc:
            raise CollaboratorFailure("storage", f"Failed to store {upload.kind.value}") from exc
        url_col, at_col = FINAL_DOCUMENT_COLUMNS[upload.kind]
        values[url_col] = url
        values[at_col] = now
        stored[upload.kind.value] = url

    await guarded_update(
        session,
        Submission,
        submission_id,
        guards=(Submission.status == SubmissionStatus.BOUND,),
        values=values,
        conflict_detail="Submission is no longer bound",
    )
    await write_activity(
        session,
        activity_type=ActivityType.FILE_UPLOADED,
        description=f"Final document(s) uploaded: {', '.join(stored)}",
        user=user,
        submission_id=submission_id,
        details={"documents": stored},
    )
    await session.commit()
    logger.info("Submission %s final documents uploaded: %s", submission_id, list(stored))

    effects = EffectQueue(session=session)
    effects.add(
        "notify_agency",
        notify_agency,
        session,
        submission.agency_id,
        f"Final documents for submission #{submission_id}",
        f"New final policy documents are available for submission #{submission_id}.",
    )
    await effects.dispatch()

    submission = await get_scoped_submission(session, user, submission_id)
    return final_documents_view(submission)
