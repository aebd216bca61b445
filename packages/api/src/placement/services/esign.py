# This project was developed with assistance from AI tools.
"""E-signature sequencing.

Sending requires an approved quote whose required documents all exist
(missing ones are generated first). Completion is driven only by a signing
confirmation -- the provider webhook or an explicit admin call -- and is
the single place ``Submission.esign_completed`` is set.
"""

import logging
from datetime import UTC, datetime

from db import Agency, QuoteDocument, Submission
from db.enums import ActivityType, SignatureStatus
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError
from ..schemas.auth import UserContext
from ..schemas.document import QuoteDocumentResponse
from ..schemas.workflow import EsignStatusResponse, WorkflowActionResponse
from .activity import write_activity
from .collaborators import get_esign_client
from .documents import ensure_required_documents
from .effects import EffectQueue
from .gates import (
    complete_signature_blocker,
    generate_documents_blocker,
    require,
    send_for_signature_blocker,
)
from .notifications import notify_agency
from .workflow import WorkflowContext, build_action_response, load_for_quote, load_for_submission

logger = logging.getLogger(__name__)

_SENDABLE = frozenset({SignatureStatus.GENERATED, SignatureStatus.FAILED})


async def _signer(session: AsyncSession, ctx: WorkflowContext) -> dict:
    """Insured contact from the submission, falling back to the agency."""
    contact = ctx.submission.client_contact or {}
    if contact.get("email"):
        return {"name": contact.get("name"), "email": contact["email"]}
    agency = await session.get(Agency, ctx.submission.agency_id)
    return {
        "name": agency.name if agency else None,
        "email": agency.email if agency else None,
    }


async def send_for_signature(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> WorkflowActionResponse | None:
    """Ensure documents, hand them to the e-sign provider, mark them SENT.

    The provider call happens before any write; if it fails nothing changes.
    """
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    require(generate_documents_blocker(ctx.snapshot()))

    entries = await ensure_required_documents(session, user, ctx)
    if entries:
        ctx = await load_for_quote(session, user, quote_id)

    snapshot = ctx.snapshot()
    require(send_for_signature_blocker(snapshot))
    if any(d.signature_status not in _SENDABLE for d in snapshot.documents):
        raise ConflictError("Documents were already sent for signature")

    document_ids = [d.id for d in snapshot.documents]
    signer = await _signer(session, ctx)
    signing_url = await get_esign_client().send(
        ctx.submission.id,
        [d.document_url for d in snapshot.documents],
        signer,
    )

    result = await session.execute(
        update(QuoteDocument)
        .where(
            QuoteDocument.id.in_(document_ids),
            QuoteDocument.signature_status.in_(_SENDABLE),
        )
        .values(signature_status=SignatureStatus.SENT, sent_for_signature_at=datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != len(document_ids):
        await session.rollback()
        raise ConflictError("Documents were already sent for signature")

    entry = await write_activity(
        session,
        activity_type=ActivityType.SIGNATURE_REQUESTED,
        description=f"{len(document_ids)} document(s) sent for signature",
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote_id,
        details={
            "documentTypes": [d.document_type.value for d in snapshot.documents],
            "signerEmail": signer.get("email"),
            "signingUrl": signing_url,
        },
    )
    await session.commit()
    logger.info("Quote %s documents sent for signature", quote_id)

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, entries + [entry], signing_url=signing_url)


async def complete_signature(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> WorkflowActionResponse | None:
    """Mark every sent document SIGNED and set ``esign_completed``.

    Calling again after completion is a no-op that returns the current
    state and logs nothing. Completing before the full document set was
    sent is rejected with ``documents_incomplete`` or ``documents_not_sent``;
    documents left FAILED by a declined envelope must be resent first.
    """
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    if ctx.submission.esign_completed:
        return build_action_response(ctx)

    snapshot = ctx.snapshot()
    if snapshot.quote is None:
        require("no_quote")
    require(complete_signature_blocker(snapshot))

    now = datetime.now(UTC)
    result = await session.execute(
        update(Submission)
        .where(Submission.id == submission_id, Submission.esign_completed.is_(False))
        .values(esign_completed=True, esign_completed_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # completed concurrently
        await session.rollback()
        ctx = await load_for_submission(session, user, submission_id)
        return build_action_response(ctx)

    signed = await session.execute(
        update(QuoteDocument)
        .where(
            QuoteDocument.quote_id == snapshot.quote.id,
            QuoteDocument.signature_status == SignatureStatus.SENT,
        )
        .values(signature_status=SignatureStatus.SIGNED, signed_at=now)
        .returning(QuoteDocument.document_type)
        .execution_options(synchronize_session=False)
    )
    signed_types = [t.value for t in signed.scalars().all()]

    entry = await write_activity(
        session,
        activity_type=ActivityType.DOCUMENT_SIGNED,
        description="E-signature completed",
        user=user,
        submission_id=submission_id,
        quote_id=snapshot.quote.id,
        details={"documentTypes": signed_types, "documentCount": len(signed_types)},
    )
    await session.commit()
    logger.info("Submission %s e-signature completed", submission_id)

    effects = EffectQueue(session=session)
    effects.add(
        "notify_agency",
        notify_agency,
        session,
        ctx.submission.agency_id,
        f"Documents signed for submission #{submission_id}",
        f"All documents for submission #{submission_id} are signed. Payment is now open.",
    )
    await effects.dispatch()

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])


async def record_signature_failure(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    provider_status: str,
) -> WorkflowActionResponse | None:
    """Provider reported the envelope failed or was declined; documents may be resent."""
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    if ctx.submission.esign_completed or ctx.quote is None:
        return build_action_response(ctx)

    result = await session.execute(
        update(QuoteDocument)
        .where(
            QuoteDocument.quote_id == ctx.quote.id,
            QuoteDocument.signature_status == SignatureStatus.SENT,
        )
        .values(signature_status=SignatureStatus.FAILED)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await session.rollback()
        return build_action_response(ctx)

    entry = await write_activity(
        session,
        activity_type=ActivityType.STATUS_CHANGED,
        description=f"E-signature {provider_status.lower()}",
        user=user,
        submission_id=submission_id,
        quote_id=ctx.quote.id,
        details={"providerStatus": provider_status, "documentCount": result.rowcount},
    )
    await session.commit()
    logger.warning("Submission %s e-signature %s", submission_id, provider_status)

    ctx = await load_for_submission(session, user, submission_id)
    return build_action_response(ctx, [entry])


async def get_esign_status(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> EsignStatusResponse | None:
    ctx = await load_for_submission(session, user, submission_id)
    if ctx is None:
        return None
    return EsignStatusResponse(
        submission_id=submission_id,
        esign_completed=ctx.submission.esign_completed,
        esign_completed_at=ctx.submission.esign_completed_at,
        documents=[QuoteDocumentResponse.model_validate(d) for d in ctx.documents],
    )
