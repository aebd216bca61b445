# This project was developed with assistance from AI tools.
"""Document generation tracker.

Each required document type is generated at most once per quote. Before
rendering, the tracker takes a per-quote advisory lock and re-checks for
an existing document of that type, so a concurrent request for the same
type waits, sees the winner's document, and reuses it. The unique
``(quote_id, document_type)`` constraint backs this up at insert time.

A render or storage failure raises ``CollaboratorFailure`` before anything
is inserted: a document either exists completely or not at all.
"""

import logging
from datetime import UTC, datetime

from botocore.exceptions import BotoCoreError, ClientError
from db import ActivityLog, Agency, Carrier, Quote, QuoteDocument
from db.enums import ActivityType, DocumentType, SignatureStatus
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import CollaboratorFailure, NotFoundError
from ..schemas.auth import UserContext
from ..schemas.workflow import WorkflowActionResponse
from .activity import write_activity
from .collaborators import get_renderer
from .gates import generate_documents_blocker, missing_document_types, require
from .guarded import guarded_update
from .storage import get_storage_service
from .workflow import WorkflowContext, build_action_response, load_for_quote

logger = logging.getLogger(__name__)

# Advisory lock namespace for per-quote document generation.
DOCUMENT_LOCK_NAMESPACE = 910_002

BINDER = "BINDER"

DOCUMENT_FILE_NAMES = {
    DocumentType.PROPOSAL: "Proposal_{quote_id}.pdf",
    DocumentType.CARRIER_FORM: "Carrier_Forms_{quote_id}.pdf",
    DocumentType.FINANCE_AGREEMENT: "Finance_Agreement_{quote_id}.pdf",
}
BINDER_FILE_NAME = "binder-{quote_id}.pdf"


def _money(value) -> str | None:
    return None if value is None else str(value)


def build_render_fields(ctx: WorkflowContext, agency: Agency | None, carrier: Carrier | None) -> dict:
    """Structured input for the renderer from quote, submission, agency and carrier."""
    quote = ctx.quote
    submission = ctx.submission
    fields = {
        "submissionId": submission.id,
        "quoteId": quote.id,
        "templateId": submission.template_id,
        "programName": submission.program_name,
        "clientContact": submission.client_contact or {},
        "application": submission.payload or {},
        "agency": {
            "name": agency.name if agency else None,
            "email": agency.email if agency else None,
            "phone": agency.phone if agency else None,
        },
        "carrier": {"name": carrier.name if carrier else None},
        "premium": {
            "carrierQuoteUSD": _money(quote.carrier_quote_usd),
            "premiumTaxPercent": _money(quote.premium_tax_percent),
            "premiumTaxAmountUSD": _money(quote.premium_tax_amount_usd),
            "policyFeeUSD": _money(quote.policy_fee_usd),
            "brokerFeeAmountUSD": _money(quote.broker_fee_amount_usd),
            "finalAmountUSD": _money(quote.final_amount_usd),
        },
        "terms": {
            "limits": quote.limits or {},
            "endorsements": quote.endorsements or [],
            "effectiveDate": quote.effective_date.isoformat() if quote.effective_date else None,
            "expirationDate": quote.expiration_date.isoformat() if quote.expiration_date else None,
            "policyNumber": quote.policy_number,
            "carrierReference": quote.carrier_reference,
            "specialNotes": quote.special_notes,
        },
    }
    plan = ctx.finance_plan
    if plan is not None:
        fields["financePlan"] = {
            "downPaymentUSD": _money(plan.down_payment_usd),
            "tenureMonths": plan.tenure_months,
            "annualInterestPercent": _money(plan.annual_interest_percent),
            "monthlyInstallmentUSD": _money(plan.monthly_installment_usd),
            "totalPayableUSD": _money(plan.total_payable_usd),
        }
    return fields


async def _load_parties(session: AsyncSession, ctx: WorkflowContext) -> tuple[Agency | None, Carrier | None]:
    agency = await session.get(Agency, ctx.submission.agency_id)
    carrier = await session.get(Carrier, ctx.quote.carrier_id)
    return agency, carrier


async def render_and_store(document_type: str, fields: dict, submission_id: int, file_name: str) -> str:
    """Render a document and return its persisted location."""
    rendered = await get_renderer().render(document_type, fields)
    if rendered.url:
        return rendered.url
    storage = get_storage_service()
    key = storage.build_object_key(submission_id, "documents", file_name)
    try:
        return await storage.upload_pdf(rendered.content, key)
    except (BotoCoreError, ClientError) as exc:
        raise CollaboratorFailure("storage", f"Failed to store {file_name}") from exc


async def _existing_document(
    session: AsyncSession, quote_id: int, document_type: DocumentType
) -> QuoteDocument | None:
    result = await session.execute(
        select(QuoteDocument).where(
            QuoteDocument.quote_id == quote_id,
            QuoteDocument.document_type == document_type,
        )
    )
    return result.scalar_one_or_none()


async def ensure_document(
    session: AsyncSession,
    user: UserContext,
    ctx: WorkflowContext,
    document_type: DocumentType,
    fields: dict,
) -> tuple[QuoteDocument, ActivityLog | None]:
    """Return the quote's document of this type, generating it if missing.

    Commits on generation. The activity entry is None when an existing
    document was reused.
    """
    quote = ctx.quote
    await session.execute(
        text("SELECT pg_advisory_xact_lock(:ns, :quote_id)"),
        {"ns": DOCUMENT_LOCK_NAMESPACE, "quote_id": quote.id},
    )
    existing = await _existing_document(session, quote.id, document_type)
    if existing is not None:
        await session.commit()
        logger.info("Quote %s already has %s, reusing", quote.id, document_type.value)
        return existing, None

    file_name = DOCUMENT_FILE_NAMES[document_type].format(quote_id=quote.id)
    try:
        url = await render_and_store(document_type.value, fields, ctx.submission.id, file_name)
    except CollaboratorFailure:
        await session.rollback()
        raise

    document = QuoteDocument(
        quote_id=quote.id,
        submission_id=ctx.submission.id,
        document_type=document_type,
        document_name=file_name,
        document_url=url,
        signature_status=SignatureStatus.GENERATED,
        generated_at=datetime.now(UTC),
    )
    try:
        async with session.begin_nested():
            session.add(document)
    except IntegrityError:
        winner = await _existing_document(session, quote.id, document_type)
        await session.commit()
        logger.info("Quote %s %s generated concurrently, reusing", quote.id, document_type.value)
        return winner, None

    entry = await write_activity(
        session,
        activity_type=ActivityType.DOCUMENT_GENERATED,
        description=f"{document_type.value.replace('_', ' ').title()} generated",
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote.id,
        details={
            "documentType": document_type.value,
            "documentName": file_name,
            "documentUrl": url,
        },
    )
    await session.commit()
    logger.info("Quote %s %s generated", quote.id, document_type.value)
    return document, entry


async def ensure_required_documents(
    session: AsyncSession,
    user: UserContext,
    ctx: WorkflowContext,
) -> list[ActivityLog]:
    """Generate every missing required document for the context's quote."""
    missing = missing_document_types(ctx.snapshot())
    if not missing:
        return []
    agency, carrier = await _load_parties(session, ctx)
    fields = build_render_fields(ctx, agency, carrier)
    entries = []
    for document_type in missing:
        _, entry = await ensure_document(session, user, ctx, document_type, fields)
        if entry is not None:
            entries.append(entry)
    return entries


async def generate_documents(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> WorkflowActionResponse | None:
    """Generate the proposal, carrier forms and (if financed) finance agreement."""
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    require(generate_documents_blocker(ctx.snapshot()))

    entries = await ensure_required_documents(session, user, ctx)

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, entries)


async def generate_binder(session: AsyncSession, user: UserContext, quote_id: int) -> ActivityLog:
    """Render the binder for a posted quote and record its URL.

    Runs as a post-commit effect of quote posting; a failure here leaves the
    quote posted without a binder, which can be regenerated later.
    """
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        raise NotFoundError(f"Quote {quote_id} not found")
    quote = ctx.quote
    agency, carrier = await _load_parties(session, ctx)
    file_name = BINDER_FILE_NAME.format(quote_id=quote.id)
    url = await render_and_store(BINDER, build_render_fields(ctx, agency, carrier), quote.submission_id, file_name)

    await guarded_update(
        session,
        Quote,
        quote.id,
        values={"binder_pdf_url": url},
        conflict_detail=f"Quote {quote.id} no longer exists",
    )
    entry = await write_activity(
        session,
        activity_type=ActivityType.DOCUMENT_GENERATED,
        description="Binder generated",
        user=user,
        submission_id=quote.submission_id,
        quote_id=quote.id,
        details={"documentType": BINDER, "documentUrl": url},
    )
    await session.commit()
    logger.info("Binder generated for quote %s", quote.id)
    return entry
