# This project was developed with assistance from AI tools.
"""Quote service: admin entry and posting, agency approval, field edits.

``finalAmountUSD`` is recomputed from the rate components on every edit and
written in the same conditional UPDATE as the component that changed. Edit
guards include the component values that were read, so two concurrent
edits can never leave a final amount computed from a stale component.
"""

import logging
from dataclasses import replace
from datetime import UTC, datetime

from db import Carrier, Quote, Submission
from db.enums import ActivityType, QuoteStatus
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, NotFoundError, PreconditionError, WorkflowValidationError
from ..schemas.auth import UserContext
from ..schemas.quote import QuoteCreate, TaxUpdate
from ..schemas.tax import QuoteTaxLookupResponse
from ..schemas.workflow import WorkflowActionResponse
from .activity import write_activity
from .documents import generate_binder
from .effects import EffectQueue
from .guarded import guarded_update
from .notifications import notify_agency
from .premium import (
    RateComponents,
    calculate_final_amount,
    derive_tax_amount,
    parse_broker_fee,
    to_money,
    to_rate,
)
from .snapshot import WorkflowSnapshot
from .tax import jurisdiction_from_payload, lookup_tax, to_calculation_response
from .transitions import plan_quote_approval, plan_quote_entry, plan_quote_post
from .workflow import (
    WorkflowContext,
    build_action_response,
    get_active_quote,
    get_scoped_submission,
    load_for_quote,
)

logger = logging.getLogger(__name__)

_TAX_EDITABLE = frozenset({QuoteStatus.ENTERED, QuoteStatus.POSTED})


def _components_unchanged(quote: Quote) -> tuple:
    """WHERE clauses pinning the rate components to the values just read."""
    return (
        Quote.carrier_quote_usd == quote.carrier_quote_usd,
        Quote.broker_fee_amount_usd == quote.broker_fee_amount_usd,
        Quote.premium_tax_amount_usd.is_not_distinct_from(quote.premium_tax_amount_usd),
        Quote.policy_fee_usd.is_not_distinct_from(quote.policy_fee_usd),
    )


def _money_details(quote_values: dict) -> dict:
    return {k: (str(v) if v is not None else None) for k, v in quote_values.items()}


async def list_quotes(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
) -> list[Quote] | None:
    """Quotes of a submission, or None when the submission is not visible."""
    submission = await get_scoped_submission(session, user, submission_id)
    if submission is None:
        return None
    stmt = select(Quote).where(Quote.submission_id == submission_id).order_by(Quote.id)
    if not user.data_scope.full_pipeline:
        # agencies only see quotes once posted
        stmt = stmt.where(Quote.status != QuoteStatus.ENTERED)
    result = await session.execute(stmt)
    return list(result.scalars().all())


def _post_effects(session: AsyncSession, user: UserContext, ctx: WorkflowContext) -> EffectQueue:
    """Binder generation and agency notification after a quote is posted."""
    quote_id = ctx.quote.id
    submission_id = ctx.submission.id
    effects = EffectQueue(session=session)
    effects.add("generate_binder", generate_binder, session, user, quote_id)
    effects.add(
        "notify_agency",
        notify_agency,
        session,
        ctx.submission.agency_id,
        f"New quote for submission #{submission_id}",
        f"A carrier quote (#{quote_id}) is ready for review on submission #{submission_id}.",
    )
    return effects


async def create_quote(
    session: AsyncSession,
    user: UserContext,
    submission_id: int,
    body: QuoteCreate,
) -> WorkflowActionResponse | None:
    """Admin entry of carrier terms.

    Posted immediately unless ``body.post`` is False. Binder generation and
    the agency notification run after commit; their failure leaves the quote
    in place without a binder.
    """
    submission = await get_scoped_submission(session, user, submission_id)
    if submission is None:
        return None

    if body.carrier_id is None:
        raise WorkflowValidationError("Missing required field: carrierId")
    components = RateComponents.build(
        body.carrier_quote_usd,
        body.broker_fee_amount_usd,
        body.premium_tax_amount_usd,
        body.policy_fee_usd,
    )
    tax_percent = None
    if body.premium_tax_percent is not None:
        tax_percent = to_rate(body.premium_tax_percent)
        if components.premium_tax_amount_usd is None:
            components = replace(
                components,
                premium_tax_amount_usd=derive_tax_amount(components.carrier_quote_usd, tax_percent),
            )
    final_amount = calculate_final_amount(components)

    carrier = await session.get(Carrier, body.carrier_id)
    if carrier is None:
        raise NotFoundError(f"Carrier {body.carrier_id} not found")

    existing = await session.execute(
        select(Quote.id).where(
            Quote.submission_id == submission_id,
            Quote.carrier_id == body.carrier_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Quote already exists for this carrier")

    plan = plan_quote_entry(WorkflowSnapshot.capture(submission), post=body.post)

    now = datetime.now(UTC)
    status = QuoteStatus.POSTED if body.post else QuoteStatus.ENTERED
    quote = Quote(
        submission_id=submission_id,
        carrier_id=body.carrier_id,
        status=status,
        carrier_quote_usd=components.carrier_quote_usd,
        premium_tax_percent=tax_percent,
        premium_tax_amount_usd=components.premium_tax_amount_usd,
        tax_auto_calculated=False,
        policy_fee_usd=components.policy_fee_usd,
        broker_fee_amount_usd=components.broker_fee_amount_usd,
        final_amount_usd=final_amount,
        limits=body.limits,
        endorsements=body.endorsements,
        effective_date=body.effective_date,
        expiration_date=body.expiration_date,
        policy_number=body.policy_number,
        carrier_reference=body.carrier_reference,
        special_notes=body.special_notes,
        admin_notes=body.admin_notes,
        entered_by=user.name,
        entered_at=now,
        posted_at=now if body.post else None,
    )
    try:
        async with session.begin_nested():
            session.add(quote)
    except IntegrityError as exc:
        await session.rollback()
        raise ConflictError("Quote already exists for this carrier") from exc

    if plan.moves_submission:
        await guarded_update(
            session,
            Submission,
            submission_id,
            guards=(Submission.status == plan.submission_from,),
            values={"status": plan.submission_to},
            conflict_detail="Submission changed while the quote was entered; reload and retry",
        )

    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description=f"Quote entered for {carrier.name}",
        user=user,
        submission_id=submission_id,
        quote_id=quote.id,
        details={
            "carrierName": carrier.name,
            "carrierQuoteUSD": str(components.carrier_quote_usd),
            "finalAmountUSD": str(final_amount),
            "status": status.value,
        },
    )
    quote_id = quote.id
    await session.commit()
    logger.info("Quote %s entered for submission %s (%s)", quote_id, submission_id, status.value)

    entries = [entry]
    if body.post:
        ctx = await load_for_quote(session, user, quote_id)
        outcomes = await _post_effects(session, user, ctx).dispatch()
        entries.extend(o.value for o in outcomes if o.ok and o.name == "generate_binder")

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, entries)


async def post_quote(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> WorkflowActionResponse | None:
    """ENTERED -> POSTED; the submission moves to QUOTED."""
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    plan = plan_quote_post(ctx.snapshot())

    await guarded_update(
        session,
        Quote,
        quote_id,
        guards=(Quote.status == plan.quote_from,),
        values={"status": plan.quote_to, "posted_at": datetime.now(UTC)},
        conflict_detail="Quote was already posted",
    )
    if plan.moves_submission:
        await guarded_update(
            session,
            Submission,
            ctx.submission.id,
            guards=(Submission.status == plan.submission_from,),
            values={"status": plan.submission_to},
            conflict_detail="Submission changed while posting; reload and retry",
        )
    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description="Quote posted to agency",
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote_id,
        details={"finalAmountUSD": str(ctx.quote.final_amount_usd)},
    )
    await session.commit()
    logger.info("Quote %s posted", quote_id)

    outcomes = await _post_effects(session, user, ctx).dispatch()
    entries = [entry] + [o.value for o in outcomes if o.ok and o.name == "generate_binder"]

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, entries)


async def approve_quote(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> WorkflowActionResponse | None:
    """POSTED -> APPROVED. Only one quote per submission may be approved."""
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    plan = plan_quote_approval(ctx.snapshot())

    active = await get_active_quote(session, ctx.submission.id)
    if active is not None and active.id != quote_id:
        raise ConflictError(f"Quote {active.id} is already approved for this submission")

    try:
        await guarded_update(
            session,
            Quote,
            quote_id,
            guards=(Quote.status == plan.quote_from,),
            values={
                "status": plan.quote_to,
                "approved_by": user.name,
                "approved_at": datetime.now(UTC),
            },
            conflict_detail="Quote was already approved",
        )
    except IntegrityError as exc:
        # partial unique index: one active quote per submission
        await session.rollback()
        raise ConflictError("Another quote was approved for this submission") from exc

    entry = await write_activity(
        session,
        activity_type=plan.activity_type,
        description="Quote approved by agency",
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote_id,
        details={"finalAmountUSD": str(ctx.quote.final_amount_usd)},
    )
    await session.commit()
    logger.info("Quote %s approved by %s", quote_id, user.user_id)

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, [entry])


async def update_broker_fee(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
    broker_fee,
) -> WorkflowActionResponse | None:
    """Agency broker-fee edit, allowed only while the quote is POSTED."""
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    quote = ctx.quote
    fee = parse_broker_fee(broker_fee)
    if quote.status != QuoteStatus.POSTED:
        raise PreconditionError(
            "broker_fee_locked",
            f"Broker fee can only be changed while the quote is POSTED (currently {quote.status.value})",
        )

    components = replace(RateComponents.of(quote), broker_fee_amount_usd=fee)
    final_amount = calculate_final_amount(components)

    await guarded_update(
        session,
        Quote,
        quote_id,
        guards=(Quote.status == QuoteStatus.POSTED, *_components_unchanged(quote)),
        values={"broker_fee_amount_usd": fee, "final_amount_usd": final_amount},
        conflict_detail="Quote changed while editing the broker fee; reload and retry",
    )
    entry = await write_activity(
        session,
        activity_type=ActivityType.QUOTE_UPDATED,
        description="Broker fee updated",
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote_id,
        details=_money_details(
            {
                "previousBrokerFeeAmountUSD": quote.broker_fee_amount_usd,
                "brokerFeeAmountUSD": fee,
                "finalAmountUSD": final_amount,
            }
        ),
    )
    await session.commit()
    logger.info("Quote %s broker fee set to %s (final %s)", quote_id, fee, final_amount)

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, [entry])


def _require_tax_editable(quote: Quote) -> None:
    if quote.status not in _TAX_EDITABLE:
        raise PreconditionError(
            "quote_locked",
            f"Premium tax cannot be changed once the quote is {quote.status.value}",
        )


async def _write_tax(
    session: AsyncSession,
    user: UserContext,
    ctx: WorkflowContext,
    *,
    percent,
    amount,
    auto_calculated: bool,
    description: str,
):
    quote = ctx.quote
    components = replace(RateComponents.of(quote), premium_tax_amount_usd=amount)
    final_amount = calculate_final_amount(components)

    await guarded_update(
        session,
        Quote,
        quote.id,
        guards=(Quote.status.in_(_TAX_EDITABLE), *_components_unchanged(quote)),
        values={
            "premium_tax_percent": percent,
            "premium_tax_amount_usd": amount,
            "tax_auto_calculated": auto_calculated,
            "final_amount_usd": final_amount,
        },
        conflict_detail="Quote changed while editing premium tax; reload and retry",
    )
    details = _money_details(
        {
            "premiumTaxPercent": percent,
            "premiumTaxAmountUSD": amount,
            "finalAmountUSD": final_amount,
        }
    )
    details["taxAutoCalculated"] = auto_calculated
    entry = await write_activity(
        session,
        activity_type=ActivityType.QUOTE_UPDATED,
        description=description,
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote.id,
        details=details,
    )
    await session.commit()
    return entry


async def update_tax(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
    body: TaxUpdate,
) -> WorkflowActionResponse | None:
    """Manual premium tax entry.

    A percent re-derives the amount from the carrier premium without
    consulting the rate service; an amount alone is stored as given.
    """
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    quote = ctx.quote
    _require_tax_editable(quote)

    if body.premium_tax_percent is not None:
        percent = to_rate(body.premium_tax_percent)
        amount = derive_tax_amount(to_money(quote.carrier_quote_usd), percent)
    elif body.premium_tax_amount_usd is not None:
        percent = None
        amount = to_money(body.premium_tax_amount_usd, "premiumTaxAmountUSD")
        if amount < 0:
            raise WorkflowValidationError("premiumTaxAmountUSD cannot be negative")
    else:
        raise WorkflowValidationError("Provide premiumTaxPercent or premiumTaxAmountUSD")

    entry = await _write_tax(
        session,
        user,
        ctx,
        percent=percent,
        amount=amount,
        auto_calculated=False,
        description="Premium tax entered manually",
    )
    logger.info("Quote %s tax set manually (%s / %s)", quote_id, percent, amount)

    ctx = await load_for_quote(session, user, quote_id)
    return build_action_response(ctx, [entry])


async def lookup_and_apply_tax(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
    state: str | None = None,
) -> QuoteTaxLookupResponse | None:
    """Query the rate service and, on success, store the result on the quote.

    On failure the quote is left untouched and the response says so; the
    admin then enters tax manually.
    """
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    _require_tax_editable(ctx.quote)

    jurisdiction = state or jurisdiction_from_payload(ctx.submission.payload)
    if not jurisdiction:
        raise WorkflowValidationError("State is required for tax lookup")
    result = await lookup_tax(jurisdiction, ctx.quote.carrier_quote_usd)

    entries = []
    if result.auto_calculated:
        entries.append(
            await _write_tax(
                session,
                user,
                ctx,
                percent=result.tax_rate,
                amount=result.tax_amount_usd,
                auto_calculated=True,
                description=f"Premium tax calculated for {result.state_code}",
            )
        )
        logger.info("Quote %s tax auto-calculated (%s)", quote_id, result.state_code)

    ctx = await load_for_quote(session, user, quote_id)
    return QuoteTaxLookupResponse(
        tax=to_calculation_response(result),
        workflow=build_action_response(ctx, entries),
    )
