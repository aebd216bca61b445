# This project was developed with assistance from AI tools.
"""Finance plan service.

The amortization math is pure; persistence follows the usual guarded-write
pattern. A finance plan can only change while the submission's
e-signature is incomplete, since its presence adds the finance agreement
to the documents that must be signed.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from db import FinancePlan
from db.enums import ActivityType, QuoteStatus
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, PreconditionError, WorkflowValidationError
from ..schemas.auth import UserContext
from ..schemas.finance import FinancePlanRequest, FinancePlanResponse
from .activity import write_activity
from .guarded import guarded_update
from .premium import CENT, RateComponents, calculate_final_amount, to_money
from .workflow import load_for_quote

logger = logging.getLogger(__name__)

_PLAN_EDITABLE = frozenset({QuoteStatus.POSTED, QuoteStatus.APPROVED})


def amortize(principal: Decimal, annual_interest_percent: Decimal, months: int) -> tuple[Decimal, Decimal]:
    """Equal monthly installment and total of installments for a loan.

    EMI = P * r * (1 + r)^n / ((1 + r)^n - 1) with r the monthly rate;
    a zero rate splits the principal evenly.
    """
    if months < 1:
        raise WorkflowValidationError("tenureMonths must be at least 1")
    rate = Decimal(annual_interest_percent) / Decimal(12) / Decimal(100)
    if rate == 0:
        monthly = principal / months
    else:
        growth = (1 + rate) ** months
        monthly = principal * rate * growth / (growth - 1)
    monthly = monthly.quantize(CENT, rounding=ROUND_HALF_UP)
    return monthly, (monthly * months).quantize(CENT, rounding=ROUND_HALF_UP)


def build_plan_terms(final_amount: Decimal, body: FinancePlanRequest) -> dict:
    """Validated plan columns for a quote's final amount."""
    down_payment = to_money(body.down_payment_usd, "downPaymentUSD")
    principal = final_amount - down_payment
    if principal <= 0:
        raise WorkflowValidationError("Down payment cannot exceed quote amount")
    monthly, installments_total = amortize(principal, body.annual_interest_percent, body.tenure_months)
    return {
        "down_payment_usd": down_payment,
        "tenure_months": body.tenure_months,
        "annual_interest_percent": body.annual_interest_percent,
        "monthly_installment_usd": monthly,
        "total_payable_usd": down_payment + installments_total,
    }


async def get_finance_plan(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
) -> tuple[bool, FinancePlanResponse | None]:
    """(quote visible, plan). A visible quote may have no plan."""
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return False, None
    if ctx.finance_plan is None:
        return True, None
    return True, FinancePlanResponse.model_validate(ctx.finance_plan)


async def upsert_finance_plan(
    session: AsyncSession,
    user: UserContext,
    quote_id: int,
    body: FinancePlanRequest,
) -> FinancePlanResponse | None:
    ctx = await load_for_quote(session, user, quote_id)
    if ctx is None:
        return None
    if ctx.submission.esign_completed:
        raise PreconditionError(
            "esign_completed", "The finance plan cannot change after e-signature is complete"
        )
    if ctx.quote.status not in _PLAN_EDITABLE:
        raise PreconditionError(
            "quote_locked",
            f"The finance plan cannot change while the quote is {ctx.quote.status.value}",
        )
    if ctx.documents:
        raise PreconditionError(
            "documents_generated", "The finance plan cannot change after documents are generated"
        )

    terms = build_plan_terms(calculate_final_amount(RateComponents.of(ctx.quote)), body)
    existing = ctx.finance_plan
    if existing is None:
        plan = FinancePlan(quote_id=quote_id, **terms)
        try:
            async with session.begin_nested():
                session.add(plan)
        except IntegrityError as exc:
            await session.rollback()
            raise ConflictError("A finance plan was created concurrently; reload and retry") from exc
    else:
        await guarded_update(
            session,
            FinancePlan,
            existing.id,
            guards=(FinancePlan.updated_at == existing.updated_at,),
            values=terms,
            conflict_detail="Finance plan changed concurrently; reload and retry",
        )

    await write_activity(
        session,
        activity_type=ActivityType.FINANCE_PLAN_UPDATED,
        description=(
            f"Finance plan {'updated' if existing else 'created'}: "
            f"{terms['tenure_months']} months at ${terms['monthly_installment_usd']}"
        ),
        user=user,
        submission_id=ctx.submission.id,
        quote_id=quote_id,
        details={k: str(v) for k, v in terms.items()},
    )
    await session.commit()
    logger.info("Quote %s finance plan saved", quote_id)

    ctx = await load_for_quote(session, user, quote_id)
    return FinancePlanResponse.model_validate(ctx.finance_plan)
