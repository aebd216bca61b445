# This project was developed with assistance from AI tools.
"""Quote routes: agency approval, broker fee, documents, signature, finance plan.

Every action re-checks its workflow gate server-side; the gates in the
response are advisory for the UI.
"""

from db import get_db
from db.enums import UserRole
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser, require_roles
from ..schemas.finance import FinancePlanRequest, FinancePlanResponse
from ..schemas.quote import BrokerFeeUpdate, QuoteResponse
from ..schemas.workflow import WorkflowActionResponse
from ..services.documents import generate_documents
from ..services.esign import send_for_signature
from ..services.finance import get_finance_plan, upsert_finance_plan
from ..services.quote import approve_quote, update_broker_fee
from ..services.workflow import get_scoped_quote

router = APIRouter()

_ALL_ROLES = (UserRole.SYSTEM_ADMIN, UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER)
_AGENCY_ROLES = (UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Quote not found")


@router.get(
    "/{quote_id}",
    response_model=QuoteResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def get_quote(
    quote_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> QuoteResponse:
    quote = await get_scoped_quote(session, user, quote_id)
    if quote is None:
        raise _not_found()
    return QuoteResponse.model_validate(quote)


@router.post(
    "/{quote_id}/approve",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(require_roles(*_AGENCY_ROLES))],
)
async def approve(
    quote_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Approve a posted quote. Unlocks documents, signature, payment and bind."""
    result = await approve_quote(session, user, quote_id)
    if result is None:
        raise _not_found()
    return result


@router.patch(
    "/{quote_id}/broker-fee",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(require_roles(*_AGENCY_ROLES))],
)
async def edit_broker_fee(
    quote_id: int,
    body: BrokerFeeUpdate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Change the agency's broker fee while the quote is POSTED."""
    result = await update_broker_fee(session, user, quote_id, body.broker_fee_amount_usd)
    if result is None:
        raise _not_found()
    return result


@router.post(
    "/{quote_id}/documents",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(require_roles(*_AGENCY_ROLES))],
)
async def create_documents(
    quote_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Generate missing required documents. Existing ones are reused."""
    result = await generate_documents(session, user, quote_id)
    if result is None:
        raise _not_found()
    return result


@router.post(
    "/{quote_id}/send-for-signature",
    response_model=WorkflowActionResponse,
    dependencies=[Depends(require_roles(*_AGENCY_ROLES))],
)
async def request_signature(
    quote_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> WorkflowActionResponse:
    """Send every required document for signature and return the signing URL."""
    result = await send_for_signature(session, user, quote_id)
    if result is None:
        raise _not_found()
    return result


@router.get(
    "/{quote_id}/finance-plan",
    response_model=FinancePlanResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def read_finance_plan(
    quote_id: int,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FinancePlanResponse:
    found, plan = await get_finance_plan(session, user, quote_id)
    if not found:
        raise _not_found()
    if plan is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No finance plan for this quote")
    return plan


@router.put(
    "/{quote_id}/finance-plan",
    response_model=FinancePlanResponse,
    dependencies=[Depends(require_roles(*_ALL_ROLES))],
)
async def save_finance_plan(
    quote_id: int,
    body: FinancePlanRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> FinancePlanResponse:
    """Create or replace the quote's finance plan (before e-signature completes)."""
    result = await upsert_finance_plan(session, user, quote_id, body)
    if result is None:
        raise _not_found()
    return result
