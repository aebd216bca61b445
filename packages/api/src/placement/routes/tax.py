# This project was developed with assistance from AI tools.
"""Standalone premium tax calculator."""

from decimal import Decimal

from db.enums import UserRole
from fastapi import APIRouter, Depends, Query

from ..middleware.auth import require_roles
from ..schemas.tax import TaxCalculationResponse
from ..services.tax import lookup_tax, to_calculation_response

router = APIRouter()


@router.get(
    "/calculate",
    response_model=TaxCalculationResponse,
    dependencies=[Depends(require_roles(UserRole.SYSTEM_ADMIN, UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER))],
)
async def calculate(
    state: str = Query(min_length=1),
    premium: Decimal = Query(),
) -> TaxCalculationResponse:
    """Tax for a premium in a jurisdiction. ``auto_calculated`` is False on lookup failure."""
    result = await lookup_tax(state, premium)
    return to_calculation_response(result)
