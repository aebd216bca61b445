# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies."""

from db.enums import UserRole

from ..schemas.auth import DataScope

AGENCY_ROLES = frozenset({UserRole.AGENCY_ADMIN, UserRole.AGENCY_USER})


def build_data_scope(role: UserRole, agency_id: int | None) -> DataScope:
    """Agency roles see their own agency's submissions; admins see everything."""
    if role == UserRole.SYSTEM_ADMIN:
        return DataScope(full_pipeline=True)
    if role in AGENCY_ROLES and agency_id is not None:
        return DataScope(agency_id=agency_id)
    # agency role without an agency claim -- no visibility
    return DataScope(agency_id=-1)
