# This project was developed with assistance from AI tools.
"""Shared data scope filtering for service queries.

Centralizes the DataScope -> SQL WHERE logic so every submission-owned
resource applies the same agency rule. Out-of-scope rows simply don't
match, which the routes report as 404.
"""

from db import Submission

from ..schemas.auth import DataScope


def apply_data_scope(stmt, scope: DataScope, *, join_to_submission=None):
    """Restrict a select to the caller's agency.

    Args:
        stmt: A SQLAlchemy select statement.
        scope: The caller's DataScope.
        join_to_submission: ORM relationship attribute to join to reach
            Submission (e.g., ``Quote.submission``). Pass ``None`` when
            querying Submission directly.
    """
    if scope.full_pipeline:
        return stmt
    if join_to_submission is not None:
        stmt = stmt.join(join_to_submission)
    return stmt.where(Submission.agency_id == scope.agency_id)
