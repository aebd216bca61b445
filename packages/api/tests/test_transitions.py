# This project was developed with assistance from AI tools.
"""Tests for coordinated submission/quote transition planning."""

import pytest
from db.enums import ActivityType, QuoteStatus, SubmissionStatus

from placement.errors import ConflictError, PreconditionError
from placement.services.snapshot import WorkflowSnapshot
from placement.services.transitions import (
    TransitionPlan,
    is_consistent,
    plan_bind_approval,
    plan_bind_request,
    plan_decline,
    plan_quote_approval,
    plan_quote_entry,
    plan_quote_post,
    plan_route,
)

from .factories import make_quote, make_submission


def _snapshot(status=SubmissionStatus.QUOTED, quote_status=None, **submission_fields):
    quote = make_quote(status=quote_status) if quote_status else None
    return WorkflowSnapshot.capture(make_submission(status=status, **submission_fields), quote)


def test_route_from_submitted():
    plan = plan_route(_snapshot(SubmissionStatus.SUBMITTED))
    assert plan.submission_to == SubmissionStatus.ROUTED
    assert plan.activity_type == ActivityType.SUBMISSION_ROUTED


def test_route_twice_is_conflict():
    with pytest.raises(ConflictError):
        plan_route(_snapshot(SubmissionStatus.ROUTED))


def test_route_from_quoted_is_invalid():
    with pytest.raises(ConflictError, match="Cannot transition submission"):
        plan_route(_snapshot(SubmissionStatus.QUOTED))


def test_draft_quote_entry_keeps_submission_status():
    plan = plan_quote_entry(_snapshot(SubmissionStatus.ROUTED), post=False)
    assert not plan.moves_submission


def test_posted_quote_entry_moves_submission_to_quoted():
    plan = plan_quote_entry(_snapshot(SubmissionStatus.SUBMITTED), post=True)
    assert plan.submission_to == SubmissionStatus.QUOTED


def test_quote_entry_blocked_after_bind_request():
    with pytest.raises(PreconditionError) as exc_info:
        plan_quote_entry(_snapshot(SubmissionStatus.BIND_REQUESTED), post=True)
    assert exc_info.value.unmet_condition == "submission_not_quotable"


@pytest.mark.parametrize("status", [SubmissionStatus.BOUND, SubmissionStatus.DECLINED])
def test_terminal_submissions_reject_every_plan(status):
    snapshot = _snapshot(status, QuoteStatus.POSTED)
    for planner in (plan_route, plan_quote_post, plan_quote_approval, plan_decline):
        with pytest.raises(ConflictError, match="already"):
            planner(snapshot)


def test_post_requires_entered_quote():
    plan = plan_quote_post(_snapshot(SubmissionStatus.ROUTED, QuoteStatus.ENTERED))
    assert (plan.quote_from, plan.quote_to) == (QuoteStatus.ENTERED, QuoteStatus.POSTED)
    with pytest.raises(ConflictError):
        plan_quote_post(_snapshot(SubmissionStatus.QUOTED, QuoteStatus.POSTED))


def test_approval_of_entered_quote_is_precondition():
    with pytest.raises(PreconditionError) as exc_info:
        plan_quote_approval(_snapshot(SubmissionStatus.QUOTED, QuoteStatus.ENTERED))
    assert exc_info.value.unmet_condition == "quote_not_posted"


def test_second_approval_is_conflict():
    with pytest.raises(ConflictError, match="already APPROVED"):
        plan_quote_approval(_snapshot(SubmissionStatus.QUOTED, QuoteStatus.APPROVED))


def test_bind_request_moves_both_records():
    plan = plan_bind_request(_snapshot(SubmissionStatus.QUOTED, QuoteStatus.APPROVED))
    assert plan.submission_to == SubmissionStatus.BIND_REQUESTED
    assert plan.quote_to == QuoteStatus.BIND_REQUESTED


def test_bind_request_from_posted_quote_is_invalid():
    with pytest.raises(ConflictError, match="Cannot transition quote"):
        plan_bind_request(_snapshot(SubmissionStatus.QUOTED, QuoteStatus.POSTED))


def test_bind_approval_requires_request():
    with pytest.raises(PreconditionError) as exc_info:
        plan_bind_approval(_snapshot(SubmissionStatus.QUOTED, QuoteStatus.APPROVED))
    assert exc_info.value.unmet_condition == "bind_not_requested"


def test_bind_approval_binds_both():
    snapshot = _snapshot(
        SubmissionStatus.BIND_REQUESTED, QuoteStatus.BIND_REQUESTED, bind_requested=True
    )
    plan = plan_bind_approval(snapshot)
    assert plan.submission_to == SubmissionStatus.BOUND
    assert plan.quote_to == QuoteStatus.BOUND


def test_inconsistent_pair_rejected_at_plan_construction():
    with pytest.raises(ConflictError, match="inconsistent"):
        TransitionPlan(
            activity_type=ActivityType.QUOTE_APPROVED,
            submission_from=SubmissionStatus.QUOTED,
            submission_to=SubmissionStatus.QUOTED,
            quote_from=QuoteStatus.APPROVED,
            quote_to=QuoteStatus.BIND_REQUESTED,
        )


def test_bound_quote_only_consistent_with_bound_submission():
    assert is_consistent(SubmissionStatus.BOUND, QuoteStatus.BOUND)
    assert not is_consistent(SubmissionStatus.QUOTED, QuoteStatus.BOUND)
    assert is_consistent(SubmissionStatus.DECLINED, QuoteStatus.DECLINED)
