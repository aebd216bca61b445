# This project was developed with assistance from AI tools.
"""Coordinated Submission/Quote status transitions.

A ``TransitionPlan`` names the expected current status of both records and
the status each moves to. Plans are built here from a snapshot (pure, no
I/O) and applied by the calling service as conditional writes guarded on
the expected statuses, so the pair is always advanced together and never
lands in a combination ``is_consistent`` rejects.
"""

from dataclasses import dataclass

from db.enums import ActivityType, QuoteStatus, SubmissionStatus

from ..errors import ConflictError, PreconditionError
from .snapshot import WorkflowSnapshot

# Submission statuses a quote in a given status may coexist with.
_QUOTE_REQUIRES: dict[QuoteStatus, frozenset[SubmissionStatus]] = {
    QuoteStatus.ENTERED: frozenset(
        {SubmissionStatus.SUBMITTED, SubmissionStatus.ROUTED, SubmissionStatus.QUOTED}
    ),
    QuoteStatus.POSTED: frozenset({SubmissionStatus.QUOTED}),
    QuoteStatus.APPROVED: frozenset({SubmissionStatus.QUOTED}),
    QuoteStatus.BIND_REQUESTED: frozenset({SubmissionStatus.BIND_REQUESTED}),
    QuoteStatus.BOUND: frozenset({SubmissionStatus.BOUND}),
    QuoteStatus.DECLINED: frozenset(SubmissionStatus),
}

_QUOTABLE = _QUOTE_REQUIRES[QuoteStatus.ENTERED]


def is_consistent(submission_status: SubmissionStatus, quote_status: QuoteStatus) -> bool:
    """Whether a quote in ``quote_status`` may belong to a submission in ``submission_status``."""
    return submission_status in _QUOTE_REQUIRES[quote_status]


@dataclass(frozen=True)
class TransitionPlan:
    """One logical move of a submission and (optionally) one of its quotes."""

    activity_type: ActivityType
    submission_from: SubmissionStatus
    submission_to: SubmissionStatus
    quote_from: QuoteStatus | None = None
    quote_to: QuoteStatus | None = None

    def __post_init__(self):
        if self.submission_from != self.submission_to:
            allowed = SubmissionStatus.valid_transitions()[self.submission_from]
            if self.submission_to not in allowed:
                raise ConflictError(
                    f"Cannot transition submission from '{self.submission_from.value}' "
                    f"to '{self.submission_to.value}'. "
                    f"Allowed: {sorted(s.value for s in allowed) if allowed else 'none (terminal status)'}."
                )
        if self.quote_to is not None:
            allowed = QuoteStatus.valid_transitions()[self.quote_from]
            if self.quote_to not in allowed:
                raise ConflictError(
                    f"Cannot transition quote from '{self.quote_from.value}' "
                    f"to '{self.quote_to.value}'. "
                    f"Allowed: {sorted(s.value for s in allowed) if allowed else 'none (terminal status)'}."
                )
            if not is_consistent(self.submission_to, self.quote_to):
                raise ConflictError(
                    f"Quote status '{self.quote_to.value}' is inconsistent with "
                    f"submission status '{self.submission_to.value}'."
                )

    @property
    def moves_submission(self) -> bool:
        return self.submission_from != self.submission_to


def _terminal_check(snapshot: WorkflowSnapshot) -> None:
    status = snapshot.submission.status
    if status in SubmissionStatus.terminal_statuses():
        raise ConflictError(f"Submission is already {status.value}")


def plan_route(snapshot: WorkflowSnapshot) -> TransitionPlan:
    """SUBMITTED -> ROUTED."""
    _terminal_check(snapshot)
    if snapshot.submission.status == SubmissionStatus.ROUTED:
        raise ConflictError("Submission is already ROUTED")
    return TransitionPlan(
        activity_type=ActivityType.SUBMISSION_ROUTED,
        submission_from=snapshot.submission.status,
        submission_to=SubmissionStatus.ROUTED,
    )


def plan_quote_entry(snapshot: WorkflowSnapshot, *, post: bool) -> TransitionPlan:
    """New quote. Posting moves the submission to QUOTED; saving a draft does not."""
    _terminal_check(snapshot)
    current = snapshot.submission.status
    if current not in _QUOTABLE:
        raise PreconditionError(
            "submission_not_quotable",
            f"Quotes cannot be entered while the submission is {current.value}",
        )
    return TransitionPlan(
        activity_type=ActivityType.QUOTE_CREATED,
        submission_from=current,
        submission_to=SubmissionStatus.QUOTED if post else current,
    )


def plan_quote_post(snapshot: WorkflowSnapshot) -> TransitionPlan:
    """ENTERED -> POSTED for the quote, submission to QUOTED."""
    _terminal_check(snapshot)
    quote = snapshot.quote
    if quote.status != QuoteStatus.ENTERED:
        raise ConflictError(f"Quote is already {quote.status.value}")
    return TransitionPlan(
        activity_type=ActivityType.QUOTE_POSTED,
        submission_from=snapshot.submission.status,
        submission_to=SubmissionStatus.QUOTED,
        quote_from=QuoteStatus.ENTERED,
        quote_to=QuoteStatus.POSTED,
    )


def plan_quote_approval(snapshot: WorkflowSnapshot) -> TransitionPlan:
    """POSTED -> APPROVED. Re-approving is a conflict, not a no-op."""
    _terminal_check(snapshot)
    quote = snapshot.quote
    if quote.status == QuoteStatus.ENTERED:
        raise PreconditionError("quote_not_posted", "The quote has not been posted yet")
    if quote.status != QuoteStatus.POSTED:
        raise ConflictError(f"Quote is already {quote.status.value}")
    return TransitionPlan(
        activity_type=ActivityType.QUOTE_APPROVED,
        submission_from=snapshot.submission.status,
        submission_to=snapshot.submission.status,
        quote_from=QuoteStatus.POSTED,
        quote_to=QuoteStatus.APPROVED,
    )


def plan_bind_request(snapshot: WorkflowSnapshot) -> TransitionPlan:
    """Quote APPROVED -> BIND_REQUESTED, submission QUOTED -> BIND_REQUESTED."""
    _terminal_check(snapshot)
    return TransitionPlan(
        activity_type=ActivityType.BIND_REQUESTED,
        submission_from=snapshot.submission.status,
        submission_to=SubmissionStatus.BIND_REQUESTED,
        quote_from=snapshot.quote.status,
        quote_to=QuoteStatus.BIND_REQUESTED,
    )


def plan_bind_approval(snapshot: WorkflowSnapshot) -> TransitionPlan:
    """Both records -> BOUND."""
    _terminal_check(snapshot)
    if not snapshot.submission.bind_requested:
        raise PreconditionError("bind_not_requested", "Bind has not been requested")
    return TransitionPlan(
        activity_type=ActivityType.BIND_APPROVED,
        submission_from=snapshot.submission.status,
        submission_to=SubmissionStatus.BOUND,
        quote_from=snapshot.quote.status,
        quote_to=QuoteStatus.BOUND,
    )


def plan_decline(snapshot: WorkflowSnapshot) -> TransitionPlan:
    """Any non-terminal submission -> DECLINED. Quotes cascade separately."""
    _terminal_check(snapshot)
    return TransitionPlan(
        activity_type=ActivityType.STATUS_CHANGED,
        submission_from=snapshot.submission.status,
        submission_to=SubmissionStatus.DECLINED,
    )
