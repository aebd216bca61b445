# This project was developed with assistance from AI tools.
"""Workflow gates.

Each gate is a pure function of a ``WorkflowSnapshot``. The ``*_blocker``
form returns the name of the first unmet condition (or None); the ``can_*``
form is its boolean. Gates never transition anything and are evaluated
fresh on every request -- they are advisory for the UI and re-checked by
the conditional write that actually applies a change.
"""

from db.enums import DocumentType, PaymentStatus, QuoteStatus, SignatureStatus

from ..errors import PreconditionError
from ..schemas.status import GateState
from .snapshot import QuoteState, WorkflowSnapshot

BASE_REQUIRED_DOCUMENTS = (DocumentType.PROPOSAL, DocumentType.CARRIER_FORM)

_MESSAGES = {
    "no_quote": "No quote has been approved for this submission.",
    "quote_not_approved": "The quote must be approved first.",
    "esign_completed": "E-signature is already complete for this submission.",
    "documents_incomplete": "All required documents must be generated first.",
    "esign_incomplete": "E-signature must be completed first.",
    "payment_already_received": "Payment has already been received.",
    "payment_pending": "Payment must be received first.",
    "bind_already_requested": "A bind request has already been submitted.",
    "bind_not_requested": "Bind has not been requested.",
    "documents_not_sent": "Documents have not been sent for signature.",
    "documents_generated": "The finance plan is fixed once documents are generated.",
}

_UNSENT = frozenset({SignatureStatus.GENERATED, SignatureStatus.FAILED})


def required_document_types(quote: QuoteState) -> tuple[DocumentType, ...]:
    """Proposal and carrier forms, plus the finance agreement when financed."""
    if quote.has_finance_plan:
        return BASE_REQUIRED_DOCUMENTS + (DocumentType.FINANCE_AGREEMENT,)
    return BASE_REQUIRED_DOCUMENTS


def required_document_count(quote: QuoteState) -> int:
    return len(required_document_types(quote))


def missing_document_types(snapshot: WorkflowSnapshot) -> list[DocumentType]:
    if snapshot.quote is None:
        return []
    present = {d.document_type for d in snapshot.documents}
    return [t for t in required_document_types(snapshot.quote) if t not in present]


def generate_documents_blocker(snapshot: WorkflowSnapshot) -> str | None:
    if snapshot.quote is None:
        return "no_quote"
    if snapshot.submission.esign_completed:
        return "esign_completed"
    if snapshot.quote.status != QuoteStatus.APPROVED:
        return "quote_not_approved"
    return None


def has_all_documents(snapshot: WorkflowSnapshot) -> bool:
    if snapshot.quote is None:
        return False
    return len(snapshot.documents) >= required_document_count(snapshot.quote)


def send_for_signature_blocker(snapshot: WorkflowSnapshot) -> str | None:
    if snapshot.submission.esign_completed:
        return "esign_completed"
    if not has_all_documents(snapshot):
        return "documents_incomplete"
    return None


def pay_blocker(snapshot: WorkflowSnapshot) -> str | None:
    if not snapshot.submission.esign_completed:
        return "esign_incomplete"
    if snapshot.submission.payment_status == PaymentStatus.PAID:
        return "payment_already_received"
    return None


def request_bind_blocker(snapshot: WorkflowSnapshot) -> str | None:
    if not snapshot.submission.esign_completed:
        return "esign_incomplete"
    if snapshot.submission.payment_status != PaymentStatus.PAID:
        return "payment_pending"
    if snapshot.submission.bind_requested:
        return "bind_already_requested"
    return None


def complete_signature_blocker(snapshot: WorkflowSnapshot) -> str | None:
    """Signature may only complete once the full document set is out for signature.

    FAILED documents count as unsent; they must be resent first.
    """
    if not snapshot.documents:
        return "documents_not_sent"
    if not has_all_documents(snapshot):
        return "documents_incomplete"
    if any(d.signature_status in _UNSENT for d in snapshot.documents):
        return "documents_not_sent"
    return None


def can_generate_documents(snapshot: WorkflowSnapshot) -> bool:
    return generate_documents_blocker(snapshot) is None


def can_send_for_signature(snapshot: WorkflowSnapshot) -> bool:
    return send_for_signature_blocker(snapshot) is None


def can_pay(snapshot: WorkflowSnapshot) -> bool:
    return pay_blocker(snapshot) is None


def can_request_bind(snapshot: WorkflowSnapshot) -> bool:
    return request_bind_blocker(snapshot) is None


def evaluate_gates(snapshot: WorkflowSnapshot) -> GateState:
    """All gates at once, for status views and action responses."""
    return GateState(
        can_generate_documents=can_generate_documents(snapshot),
        has_all_documents=has_all_documents(snapshot),
        can_send_for_signature=can_send_for_signature(snapshot),
        can_pay=can_pay(snapshot),
        can_request_bind=can_request_bind(snapshot),
    )


def require(blocker: str | None) -> None:
    """Raise PreconditionError naming the unmet condition, if any."""
    if blocker is not None:
        raise PreconditionError(blocker, _MESSAGES.get(blocker, blocker.replace("_", " ")))
