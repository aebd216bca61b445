# This project was developed with assistance from AI tools.
"""Tests for workflow gates evaluated on snapshots."""

import pytest
from db.enums import DocumentType, PaymentStatus, QuoteStatus, SignatureStatus

from placement.errors import PreconditionError
from placement.services.gates import (
    can_generate_documents,
    can_pay,
    can_request_bind,
    can_send_for_signature,
    complete_signature_blocker,
    evaluate_gates,
    has_all_documents,
    missing_document_types,
    require,
    send_for_signature_blocker,
)
from placement.services.snapshot import WorkflowSnapshot

from .factories import make_document, make_full_document_set, make_quote, make_submission


def _snapshot(submission=None, quote=None, documents=(), financed=False):
    return WorkflowSnapshot.capture(
        submission or make_submission(),
        quote,
        documents,
        has_finance_plan=financed,
    )


class TestDocumentGates:
    def test_no_quote_blocks_everything(self):
        gates = evaluate_gates(_snapshot())
        assert not gates.can_generate_documents
        assert not gates.has_all_documents
        assert not gates.can_send_for_signature

    def test_posted_quote_cannot_generate(self):
        snapshot = _snapshot(quote=make_quote(status=QuoteStatus.POSTED))
        assert not can_generate_documents(snapshot)

    def test_approved_quote_can_generate(self):
        snapshot = _snapshot(quote=make_quote(status=QuoteStatus.APPROVED))
        assert can_generate_documents(snapshot)

    def test_generation_closed_after_esign(self):
        snapshot = _snapshot(
            submission=make_submission(esign_completed=True),
            quote=make_quote(status=QuoteStatus.APPROVED),
        )
        assert not can_generate_documents(snapshot)

    def test_two_documents_required_without_finance_plan(self):
        quote = make_quote(status=QuoteStatus.APPROVED)
        snapshot = _snapshot(quote=quote, documents=make_full_document_set())
        assert has_all_documents(snapshot)
        assert missing_document_types(snapshot) == []

    def test_finance_plan_requires_third_document(self):
        quote = make_quote(status=QuoteStatus.APPROVED)
        snapshot = _snapshot(quote=quote, documents=make_full_document_set(), financed=True)
        assert not has_all_documents(snapshot)
        assert missing_document_types(snapshot) == [DocumentType.FINANCE_AGREEMENT]

    def test_missing_types_in_required_order(self):
        quote = make_quote(status=QuoteStatus.APPROVED)
        snapshot = _snapshot(quote=quote, financed=True)
        assert missing_document_types(snapshot) == [
            DocumentType.PROPOSAL,
            DocumentType.CARRIER_FORM,
            DocumentType.FINANCE_AGREEMENT,
        ]

    def test_documents_of_other_quotes_are_ignored(self):
        quote = make_quote(status=QuoteStatus.APPROVED)
        stray = [make_document(9, DocumentType.PROPOSAL, quote_id=999)]
        snapshot = _snapshot(quote=quote, documents=stray)
        assert snapshot.documents == ()

    def test_send_needs_all_documents(self):
        quote = make_quote(status=QuoteStatus.APPROVED)
        snapshot = _snapshot(quote=quote, documents=[make_document()])
        assert send_for_signature_blocker(snapshot) == "documents_incomplete"
        snapshot = _snapshot(quote=quote, documents=make_full_document_set())
        assert can_send_for_signature(snapshot)


class TestPaymentAndBindGates:
    """Payment opens after e-sign; bind opens after payment."""

    def _approved(self, **submission_fields):
        return _snapshot(
            submission=make_submission(**submission_fields),
            quote=make_quote(status=QuoteStatus.APPROVED),
            documents=make_full_document_set(SignatureStatus.SIGNED),
        )

    def test_pay_closed_before_esign(self):
        snapshot = self._approved()
        assert not can_pay(snapshot)
        assert not can_request_bind(snapshot)

    def test_pay_open_after_esign(self):
        snapshot = self._approved(esign_completed=True)
        assert can_pay(snapshot)
        assert not can_request_bind(snapshot)

    def test_bind_open_after_payment(self):
        snapshot = self._approved(esign_completed=True, payment_status=PaymentStatus.PAID)
        assert not can_pay(snapshot)
        assert can_request_bind(snapshot)

    def test_bind_closed_after_request(self):
        snapshot = self._approved(
            esign_completed=True, payment_status=PaymentStatus.PAID, bind_requested=True
        )
        assert not can_request_bind(snapshot)

    def test_gates_monotonic_once_complete(self):
        """Completing e-sign closes generation and sending for good."""
        snapshot = self._approved(esign_completed=True, payment_status=PaymentStatus.PAID)
        gates = evaluate_gates(snapshot)
        assert not gates.can_generate_documents
        assert not gates.can_send_for_signature


class TestCompleteSignatureGate:
    def test_no_documents(self):
        assert complete_signature_blocker(_snapshot(quote=make_quote())) == "documents_not_sent"

    def test_generated_documents_not_sent(self):
        snapshot = _snapshot(quote=make_quote(), documents=make_full_document_set())
        assert complete_signature_blocker(snapshot) == "documents_not_sent"

    def test_sent_documents_may_complete(self):
        snapshot = _snapshot(
            quote=make_quote(), documents=make_full_document_set(SignatureStatus.SENT)
        )
        assert complete_signature_blocker(snapshot) is None

    def test_partial_document_set_is_incomplete(self):
        snapshot = _snapshot(
            quote=make_quote(),
            documents=[make_document(1, DocumentType.PROPOSAL, SignatureStatus.SENT)],
        )
        assert complete_signature_blocker(snapshot) == "documents_incomplete"

    def test_financed_quote_needs_finance_agreement_sent(self):
        snapshot = _snapshot(
            quote=make_quote(),
            documents=make_full_document_set(SignatureStatus.SENT),
            financed=True,
        )
        assert complete_signature_blocker(snapshot) == "documents_incomplete"

    def test_failed_documents_must_be_resent(self):
        documents = [
            make_document(1, DocumentType.PROPOSAL, SignatureStatus.SENT),
            make_document(2, DocumentType.CARRIER_FORM, SignatureStatus.FAILED),
        ]
        snapshot = _snapshot(quote=make_quote(), documents=documents)
        assert complete_signature_blocker(snapshot) == "documents_not_sent"


def test_require_raises_with_condition_name():
    with pytest.raises(PreconditionError) as exc_info:
        require("esign_incomplete")
    assert exc_info.value.unmet_condition == "esign_incomplete"
    assert "E-signature" in exc_info.value.detail


def test_require_passes_on_none():
    require(None)
