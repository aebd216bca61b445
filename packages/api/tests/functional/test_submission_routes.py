# This project was developed with assistance from AI tools.
"""Functional tests: submission routes through the real app."""

from unittest.mock import AsyncMock, patch

from db.enums import PaymentStatus, QuoteStatus, SignatureStatus, SubmissionStatus

from placement.errors import PreconditionError
from placement.services.workflow import build_action_response

from ..factories import (
    make_activity,
    make_context,
    make_full_document_set,
    make_quote,
    make_submission,
)
from .mock_db import make_mock_session
from .personas import agency_user, other_agency_user, system_admin


def _paid_response():
    return build_action_response(
        make_context(
            submission=make_submission(esign_completed=True, payment_status=PaymentStatus.PAID),
            quote=make_quote(status=QuoteStatus.APPROVED),
            documents=make_full_document_set(SignatureStatus.SIGNED),
        ),
        [make_activity(activity_type="PAYMENT_RECEIVED")],
    )


class TestListAndGet:
    def test_agency_lists_own_submissions(self, make_client):
        client = make_client(agency_user())
        with patch(
            "placement.services.submission.list_submissions",
            new_callable=AsyncMock,
            return_value=([make_submission()], 1),
        ) as mock_list:
            resp = client.get("/api/submissions/?limit=10")

        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"] == {"total": 1, "offset": 0, "limit": 10, "has_more": False}
        assert body["data"][0]["agency_id"] == 7
        assert mock_list.call_args.args[1].data_scope.agency_id == 7

    def test_out_of_scope_submission_is_404(self, make_client):
        client = make_client(other_agency_user())
        with patch(
            "placement.services.submission.get_submission", new_callable=AsyncMock, return_value=None
        ):
            resp = client.get("/api/submissions/100")

        assert resp.status_code == 404
        body = resp.json()
        assert body["title"] == "Not Found"
        assert body["detail"] == "Submission not found"

    def test_create_submission(self, make_client):
        client = make_client(agency_user())
        with patch(
            "placement.services.submission.create_submission",
            new_callable=AsyncMock,
            return_value=make_submission(status=SubmissionStatus.SUBMITTED),
        ):
            resp = client.post(
                "/api/submissions/",
                json={"template_id": "gl-contractors", "client_contact": {"email": "pat@insured.example"}},
            )

        assert resp.status_code == 201
        assert resp.json()["status"] == "SUBMITTED"

    def test_create_submission_requires_template(self, make_client):
        resp = make_client(agency_user()).post("/api/submissions/", json={})
        assert resp.status_code == 422

    def test_activity_timeline(self, make_client):
        client = make_client(agency_user())
        with (
            patch(
                "placement.services.submission.get_submission",
                new_callable=AsyncMock,
                return_value=make_submission(),
            ),
            patch(
                "placement.routes.submissions.list_activity",
                new_callable=AsyncMock,
                return_value=[make_activity(2, "QUOTE_POSTED"), make_activity(1, "QUOTE_CREATED")],
            ),
        ):
            resp = client.get("/api/submissions/100/activity")

        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert body["entries"][0]["activity_type"] == "QUOTE_POSTED"
        assert body["entries"][0]["performed_by"]["role"] == "system_admin"

    def test_final_documents_slots(self, make_client):
        client = make_client(agency_user())
        with patch(
            "placement.services.submission.get_submission",
            new_callable=AsyncMock,
            return_value=make_submission(status=SubmissionStatus.BOUND, bind_approved=True),
        ):
            resp = client.get("/api/submissions/100/final-documents")

        assert resp.status_code == 200
        kinds = [d["kind"] for d in resp.json()["documents"]]
        assert kinds == ["final_binder", "final_policy", "certificate"]


class TestPayment:
    def test_payment_succeeds(self, make_client):
        client = make_client(agency_user())
        with patch(
            "placement.routes.submissions.pay", new_callable=AsyncMock, return_value=_paid_response()
        ) as mock_pay:
            resp = client.post("/api/submissions/100/payment", json={"amount": "1245.00", "method": "CARD"})

        assert resp.status_code == 200
        assert resp.json()["submission"]["payment_status"] == "PAID"
        assert resp.json()["gates"]["can_request_bind"] is True
        args = mock_pay.call_args.args
        assert args[2] == 100
        assert str(args[3]) == "1245.00"

    def test_payment_before_signature_is_409(self, make_client):
        client = make_client(agency_user())
        with patch(
            "placement.routes.submissions.pay",
            new_callable=AsyncMock,
            side_effect=PreconditionError("esign_incomplete", "E-signature must be completed first."),
        ):
            resp = client.post("/api/submissions/100/payment", json={"amount": "1245.00", "method": "CARD"})

        assert resp.status_code == 409
        body = resp.json()
        assert body["type"] == "urn:placement:precondition-failed"
        assert body["unmet_condition"] == "esign_incomplete"
        assert body["instance"] == "/api/submissions/100/payment"

    def test_admin_cannot_pay(self, make_client):
        resp = make_client(system_admin()).post(
            "/api/submissions/100/payment", json={"amount": "1245.00", "method": "CARD"}
        )
        assert resp.status_code == 403

    def test_unknown_method_is_422(self, make_client):
        resp = make_client(agency_user()).post(
            "/api/submissions/100/payment", json={"amount": "1245.00", "method": "BARTER"}
        )
        assert resp.status_code == 422

    def test_payment_status(self, make_client):
        from placement.schemas.payment import PaymentStatusResponse

        status = PaymentStatusResponse(
            submission_id=100, payment_status=PaymentStatus.PENDING, amount_due="1245.00"
        )
        client = make_client(agency_user())
        with patch(
            "placement.routes.submissions.get_payment_status", new_callable=AsyncMock, return_value=status
        ):
            resp = client.get("/api/submissions/100/payment")

        assert resp.status_code == 200
        assert resp.json()["amount_due"] == "1245.00"


class TestBindRequest:
    def test_bind_request_not_visible(self, make_client):
        client = make_client(other_agency_user(), make_mock_session())
        with patch("placement.routes.submissions.request_bind", new_callable=AsyncMock, return_value=None):
            resp = client.post("/api/submissions/100/bind-request")
        assert resp.status_code == 404

    def test_bind_request_before_payment(self, make_client):
        client = make_client(agency_user())
        with patch(
            "placement.routes.submissions.request_bind",
            new_callable=AsyncMock,
            side_effect=PreconditionError("payment_pending", "Payment must be received first."),
        ):
            resp = client.post("/api/submissions/100/bind-request")

        assert resp.status_code == 409
        assert resp.json()["unmet_condition"] == "payment_pending"
