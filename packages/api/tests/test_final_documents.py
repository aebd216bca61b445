# This project was developed with assistance from AI tools.
"""Tests for final binder/policy/certificate uploads."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from db.enums import FinalDocumentKind, SubmissionStatus

from placement.errors import PreconditionError, WorkflowValidationError
from placement.services.final_documents import (
    UploadedFile,
    final_documents_view,
    upload_final_documents,
    validate_upload,
)

from .factories import NOW, make_admin, make_submission

MB = 1024 * 1024


def _pdf(kind=FinalDocumentKind.FINAL_POLICY, data=b"%PDF-1.7", content_type="application/pdf"):
    return UploadedFile(kind=kind, filename=f"{kind.value}.pdf", content_type=content_type, data=data)


def _bound():
    return make_submission(status=SubmissionStatus.BOUND, bind_requested=True, bind_approved=True)


class TestValidateUpload:
    def test_pdf_accepted(self):
        validate_upload(_pdf(), 10 * MB)

    def test_non_pdf_rejected(self):
        with pytest.raises(WorkflowValidationError, match="only PDF"):
            validate_upload(_pdf(content_type="image/png"), 10 * MB)

    def test_empty_rejected(self):
        with pytest.raises(WorkflowValidationError, match="empty"):
            validate_upload(_pdf(data=b""), 10 * MB)

    def test_oversize_rejected(self):
        with pytest.raises(WorkflowValidationError, match="exceeds 1MB"):
            validate_upload(_pdf(data=b"x" * (MB + 1)), MB)


def test_view_lists_every_slot():
    submission = _bound()
    submission.final_policy_url = "http://minio/p.pdf"
    submission.final_policy_uploaded_at = NOW

    view = final_documents_view(submission)

    assert [d.kind for d in view.documents] == list(FinalDocumentKind)
    policy = next(d for d in view.documents if d.kind == FinalDocumentKind.FINAL_POLICY)
    assert policy.url == "http://minio/p.pdf"


@patch("placement.services.final_documents.get_scoped_submission", new_callable=AsyncMock)
async def test_upload_before_bind_is_blocked(mock_get):
    mock_get.return_value = make_submission(status=SubmissionStatus.BIND_REQUESTED, bind_requested=True)
    with pytest.raises(PreconditionError) as exc_info:
        await upload_final_documents(AsyncMock(), make_admin(), 100, [_pdf()])
    assert exc_info.value.unmet_condition == "not_bound"


@patch("placement.services.final_documents.get_scoped_submission", new_callable=AsyncMock)
async def test_duplicate_kinds_rejected(mock_get):
    mock_get.return_value = _bound()
    with pytest.raises(WorkflowValidationError, match="once per request"):
        await upload_final_documents(AsyncMock(), make_admin(), 100, [_pdf(), _pdf()])


@patch("placement.services.final_documents.get_scoped_submission", new_callable=AsyncMock)
async def test_no_files_rejected(mock_get):
    mock_get.return_value = _bound()
    with pytest.raises(WorkflowValidationError, match="At least one"):
        await upload_final_documents(AsyncMock(), make_admin(), 100, [])


@patch("placement.services.final_documents.notify_agency", new_callable=AsyncMock)
@patch("placement.services.final_documents.write_activity", new_callable=AsyncMock)
@patch("placement.services.final_documents.guarded_update", new_callable=AsyncMock)
@patch("placement.services.final_documents.get_storage_service")
@patch("placement.services.final_documents.get_scoped_submission", new_callable=AsyncMock)
async def test_upload_stores_and_records(mock_get, mock_storage, mock_update, mock_activity, mock_notify):
    mock_get.return_value = _bound()
    storage = MagicMock()
    storage.build_object_key.side_effect = lambda sid, folder, name: f"submissions/{sid}/{folder}/{name}"
    storage.upload_pdf = AsyncMock(side_effect=lambda data, key: f"http://minio/placement/{key}")
    mock_storage.return_value = storage

    view = await upload_final_documents(
        AsyncMock(),
        make_admin(),
        100,
        [_pdf(FinalDocumentKind.FINAL_BINDER), _pdf(FinalDocumentKind.CERTIFICATE)],
    )

    values = mock_update.call_args.kwargs["values"]
    assert values["final_binder_url"] == "http://minio/placement/submissions/100/final/final_binder.pdf"
    assert values["certificate_url"].endswith("certificate.pdf")
    assert "final_policy_url" not in values
    assert set(mock_activity.call_args.kwargs["details"]["documents"]) == {"final_binder", "certificate"}
    mock_notify.assert_awaited_once()
    assert view.submission_id == 100
