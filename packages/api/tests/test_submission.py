# This project was developed with assistance from AI tools.
"""Tests for submission intake, routing, decline and admin notes."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from db.enums import ActivityType, QuoteStatus, SubmissionStatus

from placement.errors import ConflictError, NotFoundError, WorkflowValidationError
from placement.schemas.submission import SubmissionCreate
from placement.services.submission import (
    create_submission,
    decline_submission,
    route_submission,
    set_admin_notes,
)

from .factories import (
    make_activity,
    make_admin,
    make_agency,
    make_agency_user,
    make_context,
    make_quote,
    make_submission,
)


def _ids_result(ids):
    result = MagicMock()
    result.scalars.return_value.all.return_value = ids
    return result


class TestCreateSubmission:
    @patch("placement.services.submission.get_scoped_submission", new_callable=AsyncMock)
    @patch("placement.services.submission.write_activity", new_callable=AsyncMock)
    async def test_agency_user_submits_for_own_agency(self, mock_activity, mock_get):
        session = AsyncMock()
        session.get = AsyncMock(return_value=make_agency())
        session.add = MagicMock()
        mock_get.return_value = make_submission(status=SubmissionStatus.SUBMITTED)
        body = SubmissionCreate(template_id="gl-contractors", agency_id=99)

        submission = await create_submission(session, make_agency_user(), body)

        added = session.add.call_args.args[0]
        assert added.agency_id == 7
        assert added.status == SubmissionStatus.SUBMITTED
        assert mock_activity.call_args.kwargs["activity_type"] == ActivityType.SUBMISSION_CREATED
        session.commit.assert_awaited_once()
        assert submission.status == SubmissionStatus.SUBMITTED

    async def test_admin_must_name_agency(self):
        with pytest.raises(WorkflowValidationError, match="agency_id"):
            await create_submission(AsyncMock(), make_admin(), SubmissionCreate(template_id="gl"))

    async def test_unknown_agency(self):
        session = AsyncMock()
        session.get = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await create_submission(session, make_admin(), SubmissionCreate(template_id="gl", agency_id=42))


class TestRouteSubmission:
    @patch("placement.services.submission.write_activity", new_callable=AsyncMock)
    @patch("placement.services.submission.guarded_update", new_callable=AsyncMock)
    @patch("placement.services.submission.load_for_submission", new_callable=AsyncMock)
    async def test_route_records_carriers(self, mock_load, mock_update, mock_activity):
        mock_load.side_effect = [
            make_context(submission=make_submission(status=SubmissionStatus.SUBMITTED)),
            make_context(submission=make_submission(status=SubmissionStatus.ROUTED)),
        ]
        mock_activity.return_value = make_activity(activity_type="SUBMISSION_ROUTED")
        session = AsyncMock()
        session.execute = AsyncMock(return_value=_ids_result([30, 31]))

        response = await route_submission(session, make_admin(), 100, [30, 31, 30])

        values = mock_update.call_args.kwargs["values"]
        assert values == {"status": SubmissionStatus.ROUTED, "routed_carrier_ids": [30, 31]}
        assert response.submission.status == SubmissionStatus.ROUTED

    @patch("placement.services.submission.guarded_update", new_callable=AsyncMock)
    @patch("placement.services.submission.load_for_submission", new_callable=AsyncMock)
    async def test_unknown_carrier(self, mock_load, mock_update):
        mock_load.return_value = make_context(submission=make_submission(status=SubmissionStatus.SUBMITTED))
        session = AsyncMock()
        session.execute = AsyncMock(return_value=_ids_result([30]))

        with pytest.raises(NotFoundError, match="31"):
            await route_submission(session, make_admin(), 100, [30, 31])
        mock_update.assert_not_called()

    @patch("placement.services.submission.load_for_submission", new_callable=AsyncMock)
    async def test_declined_submission_cannot_route(self, mock_load):
        mock_load.return_value = make_context(submission=make_submission(status=SubmissionStatus.DECLINED))
        with pytest.raises(ConflictError):
            await route_submission(AsyncMock(), make_admin(), 100, [30])


@patch("placement.services.submission.notify_agency", new_callable=AsyncMock)
@patch("placement.services.submission.write_activity", new_callable=AsyncMock)
@patch("placement.services.submission.guarded_update", new_callable=AsyncMock)
@patch("placement.services.submission.load_for_submission", new_callable=AsyncMock)
async def test_decline_cascades_to_open_quotes(mock_load, mock_update, mock_activity, mock_notify):
    mock_load.side_effect = [
        make_context(quote=make_quote(status=QuoteStatus.APPROVED)),
        make_context(submission=make_submission(status=SubmissionStatus.DECLINED, decline_reason="Out of appetite")),
    ]
    mock_activity.return_value = make_activity(activity_type="STATUS_CHANGED")
    session = AsyncMock()
    session.execute = AsyncMock(return_value=_ids_result([500, 501]))

    response = await decline_submission(session, make_admin(), 100, "Out of appetite")

    details = mock_activity.call_args.kwargs["details"]
    assert details["declinedQuoteIds"] == [500, 501]
    assert details["from"] == "QUOTED"
    mock_notify.assert_awaited_once()
    assert response.submission.status == SubmissionStatus.DECLINED


@patch("placement.services.submission.get_scoped_submission", new_callable=AsyncMock)
@patch("placement.services.submission.write_activity", new_callable=AsyncMock)
@patch("placement.services.submission.guarded_update", new_callable=AsyncMock)
async def test_admin_notes(mock_update, mock_activity, mock_get):
    mock_get.return_value = make_submission(admin_notes="Call broker")

    submission = await set_admin_notes(AsyncMock(), make_admin(), 100, "Call broker")

    assert mock_update.call_args.kwargs["values"] == {"admin_notes": "Call broker"}
    assert mock_activity.call_args.kwargs["activity_type"] == ActivityType.ADMIN_NOTE_ADDED
    assert submission.admin_notes == "Call broker"
