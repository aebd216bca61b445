# This project was developed with assistance from AI tools.
"""Submission request/response schemas."""

from datetime import datetime
from decimal import Decimal

from db.enums import PaymentMethod, PaymentStatus, SubmissionStatus
from pydantic import BaseModel, ConfigDict, Field

from . import Pagination


class SubmissionCreate(BaseModel):
    """Intake of a new insurance application.

    ``agency_id`` is taken from the caller's token for agency users; only a
    system admin may submit on behalf of another agency.
    """

    template_id: str = Field(min_length=1, max_length=100)
    program_name: str | None = None
    agency_id: int | None = None
    client_contact: dict | None = None
    payload: dict | None = None


class RouteRequest(BaseModel):
    """Carriers the submission was sent to for quoting."""

    carrier_ids: list[int] = Field(min_length=1)


class DeclineRequest(BaseModel):
    reason: str = Field(min_length=1)


class AdminNotesUpdate(BaseModel):
    admin_notes: str | None = None


class SubmissionResponse(BaseModel):
    """Single submission response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    agency_id: int
    template_id: str
    program_name: str | None = None
    status: SubmissionStatus
    client_contact: dict | None = None
    payload: dict | None = None
    routed_carrier_ids: list[int] | None = None
    admin_notes: str | None = None
    decline_reason: str | None = None
    esign_completed: bool = False
    esign_completed_at: datetime | None = None
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_date: datetime | None = None
    payment_amount: Decimal | None = None
    payment_method: PaymentMethod | None = None
    bind_requested: bool = False
    bind_requested_at: datetime | None = None
    bind_approved: bool = False
    bind_approved_at: datetime | None = None
    final_binder_url: str | None = None
    final_binder_uploaded_at: datetime | None = None
    final_policy_url: str | None = None
    final_policy_uploaded_at: datetime | None = None
    certificate_url: str | None = None
    certificate_uploaded_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class SubmissionListResponse(BaseModel):
    """Paginated list of submissions."""

    data: list[SubmissionResponse]
    pagination: Pagination
