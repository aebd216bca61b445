# This project was developed with assistance from AI tools.
"""
SQLAdmin configuration for database administration UI

Access the admin panel at: http://localhost:8000/admin

Agencies and carriers are reference data maintained here. Workflow records
are read-only: their state only changes through the API, where every
transition is guarded and logged.

When AUTH_DISABLED=false, requires admin credentials via login form.
When AUTH_DISABLED=true, admin panel is open (dev mode).
"""

from db import ActivityLog, Agency, Carrier, FinancePlan, Quote, QuoteDocument, Submission
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from sqlalchemy import create_engine
from starlette.requests import Request
from starlette.responses import Response

from .core.config import settings

# SQLAdmin requires a sync engine; derive from the async DATABASE_URL
_sync_url = settings.DATABASE_URL.replace("+asyncpg", "")
engine = create_engine(_sync_url, echo=False)


class AdminAuth(AuthenticationBackend):
    """Session-based auth gate for SQLAdmin."""

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = form.get("username")
        password = form.get("password")
        if username == settings.SQLADMIN_USER and password == settings.SQLADMIN_PASSWORD:
            request.session.update({"admin_authenticated": True})
            return True
        return False

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> Response | bool:
        if settings.AUTH_DISABLED:
            return True
        return request.session.get("admin_authenticated", False)


class ReadOnlyView(ModelView):
    can_create = False
    can_edit = False
    can_delete = False


class AgencyAdmin(ModelView, model=Agency):
    column_list = [Agency.id, Agency.name, Agency.email, Agency.phone, Agency.created_at]
    column_searchable_list = [Agency.name, Agency.email]
    column_sortable_list = [Agency.id, Agency.name, Agency.created_at]
    can_delete = False
    name = "Agency"
    name_plural = "Agencies"
    icon = "fa-solid fa-building"


class CarrierAdmin(ModelView, model=Carrier):
    column_list = [Carrier.id, Carrier.name, Carrier.email, Carrier.is_active]
    column_searchable_list = [Carrier.name]
    column_sortable_list = [Carrier.id, Carrier.name]
    can_delete = False
    name = "Carrier"
    name_plural = "Carriers"
    icon = "fa-solid fa-shield-halved"


class SubmissionAdmin(ReadOnlyView, model=Submission):
    column_list = [
        Submission.id,
        Submission.agency_id,
        Submission.program_name,
        Submission.status,
        Submission.esign_completed,
        Submission.payment_status,
        Submission.bind_requested,
        Submission.bind_approved,
        Submission.created_at,
    ]
    column_searchable_list = [Submission.program_name, Submission.template_id]
    column_sortable_list = [Submission.id, Submission.status, Submission.created_at]
    column_default_sort = [(Submission.created_at, True)]
    name = "Submission"
    name_plural = "Submissions"
    icon = "fa-solid fa-file-alt"


class QuoteAdmin(ReadOnlyView, model=Quote):
    column_list = [
        Quote.id,
        Quote.submission_id,
        Quote.carrier_id,
        Quote.status,
        Quote.carrier_quote_usd,
        Quote.final_amount_usd,
        Quote.posted_at,
        Quote.approved_at,
    ]
    column_sortable_list = [Quote.id, Quote.status, Quote.final_amount_usd]
    column_default_sort = [(Quote.created_at, True)]
    name = "Quote"
    name_plural = "Quotes"
    icon = "fa-solid fa-dollar-sign"


class QuoteDocumentAdmin(ReadOnlyView, model=QuoteDocument):
    column_list = [
        QuoteDocument.id,
        QuoteDocument.quote_id,
        QuoteDocument.document_type,
        QuoteDocument.signature_status,
        QuoteDocument.generated_at,
        QuoteDocument.signed_at,
    ]
    column_sortable_list = [QuoteDocument.id, QuoteDocument.document_type, QuoteDocument.signature_status]
    name = "Document"
    name_plural = "Documents"
    icon = "fa-solid fa-file-signature"


class FinancePlanAdmin(ReadOnlyView, model=FinancePlan):
    column_list = [
        FinancePlan.id,
        FinancePlan.quote_id,
        FinancePlan.down_payment_usd,
        FinancePlan.tenure_months,
        FinancePlan.monthly_installment_usd,
    ]
    name = "Finance Plan"
    name_plural = "Finance Plans"
    icon = "fa-solid fa-calendar"


class ActivityLogAdmin(ReadOnlyView, model=ActivityLog):
    column_list = [
        ActivityLog.id,
        ActivityLog.created_at,
        ActivityLog.activity_type,
        ActivityLog.performed_by_name,
        ActivityLog.performed_by_role,
        ActivityLog.submission_id,
    ]
    column_sortable_list = [ActivityLog.id, ActivityLog.created_at, ActivityLog.activity_type]
    column_default_sort = [(ActivityLog.created_at, True)]
    name = "Activity"
    name_plural = "Activity Log"
    icon = "fa-solid fa-list"


def setup_admin(app):
    """Set up SQLAdmin and mount it to the FastAPI app."""
    auth_backend = AdminAuth(
        secret_key=settings.SQLADMIN_SECRET_KEY,
    )
    admin = Admin(app, engine, title="Placement Admin", authentication_backend=auth_backend)

    admin.add_view(AgencyAdmin)
    admin.add_view(CarrierAdmin)
    admin.add_view(SubmissionAdmin)
    admin.add_view(QuoteAdmin)
    admin.add_view(QuoteDocumentAdmin)
    admin.add_view(FinancePlanAdmin)
    admin.add_view(ActivityLogAdmin)

    return admin
