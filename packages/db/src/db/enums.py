# This project was developed with assistance from AI tools.
"""
Domain enums for the insurance placement lifecycle.

Shared domain types used by both SQLAlchemy models (db package)
and Pydantic schemas (api package).
"""

import enum


class SubmissionStatus(str, enum.Enum):
    SUBMITTED = "SUBMITTED"
    ROUTED = "ROUTED"
    QUOTED = "QUOTED"
    BIND_REQUESTED = "BIND_REQUESTED"
    BOUND = "BOUND"
    DECLINED = "DECLINED"

    @classmethod
    def terminal_statuses(cls) -> frozenset["SubmissionStatus"]:
        """Statuses where a submission accepts no further workflow actions."""
        return frozenset({cls.BOUND, cls.DECLINED})

    @classmethod
    def valid_transitions(cls) -> dict["SubmissionStatus", frozenset["SubmissionStatus"]]:
        """Allowed forward moves. DECLINED is reachable from any non-terminal status."""
        return {
            cls.SUBMITTED: frozenset({cls.ROUTED, cls.QUOTED, cls.DECLINED}),
            cls.ROUTED: frozenset({cls.QUOTED, cls.DECLINED}),
            cls.QUOTED: frozenset({cls.BIND_REQUESTED, cls.DECLINED}),
            cls.BIND_REQUESTED: frozenset({cls.BOUND, cls.DECLINED}),
            cls.BOUND: frozenset(),
            cls.DECLINED: frozenset(),
        }


class QuoteStatus(str, enum.Enum):
    ENTERED = "ENTERED"
    POSTED = "POSTED"
    APPROVED = "APPROVED"
    BIND_REQUESTED = "BIND_REQUESTED"
    BOUND = "BOUND"
    DECLINED = "DECLINED"

    @classmethod
    def terminal_statuses(cls) -> frozenset["QuoteStatus"]:
        return frozenset({cls.BOUND, cls.DECLINED})

    @classmethod
    def active_statuses(cls) -> frozenset["QuoteStatus"]:
        """Statuses of the quote the agency has committed to."""
        return frozenset({cls.APPROVED, cls.BIND_REQUESTED, cls.BOUND})

    @classmethod
    def valid_transitions(cls) -> dict["QuoteStatus", frozenset["QuoteStatus"]]:
        return {
            cls.ENTERED: frozenset({cls.POSTED, cls.DECLINED}),
            cls.POSTED: frozenset({cls.APPROVED, cls.DECLINED}),
            cls.APPROVED: frozenset({cls.BIND_REQUESTED, cls.DECLINED}),
            cls.BIND_REQUESTED: frozenset({cls.BOUND, cls.DECLINED}),
            cls.BOUND: frozenset(),
            cls.DECLINED: frozenset(),
        }


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class PaymentMethod(str, enum.Enum):
    CARD = "CARD"
    ACH = "ACH"
    CHECK = "CHECK"
    WIRE = "WIRE"


class DocumentType(str, enum.Enum):
    PROPOSAL = "PROPOSAL"
    FINANCE_AGREEMENT = "FINANCE_AGREEMENT"
    CARRIER_FORM = "CARRIER_FORM"


class SignatureStatus(str, enum.Enum):
    GENERATED = "GENERATED"
    SENT = "SENT"
    SIGNED = "SIGNED"
    FAILED = "FAILED"


class FinalDocumentKind(str, enum.Enum):
    FINAL_BINDER = "final_binder"
    FINAL_POLICY = "final_policy"
    CERTIFICATE = "certificate"


class ActivityType(str, enum.Enum):
    SUBMISSION_CREATED = "SUBMISSION_CREATED"
    SUBMISSION_ROUTED = "SUBMISSION_ROUTED"
    QUOTE_CREATED = "QUOTE_CREATED"
    QUOTE_POSTED = "QUOTE_POSTED"
    QUOTE_UPDATED = "QUOTE_UPDATED"
    QUOTE_APPROVED = "QUOTE_APPROVED"
    DOCUMENT_GENERATED = "DOCUMENT_GENERATED"
    SIGNATURE_REQUESTED = "SIGNATURE_REQUESTED"
    DOCUMENT_SIGNED = "DOCUMENT_SIGNED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    BIND_REQUESTED = "BIND_REQUESTED"
    BIND_APPROVED = "BIND_APPROVED"
    FINANCE_PLAN_UPDATED = "FINANCE_PLAN_UPDATED"
    ADMIN_NOTE_ADDED = "ADMIN_NOTE_ADDED"
    STATUS_CHANGED = "STATUS_CHANGED"
    FILE_UPLOADED = "FILE_UPLOADED"


class UserRole(str, enum.Enum):
    SYSTEM_ADMIN = "system_admin"
    AGENCY_ADMIN = "agency_admin"
    AGENCY_USER = "agency_user"
