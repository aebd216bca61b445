# This project was developed with assistance from AI tools.
"""
Insurance placement -- domain models

Submission/quote lifecycle models covering agencies, carriers, carrier
quotes, generated workflow documents, finance plans, and the activity trail.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    DocumentType,
    PaymentMethod,
    PaymentStatus,
    QuoteStatus,
    SignatureStatus,
    SubmissionStatus,
)


class Agency(Base):
    """Retail agency that submits applications and signs on behalf of the insured."""

    __tablename__ = "agencies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    submissions = relationship("Submission", back_populates="agency")

    def __repr__(self):
        return f"<Agency(id={self.id}, name='{self.name}')>"


class Carrier(Base):
    """Insurance carrier providing quoted terms."""

    __tablename__ = "carriers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    quotes = relationship("Quote", back_populates="carrier")

    def __repr__(self):
        return f"<Carrier(id={self.id}, name='{self.name}')>"


class Submission(Base):
    """Insurance application moving from intake to a bound policy."""

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    agency_id = Column(
        Integer, ForeignKey("agencies.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    template_id = Column(String(100), nullable=False)
    program_name = Column(String(255), nullable=True)
    status = Column(
        Enum(SubmissionStatus, name="submission_status", native_enum=False),
        nullable=False,
        default=SubmissionStatus.SUBMITTED,
    )
    client_contact = Column(JSON, nullable=True)
    payload = Column(JSON, nullable=True)
    routed_carrier_ids = Column(JSON, nullable=True)
    admin_notes = Column(Text, nullable=True)
    decline_reason = Column(Text, nullable=True)

    esign_completed = Column(Boolean, nullable=False, default=False)
    esign_completed_at = Column(DateTime(timezone=True), nullable=True)

    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", native_enum=False),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    payment_date = Column(DateTime(timezone=True), nullable=True)
    payment_amount = Column(Numeric(12, 2), nullable=True)
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", native_enum=False),
        nullable=True,
    )

    bind_requested = Column(Boolean, nullable=False, default=False)
    bind_requested_at = Column(DateTime(timezone=True), nullable=True)
    bind_approved = Column(Boolean, nullable=False, default=False)
    bind_approved_at = Column(DateTime(timezone=True), nullable=True)

    final_binder_url = Column(String(500), nullable=True)
    final_binder_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    final_policy_url = Column(String(500), nullable=True)
    final_policy_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    certificate_url = Column(String(500), nullable=True)
    certificate_uploaded_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    agency = relationship("Agency", back_populates="submissions")
    quotes = relationship("Quote", back_populates="submission", order_by="Quote.id")
    signed_documents = relationship(
        "QuoteDocument", back_populates="submission", order_by="QuoteDocument.generated_at",
    )

    def __repr__(self):
        return f"<Submission(id={self.id}, status='{self.status}')>"


class Quote(Base):
    """Carrier quote for a submission. One per (submission, carrier) pair."""

    __tablename__ = "quotes"
    __table_args__ = (
        UniqueConstraint("submission_id", "carrier_id", name="uq_quote_submission_carrier"),
        # at most one approved/bind-requested/bound quote per submission
        Index(
            "uq_quote_active_per_submission",
            "submission_id",
            unique=True,
            postgresql_where=text("status IN ('APPROVED', 'BIND_REQUESTED', 'BOUND')"),
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    submission_id = Column(
        Integer, ForeignKey("submissions.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    carrier_id = Column(
        Integer, ForeignKey("carriers.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    status = Column(
        Enum(QuoteStatus, name="quote_status", native_enum=False),
        nullable=False,
        default=QuoteStatus.ENTERED,
    )

    carrier_quote_usd = Column(Numeric(12, 2), nullable=False)
    premium_tax_percent = Column(Numeric(7, 4), nullable=True)
    premium_tax_amount_usd = Column(Numeric(12, 2), nullable=True)
    tax_auto_calculated = Column(Boolean, nullable=False, default=False)
    policy_fee_usd = Column(Numeric(12, 2), nullable=True)
    broker_fee_amount_usd = Column(Numeric(12, 2), nullable=False, default=0)
    final_amount_usd = Column(Numeric(12, 2), nullable=False)

    limits = Column(JSON, nullable=True)
    endorsements = Column(JSON, nullable=True)
    effective_date = Column(DateTime(timezone=True), nullable=True)
    expiration_date = Column(DateTime(timezone=True), nullable=True)
    policy_number = Column(String(100), nullable=True)
    carrier_reference = Column(String(100), nullable=True)
    special_notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    binder_pdf_url = Column(String(500), nullable=True)

    entered_by = Column(String(255), nullable=True)
    entered_at = Column(DateTime(timezone=True), nullable=True)
    posted_at = Column(DateTime(timezone=True), nullable=True)
    approved_by = Column(String(255), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    submission = relationship("Submission", back_populates="quotes")
    carrier = relationship("Carrier", back_populates="quotes")
    documents = relationship(
        "QuoteDocument", back_populates="quote", order_by="QuoteDocument.generated_at",
    )
    finance_plan = relationship("FinancePlan", back_populates="quote", uselist=False)

    def __repr__(self):
        return f"<Quote(id={self.id}, status='{self.status}')>"


class QuoteDocument(Base):
    """Generated workflow document for a quote. At most one per type."""

    __tablename__ = "quote_documents"
    __table_args__ = (
        UniqueConstraint("quote_id", "document_type", name="uq_quote_document_type"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(
        Integer, ForeignKey("quotes.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    submission_id = Column(
        Integer, ForeignKey("submissions.id", ondelete="RESTRICT"), nullable=False, index=True,
    )
    document_type = Column(
        Enum(DocumentType, name="document_type", native_enum=False),
        nullable=False,
    )
    document_name = Column(String(255), nullable=True)
    document_url = Column(String(500), nullable=False)
    signature_status = Column(
        Enum(SignatureStatus, name="signature_status", native_enum=False),
        nullable=False,
        default=SignatureStatus.GENERATED,
    )
    generated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    sent_for_signature_at = Column(DateTime(timezone=True), nullable=True)
    signed_at = Column(DateTime(timezone=True), nullable=True)

    quote = relationship("Quote", back_populates="documents")
    submission = relationship("Submission", back_populates="signed_documents")

    def __repr__(self):
        return f"<QuoteDocument(id={self.id}, type='{self.document_type}')>"


class FinancePlan(Base):
    """Installment arrangement for a quote's premium."""

    __tablename__ = "finance_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(
        Integer, ForeignKey("quotes.id", ondelete="RESTRICT"), nullable=False, unique=True, index=True,
    )
    down_payment_usd = Column(Numeric(12, 2), nullable=False)
    tenure_months = Column(Integer, nullable=False)
    annual_interest_percent = Column(Numeric(6, 3), nullable=False)
    monthly_installment_usd = Column(Numeric(12, 2), nullable=False)
    total_payable_usd = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    quote = relationship("Quote", back_populates="finance_plan")

    def __repr__(self):
        return f"<FinancePlan(quote_id={self.quote_id}, months={self.tenure_months})>"


class ActivityLog(Base):
    """Append-only activity trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "activity_logs"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    prev_hash = Column(String(64), nullable=True)
    activity_type = Column(String(50), nullable=False, index=True)
    description = Column(Text, nullable=False)
    details = Column(JSON, nullable=True)
    performed_by_id = Column(String(255), nullable=False)
    performed_by_name = Column(String(255), nullable=False)
    performed_by_role = Column(String(50), nullable=False)
    submission_id = Column(Integer, nullable=False, index=True)
    quote_id = Column(Integer, nullable=True, index=True)

    def __repr__(self):
        return f"<ActivityLog(id={self.id}, type='{self.activity_type}')>"
