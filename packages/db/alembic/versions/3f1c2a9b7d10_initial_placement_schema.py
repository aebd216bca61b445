# This project was developed with assistance from AI tools.
"""initial placement schema

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-19

"""

import sqlalchemy as sa
from alembic import op

revision = "3f1c2a9b7d10"
down_revision = None
branch_labels = None
depends_on = None

TRIGGER_FUNCTION = """
CREATE OR REPLACE FUNCTION activity_logs_prevent_mutation()
RETURNS TRIGGER AS $$
BEGIN
    RAISE EXCEPTION 'activity_logs is append-only: % denied for row %', TG_OP, OLD.id;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;
"""

TRIGGER_UPDATE = """
CREATE TRIGGER activity_logs_no_update
    BEFORE UPDATE ON activity_logs
    FOR EACH ROW
    EXECUTE FUNCTION activity_logs_prevent_mutation();
"""

TRIGGER_DELETE = """
CREATE TRIGGER activity_logs_no_delete
    BEFORE DELETE ON activity_logs
    FOR EACH ROW
    EXECUTE FUNCTION activity_logs_prevent_mutation();
"""


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "agencies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "carriers",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "submissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("agency_id", sa.Integer(), nullable=False),
        sa.Column("template_id", sa.String(100), nullable=False),
        sa.Column("program_name", sa.String(255), nullable=True),
        sa.Column("status", sa.String(14), nullable=False, server_default="SUBMITTED"),
        sa.Column("client_contact", sa.JSON(), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("routed_carrier_ids", sa.JSON(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("decline_reason", sa.Text(), nullable=True),
        sa.Column("esign_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("esign_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_status", sa.String(7), nullable=False, server_default="PENDING"),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("payment_method", sa.String(5), nullable=True),
        sa.Column("bind_requested", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bind_requested_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bind_approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("bind_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_binder_url", sa.String(500), nullable=True),
        sa.Column("final_binder_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("final_policy_url", sa.String(500), nullable=True),
        sa.Column("final_policy_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("certificate_url", sa.String(500), nullable=True),
        sa.Column("certificate_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["agency_id"], ["agencies.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_submissions_agency_id", "submissions", ["agency_id"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("submission_id", sa.Integer(), nullable=False),
        sa.Column("carrier_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(14), nullable=False, server_default="ENTERED"),
        sa.Column("carrier_quote_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("premium_tax_percent", sa.Numeric(7, 4), nullable=True),
        sa.Column("premium_tax_amount_usd", sa.Numeric(12, 2), nullable=True),
        sa.Column("tax_auto_calculated", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("policy_fee_usd", sa.Numeric(12, 2), nullable=True),
        sa.Column("broker_fee_amount_usd", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("final_amount_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("limits", sa.JSON(), nullable=True),
        sa.Column("endorsements", sa.JSON(), nullable=True),
        sa.Column("effective_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiration_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("policy_number", sa.String(100), nullable=True),
        sa.Column("carrier_reference", sa.String(100), nullable=True),
        sa.Column("special_notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("binder_pdf_url", sa.String(500), nullable=True),
        sa.Column("entered_by", sa.String(255), nullable=True),
        sa.Column("entered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("posted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["carrier_id"], ["carriers.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("submission_id", "carrier_id", name="uq_quote_submission_carrier"),
    )
    op.create_index("ix_quotes_submission_id", "quotes", ["submission_id"])
    op.create_index("ix_quotes_carrier_id", "quotes", ["carrier_id"])
    op.create_index(
        "uq_quote_active_per_submission",
        "quotes",
        ["submission_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('APPROVED', 'BIND_REQUESTED', 'BOUND')"),
    )

    op.create_table(
        "quote_documents",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("quote_id", sa.Integer(), nullable=False),
        sa.Column("submission_id", sa.Integer(), nullable=False),
        sa.Column("document_type", sa.String(17), nullable=False),
        sa.Column("document_name", sa.String(255), nullable=True),
        sa.Column("document_url", sa.String(500), nullable=False),
        sa.Column("signature_status", sa.String(9), nullable=False, server_default="GENERATED"),
        sa.Column("generated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("sent_for_signature_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["quote_id"], ["quotes.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["submission_id"], ["submissions.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("quote_id", "document_type", name="uq_quote_document_type"),
    )
    op.create_index("ix_quote_documents_quote_id", "quote_documents", ["quote_id"])
    op.create_index("ix_quote_documents_submission_id", "quote_documents", ["submission_id"])

    op.create_table(
        "finance_plans",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("quote_id", sa.Integer(), nullable=False),
        sa.Column("down_payment_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("tenure_months", sa.Integer(), nullable=False),
        sa.Column("annual_interest_percent", sa.Numeric(6, 3), nullable=False),
        sa.Column("monthly_installment_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_payable_usd", sa.Numeric(12, 2), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["quote_id"], ["quotes.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_finance_plans_quote_id", "finance_plans", ["quote_id"], unique=True)

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("prev_hash", sa.String(64), nullable=True),
        sa.Column("activity_type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("performed_by_id", sa.String(255), nullable=False),
        sa.Column("performed_by_name", sa.String(255), nullable=False),
        sa.Column("performed_by_role", sa.String(50), nullable=False),
        sa.Column("submission_id", sa.Integer(), nullable=False),
        sa.Column("quote_id", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_activity_logs_created_at", "activity_logs", ["created_at"])
    op.create_index("ix_activity_logs_activity_type", "activity_logs", ["activity_type"])
    op.create_index("ix_activity_logs_submission_id", "activity_logs", ["submission_id"])
    op.create_index("ix_activity_logs_quote_id", "activity_logs", ["quote_id"])

    op.execute(TRIGGER_FUNCTION)
    op.execute(TRIGGER_UPDATE)
    op.execute(TRIGGER_DELETE)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS activity_logs_no_delete ON activity_logs")
    op.execute("DROP TRIGGER IF EXISTS activity_logs_no_update ON activity_logs")
    op.execute("DROP FUNCTION IF EXISTS activity_logs_prevent_mutation()")
    op.drop_table("activity_logs")
    op.drop_table("finance_plans")
    op.drop_table("quote_documents")
    op.drop_index("uq_quote_active_per_submission", table_name="quotes")
    op.drop_table("quotes")
    op.drop_table("submissions")
    op.drop_table("carriers")
    op.drop_table("agencies")
