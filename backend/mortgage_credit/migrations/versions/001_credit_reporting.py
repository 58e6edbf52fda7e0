"""Create credit reporting tables.

Revision ID: 001_credit_reporting
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "001_credit_reporting"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLES = ("BORROWER", "LOAN_OFFICER_RETAIL", "LOAN_OFFICER_TPO", "PROCESSOR", "UNDERWRITER", "ADMIN")
LOAN_STATUSES = ("DRAFT", "SUBMITTED", "PROCESSING", "UNDERWRITING", "APPROVED", "DECLINED", "CLOSED")
ERROR_SEVERITIES = ("INFO", "WARNING", "ERROR", "CRITICAL")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("role", sa.Enum(*USER_ROLES, name="userrole"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "loan_applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("reference_number", sa.String(length=20), nullable=False),
        sa.Column("borrower_id", sa.Integer(), nullable=False),
        sa.Column("assigned_officer_id", sa.Integer(), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("property_address", sa.String(length=300), nullable=True),
        sa.Column("status", sa.Enum(*LOAN_STATUSES, name="loanstatus"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["borrower_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["assigned_officer_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_loan_applications_reference_number", "loan_applications", ["reference_number"], unique=True)
    op.create_index("ix_loan_applications_borrower_id", "loan_applications", ["borrower_id"], unique=False)
    op.create_index("ix_loan_applications_assigned_officer_id", "loan_applications", ["assigned_officer_id"], unique=False)

    op.create_table(
        "credit_reports",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("loan_id", sa.Integer(), nullable=False),
        sa.Column("borrower_id", sa.Integer(), nullable=False),
        sa.Column("requested_by_id", sa.Integer(), nullable=False),
        sa.Column("xactus_report_id", sa.String(length=100), nullable=True),
        sa.Column("report_type", sa.String(length=20), nullable=False, server_default="tri_merge"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("scores", sa.JSON(), nullable=False),
        sa.Column("mid_score", sa.Integer(), nullable=True),
        sa.Column("tradelines", sa.JSON(), nullable=False),
        sa.Column("public_records", sa.JSON(), nullable=False),
        sa.Column("inquiries", sa.JSON(), nullable=False),
        sa.Column("summary", sa.JSON(), nullable=True),
        sa.Column("encrypted_data", sa.Text(), nullable=True),
        sa.Column("encryption_iv", sa.String(length=32), nullable=True),
        sa.Column("raw_data_stored", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("retention_period_days", sa.Integer(), nullable=False, server_default="730"),
        sa.Column("error_message", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["loan_id"], ["loan_applications.id"]),
        sa.ForeignKeyConstraint(["borrower_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["requested_by_id"], ["users.id"]),
        sa.CheckConstraint(
            "(encrypted_data IS NULL AND encryption_iv IS NULL) OR "
            "(encrypted_data IS NOT NULL AND encryption_iv IS NOT NULL)",
            name="ck_credit_reports_encrypted_pair",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("xactus_report_id"),
    )
    op.create_index("ix_credit_reports_status", "credit_reports", ["status"], unique=False)
    op.create_index("ix_credit_reports_expiry", "credit_reports", ["expires_at", "status"], unique=False)
    op.create_index("ix_credit_reports_loan_created", "credit_reports", ["loan_id", "created_at"], unique=False)
    op.create_index("ix_credit_reports_borrower_created", "credit_reports", ["borrower_id", "created_at"], unique=False)

    op.create_table(
        "credit_pull_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("loan_id", sa.Integer(), nullable=False),
        sa.Column("borrower_id", sa.Integer(), nullable=False),
        sa.Column("requested_by_id", sa.Integer(), nullable=False),
        sa.Column("credit_report_id", sa.Integer(), nullable=True),
        sa.Column("pull_type", sa.String(length=10), nullable=False, server_default="hard"),
        sa.Column("purpose", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="initiated"),
        sa.Column("xactus_transaction_id", sa.String(length=100), nullable=True),
        sa.Column("cost", sa.Numeric(10, 2), nullable=True),
        sa.Column("error_message", sa.String(length=500), nullable=True),
        sa.Column("consent_obtained", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("consent_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("consent_ip_address", sa.String(length=45), nullable=True),
        sa.Column("consent_user_agent", sa.String(length=500), nullable=True),
        sa.Column("notification_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("notified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["loan_id"], ["loan_applications.id"]),
        sa.ForeignKeyConstraint(["borrower_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["requested_by_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["credit_report_id"], ["credit_reports.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_credit_pull_logs_loan_id", "credit_pull_logs", ["loan_id"], unique=False)
    op.create_index("ix_credit_pull_logs_borrower_id", "credit_pull_logs", ["borrower_id"], unique=False)
    op.create_index("ix_credit_pull_logs_status", "credit_pull_logs", ["status"], unique=False)
    op.create_index("ix_credit_pull_logs_created", "credit_pull_logs", ["created_at"], unique=False)
    op.create_index(
        "ix_credit_pull_logs_requester_created", "credit_pull_logs", ["requested_by_id", "created_at"], unique=False,
    )
    op.create_index(
        "ix_credit_pull_logs_status_notified", "credit_pull_logs", ["status", "notification_sent"], unique=False,
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"], unique=False)

    op.create_table(
        "error_logs",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("severity", sa.Enum(*ERROR_SEVERITIES, name="errorseverity"), nullable=False),
        sa.Column("error_type", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("traceback", sa.Text(), nullable=True),
        sa.Column("module", sa.String(length=300), nullable=True),
        sa.Column("function_name", sa.String(length=200), nullable=True),
        sa.Column("request_method", sa.String(length=10), nullable=True),
        sa.Column("request_path", sa.String(length=500), nullable=True),
        sa.Column("status_code", sa.Integer(), nullable=True),
        sa.Column("response_time_ms", sa.Float(), nullable=True),
        sa.Column("loan_id", sa.Integer(), nullable=True),
        sa.Column("pull_log_id", sa.Integer(), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )


def downgrade() -> None:
    op.drop_table("error_logs")
    op.drop_index("ix_notifications_user_id", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("credit_pull_logs")
    op.drop_table("credit_reports")
    op.drop_table("loan_applications")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS errorseverity")
    op.execute("DROP TYPE IF EXISTS loanstatus")
    op.execute("DROP TYPE IF EXISTS userrole")
