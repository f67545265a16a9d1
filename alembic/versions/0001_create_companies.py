"""create companies, activity log and ownership history"""

from alembic import op
import sqlalchemy as sa

revision = "0001_create_companies"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "companies",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("number", sa.String(length=50), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=False),
        sa.Column("company_type", sa.String(length=50), nullable=False, server_default="LTD"),
        sa.Column("incorporation_date", sa.Date(), nullable=True),
        sa.Column("incorporation_year", sa.Integer(), nullable=True),
        sa.Column("purchase_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("renewal_fee", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="USD"),
        sa.Column("renewal_date", sa.Date(), nullable=False),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="available"),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("refund_status", sa.String(length=30), nullable=False, server_default="not-refunded"),
        sa.Column("client_name", sa.String(length=255), nullable=True),
        sa.Column("client_email", sa.String(length=255), nullable=True),
        sa.Column("client_phone", sa.String(length=100), nullable=True),
        sa.Column("industry", sa.String(length=255), nullable=True),
        sa.Column("admin_notes", sa.String(length=1000), nullable=True),
        sa.Column("internal_notes", sa.String(length=1000), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("documents", sa.JSON(), nullable=False),
        sa.Column("airtable_id", sa.String(length=50), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("number"),
    )
    op.create_index("ix_companies_status", "companies", ["status"])

    op.create_table(
        "company_activity",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("timestamp", sa.DateTime(), nullable=False),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("performed_by", sa.String(length=255), nullable=False, server_default="system"),
        sa.Column("details", sa.String(length=1000), nullable=False, server_default=""),
        sa.Column("previous_status", sa.String(length=20), nullable=True),
        sa.Column("new_status", sa.String(length=20), nullable=True),
    )

    op.create_table(
        "company_ownership_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=False),
        sa.Column("previous_owner", sa.String(length=255), nullable=True),
        sa.Column("new_owner", sa.String(length=255), nullable=False),
        sa.Column("transfer_date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.String(length=1000), nullable=True),
    )


def downgrade():
    op.drop_table("company_ownership_history")
    op.drop_table("company_activity")
    op.drop_index("ix_companies_status", table_name="companies")
    op.drop_table("companies")
