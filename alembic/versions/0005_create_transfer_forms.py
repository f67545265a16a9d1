"""create transfer forms with comments and status history"""

from alembic import op
import sqlalchemy as sa

revision = "0005_create_transfer_forms"
down_revision = "0004_create_services"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "transfer_forms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("form_number", sa.String(length=50), nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id"), nullable=True),
        sa.Column("company_id", sa.Integer(), sa.ForeignKey("companies.id"), nullable=True),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("company_number", sa.String(length=50), nullable=False),
        sa.Column("country", sa.String(length=100), nullable=True),
        sa.Column("incorporation_date", sa.Date(), nullable=True),
        sa.Column("seller_name", sa.String(length=255), nullable=True),
        sa.Column("seller_email", sa.String(length=255), nullable=True),
        sa.Column("seller_phone", sa.String(length=100), nullable=True),
        sa.Column("seller_address", sa.String(length=500), nullable=True),
        sa.Column("buyer_name", sa.String(length=255), nullable=True),
        sa.Column("buyer_email", sa.String(length=255), nullable=True),
        sa.Column("buyer_phone", sa.String(length=100), nullable=True),
        sa.Column("buyer_address", sa.String(length=500), nullable=True),
        sa.Column("total_shares", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_share_capital", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("price_per_share", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("shareholders", sa.JSON(), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="under-review"),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("amendments_required_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_amendment_date", sa.DateTime(), nullable=True),
        sa.Column("admin_notes", sa.String(length=1000), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("form_number"),
    )
    op.create_index("ix_transfer_forms_status", "transfer_forms", ["status"])

    op.create_table(
        "transfer_form_comments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("transfer_forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("author", sa.String(length=255), nullable=False),
        sa.Column("text", sa.String(length=2000), nullable=False),
        sa.Column("is_admin_only", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "transfer_form_status_changes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("transfer_forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_status", sa.String(length=30), nullable=False),
        sa.Column("to_status", sa.String(length=30), nullable=False),
        sa.Column("changed_date", sa.DateTime(), nullable=False),
        sa.Column("changed_by", sa.String(length=255), nullable=False, server_default="admin"),
        sa.Column("reason", sa.String(length=500), nullable=True),
        sa.Column("notes", sa.String(length=500), nullable=True),
    )


def downgrade():
    op.drop_table("transfer_form_status_changes")
    op.drop_table("transfer_form_comments")
    op.drop_index("ix_transfer_forms_status", table_name="transfer_forms")
    op.drop_table("transfer_forms")
