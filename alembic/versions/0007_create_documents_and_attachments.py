"""create order documents and transfer form attachments, add transfer form directors"""

from alembic import op
import sqlalchemy as sa

revision = "0007_create_documents_and_attachments"
down_revision = "0006_create_wallets_and_support"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "order_documents",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False, server_default="application/octet-stream"),
        sa.Column("size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("visibility", sa.String(length=10), nullable=False, server_default="both"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("uploaded_by", sa.String(length=255), nullable=False, server_default="admin"),
        sa.Column("uploaded_date", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "transfer_form_attachments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("form_id", sa.Integer(), sa.ForeignKey("transfer_forms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("content_type", sa.String(length=100), nullable=False, server_default="application/octet-stream"),
        sa.Column("size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("uploaded_by", sa.String(length=255), nullable=False, server_default="admin"),
        sa.Column("uploaded_date", sa.DateTime(), nullable=False),
    )

    with op.batch_alter_table("transfer_forms") as batch_op:
        batch_op.add_column(sa.Column("directors", sa.JSON(), nullable=False, server_default="[]"))


def downgrade():
    with op.batch_alter_table("transfer_forms") as batch_op:
        batch_op.drop_column("directors")
    op.drop_table("transfer_form_attachments")
    op.drop_table("order_documents")
