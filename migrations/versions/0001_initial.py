"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 00:00:00

"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # company
    op.create_table(
        "company",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("is_small_business", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("discounts_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reminders_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reminder_days_after_due", sa.Integer(), nullable=True),
        sa.Column("reminder_days_between", sa.Integer(), nullable=True),
        sa.Column("reminder_fee_stage1", sa.Numeric(10, 2), nullable=True),
        sa.Column("reminder_fee_stage2", sa.Numeric(10, 2), nullable=True),
        sa.Column("reminder_fee_stage3", sa.Numeric(10, 2), nullable=True),
    )

    # customers
    op.create_table(
        "customers",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
    )

    # invoices
    op.create_table(
        "invoices",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("invoice_number", sa.String(), nullable=False, unique=True),
        sa.Column("customer_id", sa.BigInteger(), sa.ForeignKey("customers.id", ondelete="SET NULL")),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("subtotal", sa.Numeric(12, 2), nullable=True),
        sa.Column("tax_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("total", sa.Numeric(12, 2), nullable=True),
        sa.Column("global_discount_type", sa.String(), nullable=True),
        sa.Column("global_discount_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("global_discount_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("last_reminder_date", sa.Date(), nullable=True),
        sa.Column("last_reminder_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("max_reminder_stage", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()")),
        sa.CheckConstraint("max_reminder_stage BETWEEN 0 AND 3", name="ck_invoices_max_reminder_stage"),
    )
    op.create_index("ix_invoices_status_due_date", "invoices", ["status", "due_date"])

    # invoice_items
    op.create_table(
        "invoice_items",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("invoice_id", sa.BigInteger(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("tax_rate", sa.Numeric(5, 2), nullable=True),
        sa.Column("discount_type", sa.String(), nullable=True),
        sa.Column("discount_value", sa.Numeric(12, 2), nullable=True),
        sa.Column("discount_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("total", sa.Numeric(12, 2), nullable=True),
        sa.Column("item_order", sa.Integer(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("invoice_items")
    op.drop_index("ix_invoices_status_due_date", table_name="invoices")
    op.drop_table("invoices")
    op.drop_table("customers")
    op.drop_table("company")
