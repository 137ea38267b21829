"""deal workflow baseline: reps, deals, commissions and map pins

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

MILESTONE_COLUMNS = (
    "lead_date",
    "inspection_scheduled_date",
    "claim_filed_date",
    "signed_date",
    "adjuster_met_date",
    "awaiting_approval_date",
    "approved_date",
    "acv_collected_date",
    "deductible_collected_date",
    "materials_selected_date",
    "install_scheduled_date",
    "installed_date",
    "completion_signed_date",
    "invoice_sent_date",
    "depreciation_collected_date",
    "complete_date",
    "paid_date",
)


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _money(name: str) -> sa.Column:
    return sa.Column(name, sa.Numeric(12, 2), nullable=True)


def upgrade() -> None:
    op.create_table(
        "reps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("commission_level", sa.String(20), nullable=False, server_default="junior"),
        sa.Column("default_commission_percent", sa.Numeric(5, 2), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "deals",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("homeowner_name", sa.String(255), nullable=False),
        sa.Column("homeowner_phone", sa.String(40), nullable=True),
        sa.Column("homeowner_email", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("state", sa.String(40), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("insurance_company", sa.String(255), nullable=True),
        sa.Column("policy_number", sa.String(120), nullable=True),
        sa.Column("claim_number", sa.String(120), nullable=True),
        sa.Column("date_of_loss", sa.Date(), nullable=True),
        sa.Column("adjuster_name", sa.String(255), nullable=True),
        sa.Column("adjuster_phone", sa.String(40), nullable=True),
        sa.Column("adjuster_meeting_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(40), nullable=False, server_default="lead"),
        sa.Column("approval_type", sa.String(40), nullable=True),
        _money("rcv"),
        _money("acv"),
        _money("deductible"),
        _money("depreciation"),
        _money("sales_tax"),
        _money("commission_override_amount"),
        sa.Column("commission_override_reason", sa.Text(), nullable=True),
        sa.Column("commission_override_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("commission_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("commission_paid_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("financials_unlocked_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("financials_unlock_reason", sa.Text(), nullable=True),
        sa.Column("payment_requested", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payment_request_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contract_signed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("signature_url", sa.String(1024), nullable=True),
        sa.Column("signature_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("acv_check_collected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("depreciation_check_collected", sa.Boolean(), nullable=False, server_default=sa.false()),
        _money("depreciation_check_amount"),
        sa.Column("material_category", sa.String(120), nullable=True),
        sa.Column("material_color", sa.String(120), nullable=True),
        sa.Column("install_date", sa.Date(), nullable=True),
        sa.Column("install_time", sa.String(20), nullable=True),
        sa.Column("crew_assignment", sa.String(255), nullable=True),
        sa.Column("completion_date", sa.Date(), nullable=True),
        _money("invoice_amount"),
        sa.Column("rep_id", sa.String(36), nullable=True),
        sa.Column("rep_name", sa.String(255), nullable=True),
        sa.Column("inspection_images", sa.JSON(), nullable=False),
        sa.Column("install_images", sa.JSON(), nullable=False),
        sa.Column("completion_images", sa.JSON(), nullable=False),
        sa.Column("permit_file_url", sa.String(1024), nullable=True),
        sa.Column("invoice_url", sa.String(1024), nullable=True),
        sa.Column("lost_statement_url", sa.String(1024), nullable=True),
        sa.Column("agreement_url", sa.String(1024), nullable=True),
        sa.Column("completion_form_url", sa.String(1024), nullable=True),
        *[sa.Column(name, sa.DateTime(timezone=True), nullable=True) for name in MILESTONE_COLUMNS],
        *_audit_columns(),
        sa.ForeignKeyConstraint(["rep_id"], ["reps.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_deals_status", "deals", ["status"])
    op.create_index("idx_deals_rep", "deals", ["rep_id"])

    op.create_table(
        "deal_commissions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("deal_id", sa.String(36), nullable=False),
        sa.Column("rep_id", sa.String(36), nullable=True),
        sa.Column("commission_type", sa.String(20), nullable=False, server_default="self_gen"),
        sa.Column("commission_percent", sa.Numeric(5, 2), nullable=True),
        _money("commission_amount"),
        sa.Column("paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["rep_id"], ["reps.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("deal_id"),
    )

    op.create_table(
        "rep_pins",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("rep_id", sa.String(36), nullable=True),
        sa.Column("homeowner_name", sa.String(255), nullable=True),
        sa.Column("homeowner_phone", sa.String(40), nullable=True),
        sa.Column("homeowner_email", sa.String(255), nullable=True),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("state", sa.String(40), nullable=True),
        sa.Column("zip_code", sa.String(20), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="lead"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("inspection_images", sa.JSON(), nullable=False),
        sa.Column("appointment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deal_id", sa.String(36), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["rep_id"], ["reps.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["deal_id"], ["deals.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_rep_pins_deal", "rep_pins", ["deal_id"])
    op.create_index("idx_rep_pins_rep_status", "rep_pins", ["rep_id", "status"])


def downgrade() -> None:
    op.drop_index("idx_rep_pins_rep_status", table_name="rep_pins")
    op.drop_index("idx_rep_pins_deal", table_name="rep_pins")
    op.drop_table("rep_pins")
    op.drop_table("deal_commissions")
    op.drop_index("idx_deals_rep", table_name="deals")
    op.drop_index("idx_deals_status", table_name="deals")
    op.drop_table("deals")
    op.drop_table("reps")
