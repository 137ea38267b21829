"""map pins: assigned closer

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:02
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None

CLOSER_FK = "fk_rep_pins_assigned_closer"
CLOSER_INDEX = "idx_rep_pins_assigned_closer"


def _column_names(inspector: sa.Inspector, table_name: str) -> set[str]:
    return {column["name"] for column in inspector.get_columns(table_name)}


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    if "assigned_closer_id" in _column_names(inspector, "rep_pins"):
        return

    # SQLite cannot ALTER TABLE ADD CONSTRAINT; batch mode rebuilds the table there.
    with op.batch_alter_table("rep_pins", recreate="auto") as batch_op:
        batch_op.add_column(sa.Column("assigned_closer_id", sa.String(36), nullable=True))
        batch_op.create_foreign_key(CLOSER_FK, "reps", ["assigned_closer_id"], ["id"], ondelete="SET NULL")
        batch_op.create_index(CLOSER_INDEX, ["assigned_closer_id"], unique=False)


def downgrade() -> None:
    with op.batch_alter_table("rep_pins", recreate="auto") as batch_op:
        batch_op.drop_index(CLOSER_INDEX)
        batch_op.drop_constraint(CLOSER_FK, type_="foreignkey")
        batch_op.drop_column("assigned_closer_id")
