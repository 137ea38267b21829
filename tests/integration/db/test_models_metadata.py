from __future__ import annotations

from app.models import Base
from app.orchestration.status_catalog import CATALOG
import app.models  # noqa: F401


def test_model_metadata_contains_target_tables():
    expected = {"reps", "deals", "deal_commissions", "rep_pins"}
    assert expected.issubset(set(Base.metadata.tables.keys()))


def test_deals_table_has_a_column_per_milestone():
    columns = set(Base.metadata.tables["deals"].columns.keys())
    assert set(CATALOG.milestone_fields).issubset(columns)


def test_commission_record_is_unique_per_deal():
    deal_id = Base.metadata.tables["deal_commissions"].columns["deal_id"]
    assert deal_id.unique is True


def test_pins_carry_an_optional_closer():
    closer = Base.metadata.tables["rep_pins"].columns["assigned_closer_id"]
    assert closer.nullable is True
    assert {fk.column.table.name for fk in closer.foreign_keys} == {"reps"}
