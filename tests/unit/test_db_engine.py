"""Tests for engine and session helpers (pharmacy_kernel/db/engine.py)."""

from decimal import Decimal

import pytest
from sqlalchemy import func, select

from pharmacy_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from pharmacy_kernel.logging_config import reset_logging
from pharmacy_kernel.models.inventory_movement import InventoryMovementModel


@pytest.fixture
def sqlite_engine():
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    reset_logging()
    yield
    drop_tables()
    reset_engine()


def _movement() -> InventoryMovementModel:
    return InventoryMovementModel(
        product_id="p",
        quantity=Decimal("1"),
        total_amount=Decimal("10"),
        movement_type="purchase",
        purchase_order_number="PO-1",
    )


def _count() -> int:
    session = get_session()
    try:
        return session.execute(select(func.count(InventoryMovementModel.id))).scalar_one()
    finally:
        session.close()


class TestSessionScope:

    def test_commits_on_success(self, sqlite_engine):
        with session_scope() as session:
            session.add(_movement())

        assert _count() == 1

    def test_rolls_back_and_reraises(self, sqlite_engine):
        with pytest.raises(RuntimeError, match="boom"):
            with session_scope() as session:
                session.add(_movement())
                session.flush()
                raise RuntimeError("boom")

        assert _count() == 0


class TestUninitialized:

    def test_session_requires_engine(self):
        reset_engine()
        with pytest.raises(RuntimeError, match="not initialized"):
            get_session()
