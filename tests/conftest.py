"""
Pytest fixtures for the pharmacy FIFO test suite.

Provides:
- In-memory SQLite sessions with the inventory schema created
- A deterministic clock
- Ledger row builders for purchases, sales, shipments and no-stock rows
- JSON log capture for the pharmacy_kernel logger hierarchy
"""

import json
import logging
from collections.abc import Generator
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from io import StringIO
from itertools import count

import pytest
from sqlalchemy.orm import Session

from pharmacy_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from pharmacy_kernel.domain.clock import DeterministicClock
from pharmacy_kernel.domain.ledger import LedgerRow
from pharmacy_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from pharmacy_kernel.models.inventory_movement import InventoryMovementModel

BASE_TIME = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


class LogCapture:
    """Collects JSON log lines written to an in-memory stream."""

    def __init__(self, stream: StringIO):
        self._stream = stream

    @property
    def records(self) -> list[dict]:
        lines = self._stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    def messages(self) -> list[str]:
        return [r["message"] for r in self.records]

    def find(self, message: str) -> list[dict]:
        return [r for r in self.records if r["message"] == message]

    def clear(self) -> None:
        self._stream.seek(0)
        self._stream.truncate()


@pytest.fixture
def log_capture() -> LogCapture:
    """Route the pharmacy_kernel logger to a StringIO at DEBUG."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    configure_logging(handler=handler, level=logging.DEBUG)
    return LogCapture(stream)


class LedgerBuilder:
    """
    Builds LedgerRow objects for one product.

    Every row gets a unique id and, unless ``at`` is given, a timestamp
    one hour after the previous row.
    """

    def __init__(self, product_id: str = "prod-1"):
        self.product_id = product_id
        self._ids = count(1)
        self._clock = BASE_TIME

    def _next(self, at: datetime | None) -> tuple[str, datetime]:
        row_id = f"row-{next(self._ids)}"
        if at is None:
            self._clock += timedelta(hours=1)
            at = self._clock
        return row_id, at

    def purchase(self, quantity, total_amount, number="PO-1", *, at=None, order_id=None):
        row_id, at = self._next(at)
        return LedgerRow(
            row_id=row_id,
            product_id=self.product_id,
            quantity=Decimal(str(quantity)),
            movement_type="purchase",
            total_amount=Decimal(str(total_amount)),
            timestamp=at,
            purchase_order_number=number,
            purchase_order_id=order_id or f"po-{number}",
        )

    def sale(self, quantity, total_amount, number="S-1", *, at=None, order_id=None):
        row_id, at = self._next(at)
        return LedgerRow(
            row_id=row_id,
            product_id=self.product_id,
            quantity=-Decimal(str(quantity)),
            movement_type="sale",
            total_amount=Decimal(str(total_amount)),
            timestamp=at,
            sale_number=number,
            sale_id=order_id or f"sale-{number}",
        )

    def ship(self, quantity, total_amount, number="SO-1", *, at=None, order_id=None):
        row_id, at = self._next(at)
        return LedgerRow(
            row_id=row_id,
            product_id=self.product_id,
            quantity=-Decimal(str(quantity)),
            movement_type="ship",
            total_amount=Decimal(str(total_amount)),
            timestamp=at,
            shipping_order_number=number,
            shipping_order_id=order_id or f"ship-{number}",
        )

    def sale_no_stock(self, quantity, unit_price, cost_price, number="S-NS", *, at=None):
        row_id, at = self._next(at)
        quantity = Decimal(str(quantity))
        unit_price = Decimal(str(unit_price))
        return LedgerRow(
            row_id=row_id,
            product_id=self.product_id,
            quantity=-quantity,
            movement_type="sale-no-stock",
            total_amount=quantity * unit_price,
            timestamp=at,
            sale_number=number,
            sale_id=f"sale-{number}",
            cost_price=Decimal(str(cost_price)),
            unit_price=unit_price,
        )


@pytest.fixture
def ledger() -> LedgerBuilder:
    return LedgerBuilder()


@pytest.fixture
def ledger_builder():
    """Factory for builders of additional products."""
    return LedgerBuilder


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 1, 12, 0, tzinfo=UTC))


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """Session bound to a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    # init_engine_from_url configures logging; tests start unconfigured
    reset_logging()
    sess = get_session()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()
        drop_tables()
        reset_engine()


def _to_model(row: LedgerRow) -> InventoryMovementModel:
    return InventoryMovementModel(
        product_id=row.product_id,
        quantity=row.quantity,
        total_amount=row.total_amount,
        movement_type=row.movement_type.value,
        last_updated=row.timestamp,
        purchase_order_number=row.purchase_order_number,
        purchase_order_id=row.purchase_order_id,
        sale_number=row.sale_number,
        sale_id=row.sale_id,
        shipping_order_number=row.shipping_order_number,
        shipping_order_id=row.shipping_order_id,
        cost_price=row.cost_price,
        unit_price=row.unit_price,
        gross_profit=row.gross_profit,
    )


@pytest.fixture
def store_movements(session: Session):
    """Persist LedgerRows as inventory movements; returns the models."""

    def _store(*rows: LedgerRow) -> list[InventoryMovementModel]:
        models = [_to_model(row) for row in rows]
        session.add_all(models)
        session.flush()
        return models

    return _store
