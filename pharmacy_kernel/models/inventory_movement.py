"""
Module: pharmacy_kernel.models.inventory_movement
Responsibility: ORM persistence for inventory movements -- the ledger rows
    the FIFO engine reads.  One row per purchase, sale, shipment, return,
    adjustment or no-stock sale/shipment of one product.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity is signed: positive for inflows, negative for outflows.
    - (product_id, last_updated) index supports per-product ledger scans.
    - sale_id / shipping_order_id indexes support per-order lookups.

Non-goals:
    This model does not validate movement types or order references; the
    owning CRUD layer writes rows, this package only reads them.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from pharmacy_kernel.db.base import Base


class InventoryMovementModel(Base):
    """Persistent inventory ledger row."""

    __tablename__ = "inventory_movements"

    __table_args__ = (
        Index("idx_inventory_movement_product_time", "product_id", "last_updated"),
        Index("idx_inventory_movement_sale", "sale_id"),
        Index("idx_inventory_movement_shipping_order", "shipping_order_id"),
    )

    product_id: Mapped[str] = mapped_column(String(64), nullable=False)

    quantity: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)

    total_amount: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    # purchase | sale | ship | return | adjustment | sale-no-stock | ship-no-stock
    movement_type: Mapped[str] = mapped_column(String(20), nullable=False)

    last_updated: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    purchase_order_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    purchase_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sale_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    sale_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    shipping_order_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    shipping_order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # No-stock rows record their own prices
    cost_price: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)
    gross_profit: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<InventoryMovementModel {self.movement_type} "
            f"product={self.product_id} qty={self.quantity}>"
        )
