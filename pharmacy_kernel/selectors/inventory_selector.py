"""
Module: pharmacy_kernel.selectors.inventory_selector
Responsibility: Read-only queries over the inventory movement ledger,
    returning ``LedgerRow`` DTOs ready for the FIFO engine.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Per-product movements are returned in ascending ``last_updated`` order;
      the engine re-sorts, but a stable input order keeps ties deterministic.
    - No ORM instance escapes this module.
    - Timestamps come back UTC-aware even where the backend (SQLite) stores
      them naive; LedgerRow normalizes them.
"""

from __future__ import annotations

from sqlalchemy import select

from pharmacy_kernel.domain.ledger import LedgerRow, OrderType
from pharmacy_kernel.models.inventory_movement import InventoryMovementModel
from pharmacy_kernel.selectors.base import BaseSelector


def _to_row(model: InventoryMovementModel) -> LedgerRow:
    return LedgerRow(
        row_id=str(model.id),
        product_id=model.product_id,
        quantity=model.quantity,
        movement_type=model.movement_type,
        total_amount=model.total_amount,
        timestamp=model.last_updated,
        purchase_order_number=model.purchase_order_number,
        purchase_order_id=model.purchase_order_id,
        sale_number=model.sale_number,
        sale_id=model.sale_id,
        shipping_order_number=model.shipping_order_number,
        shipping_order_id=model.shipping_order_id,
        cost_price=model.cost_price,
        unit_price=model.unit_price,
        gross_profit=model.gross_profit,
    )


class InventorySelector(BaseSelector[InventoryMovementModel]):
    """Selector for inventory movement queries."""

    def product_ids(self) -> list[str]:
        """Distinct product ids that have at least one movement, sorted."""
        stmt = (
            select(InventoryMovementModel.product_id)
            .distinct()
            .order_by(InventoryMovementModel.product_id)
        )
        return list(self.session.execute(stmt).scalars().all())

    def movements_for_product(self, product_id: str) -> list[LedgerRow]:
        """Every movement of one product, oldest first."""
        stmt = (
            select(InventoryMovementModel)
            .where(InventoryMovementModel.product_id == str(product_id))
            .order_by(InventoryMovementModel.last_updated)
        )
        return [_to_row(m) for m in self.session.execute(stmt).scalars().all()]

    def movements_for_order(self, order_type: OrderType, order_id: str) -> list[LedgerRow]:
        """
        Movements recorded against one sale or shipping order.

        Purchase orders are looked up by ``purchase_order_id`` for
        completeness, though only sales and shipments carry profit.
        """
        order_type = OrderType(order_type)
        column = {
            OrderType.PURCHASE: InventoryMovementModel.purchase_order_id,
            OrderType.SALE: InventoryMovementModel.sale_id,
            OrderType.SHIPPING: InventoryMovementModel.shipping_order_id,
        }[order_type]
        stmt = (
            select(InventoryMovementModel)
            .where(column == str(order_id))
            .order_by(InventoryMovementModel.last_updated)
        )
        return [_to_row(m) for m in self.session.execute(stmt).scalars().all()]
