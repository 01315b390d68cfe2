"""
pharmacy_services.fifo_report_service -- FIFO cost and profit reports.

Responsibility:
    Load inventory ledgers through ``InventorySelector`` and run the pure
    FIFO engine over them: per product, across every product, per sale or
    shipping order, and for a simulated sale "now".

Architecture position:
    Services -- orchestration over engines + kernel.  Read-only: the
    caller owns the session and nothing here writes to it.

Invariants enforced:
    - Each product's calculation sees that product's complete ledger.
    - The storewide summary counts successful product results only.
    - Order reports take revenue from the order's own movement rows and
      profit from the FIFO calculation of each row's product.

Failure modes:
    - ProductNotFoundError when a product has no movements.
    - OrderNotFoundError when no movement references the order.
    - InvalidSimulationRequestError for a bad simulated quantity.
    - Engine failures inside ``product_report`` are returned as
      ``success=False`` results, not raised.

Usage:
    with session_scope() as session:
        service = FifoReportService(session)
        report = service.product_report(product_id)
        if report.result.success:
            print(report.result.summary.total_profit)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from pharmacy_engines.fifo import (
    DEFAULT_POLICY,
    FIFOCalculationResult,
    FIFOSummary,
    FifoPolicy,
    SimulationResult,
    calculate_product_fifo,
    simulate_fifo_cost,
    summarize_results,
    to_json_value,
)
from pharmacy_kernel.domain.clock import Clock, SystemClock
from pharmacy_kernel.domain.ledger import LedgerRow, OrderType
from pharmacy_kernel.domain.values import ZERO
from pharmacy_kernel.exceptions import OrderNotFoundError, ProductNotFoundError
from pharmacy_kernel.logging_config import LogContext, get_logger
from pharmacy_kernel.selectors.inventory_selector import InventorySelector

logger = get_logger("services.fifo_report")


@dataclass(frozen=True, slots=True)
class ProductFifoReport:
    """FIFO calculation for one product."""

    product_id: str
    result: FIFOCalculationResult

    def to_dict(self) -> dict[str, Any]:
        return {"productId": self.product_id, **self.result.to_dict()}


@dataclass(frozen=True, slots=True)
class StorewideFifoReport:
    """FIFO calculations for every product, with a combined summary."""

    results: tuple[ProductFifoReport, ...]
    overall_summary: FIFOSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "results": [r.to_dict() for r in self.results],
            "overallSummary": self.overall_summary.to_dict(),
        }


@dataclass(frozen=True, slots=True)
class OrderItemProfit:
    """FIFO profit attributed to one movement row of an order."""

    row_id: str | None
    product_id: str
    quantity: Decimal
    total_amount: Decimal
    total_cost: Decimal
    gross_profit: Decimal
    profit_margin: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "rowId": self.row_id,
            "productId": self.product_id,
            "quantity": to_json_value(self.quantity),
            "totalAmount": to_json_value(self.total_amount),
            "fifoProfit": {
                "totalCost": to_json_value(self.total_cost),
                "grossProfit": to_json_value(self.gross_profit),
                "profitMargin": self.profit_margin,
            },
        }


@dataclass(frozen=True, slots=True)
class OrderFifoSummary:
    total_cost: Decimal
    total_revenue: Decimal
    total_profit: Decimal
    total_profit_margin: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCost": to_json_value(self.total_cost),
            "totalRevenue": to_json_value(self.total_revenue),
            "totalProfit": to_json_value(self.total_profit),
            "totalProfitMargin": self.total_profit_margin,
        }


@dataclass(frozen=True, slots=True)
class OrderFifoReport:
    """FIFO profit for every item of one sale or shipping order."""

    order_type: OrderType
    order_id: str
    items: tuple[OrderItemProfit, ...]
    summary: OrderFifoSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "orderType": self.order_type.value,
            "orderId": self.order_id,
            "items": [i.to_dict() for i in self.items],
            "summary": self.summary.to_dict(),
        }


class FifoReportService:
    """
    Read-side FIFO reporting over the persisted inventory ledger.

    Contract:
        Receives a Session via constructor injection; an optional Clock
        (used only to timestamp simulations) and FifoPolicy.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: FifoPolicy | None = None,
    ):
        self._session = session
        self._selector = InventorySelector(session)
        self._clock = clock or SystemClock()
        self._policy = policy or DEFAULT_POLICY

    def _ledger(self, product_id: str) -> list[LedgerRow]:
        rows = self._selector.movements_for_product(str(product_id))
        if not rows:
            raise ProductNotFoundError(str(product_id))
        return rows

    def _calculate(self, rows: list[LedgerRow]) -> FIFOCalculationResult:
        return calculate_product_fifo(
            rows,
            self._policy,
            default_timestamp=self._clock.now(),
        )

    def product_report(self, product_id: str) -> ProductFifoReport:
        """
        FIFO cost and profit for one product.

        Raises:
            ProductNotFoundError: If the product has no movements.
        """
        product_id = str(product_id)
        with LogContext.bind(product_id=product_id):
            rows = self._ledger(product_id)
            result = self._calculate(rows)
            if not result.success:
                logger.warning(
                    "fifo_product_report_failed",
                    extra={"error": result.error},
                )
            return ProductFifoReport(product_id=product_id, result=result)

    def all_products_report(self) -> StorewideFifoReport:
        """FIFO reports for every product that has movements."""
        reports: list[ProductFifoReport] = []
        for product_id in self._selector.product_ids():
            reports.append(self.product_report(product_id))

        overall = summarize_results((r.result for r in reports), self._policy)
        failed = sum(1 for r in reports if not r.result.success)
        logger.info(
            "fifo_storewide_report",
            extra={
                "product_count": len(reports),
                "failed_count": failed,
                "total_profit": str(overall.total_profit),
            },
        )
        return StorewideFifoReport(results=tuple(reports), overall_summary=overall)

    def sale_report(self, sale_id: str) -> OrderFifoReport:
        """
        FIFO profit for each item of a sale.

        Raises:
            OrderNotFoundError: If no movement references the sale.
        """
        return self._order_report(OrderType.SALE, str(sale_id))

    def shipping_order_report(self, shipping_order_id: str) -> OrderFifoReport:
        """
        FIFO profit for each item of a shipping order.

        Raises:
            OrderNotFoundError: If no movement references the shipping order.
        """
        return self._order_report(OrderType.SHIPPING, str(shipping_order_id))

    def _order_report(self, order_type: OrderType, order_id: str) -> OrderFifoReport:
        with LogContext.bind(order_id=order_id):
            order_rows = self._selector.movements_for_order(order_type, order_id)
            if not order_rows:
                raise OrderNotFoundError(order_type.value, order_id)

            results: dict[str, FIFOCalculationResult] = {}
            items: list[OrderItemProfit] = []
            total_cost = total_revenue = total_profit = ZERO

            for row in order_rows:
                if row.product_id not in results:
                    rows = self._selector.movements_for_product(row.product_id)
                    results[row.product_id] = self._calculate(rows)

                profit = None
                for entry in results[row.product_id].profit_margins or ():
                    if entry.source_id is not None and entry.source_id == row.row_id:
                        profit = entry
                        break

                amount = row.total_amount or ZERO
                total_revenue += amount
                if profit is None:
                    items.append(
                        OrderItemProfit(
                            row_id=row.row_id,
                            product_id=row.product_id,
                            quantity=row.abs_quantity,
                            total_amount=amount,
                            total_cost=ZERO,
                            gross_profit=ZERO,
                            profit_margin=self._policy.zero_margin,
                        )
                    )
                    continue

                total_cost += profit.total_cost
                total_profit += profit.gross_profit
                items.append(
                    OrderItemProfit(
                        row_id=row.row_id,
                        product_id=row.product_id,
                        quantity=row.abs_quantity,
                        total_amount=amount,
                        total_cost=profit.total_cost,
                        gross_profit=profit.gross_profit,
                        profit_margin=profit.profit_margin,
                    )
                )

            summary = OrderFifoSummary(
                total_cost=total_cost,
                total_revenue=total_revenue,
                total_profit=total_profit,
                total_profit_margin=self._policy.margin(total_profit, total_revenue),
            )
            logger.info(
                "fifo_order_report",
                extra={
                    "order_type": order_type.value,
                    "item_count": len(items),
                    "total_profit": str(total_profit),
                },
            )
            return OrderFifoReport(
                order_type=order_type,
                order_id=order_id,
                items=tuple(items),
                summary=summary,
            )

    def simulate(self, product_id: str, quantity: Any) -> SimulationResult:
        """
        Projected FIFO cost of selling ``quantity`` units of a product now.

        Raises:
            ProductNotFoundError: If the product has no movements.
            InvalidSimulationRequestError: If quantity is not a positive
                whole number.
        """
        product_id = str(product_id)
        with LogContext.bind(product_id=product_id):
            rows = self._ledger(product_id)
            return simulate_fifo_cost(
                rows,
                quantity,
                self._clock.now(),
                product_id=product_id,
                policy=self._policy,
            )
