"""
pharmacy_engines.fifo.types -- Value objects for FIFO inventory costing.

Responsibility:
    Immutable records flowing through the FIFO pipeline:
    ledger rows -> StockInRecord / StockOutRecord -> OutgoingUsage
    (with CostParts) -> ProfitMarginResult -> FIFOSummary, wrapped in a
    FIFOCalculationResult.  Each result type renders the JSON payload
    shape consumed by the admin frontend through ``to_dict()``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - All quantities and amounts are Decimal.
    - Value objects are frozen; batch consumption state never lives on a
      StockInRecord (the matcher owns it for the duration of one call).
    - OutgoingUsage: sum(cost_parts.quantity) + remaining_negative_quantity
      == total_quantity.
    - Cost parts carry their allocated cost; a batch drawn down completely
      costs exactly its purchase total.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from pharmacy_kernel.domain.ledger import OrderType
from pharmacy_kernel.domain.values import ZERO, format_percentage


def to_json_value(value: Any) -> Any:
    """Payload rendering: Decimals as strings, datetimes as ISO-8601, enums by value."""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, OrderType):
        return value.value
    return value


@dataclass(frozen=True, slots=True)
class FifoPolicy:
    """Tunable labels and precision for the FIFO engine."""

    unknown_order_label: str = "Unknown order"
    margin_places: int = 2
    simulation_order_number: str = "SIMULATION"

    def __post_init__(self) -> None:
        if not self.unknown_order_label:
            raise ValueError("unknown_order_label cannot be empty")
        if not 0 <= self.margin_places <= 6:
            raise ValueError(f"margin_places must be in 0..6, got {self.margin_places}")

    def margin(self, profit: Decimal, revenue: Decimal) -> str:
        return format_percentage(profit, revenue, self.margin_places)

    @property
    def zero_margin(self) -> str:
        return format_percentage(ZERO, ZERO, self.margin_places)


DEFAULT_POLICY = FifoPolicy()


@dataclass(frozen=True, slots=True)
class StockInRecord:
    """A purchase batch available for consumption."""

    timestamp: datetime
    quantity: Decimal
    unit_price: Decimal  # unit cost of the batch
    product_id: str
    source_id: str | None
    order_number: str
    order_id: str | None
    order_type: OrderType = OrderType.PURCHASE
    total_amount: Decimal | None = None  # purchase cost of the whole batch

    @property
    def total_cost(self) -> Decimal:
        if self.total_amount is not None:
            return self.total_amount
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class StockOutRecord:
    """A sale or shipment drawing down inventory."""

    timestamp: datetime
    quantity: Decimal  # magnitude of the outflow
    product_id: str
    source_id: str | None
    type: str  # "sale" | "ship"
    order_number: str
    order_id: str | None
    order_type: OrderType
    unit_price: Decimal = ZERO  # sale price per unit recovered from the row
    total_amount: Decimal | None = None  # revenue of the whole row


@dataclass(frozen=True, slots=True)
class PreparedInventoryData:
    """Normalized, sorted ledger sequences for one product."""

    stock_in: tuple[StockInRecord, ...]
    stock_out: tuple[StockOutRecord, ...]


@dataclass(frozen=True, slots=True)
class CostPart:
    """Slice of a stock-out's cost drawn from one purchase batch."""

    batch_time: datetime
    unit_price: Decimal
    quantity: Decimal
    order_number: str
    order_id: str | None
    order_type: OrderType = OrderType.PURCHASE
    amount: Decimal | None = None  # cost allocated from the batch total

    @property
    def cost(self) -> Decimal:
        if self.amount is not None:
            return self.amount
        return self.unit_price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "batchTime": to_json_value(self.batch_time),
            "unit_price": to_json_value(self.unit_price),
            "quantity": to_json_value(self.quantity),
            "orderNumber": self.order_number,
            "orderId": self.order_id,
            "orderType": to_json_value(self.order_type),
        }


@dataclass(frozen=True, slots=True)
class OutgoingUsage:
    """FIFO match result for one stock-out event."""

    out_time: datetime
    product_id: str
    total_quantity: Decimal
    cost_parts: tuple[CostPart, ...]
    order_number: str
    order_id: str | None
    order_type: OrderType
    has_negative_inventory: bool
    remaining_negative_quantity: Decimal
    source_id: str | None = None

    @property
    def matched_quantity(self) -> Decimal:
        return sum((p.quantity for p in self.cost_parts), ZERO)

    @property
    def matched_cost(self) -> Decimal:
        return sum((p.cost for p in self.cost_parts), ZERO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "outTime": to_json_value(self.out_time),
            "drug_id": self.product_id,
            "totalQuantity": to_json_value(self.total_quantity),
            "costParts": [p.to_dict() for p in self.cost_parts],
            "orderNumber": self.order_number,
            "orderId": self.order_id,
            "orderType": to_json_value(self.order_type),
            "hasNegativeInventory": self.has_negative_inventory,
            "remainingNegativeQuantity": to_json_value(self.remaining_negative_quantity),
        }


@dataclass(frozen=True, slots=True)
class SaleRecord:
    """
    Sale price for a (product, timestamp) pair.

    ``total_amount`` is the revenue of the whole row; when present it is
    the revenue for a usage of exactly ``quantity`` units.
    """

    product_id: str
    timestamp: datetime
    unit_price: Decimal
    source_id: str | None = None
    total_amount: Decimal | None = None
    quantity: Decimal | None = None


@dataclass(frozen=True, slots=True)
class ProfitMarginResult:
    """Revenue, cost and margin for one priced stock-out or no-stock row."""

    product_id: str
    sale_time: datetime
    total_quantity: Decimal
    total_cost: Decimal
    total_revenue: Decimal
    gross_profit: Decimal
    profit_margin: str
    cost_breakdown: tuple[CostPart, ...]
    order_number: str
    order_id: str | None
    order_type: OrderType
    has_negative_inventory: bool
    remaining_negative_quantity: Decimal | None = None
    pending_profit_calculation: bool = False
    is_no_stock_sale: bool = False
    source_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "drug_id": self.product_id,
            "saleTime": to_json_value(self.sale_time),
            "totalQuantity": to_json_value(self.total_quantity),
            "totalCost": to_json_value(self.total_cost),
            "totalRevenue": to_json_value(self.total_revenue),
            "grossProfit": to_json_value(self.gross_profit),
            "profitMargin": self.profit_margin,
            "costBreakdown": [p.to_dict() for p in self.cost_breakdown],
            "orderNumber": self.order_number,
            "orderId": self.order_id,
            "orderType": to_json_value(self.order_type),
            "hasNegativeInventory": self.has_negative_inventory,
        }
        if self.remaining_negative_quantity is not None:
            payload["remainingNegativeQuantity"] = to_json_value(self.remaining_negative_quantity)
        if self.pending_profit_calculation:
            payload["pendingProfitCalculation"] = True
        if self.is_no_stock_sale:
            payload["isNoStockSale"] = True
        return payload


@dataclass(frozen=True, slots=True)
class FIFOSummary:
    """Totals across all profit results of one calculation."""

    total_cost: Decimal
    total_revenue: Decimal
    total_profit: Decimal
    average_profit_margin: str

    @classmethod
    def zero(cls, policy: FifoPolicy = DEFAULT_POLICY) -> FIFOSummary:
        return cls(
            total_cost=ZERO,
            total_revenue=ZERO,
            total_profit=ZERO,
            average_profit_margin=policy.zero_margin,
        )

    @classmethod
    def from_totals(
        cls,
        total_cost: Decimal,
        total_revenue: Decimal,
        total_profit: Decimal,
        policy: FifoPolicy = DEFAULT_POLICY,
    ) -> FIFOSummary:
        return cls(
            total_cost=total_cost,
            total_revenue=total_revenue,
            total_profit=total_profit,
            average_profit_margin=policy.margin(total_profit, total_revenue),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalCost": to_json_value(self.total_cost),
            "totalRevenue": to_json_value(self.total_revenue),
            "totalProfit": to_json_value(self.total_profit),
            "averageProfitMargin": self.average_profit_margin,
        }


@dataclass(frozen=True, slots=True)
class FIFOCalculationResult:
    """
    Outcome of one product's FIFO calculation.

    ``success=False`` results carry only ``error``; no partial figures.
    """

    success: bool
    fifo_matches: tuple[OutgoingUsage, ...] | None = None
    profit_margins: tuple[ProfitMarginResult, ...] | None = None
    summary: FIFOSummary | None = None
    has_negative_inventory: bool | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> FIFOCalculationResult:
        return cls(success=False, error=error)

    @property
    def pending_profit_calculations(self) -> tuple[ProfitMarginResult, ...]:
        """Profit entries deferred until purchases cover their negative inventory."""
        return tuple(
            p for p in (self.profit_margins or ()) if p.pending_profit_calculation
        )

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error}
        payload: dict[str, Any] = {
            "success": True,
            "fifoMatches": [m.to_dict() for m in self.fifo_matches or ()],
            "profitMargins": [p.to_dict() for p in self.profit_margins or ()],
            "summary": self.summary.to_dict() if self.summary else None,
        }
        if self.has_negative_inventory is not None:
            payload["hasNegativeInventory"] = self.has_negative_inventory
        return payload


@dataclass(frozen=True, slots=True)
class SimulationResult:
    """Projected FIFO cost of selling ``quantity`` units now."""

    product_id: str
    quantity: Decimal
    fifo_matches: tuple[OutgoingUsage, ...]
    total_cost: Decimal
    has_negative_inventory: bool
    remaining_negative_quantity: Decimal
    available_quantity: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "productId": self.product_id,
            "quantity": to_json_value(self.quantity),
            "fifoMatches": [m.to_dict() for m in self.fifo_matches],
            "totalCost": to_json_value(self.total_cost),
            "hasNegativeInventory": self.has_negative_inventory,
            "remainingNegativeQuantity": to_json_value(self.remaining_negative_quantity),
            "availableQuantity": to_json_value(self.available_quantity),
        }
