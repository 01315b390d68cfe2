"""
pharmacy_engines.fifo.profit -- Gross profit for FIFO-matched sales.

Responsibility:
    Join each OutgoingUsage with its sale price and compute revenue, cost,
    gross profit and margin.  Score no-stock sales (which never enter FIFO)
    straight from the prices recorded on their rows.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Normal usage: cost = sum of the cost parts' allocated cost, revenue =
      the sale row's total amount (unit price * quantity only when no total
      is recorded), profit = revenue - cost, margin = profit / revenue.
    - Negative-inventory usage: the unfunded quantity is costed at its own
      revenue, reported profit is 0, margin is 0, and the entry is marked
      ``pending_profit_calculation`` until purchases cover it and the
      calculation is re-run.
    - A usage entry with no matching sale record produces no result.
    - No-stock rows: profit = revenue - quantity * cost price, i.e.
      quantity * (unit price - cost price), with no cost breakdown.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from decimal import Decimal

from pharmacy_engines.fifo.types import (
    DEFAULT_POLICY,
    FifoPolicy,
    OutgoingUsage,
    ProfitMarginResult,
    SaleRecord,
)
from pharmacy_engines.tracer import traced_engine
from pharmacy_kernel.domain.ledger import LedgerRow, OrderType
from pharmacy_kernel.domain.values import ZERO, prorate
from pharmacy_kernel.logging_config import get_logger

logger = get_logger("engines.fifo.profit")


def _to_millis(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _find_sale(usage: OutgoingUsage, sales: Sequence[SaleRecord]) -> SaleRecord | None:
    """Sale for a usage: by source row id when both carry one, else by
    product and millisecond-equal timestamp."""
    out_time = _to_millis(usage.out_time)
    for sale in sales:
        if usage.source_id is not None and sale.source_id is not None:
            if sale.source_id == usage.source_id:
                return sale
            continue
        if sale.product_id == usage.product_id and _to_millis(sale.timestamp) == out_time:
            return sale
    return None


def _revenue(sale: SaleRecord, quantity: Decimal) -> Decimal:
    if sale.total_amount is not None and sale.quantity == quantity:
        return sale.total_amount
    return sale.unit_price * quantity


def _normal_profit(
    usage: OutgoingUsage,
    total_revenue: Decimal,
    policy: FifoPolicy,
) -> ProfitMarginResult:
    total_cost = usage.matched_cost
    gross_profit = total_revenue - total_cost
    return ProfitMarginResult(
        product_id=usage.product_id,
        sale_time=usage.out_time,
        total_quantity=usage.total_quantity,
        total_cost=total_cost,
        total_revenue=total_revenue,
        gross_profit=gross_profit,
        profit_margin=policy.margin(gross_profit, total_revenue),
        cost_breakdown=usage.cost_parts,
        order_number=usage.order_number,
        order_id=usage.order_id,
        order_type=usage.order_type,
        has_negative_inventory=False,
        source_id=usage.source_id,
    )


def _negative_inventory_profit(
    usage: OutgoingUsage,
    total_revenue: Decimal,
    policy: FifoPolicy,
) -> ProfitMarginResult:
    # Unfunded units are costed at their own revenue so they contribute no
    # profit; the whole entry waits for recalculation.
    unfunded_cost = prorate(
        total_revenue, usage.remaining_negative_quantity, usage.total_quantity
    )
    return ProfitMarginResult(
        product_id=usage.product_id,
        sale_time=usage.out_time,
        total_quantity=usage.total_quantity,
        total_cost=usage.matched_cost + unfunded_cost,
        total_revenue=total_revenue,
        gross_profit=ZERO,
        profit_margin=policy.zero_margin,
        cost_breakdown=usage.cost_parts,
        order_number=usage.order_number,
        order_id=usage.order_id,
        order_type=usage.order_type,
        has_negative_inventory=True,
        remaining_negative_quantity=usage.remaining_negative_quantity,
        pending_profit_calculation=True,
        source_id=usage.source_id,
    )


@traced_engine("fifo.profit", "1.0", fingerprint_fields=("usage_log", "sales", "policy"))
def calculate_profit_margins(
    usage_log: Sequence[OutgoingUsage],
    sales: Sequence[SaleRecord],
    policy: FifoPolicy = DEFAULT_POLICY,
) -> list[ProfitMarginResult]:
    """
    Compute revenue, cost, profit and margin per priced stock-out.

    Postconditions:
        One result per usage entry that has a sale record, in usage order.
        Entries without a sale record are dropped.
    """
    results: list[ProfitMarginResult] = []
    unpriced = 0

    for usage in usage_log:
        sale = _find_sale(usage, sales)
        if sale is None:
            unpriced += 1
            continue

        total_revenue = _revenue(sale, usage.total_quantity)
        if usage.has_negative_inventory:
            results.append(_negative_inventory_profit(usage, total_revenue, policy))
        else:
            results.append(_normal_profit(usage, total_revenue, policy))

    if unpriced:
        logger.debug("fifo_usage_without_sale", extra={"unpriced_count": unpriced})

    return results


def calculate_no_stock_profits(
    rows: Iterable[LedgerRow],
    policy: FifoPolicy = DEFAULT_POLICY,
) -> list[ProfitMarginResult]:
    """
    Score ``sale-no-stock`` / ``ship-no-stock`` rows directly.

    Revenue is ``quantity * unit_price`` when the row records a unit price,
    else the row's ``total_amount``; cost price from ``cost_price`` (the
    product's purchase price, else 0).  Rows of other types are ignored.

    Preconditions:
        Rows carry timestamps (see ``coerce_rows``).
    """
    results: list[ProfitMarginResult] = []
    for row in rows:
        if not row.movement_type.is_no_stock:
            continue

        quantity = row.abs_quantity
        if row.unit_price is not None:
            total_revenue = quantity * row.unit_price
        elif row.total_amount:
            total_revenue = row.total_amount
        else:
            total_revenue = ZERO
        cost_price = row.cost_price if row.cost_price is not None else ZERO

        total_cost = quantity * cost_price
        gross_profit = total_revenue - total_cost
        order_type = row.order_type or OrderType.SALE

        results.append(
            ProfitMarginResult(
                product_id=row.product_id,
                sale_time=row.timestamp,
                total_quantity=quantity,
                total_cost=total_cost,
                total_revenue=total_revenue,
                gross_profit=gross_profit,
                profit_margin=policy.margin(gross_profit, total_revenue),
                cost_breakdown=(),
                order_number=row.order_number or policy.unknown_order_label,
                order_id=row.order_id,
                order_type=order_type,
                has_negative_inventory=False,
                is_no_stock_sale=True,
                source_id=row.row_id,
            )
        )
    return results
