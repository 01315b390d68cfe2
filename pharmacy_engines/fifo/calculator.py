"""
pharmacy_engines.fifo.calculator -- Per-product FIFO cost and profit.

Responsibility:
    Single entry point combining the ledger normalizer, batch matcher and
    profit calculator for one product's full ledger, and folding the
    profit results into a summary.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Services call
    ``calculate_product_fifo`` once per product; calls for different
    products are independent and may run in parallel.

Invariants enforced:
    - A ledger with neither stock-out events nor no-stock rows returns a
      successful, zero-valued result without matching.
    - Summary totals are sums over every profit result (FIFO-matched and
      no-stock); the average margin is total profit / total revenue.
    - Failures never escape: any exception becomes ``success=False`` with
      the error message and no partial figures.  Callers check ``success``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from pharmacy_engines.fifo.ledger import coerce_rows, prepare_inventory_for_fifo
from pharmacy_engines.fifo.matcher import match_fifo_batches
from pharmacy_engines.fifo.profit import (
    calculate_no_stock_profits,
    calculate_profit_margins,
)
from pharmacy_engines.fifo.types import (
    DEFAULT_POLICY,
    FIFOCalculationResult,
    FIFOSummary,
    FifoPolicy,
    ProfitMarginResult,
    SaleRecord,
    StockInRecord,
    StockOutRecord,
)
from pharmacy_engines.tracer import traced_engine
from pharmacy_kernel.domain.ledger import LedgerRow
from pharmacy_kernel.domain.values import ZERO
from pharmacy_kernel.logging_config import get_logger

logger = get_logger("engines.fifo.calculator")


def detect_sold_before_purchased(
    stock_in: Sequence[StockInRecord],
    stock_out: Sequence[StockOutRecord],
) -> bool:
    """
    True if some stock-out predates every purchase while a later purchase
    exists, i.e. the ledger timeline shows goods sold before they were
    bought, even if the matcher funded the sale from that later batch.
    """
    for out in stock_out:
        has_prior_purchase = any(batch.timestamp < out.timestamp for batch in stock_in)
        if not has_prior_purchase and any(
            batch.timestamp >= out.timestamp for batch in stock_in
        ):
            return True
    return False


def build_sale_records(stock_out: Sequence[StockOutRecord]) -> list[SaleRecord]:
    """Sale prices and row totals for each stock-out."""
    return [
        SaleRecord(
            product_id=out.product_id,
            timestamp=out.timestamp,
            unit_price=out.unit_price,
            source_id=out.source_id,
            total_amount=out.total_amount,
            quantity=out.quantity,
        )
        for out in stock_out
    ]


def summarize_profit_margins(
    profit_margins: Iterable[ProfitMarginResult],
    policy: FifoPolicy = DEFAULT_POLICY,
) -> FIFOSummary:
    """Fold profit results into totals and an average margin."""
    total_cost = total_revenue = total_profit = ZERO
    for item in profit_margins:
        total_cost += item.total_cost
        total_revenue += item.total_revenue
        total_profit += item.gross_profit
    return FIFOSummary.from_totals(total_cost, total_revenue, total_profit, policy)


def summarize_results(
    results: Iterable[FIFOCalculationResult],
    policy: FifoPolicy = DEFAULT_POLICY,
) -> FIFOSummary:
    """Combine the summaries of several products; failed results are skipped."""
    total_cost = total_revenue = total_profit = ZERO
    for result in results:
        if result.success and result.summary is not None:
            total_cost += result.summary.total_cost
            total_revenue += result.summary.total_revenue
            total_profit += result.summary.total_profit
    return FIFOSummary.from_totals(total_cost, total_revenue, total_profit, policy)


@traced_engine(
    "fifo.calculator",
    "1.0",
    fingerprint_fields=("inventories", "policy", "default_timestamp"),
)
def calculate_product_fifo(
    inventories: Iterable[LedgerRow | Mapping[str, Any]] | None,
    policy: FifoPolicy = DEFAULT_POLICY,
    default_timestamp: datetime | None = None,
) -> FIFOCalculationResult:
    """
    Calculate FIFO cost of goods sold and gross profit for one product.

    Args:
        inventories: The product's ledger rows (LedgerRow or raw mappings),
            in any order.
        policy: Labels and margin precision.
        default_timestamp: Timestamp for rows that have none.

    Returns:
        FIFOCalculationResult; ``success=False`` with ``error`` on any
        failure, including ``None`` or malformed input.
    """
    try:
        rows = coerce_rows(inventories, default_timestamp)
        prepared = prepare_inventory_for_fifo(rows, policy)
        no_stock_margins = calculate_no_stock_profits(rows, policy)

        if not prepared.stock_out and not no_stock_margins:
            logger.info("fifo_no_stock_out", extra={"row_count": len(rows)})
            return FIFOCalculationResult(
                success=True,
                fifo_matches=(),
                profit_margins=(),
                summary=FIFOSummary.zero(policy),
                has_negative_inventory=False,
            )

        has_negative_inventory = detect_sold_before_purchased(
            prepared.stock_in, prepared.stock_out
        )
        fifo_matches = match_fifo_batches(prepared.stock_in, prepared.stock_out)
        sales = build_sale_records(prepared.stock_out)
        profit_margins = (
            calculate_profit_margins(fifo_matches, sales, policy) + no_stock_margins
        )
        summary = summarize_profit_margins(profit_margins, policy)

        logger.info(
            "fifo_calculated",
            extra={
                "stock_in_count": len(prepared.stock_in),
                "stock_out_count": len(prepared.stock_out),
                "no_stock_count": len(no_stock_margins),
                "total_cost": str(summary.total_cost),
                "total_revenue": str(summary.total_revenue),
                "total_profit": str(summary.total_profit),
                "has_negative_inventory": has_negative_inventory,
            },
        )

        return FIFOCalculationResult(
            success=True,
            fifo_matches=tuple(fifo_matches),
            profit_margins=tuple(profit_margins),
            summary=summary,
            has_negative_inventory=has_negative_inventory,
        )
    except Exception as e:
        logger.error("fifo_calculation_failed", exc_info=True)
        return FIFOCalculationResult.failure(str(e) or type(e).__name__)
