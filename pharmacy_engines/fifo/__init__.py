"""
FIFO inventory costing.

Pipeline: ledger rows -> ``prepare_inventory_for_fifo`` (stock-in /
stock-out, document-ordered) -> ``match_fifo_batches`` (cost parts per
stock-out) -> ``calculate_profit_margins`` (revenue, cost, margin) ->
summary.  ``calculate_product_fifo`` runs the whole pipeline for one
product; ``simulate_fifo_cost`` projects the cost of a hypothetical sale.
"""

from pharmacy_engines.fifo.calculator import (
    build_sale_records,
    calculate_product_fifo,
    detect_sold_before_purchased,
    summarize_profit_margins,
    summarize_results,
)
from pharmacy_engines.fifo.ledger import (
    coerce_rows,
    document_order_key,
    prepare_inventory_for_fifo,
)
from pharmacy_engines.fifo.matcher import match_fifo_batches, remaining_batches
from pharmacy_engines.fifo.profit import (
    calculate_no_stock_profits,
    calculate_profit_margins,
)
from pharmacy_engines.fifo.simulation import SIMULATION_SOURCE_ID, simulate_fifo_cost
from pharmacy_engines.fifo.types import (
    DEFAULT_POLICY,
    CostPart,
    FIFOCalculationResult,
    FIFOSummary,
    FifoPolicy,
    OutgoingUsage,
    PreparedInventoryData,
    ProfitMarginResult,
    SaleRecord,
    SimulationResult,
    StockInRecord,
    StockOutRecord,
    to_json_value,
)

__all__ = [
    "DEFAULT_POLICY",
    "SIMULATION_SOURCE_ID",
    "CostPart",
    "FIFOCalculationResult",
    "FIFOSummary",
    "FifoPolicy",
    "OutgoingUsage",
    "PreparedInventoryData",
    "ProfitMarginResult",
    "SaleRecord",
    "SimulationResult",
    "StockInRecord",
    "StockOutRecord",
    "build_sale_records",
    "calculate_no_stock_profits",
    "calculate_product_fifo",
    "calculate_profit_margins",
    "coerce_rows",
    "detect_sold_before_purchased",
    "document_order_key",
    "match_fifo_batches",
    "prepare_inventory_for_fifo",
    "remaining_batches",
    "simulate_fifo_cost",
    "summarize_profit_margins",
    "summarize_results",
    "to_json_value",
]
