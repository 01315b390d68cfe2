"""
pharmacy_engines.fifo.simulation -- What would selling N units cost now?

Responsibility:
    Replay a product's recorded outflows against its purchase batches,
    then match one hypothetical sale against whatever is left.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The simulation time is a
    parameter; the service supplies it from its Clock.

Failure modes:
    - InvalidSimulationRequestError if the quantity is not a positive
      whole number or no product id can be determined.
    - MalformedLedgerRowError for invalid ledger rows.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from pharmacy_engines.fifo.ledger import coerce_rows, prepare_inventory_for_fifo
from pharmacy_engines.fifo.matcher import match_fifo_batches, remaining_batches
from pharmacy_engines.fifo.types import (
    DEFAULT_POLICY,
    FifoPolicy,
    SimulationResult,
    StockOutRecord,
)
from pharmacy_kernel.domain.ledger import LedgerRow, MovementType, OrderType
from pharmacy_kernel.domain.values import ZERO, to_decimal
from pharmacy_kernel.exceptions import InvalidSimulationRequestError
from pharmacy_kernel.logging_config import get_logger

logger = get_logger("engines.fifo.simulation")

SIMULATION_SOURCE_ID = "simulation"


def _validate_quantity(quantity: Any) -> Decimal:
    try:
        value = to_decimal(quantity)
    except ValueError as e:
        raise InvalidSimulationRequestError(f"quantity {quantity!r} is not a number") from e
    if value <= 0 or value != value.to_integral_value():
        raise InvalidSimulationRequestError(
            f"quantity must be a positive whole number, got {quantity!r}"
        )
    return value


def simulate_fifo_cost(
    inventories: Iterable[LedgerRow | Mapping[str, Any]],
    quantity: Any,
    simulated_at: datetime,
    product_id: str | None = None,
    policy: FifoPolicy = DEFAULT_POLICY,
) -> SimulationResult:
    """
    Project the FIFO cost of selling ``quantity`` units at ``simulated_at``.

    Postconditions:
        - available_quantity is the unconsumed stock after replaying every
          recorded sale and shipment.
        - fifo_matches holds exactly one usage, for the simulated sale.
        - Shortfall beyond available stock is reported through
          has_negative_inventory / remaining_negative_quantity, not raised.

    Raises:
        InvalidSimulationRequestError: On a bad quantity or unknown product.
    """
    demand = _validate_quantity(quantity)
    rows = coerce_rows(inventories, simulated_at)
    if product_id is None:
        if not rows:
            raise InvalidSimulationRequestError("product id is required")
        product_id = rows[0].product_id

    prepared = prepare_inventory_for_fifo(rows, policy)
    available = remaining_batches(prepared.stock_in, prepared.stock_out)
    available_quantity = sum((batch.quantity for batch in available), ZERO)

    simulated = StockOutRecord(
        timestamp=simulated_at,
        quantity=demand,
        product_id=product_id,
        source_id=SIMULATION_SOURCE_ID,
        type=MovementType.SALE.value,
        order_number=policy.simulation_order_number,
        order_id=None,
        order_type=OrderType.SALE,
    )
    matches = match_fifo_batches(available, [simulated])
    usage = matches[0]

    logger.info(
        "fifo_simulated",
        extra={
            "product_id": product_id,
            "quantity": str(demand),
            "available_quantity": str(available_quantity),
            "total_cost": str(usage.matched_cost),
            "has_negative_inventory": usage.has_negative_inventory,
        },
    )

    return SimulationResult(
        product_id=product_id,
        quantity=demand,
        fifo_matches=tuple(matches),
        total_cost=usage.matched_cost,
        has_negative_inventory=usage.has_negative_inventory,
        remaining_negative_quantity=usage.remaining_negative_quantity,
        available_quantity=available_quantity,
    )
