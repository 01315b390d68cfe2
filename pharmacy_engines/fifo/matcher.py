"""
pharmacy_engines.fifo.matcher -- FIFO batch matcher.

Responsibility:
    Walk stock-out demands against purchase batches first-in-first-out and
    record, per demand, which batches funded it (CostParts) and how much
    could not be funded at all (negative inventory).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - One cursor per call, never reset between demands: an exhausted batch
      is never revisited by a later demand.
    - Remaining batch quantity starts at the batch quantity, only
      decreases, and never goes below zero.
    - A draw costs its pro-rata share of the batch total; the draw that
      empties a batch takes the remainder, so a fully consumed batch costs
      exactly its total.
    - Inputs are never mutated; remaining quantities live in a list owned
      by the call, so the same records can be matched again safely.
    - For every OutgoingUsage:
      sum(cost_parts.quantity) + remaining_negative_quantity == total_quantity.

Failure modes:
    None.  Insufficient stock is a modeled state
    (``has_negative_inventory``), not an exception.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal

from pharmacy_engines.fifo.types import (
    CostPart,
    OutgoingUsage,
    StockInRecord,
    StockOutRecord,
)
from pharmacy_engines.tracer import traced_engine
from pharmacy_kernel.domain.values import ZERO, prorate
from pharmacy_kernel.logging_config import get_logger

logger = get_logger("engines.fifo.matcher")


@dataclass
class _BatchCursor:
    """Consumption state over one stock-in sequence for one matching pass."""

    stock_in: Sequence[StockInRecord]
    index: int = 0
    remaining: list[Decimal] = field(init=False)
    allocated: list[Decimal] = field(init=False)

    def __post_init__(self) -> None:
        self.remaining = [batch.quantity for batch in self.stock_in]
        self.allocated = [ZERO] * len(self.stock_in)

    def _cost(self, position: int, used: Decimal) -> Decimal:
        batch = self.stock_in[position]
        if used == self.remaining[position]:
            # last draw takes whatever cost the batch has left
            return batch.total_cost - self.allocated[position]
        return prorate(batch.total_cost, used, batch.quantity)

    def draw(self, demand: Decimal) -> tuple[list[CostPart], Decimal]:
        """
        Consume up to ``demand`` units from the current batch onward.

        Returns the cost parts drawn and the unfunded remainder.
        """
        parts: list[CostPart] = []
        while demand > 0:
            if self.index >= len(self.stock_in):
                break

            batch = self.stock_in[self.index]
            available = self.remaining[self.index]
            if available > 0:
                used = min(available, demand)
                cost = self._cost(self.index, used)
                parts.append(
                    CostPart(
                        batch_time=batch.timestamp,
                        unit_price=batch.unit_price,
                        quantity=used,
                        order_number=batch.order_number,
                        order_id=batch.order_id,
                        order_type=batch.order_type,
                        amount=cost,
                    )
                )
                self.allocated[self.index] += cost
                self.remaining[self.index] = available - used
                demand -= used

            if self.remaining[self.index] <= 0:
                self.index += 1
        return parts, demand

    def available_batches(self) -> tuple[StockInRecord, ...]:
        """Batches with quantity left, re-stated at their remaining quantity and cost."""
        return tuple(
            replace(batch, quantity=qty, total_amount=batch.total_cost - spent)
            for batch, qty, spent in zip(self.stock_in, self.remaining, self.allocated)
            if qty > 0
        )


def _usage(out: StockOutRecord, parts: list[CostPart], unfunded: Decimal) -> OutgoingUsage:
    negative = unfunded > 0
    return OutgoingUsage(
        out_time=out.timestamp,
        product_id=out.product_id,
        total_quantity=out.quantity,
        cost_parts=tuple(parts),
        order_number=out.order_number,
        order_id=out.order_id,
        order_type=out.order_type,
        has_negative_inventory=negative,
        remaining_negative_quantity=unfunded if negative else ZERO,
        source_id=out.source_id,
    )


@traced_engine("fifo.matcher", "1.0", fingerprint_fields=("stock_in", "stock_out"))
def match_fifo_batches(
    stock_in: Sequence[StockInRecord],
    stock_out: Sequence[StockOutRecord],
) -> list[OutgoingUsage]:
    """
    Match stock-out demands to stock-in batches first-in-first-out.

    Preconditions:
        Both sequences are already in processing order (see
        ``prepare_inventory_for_fifo``).

    Postconditions:
        One OutgoingUsage per stock-out, in input order.  A zero-quantity
        demand yields no cost parts and no negative-inventory flag.  A
        demand that outruns the batches is flagged with
        ``has_negative_inventory`` and carries the unfunded quantity in
        ``remaining_negative_quantity``.
    """
    cursor = _BatchCursor(stock_in)
    usage_log: list[OutgoingUsage] = []

    for out in stock_out:
        parts, unfunded = cursor.draw(out.quantity)
        usage = _usage(out, parts, unfunded)
        if usage.has_negative_inventory:
            logger.warning(
                "fifo_negative_inventory",
                extra={
                    "product_id": out.product_id,
                    "order_number": out.order_number,
                    "source_id": out.source_id,
                    "total_quantity": str(out.quantity),
                    "remaining_negative_quantity": str(unfunded),
                },
            )
        usage_log.append(usage)

    return usage_log


def remaining_batches(
    stock_in: Sequence[StockInRecord],
    stock_out: Sequence[StockOutRecord],
) -> tuple[StockInRecord, ...]:
    """
    Replay ``stock_out`` against ``stock_in`` and return what is left.

    Each returned batch keeps its identity (timestamp, cost, order) with
    ``quantity`` set to its unconsumed remainder; exhausted batches are
    omitted.  Demands that outrun the batches are ignored.
    """
    cursor = _BatchCursor(stock_in)
    for out in stock_out:
        cursor.draw(out.quantity)
    return cursor.available_batches()
