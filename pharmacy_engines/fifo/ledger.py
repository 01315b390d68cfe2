"""
pharmacy_engines.fifo.ledger -- Ledger normalizer for FIFO costing.

Responsibility:
    Turn one product's heterogeneous inventory rows into two sorted
    sequences: stock-in batches (purchases) and stock-out demands
    (sales and shipments).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Only ``purchase`` rows become stock-in; only ``sale`` / ``ship`` rows
      become stock-out.  No-stock variants, returns and adjustments never
      enter either sequence.
    - Batch unit cost is ``total_amount / |quantity|`` (0 when either is
      missing or zero), rounded at the money scale.  Records keep the
      row's ``total_amount`` so costs and revenue are taken from totals,
      never rebuilt from a rounded unit price.
    - Both sequences are ordered by business document, not by entry time:
      numeric part of the order number, then the full order number, then
      timestamp.  Documents are often backdated or keyed in late, so the
      order number is the authoritative sequence.

Failure modes:
    - MalformedLedgerRowError for rows that cannot be coerced, or rows
      without a timestamp when no ``default_timestamp`` is supplied.
"""

from __future__ import annotations

import functools
import re
from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime
from typing import Any

from pharmacy_engines.fifo.types import (
    DEFAULT_POLICY,
    FifoPolicy,
    PreparedInventoryData,
    StockInRecord,
    StockOutRecord,
)
from pharmacy_kernel.domain.ledger import (
    LedgerRow,
    MovementType,
    OrderType,
    coerce_ledger_row,
)
from pharmacy_kernel.domain.values import ZERO, round_money, safe_divide
from pharmacy_kernel.exceptions import MalformedLedgerRowError
from pharmacy_kernel.logging_config import get_logger

logger = get_logger("engines.fifo.ledger")

_NON_DIGITS = re.compile(r"\D")


def coerce_rows(
    rows: Iterable[LedgerRow | Mapping[str, Any]],
    default_timestamp: datetime | None = None,
) -> list[LedgerRow]:
    """
    Coerce raw rows to LedgerRow and fill in missing timestamps.

    Raises:
        TypeError: If ``rows`` is None or not iterable.
        MalformedLedgerRowError: If a row is invalid or has no timestamp
            and ``default_timestamp`` is None.
    """
    result: list[LedgerRow] = []
    for raw in rows:
        row = coerce_ledger_row(raw)
        if row.timestamp is None:
            if default_timestamp is None:
                raise MalformedLedgerRowError(row.row_id, "missing timestamp")
            row = _with_timestamp(row, default_timestamp)
        result.append(row)
    return result


def _with_timestamp(row: LedgerRow, timestamp: datetime) -> LedgerRow:
    return replace(row, timestamp=timestamp)


def _compare_documents(
    a_number: str,
    a_time: datetime,
    b_number: str,
    b_time: datetime,
) -> int:
    if a_number and b_number:
        a_digits = _NON_DIGITS.sub("", a_number)
        b_digits = _NON_DIGITS.sub("", b_number)
        if a_digits and b_digits:
            diff = int(a_digits) - int(b_digits)
            if diff != 0:
                return -1 if diff < 0 else 1
        if a_number != b_number:
            return -1 if a_number < b_number else 1
    if a_time != b_time:
        return -1 if a_time < b_time else 1
    return 0


def _by_document(a: StockInRecord | StockOutRecord, b: StockInRecord | StockOutRecord) -> int:
    return _compare_documents(a.order_number, a.timestamp, b.order_number, b.timestamp)


document_order_key = functools.cmp_to_key(_by_document)


def _stock_in(row: LedgerRow, policy: FifoPolicy) -> StockInRecord:
    quantity = row.abs_quantity
    total_amount = row.total_amount if row.total_amount is not None else ZERO
    unit_price = round_money(safe_divide(total_amount, quantity))
    return StockInRecord(
        timestamp=row.timestamp,
        quantity=quantity,
        unit_price=unit_price,
        product_id=row.product_id,
        source_id=row.row_id,
        order_number=row.purchase_order_number or policy.unknown_order_label,
        order_id=row.purchase_order_id,
        total_amount=total_amount,
    )


def _stock_out(row: LedgerRow, policy: FifoPolicy) -> StockOutRecord:
    quantity = row.abs_quantity
    unit_price = ZERO
    if row.total_amount:
        unit_price = round_money(safe_divide(row.total_amount, quantity))
    if row.movement_type is MovementType.SALE:
        order_number, order_id, order_type = row.sale_number, row.sale_id, OrderType.SALE
    else:
        order_number, order_id, order_type = (
            row.shipping_order_number,
            row.shipping_order_id,
            OrderType.SHIPPING,
        )
    return StockOutRecord(
        timestamp=row.timestamp,
        quantity=quantity,
        product_id=row.product_id,
        source_id=row.row_id,
        type=row.movement_type.value,
        order_number=order_number or policy.unknown_order_label,
        order_id=order_id,
        order_type=order_type,
        unit_price=unit_price,
        total_amount=row.total_amount,
    )


def prepare_inventory_for_fifo(
    inventories: Iterable[LedgerRow | Mapping[str, Any]],
    policy: FifoPolicy = DEFAULT_POLICY,
    default_timestamp: datetime | None = None,
) -> PreparedInventoryData:
    """
    Split and sort one product's ledger into stock-in and stock-out.

    Preconditions:
        ``inventories`` holds rows of a single product (not enforced).

    Postconditions:
        - stock_in contains one record per purchase row.
        - stock_out contains one record per sale/ship row.
        - Both are sorted by document order (see module docstring).

    Raises:
        MalformedLedgerRowError: On invalid rows.
    """
    stock_in: list[StockInRecord] = []
    stock_out: list[StockOutRecord] = []
    skipped = 0

    for row in coerce_rows(inventories, default_timestamp):
        if row.movement_type.is_stock_in:
            stock_in.append(_stock_in(row, policy))
        elif row.movement_type.is_stock_out:
            stock_out.append(_stock_out(row, policy))
        else:
            skipped += 1

    stock_in.sort(key=document_order_key)
    stock_out.sort(key=document_order_key)

    logger.debug(
        "fifo_ledger_prepared",
        extra={
            "stock_in_count": len(stock_in),
            "stock_out_count": len(stock_out),
            "skipped_count": skipped,
        },
    )

    return PreparedInventoryData(stock_in=tuple(stock_in), stock_out=tuple(stock_out))
