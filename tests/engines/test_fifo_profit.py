"""Tests for FIFO profit calculation (pharmacy_engines/fifo/profit.py)."""

from datetime import UTC, datetime
from decimal import Decimal

from pharmacy_engines.fifo import (
    CostPart,
    FifoPolicy,
    OutgoingUsage,
    SaleRecord,
    calculate_no_stock_profits,
    calculate_profit_margins,
    coerce_rows,
)
from pharmacy_kernel.domain.ledger import OrderType

SALE_TIME = datetime(2024, 2, 1, 10, 30, tzinfo=UTC)


def _part(quantity, unit_price):
    return CostPart(
        batch_time=datetime(2024, 1, 1, tzinfo=UTC),
        unit_price=Decimal(str(unit_price)),
        quantity=Decimal(str(quantity)),
        order_number="PO-1",
        order_id=None,
    )


def _usage(total, parts=(), negative=Decimal("0"), source_id="out-1", at=SALE_TIME):
    return OutgoingUsage(
        out_time=at,
        product_id="p",
        total_quantity=Decimal(str(total)),
        cost_parts=tuple(parts),
        order_number="S-1",
        order_id="sale-1",
        order_type=OrderType.SALE,
        has_negative_inventory=negative > 0,
        remaining_negative_quantity=negative,
        source_id=source_id,
    )


def _sale(unit_price, source_id="out-1", at=SALE_TIME):
    return SaleRecord(
        product_id="p",
        timestamp=at,
        unit_price=Decimal(str(unit_price)),
        source_id=source_id,
    )


class TestProfitArithmetic:
    """Cost, revenue, profit and margin for funded sales."""

    def test_two_batch_sale(self):
        usage = _usage(70, [_part(50, 10), _part(20, 12)])

        result = calculate_profit_margins([usage], [_sale(15)])[0]

        assert result.total_cost == Decimal("740")
        assert result.total_revenue == Decimal("1050")
        assert result.gross_profit == Decimal("310")
        assert result.profit_margin == "29.52%"
        assert result.has_negative_inventory is False
        assert result.pending_profit_calculation is False
        assert len(result.cost_breakdown) == 2

    def test_loss_gives_negative_margin(self):
        result = calculate_profit_margins([_usage(10, [_part(10, 20)])], [_sale(15)])[0]

        assert result.gross_profit == Decimal("-50")
        assert result.profit_margin == "-33.33%"

    def test_zero_revenue_margin(self):
        result = calculate_profit_margins([_usage(5, [_part(5, 2)])], [_sale(0)])[0]
        assert result.profit_margin == "0.00%"

    def test_margin_precision_follows_policy(self):
        policy = FifoPolicy(margin_places=1)
        usage = _usage(70, [_part(50, 10), _part(20, 12)])

        result = calculate_profit_margins([usage], [_sale(15)], policy)[0]

        assert result.profit_margin == "29.5%"


class TestNegativeInventoryProfit:
    """Unfunded sales report zero profit and wait for recalculation."""

    def test_fully_unfunded(self):
        usage = _usage(50, negative=Decimal("50"))

        result = calculate_profit_margins([usage], [_sale(15)])[0]

        assert result.gross_profit == Decimal("0")
        assert result.profit_margin == "0.00%"
        assert result.pending_profit_calculation is True
        assert result.has_negative_inventory is True
        assert result.remaining_negative_quantity == Decimal("50")
        assert result.total_revenue == Decimal("750")
        assert result.total_cost == Decimal("750")

    def test_partially_funded_costs_unfunded_at_revenue(self):
        usage = _usage(50, [_part(30, 10)], negative=Decimal("20"))

        result = calculate_profit_margins([usage], [_sale(15)])[0]

        assert result.total_cost == Decimal("300") + Decimal("300")
        assert result.gross_profit == Decimal("0")
        assert result.pending_profit_calculation is True

    def test_payload_flags(self):
        usage = _usage(50, negative=Decimal("50"))
        payload = calculate_profit_margins([usage], [_sale(15)])[0].to_dict()

        assert payload["pendingProfitCalculation"] is True
        assert payload["remainingNegativeQuantity"] == "50"
        assert "isNoStockSale" not in payload


class TestSaleJoin:
    """Usage entries are joined to sale records by source id or time."""

    def test_source_id_takes_precedence(self):
        usage = _usage(1, [_part(1, 1)], source_id="a")
        sales = [_sale(99, source_id="b"), _sale(5, source_id="a")]

        result = calculate_profit_margins([usage], sales)[0]

        assert result.total_revenue == Decimal("5")

    def test_timestamp_join_ignores_sub_millisecond(self):
        usage = _usage(1, [_part(1, 1)], source_id=None, at=SALE_TIME.replace(microsecond=123456))
        sale = _sale(7, source_id=None, at=SALE_TIME.replace(microsecond=123999))

        result = calculate_profit_margins([usage], [sale])

        assert result[0].total_revenue == Decimal("7")

    def test_unpriced_usage_dropped(self):
        usage = _usage(1, [_part(1, 1)], source_id=None)
        other = _sale(7, source_id=None, at=datetime(2030, 1, 1, tzinfo=UTC))

        assert calculate_profit_margins([usage], [other]) == []


class TestNoStockProfits:
    """No-stock rows are scored from their own prices."""

    def test_profit_is_quantity_times_spread(self, ledger):
        row = ledger.sale_no_stock(50, 15, 10)

        result = calculate_no_stock_profits([row])[0]

        assert result.gross_profit == Decimal("250")
        assert result.total_cost == Decimal("500")
        assert result.total_revenue == Decimal("750")
        assert result.profit_margin == "33.33%"
        assert result.is_no_stock_sale is True
        assert result.cost_breakdown == ()
        assert result.source_id == row.row_id

    def test_unit_price_recovered_from_total(self):
        row = {
            "_id": "r",
            "product": "p",
            "quantity": -4,
            "totalAmount": 40,
            "type": "ship-no-stock",
            "costPrice": 6,
            "lastUpdated": SALE_TIME,
        }
        result = calculate_no_stock_profits(coerce_rows([row]))[0]

        assert result.gross_profit == Decimal("16")
        assert result.order_type is OrderType.SHIPPING

    def test_other_rows_ignored(self, ledger):
        rows = [ledger.purchase(10, 100), ledger.sale(5, 75)]
        assert calculate_no_stock_profits(rows) == []
