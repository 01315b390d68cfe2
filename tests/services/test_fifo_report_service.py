"""Tests for FifoReportService (pharmacy_services/fifo_report_service.py)."""

from decimal import Decimal

import pytest

from pharmacy_engines.fifo import FifoPolicy
from pharmacy_kernel.domain.ledger import OrderType
from pharmacy_kernel.exceptions import (
    InvalidSimulationRequestError,
    OrderNotFoundError,
    ProductNotFoundError,
)
from pharmacy_services import FifoReportService


@pytest.fixture
def service(session, deterministic_clock):
    return FifoReportService(session, clock=deterministic_clock)


class TestProductReport:

    def test_calculates_from_stored_ledger(self, service, store_movements, ledger):
        store_movements(
            ledger.purchase(50, 500, "PO-1"),
            ledger.purchase(30, 360, "PO-2"),
            ledger.sale(70, 1050, "S-1"),
        )

        report = service.product_report("prod-1")

        assert report.product_id == "prod-1"
        assert report.result.success is True
        assert report.result.summary.total_cost == Decimal("740")
        assert report.result.summary.total_profit == Decimal("310")
        assert report.result.summary.average_profit_margin == "29.52%"

    def test_unknown_product(self, service):
        with pytest.raises(ProductNotFoundError) as exc_info:
            service.product_report("missing")
        assert exc_info.value.code == "PRODUCT_NOT_FOUND"

    def test_policy_applied(self, session, store_movements, ledger):
        store_movements(ledger.purchase(10, 100), ledger.sale(5, 75))
        service = FifoReportService(session, policy=FifoPolicy(margin_places=0))

        report = service.product_report("prod-1")

        assert report.result.summary.average_profit_margin == "33%"

    def test_logs_bound_to_product(self, service, store_movements, ledger, log_capture):
        store_movements(ledger.purchase(10, 100), ledger.sale(5, 75))

        service.product_report("prod-1")

        record = log_capture.find("fifo_calculated")[0]
        assert record["product_id"] == "prod-1"

    def test_payload(self, service, store_movements, ledger):
        store_movements(ledger.purchase(10, 100), ledger.sale(5, 75))

        payload = service.product_report("prod-1").to_dict()

        assert payload["productId"] == "prod-1"
        assert payload["success"] is True
        assert Decimal(payload["summary"]["totalProfit"]) == Decimal("25")


class TestAllProductsReport:

    def test_overall_summary(self, service, store_movements, ledger_builder):
        a, b = ledger_builder("a"), ledger_builder("b")
        store_movements(
            a.purchase(10, 100),
            a.sale(5, 75),
            b.purchase(4, 40),
            b.sale(4, 60),
            b.purchase(1, 1, "PO-2"),
        )

        report = service.all_products_report()

        assert [r.product_id for r in report.results] == ["a", "b"]
        assert report.overall_summary.total_revenue == Decimal("135")
        assert report.overall_summary.total_cost == Decimal("90")
        assert report.overall_summary.total_profit == Decimal("45")
        assert report.overall_summary.average_profit_margin == "33.33%"

    def test_empty_store(self, service):
        report = service.all_products_report()

        assert report.results == ()
        assert report.overall_summary.total_profit == Decimal("0")
        assert report.to_dict()["overallSummary"]["averageProfitMargin"] == "0.00%"


class TestOrderReports:

    def test_sale_report(self, service, store_movements, ledger_builder):
        a, b = ledger_builder("a"), ledger_builder("b")
        store_movements(
            a.purchase(10, 100, "PO-1"),
            b.purchase(10, 50, "PO-1"),
            a.sale(2, 30, "S-1", order_id="sale-1"),
            b.sale(4, 40, "S-1", order_id="sale-1"),
            a.sale(1, 15, "S-2", order_id="sale-2"),
        )

        report = service.sale_report("sale-1")

        assert report.order_type is OrderType.SALE
        assert len(report.items) == 2
        by_product = {item.product_id: item for item in report.items}
        assert by_product["a"].total_cost == Decimal("20")
        assert by_product["a"].gross_profit == Decimal("10")
        assert by_product["b"].total_cost == Decimal("20")
        assert by_product["b"].gross_profit == Decimal("20")
        assert report.summary.total_revenue == Decimal("70")
        assert report.summary.total_cost == Decimal("40")
        assert report.summary.total_profit == Decimal("30")
        assert report.summary.total_profit_margin == "42.86%"

    def test_shipping_order_report(self, service, store_movements, ledger):
        store_movements(
            ledger.purchase(10, 100, "PO-1"),
            ledger.ship(3, 45, "SO-1", order_id="ship-1"),
        )

        report = service.shipping_order_report("ship-1")

        assert report.order_type is OrderType.SHIPPING
        assert report.summary.total_profit == Decimal("15")
        assert report.to_dict()["items"][0]["fifoProfit"]["profitMargin"] == "33.33%"

    def test_no_stock_item(self, service, store_movements, ledger):
        row = ledger.sale_no_stock(5, 15, 10, "S-9")
        store_movements(row)

        report = service.sale_report(row.sale_id)

        assert report.items[0].gross_profit == Decimal("25")
        assert report.summary.total_profit == Decimal("25")

    def test_unfunded_item_has_zero_profit(self, service, store_movements, ledger):
        store_movements(ledger.sale(5, 75, "S-1", order_id="sale-1"))

        report = service.sale_report("sale-1")

        assert report.items[0].gross_profit == Decimal("0")
        assert report.summary.total_revenue == Decimal("75")
        assert report.summary.total_profit_margin == "0.00%"

    def test_summary_consistent_with_uneven_unit_cost(self, service, store_movements, ledger):
        store_movements(
            ledger.purchase(3, 100, "PO-1"),
            ledger.sale(1, 40, "S-1", order_id="sale-1"),
            ledger.sale(2, 80, "S-2", order_id="sale-2"),
        )

        first = service.sale_report("sale-1")
        second = service.sale_report("sale-2")

        assert first.summary.total_cost == Decimal("33.333333333")
        assert second.summary.total_cost == Decimal("66.666666667")
        for report in (first, second):
            summary = report.summary
            assert summary.total_profit == summary.total_revenue - summary.total_cost
        assert first.summary.total_cost + second.summary.total_cost == Decimal("100")

    def test_unknown_order(self, service):
        with pytest.raises(OrderNotFoundError) as exc_info:
            service.sale_report("missing")
        assert exc_info.value.code == "ORDER_NOT_FOUND"

        with pytest.raises(OrderNotFoundError):
            service.shipping_order_report("missing")


class TestSimulate:

    def test_uses_remaining_stock_and_clock(self, service, store_movements, ledger, deterministic_clock):
        store_movements(
            ledger.purchase(50, 500, "PO-1"),
            ledger.purchase(30, 360, "PO-2"),
            ledger.sale(40, 600, "S-1"),
        )

        sim = service.simulate("prod-1", 20)

        assert sim.available_quantity == Decimal("40")
        assert sim.total_cost == Decimal("220")
        assert sim.fifo_matches[0].out_time == deterministic_clock.now()

    def test_unknown_product(self, service):
        with pytest.raises(ProductNotFoundError):
            service.simulate("missing", 1)

    def test_invalid_quantity(self, service, store_movements, ledger):
        store_movements(ledger.purchase(1, 1))
        with pytest.raises(InvalidSimulationRequestError):
            service.simulate("prod-1", 0)
