"""
Services layer -- orchestration over the FIFO engine and kernel selectors.
"""

from pharmacy_services.fifo_report_service import (
    FifoReportService,
    OrderFifoReport,
    OrderFifoSummary,
    OrderItemProfit,
    ProductFifoReport,
    StorewideFifoReport,
)

__all__ = [
    "FifoReportService",
    "OrderFifoReport",
    "OrderFifoSummary",
    "OrderItemProfit",
    "ProductFifoReport",
    "StorewideFifoReport",
]
