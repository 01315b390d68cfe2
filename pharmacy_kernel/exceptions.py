"""
Typed Exception Hierarchy for the Pharmacy Kernel.

Every error carries a machine-readable ``code`` class attribute and the
structured data needed to act on it, so callers catch by type and map by
code instead of parsing messages:

    try:
        report = service.product_report(product_id)
    except ProductNotFoundError as e:
        api_response(status=404, code=e.code, product=e.product_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PharmacyKernelError (base)
    |
    +-- LedgerError
    |   +-- MalformedLedgerRowError
    |
    +-- ReportError
    |   +-- ProductNotFoundError
    |   +-- OrderNotFoundError
    |   +-- InvalidSimulationRequestError
    |
    +-- ConfigError
        +-- ConfigValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category  | Code                        | When Raised
----------|-----------------------------|-------------------------------------------
Ledger    | MALFORMED_LEDGER_ROW        | Row has an unknown type, bad number, or
          |                             | no timestamp and no default was supplied
----------|-----------------------------|-------------------------------------------
Report    | PRODUCT_NOT_FOUND           | No inventory movements for the product
          | ORDER_NOT_FOUND             | No movement references the sale/shipping
          |                             | order
          | INVALID_SIMULATION_REQUEST  | Simulated quantity missing or not a
          |                             | positive integer
----------|-----------------------------|-------------------------------------------
Config    | CONFIG_VALIDATION_FAILED    | YAML configuration failed validation

Negative inventory is NOT an error. It is modeled on the results
(``has_negative_inventory`` / ``pending_profit_calculation``).
"""


class PharmacyKernelError(Exception):
    """
    Base exception for all pharmacy kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PHARMACY_KERNEL_ERROR"


# Ledger-related exceptions


class LedgerError(PharmacyKernelError):
    """Base exception for inventory ledger errors."""

    code: str = "LEDGER_ERROR"


class MalformedLedgerRowError(LedgerError):
    """A raw inventory row cannot be normalized."""

    code: str = "MALFORMED_LEDGER_ROW"

    def __init__(self, row_id: str | None, reason: str):
        self.row_id = row_id
        self.reason = reason
        super().__init__(f"Malformed ledger row {row_id}: {reason}")


# Report-related exceptions


class ReportError(PharmacyKernelError):
    """Base exception for FIFO report lookups."""

    code: str = "REPORT_ERROR"


class ProductNotFoundError(ReportError):
    """No inventory movements exist for the product."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"No inventory records for product: {product_id}")


class OrderNotFoundError(ReportError):
    """No inventory movement references the sale or shipping order."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_type: str, order_id: str):
        self.order_type = order_type
        self.order_id = order_id
        super().__init__(f"No inventory records for {order_type} order: {order_id}")


class InvalidSimulationRequestError(ReportError):
    """Simulation request is missing a product or a positive quantity."""

    code: str = "INVALID_SIMULATION_REQUEST"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid simulation request: {reason}")


# Configuration exceptions


class ConfigError(PharmacyKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class ConfigValidationError(ConfigError):
    """Configuration failed validation."""

    code: str = "CONFIG_VALIDATION_FAILED"

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Configuration invalid: " + "; ".join(errors))
