"""
Pure domain layer.

No dependencies on the ORM, the database, the wall clock or I/O.
"""

from pharmacy_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from pharmacy_kernel.domain.ledger import (
    LedgerRow,
    MovementType,
    OrderType,
    coerce_ledger_row,
)
from pharmacy_kernel.domain.values import (
    MONEY_PLACES,
    format_percentage,
    prorate,
    round_money,
    safe_divide,
    to_decimal,
    zero_percentage,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "LedgerRow",
    "MovementType",
    "OrderType",
    "coerce_ledger_row",
    "MONEY_PLACES",
    "format_percentage",
    "prorate",
    "round_money",
    "safe_divide",
    "to_decimal",
    "zero_percentage",
]
