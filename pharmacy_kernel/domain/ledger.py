"""
Ledger -- Inventory movement rows as pure domain DTOs.

Responsibility:
    Defines the one shape every inventory movement takes once it leaves
    the persistence layer: ``LedgerRow``.  Rows arrive either from the
    ``InventorySelector`` (already typed) or as raw documents from an
    import / API payload, which ``LedgerRow.from_mapping`` accepts in both
    the camelCase document shape (``_id``, ``totalAmount``, ``lastUpdated``,
    ``purchaseOrderNumber`` ...) and snake_case.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  Imported by selectors (which build
    rows) and by the FIFO engine (which consumes them).

Invariants enforced:
    - quantity and every monetary field are Decimal after construction.
    - movement_type is always a MovementType member.
    - Identifiers (row, product, order ids) are strings.
    - timestamp, when present, is timezone-aware UTC; naive datetimes and
      dates are read as UTC.

Failure modes:
    - MalformedLedgerRowError for unknown movement types, non-numeric
      quantities/amounts, missing product or quantity, or unparseable
      timestamps.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pharmacy_kernel.domain.values import to_decimal
from pharmacy_kernel.exceptions import MalformedLedgerRowError


class MovementType(str, Enum):
    """Inventory movement tags as stored on ledger rows."""

    PURCHASE = "purchase"
    SALE = "sale"
    SHIP = "ship"
    RETURN = "return"
    ADJUSTMENT = "adjustment"
    SALE_NO_STOCK = "sale-no-stock"   # sold without drawing down inventory
    SHIP_NO_STOCK = "ship-no-stock"

    @property
    def is_stock_in(self) -> bool:
        return self is MovementType.PURCHASE

    @property
    def is_stock_out(self) -> bool:
        return self in (MovementType.SALE, MovementType.SHIP)

    @property
    def is_no_stock(self) -> bool:
        return self in (MovementType.SALE_NO_STOCK, MovementType.SHIP_NO_STOCK)


class OrderType(str, Enum):
    """Business document a movement belongs to."""

    PURCHASE = "purchase"
    SALE = "sale"
    SHIPPING = "shipping"


# Document-shape key -> LedgerRow field.  snake_case field names are
# accepted as-is.
_MAPPING_ALIASES: dict[str, str] = {
    "_id": "row_id",
    "id": "row_id",
    "product": "product_id",
    "totalAmount": "total_amount",
    "type": "movement_type",
    "lastUpdated": "timestamp",
    "last_updated": "timestamp",
    "purchaseOrderNumber": "purchase_order_number",
    "purchaseOrderId": "purchase_order_id",
    "saleNumber": "sale_number",
    "saleId": "sale_id",
    "shippingOrderNumber": "shipping_order_number",
    "shippingOrderId": "shipping_order_id",
    "costPrice": "cost_price",
    "unitPrice": "unit_price",
    "grossProfit": "gross_profit",
}

_ID_FIELDS = (
    "row_id",
    "product_id",
    "purchase_order_id",
    "sale_id",
    "shipping_order_id",
)

_OPTIONAL_DECIMAL_FIELDS = (
    "total_amount",
    "cost_price",
    "unit_price",
    "gross_profit",
)


def _stringify_id(value: Any) -> str | None:
    """Render an identifier (str, UUID, ObjectId, populated document) as str."""
    if value is None:
        return None
    if isinstance(value, Mapping):
        inner = value.get("_id", value.get("id"))
        return None if inner is None else str(inner)
    return str(value)


def _as_utc(value: datetime) -> datetime:
    # naive values are taken to be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _parse_timestamp(row_id: str | None, value: Any) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    if isinstance(value, str):
        try:
            return _as_utc(datetime.fromisoformat(value))
        except ValueError as e:
            raise MalformedLedgerRowError(row_id, f"invalid timestamp {value!r}") from e
    raise MalformedLedgerRowError(row_id, f"invalid timestamp {value!r}")


@dataclass(frozen=True, slots=True)
class LedgerRow:
    """
    One inventory movement for one product.

    ``quantity`` is signed: positive for inflows, negative for outflows.
    ``total_amount`` is the monetary value of the whole row (purchase cost
    for stock-in, sale revenue for stock-out).  ``cost_price`` /
    ``unit_price`` / ``gross_profit`` are only recorded on no-stock rows.
    """

    row_id: str | None
    product_id: str
    quantity: Decimal
    movement_type: MovementType
    total_amount: Decimal | None = None
    timestamp: datetime | None = None
    purchase_order_number: str | None = None
    purchase_order_id: str | None = None
    sale_number: str | None = None
    sale_id: str | None = None
    shipping_order_number: str | None = None
    shipping_order_id: str | None = None
    cost_price: Decimal | None = None
    unit_price: Decimal | None = None
    gross_profit: Decimal | None = None

    def __post_init__(self) -> None:
        for name in _ID_FIELDS:
            object.__setattr__(self, name, _stringify_id(getattr(self, name)))
        row_id = self.row_id

        if not self.product_id:
            raise MalformedLedgerRowError(row_id, "missing product")

        try:
            movement_type = MovementType(self.movement_type)
        except ValueError as e:
            raise MalformedLedgerRowError(
                row_id, f"unknown movement type {self.movement_type!r}"
            ) from e
        object.__setattr__(self, "movement_type", movement_type)

        try:
            object.__setattr__(self, "quantity", to_decimal(self.quantity))
            for name in _OPTIONAL_DECIMAL_FIELDS:
                value = getattr(self, name)
                if value is not None:
                    object.__setattr__(self, name, to_decimal(value))
        except ValueError as e:
            raise MalformedLedgerRowError(row_id, str(e)) from e

        object.__setattr__(self, "timestamp", _parse_timestamp(row_id, self.timestamp))

    @property
    def abs_quantity(self) -> Decimal:
        return abs(self.quantity)

    @property
    def order_type(self) -> OrderType | None:
        """Document type this movement belongs to (None for return/adjustment)."""
        if self.movement_type is MovementType.PURCHASE:
            return OrderType.PURCHASE
        if self.movement_type in (MovementType.SALE, MovementType.SALE_NO_STOCK):
            return OrderType.SALE
        if self.movement_type in (MovementType.SHIP, MovementType.SHIP_NO_STOCK):
            return OrderType.SHIPPING
        return None

    @property
    def order_number(self) -> str | None:
        order_type = self.order_type
        if order_type is OrderType.PURCHASE:
            return self.purchase_order_number
        if order_type is OrderType.SALE:
            return self.sale_number
        if order_type is OrderType.SHIPPING:
            return self.shipping_order_number
        return None

    @property
    def order_id(self) -> str | None:
        order_type = self.order_type
        if order_type is OrderType.PURCHASE:
            return self.purchase_order_id
        if order_type is OrderType.SALE:
            return self.sale_id
        if order_type is OrderType.SHIPPING:
            return self.shipping_order_id
        return None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> LedgerRow:
        """
        Build a row from a persistence-layer document or snake_case dict.

        Unknown keys (e.g. ``product`` populated with name/code, audit
        fields) are ignored.

        Raises:
            MalformedLedgerRowError: If required keys are missing or values
                cannot be converted.
        """
        fields: dict[str, Any] = {}
        for key, value in data.items():
            name = _MAPPING_ALIASES.get(key, key)
            if name in cls.__dataclass_fields__ and name not in fields:
                fields[name] = value

        row_id = _stringify_id(fields.get("row_id"))
        for required in ("product_id", "quantity", "movement_type"):
            if fields.get(required) is None:
                raise MalformedLedgerRowError(row_id, f"missing {required}")
        fields.setdefault("row_id", None)
        return cls(**fields)


def coerce_ledger_row(row: LedgerRow | Mapping[str, Any]) -> LedgerRow:
    """Accept either a LedgerRow or a raw mapping."""
    if isinstance(row, LedgerRow):
        return row
    if isinstance(row, Mapping):
        return LedgerRow.from_mapping(row)
    raise MalformedLedgerRowError(None, f"unsupported row type {type(row).__name__}")
