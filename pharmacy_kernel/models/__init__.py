"""SQLAlchemy ORM models for the pharmacy kernel."""

from pharmacy_kernel.models.inventory_movement import InventoryMovementModel

__all__ = ["InventoryMovementModel"]
