"""
Configuration Schema (``pharmacy_config.schema``).

Frozen dataclasses describing one configuration set.  Pure data: no
loading, no validation, no kernel imports.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FifoPolicyDef:
    """Labels and precision used by the FIFO engine."""

    unknown_order_label: str = "Unknown order"
    margin_places: int = 2
    simulation_order_number: str = "SIMULATION"


@dataclass(frozen=True)
class LoggingDef:
    level: str = "INFO"


@dataclass(frozen=True)
class DatabaseDef:
    url: str = "sqlite:///:memory:"
    echo: bool = False
    pool_size: int = 5


@dataclass(frozen=True)
class PharmacyConfig:
    """A complete, parsed configuration set."""

    config_id: str
    version: int = 1
    fifo: FifoPolicyDef = field(default_factory=FifoPolicyDef)
    logging: LoggingDef = field(default_factory=LoggingDef)
    database: DatabaseDef = field(default_factory=DatabaseDef)
    checksum: str = ""
