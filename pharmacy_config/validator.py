"""
Configuration Validator (``pharmacy_config.validator``).

Checks a parsed ``PharmacyConfig`` before anything is built from it.
A configuration with errors MUST NOT be used.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from pharmacy_config.schema import PharmacyConfig

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass
class ConfigValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)


def validate_configuration(config: PharmacyConfig) -> ConfigValidationResult:
    result = ConfigValidationResult()

    if not config.config_id:
        result.add_error("config_id cannot be empty")

    fifo = config.fifo
    if not fifo.unknown_order_label.strip():
        result.add_error("fifo.unknown_order_label cannot be empty")
    if not fifo.simulation_order_number.strip():
        result.add_error("fifo.simulation_order_number cannot be empty")
    if not 0 <= fifo.margin_places <= 6:
        result.add_error(
            f"fifo.margin_places must be between 0 and 6, got {fifo.margin_places}"
        )

    if config.logging.level not in _LOG_LEVELS:
        result.add_error(f"logging.level {config.logging.level!r} is not a known level")

    if not config.database.url:
        result.add_error("database.url cannot be empty")
    if config.database.pool_size < 1:
        result.add_error(
            f"database.pool_size must be positive, got {config.database.pool_size}"
        )

    return result
