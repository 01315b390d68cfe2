"""Tests for configuration loading, validation and bridges (pharmacy_config)."""

import logging
from pathlib import Path

import pytest
import yaml

from pharmacy_config import get_active_config
from pharmacy_config.bridges import (
    apply_logging_config,
    build_fifo_policy,
    init_engine_from_config,
)
from pharmacy_config.loader import compute_checksum, load_yaml_file, parse_config
from pharmacy_config.schema import FifoPolicyDef, PharmacyConfig
from pharmacy_config.validator import validate_configuration
from pharmacy_engines.fifo import DEFAULT_POLICY
from pharmacy_kernel.db.engine import get_engine, reset_engine
from pharmacy_kernel.exceptions import ConfigValidationError


def _write(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestDefaultConfig:
    """The shipped configuration set."""

    def test_loads_and_validates(self):
        config = get_active_config()

        assert config.config_id == "pharmacy-default"
        assert config.fifo.margin_places == 2
        assert config.logging.level == "INFO"
        assert config.database.url == "sqlite:///:memory:"
        assert config.database.pool_size == 5
        assert len(config.checksum) == 64

    def test_matches_engine_defaults(self):
        assert build_fifo_policy(get_active_config()) == DEFAULT_POLICY

    def test_emits_config_trace(self, caplog):
        with caplog.at_level(logging.INFO, logger="pharmacy_kernel.config"):
            config = get_active_config()

        traces = [r for r in caplog.records if r.getMessage() == "PHARMACY_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0].checksum == config.checksum
        assert traces[0].config_id == "pharmacy-default"


class TestParsing:
    """YAML -> frozen schema dataclasses."""

    def test_sections_optional(self, tmp_path):
        config = get_active_config(_write(tmp_path, {"config_id": "minimal"}))

        assert config.version == 1
        assert config.fifo == FifoPolicyDef()
        assert config.database.url == "sqlite:///:memory:"

    def test_overrides(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "config_id": "branch-7",
                "version": 3,
                "fifo": {"unknown_order_label": "N/A", "margin_places": 1},
                "logging": {"level": "debug"},
                "database": {"url": "postgresql://localhost/pharmacy", "pool_size": 10},
            },
        )

        config = get_active_config(str(path))

        assert config.version == 3
        assert config.fifo.unknown_order_label == "N/A"
        assert config.fifo.simulation_order_number == "SIMULATION"
        assert config.logging.level == "DEBUG"
        assert config.database.pool_size == 10

        policy = build_fifo_policy(config)
        assert policy.unknown_order_label == "N/A"
        assert policy.margin_places == 1

    def test_missing_config_id(self):
        with pytest.raises(KeyError):
            parse_config({"fifo": {}})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_empty_file_is_empty_dict(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_checksum_deterministic(self):
        a = compute_checksum({"b": 1, "a": {"y": 2, "x": 1}})
        b = compute_checksum({"a": {"x": 1, "y": 2}, "b": 1})
        assert a == b
        assert a != compute_checksum({"a": 1})


class TestValidation:
    """Invalid configurations are rejected before use."""

    def test_valid(self):
        assert validate_configuration(PharmacyConfig(config_id="ok")).is_valid

    def test_version_defaults_like_loader(self):
        assert PharmacyConfig(config_id="ok").version == 1

    @pytest.mark.parametrize(
        "data,fragment",
        [
            ({"fifo": {"unknown_order_label": "  "}}, "unknown_order_label"),
            ({"fifo": {"simulation_order_number": ""}}, "simulation_order_number"),
            ({"fifo": {"margin_places": 7}}, "margin_places"),
            ({"fifo": {"margin_places": -1}}, "margin_places"),
            ({"logging": {"level": "chatty"}}, "logging.level"),
            ({"database": {"pool_size": 0}}, "pool_size"),
        ],
    )
    def test_rejected(self, tmp_path, data, fragment):
        path = _write(tmp_path, {"config_id": "bad", **data})

        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config(path)

        assert exc_info.value.code == "CONFIG_VALIDATION_FAILED"
        assert any(fragment in e for e in exc_info.value.errors)

    def test_collects_all_errors(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "config_id": "bad",
                "fifo": {"margin_places": 9},
                "logging": {"level": "LOUD"},
            },
        )
        with pytest.raises(ConfigValidationError) as exc_info:
            get_active_config(path)
        assert len(exc_info.value.errors) == 2


class TestApplyLoggingConfig:

    def test_sets_level(self):
        config = parse_config({"config_id": "c", "logging": {"level": "WARNING"}})
        apply_logging_config(config, handler=logging.NullHandler())
        assert logging.getLogger("pharmacy_kernel").level == logging.WARNING


class TestInitEngineFromConfig:

    def test_sqlite_engine(self):
        config = parse_config({"config_id": "c", "database": {"url": "sqlite:///:memory:"}})
        try:
            engine = init_engine_from_config(config)
            assert engine.dialect.name == "sqlite"
            assert get_engine() is engine
        finally:
            reset_engine()
