"""
Tests for the configuration layer.

These tests verify:
1. Loading federal parameters from YAML
2. Environment overrides of scalar parameters
3. Conversion to the cents/Decimal TaxYearConfig
4. Engine settings and computation logging
"""

import json
import logging
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from calculator.tax_year_config import TaxYearConfig
from config.logging_config import ComputationLogger, JsonFormatter, fingerprint, get_logger
from config.settings import EngineSettings
from config.tax_config_loader import TaxConfigLoader

CONFIG_DIR = Path(__file__).parent.parent / "src" / "config" / "tax_parameters"


class TestTaxConfigLoader:
    """Tests for the tax configuration loader."""

    def test_load_2025_config(self):
        loader = TaxConfigLoader(config_dir=CONFIG_DIR)
        config = loader.load_config(2025)

        assert config["standard_deduction"]["single"] == 15000
        assert config["standard_deduction"]["married_joint"] == 30000
        assert config["payroll"]["ss_wage_base"] == 176100
        assert "_metadata" not in config

    def test_metadata(self):
        loader = TaxConfigLoader(config_dir=CONFIG_DIR)
        metadata = loader.get_metadata(2025)
        assert metadata.tax_year == 2025
        assert metadata.source == "IRS"

    def test_unsupported_year(self):
        loader = TaxConfigLoader(config_dir=CONFIG_DIR)
        with pytest.raises(ValueError, match="Tax year 2019 is not supported"):
            loader.load_config(2019)

    def test_cached_per_year(self):
        loader = TaxConfigLoader(config_dir=CONFIG_DIR)
        assert loader.load_config(2025) is loader.load_config(2025)


class TestEnvironmentOverrides:
    """TAX_<year>_<PARAM> overrides top-level scalars only."""

    def test_scalar_override(self, monkeypatch):
        monkeypatch.setenv("TAX_2025_SCHEDULE_B_THRESHOLD", "2000")
        config = TaxConfigLoader(config_dir=CONFIG_DIR).load_config(2025)
        assert config["schedule_b_threshold"] == 2000

    def test_rate_override_parsed_as_float(self, monkeypatch):
        monkeypatch.setenv("TAX_2025_EARLY_DISTRIBUTION_PENALTY_RATE", "0.2")
        config = TaxConfigLoader(config_dir=CONFIG_DIR).load_config(2025)
        assert config["early_distribution_penalty_rate"] == 0.2

    def test_structured_parameter_not_overridden(self, monkeypatch):
        monkeypatch.setenv("TAX_2025_STANDARD_DEDUCTION", "1")
        config = TaxConfigLoader(config_dir=CONFIG_DIR).load_config(2025)
        assert config["standard_deduction"]["single"] == 15000

    def test_unparseable_override_ignored(self, monkeypatch):
        monkeypatch.setenv("TAX_2025_SCHEDULE_B_THRESHOLD", "lots")
        config = TaxConfigLoader(config_dir=CONFIG_DIR).load_config(2025)
        assert config["schedule_b_threshold"] == 1500

    def test_other_year_prefix_ignored(self, monkeypatch):
        monkeypatch.setenv("TAX_2024_SCHEDULE_B_THRESHOLD", "2000")
        config = TaxConfigLoader(config_dir=CONFIG_DIR).load_config(2025)
        assert config["schedule_b_threshold"] == 1500


class TestTaxYearConfig:
    """Dollar parameters become integer cents; rates become Decimal."""

    def test_money_in_cents(self):
        config = TaxYearConfig.for_2025()
        assert config.standard_deduction["single"] == 1500000
        assert config.ss_wage_base == 17610000
        assert config.schedule_b_threshold == 150000

    def test_rates_are_decimal(self):
        config = TaxYearConfig.for_2025()
        assert config.ss_employee_rate == Decimal("0.062")
        assert config.niit_rate == Decimal("0.038")

    def test_brackets_contiguous(self):
        brackets = TaxYearConfig.for_2025().brackets_for("single")
        assert brackets[0].start == 0
        assert brackets[-1].end is None
        for lower, upper in zip(brackets, brackets[1:]):
            assert lower.end == upper.start

    def test_unknown_status_falls_back_to_single(self):
        config = TaxYearConfig.for_2025()
        assert config.brackets_for("unknown") == config.brackets_for("single")

    def test_unsupported_year(self):
        with pytest.raises(ValueError, match="not supported"):
            TaxYearConfig.for_year(2019)


class TestEngineSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TAX_ENGINE_LOG_LEVEL", raising=False)
        settings = EngineSettings()
        assert settings.default_tax_year == 2025
        assert settings.log_level == "INFO"
        assert settings.trace_debug_logging is False

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("TAX_ENGINE_LOG_LEVEL", "debug")
        monkeypatch.setenv("TAX_ENGINE_TRACE_DEBUG_LOGGING", "true")
        settings = EngineSettings()
        assert settings.log_level == "DEBUG"
        assert settings.trace_debug_logging is True

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            EngineSettings(log_level="LOUD")

    def test_unsupported_default_year(self):
        with pytest.raises(ValidationError):
            EngineSettings(default_tax_year=2019)


class TestComputationLogging:

    def test_fingerprint_ignores_key_order(self):
        assert fingerprint({"a": 1, "b": 2}) == fingerprint({"b": 2, "a": 1})
        assert fingerprint({"a": 1}) != fingerprint({"a": 2})

    def test_json_formatter_includes_extra_data(self):
        record = logging.LogRecord("calculator", logging.INFO, __file__, 1, "hello", None, None)
        record.extra_data = {"nodes": 12}
        data = json.loads(JsonFormatter().format(record))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["nodes"] == 12

    def test_context_logger_attaches_context(self, caplog):
        caplog.set_level(logging.INFO, logger="calculator.test")
        get_logger("calculator.test", tax_year=2025).info("ran")
        assert caplog.records[-1].extra_data == {"tax_year": 2025}

    def test_computation_logger(self, caplog):
        caplog.set_level(logging.INFO, logger="calculator.computation")
        run_log = ComputationLogger(2025, "single")
        input_hash = run_log.start({"wages": 100})
        run_log.finish(overpaid=500, amount_owed=0, node_count=40, state_count=1)

        assert input_hash == fingerprint({"wages": 100})
        finished = caplog.records[-1]
        assert finished.getMessage() == "Return computed"
        assert finished.extra_data["overpaid_cents"] == 500
        assert finished.extra_data["tax_year"] == 2025
        assert finished.extra_data["input_hash"] == input_hash[:16]
