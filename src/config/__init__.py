"""Configuration module for the tax computation engine."""

from .settings import EngineSettings, get_settings
from .tax_config_loader import TaxConfigLoader, load_tax_parameters
from .logging_config import configure_logging, get_logger, ComputationLogger

__all__ = [
    "EngineSettings",
    "get_settings",
    "TaxConfigLoader",
    "load_tax_parameters",
    "configure_logging",
    "get_logger",
    "ComputationLogger",
]
