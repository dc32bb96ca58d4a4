"""
Tax Configuration Loader.

Loads federal tax parameters from YAML configuration files, enabling:
- Annual updates without code changes
- Environment-specific overrides of scalar parameters
- Metadata describing where the figures came from
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# Default config directory
CONFIG_DIR = Path(__file__).parent / "tax_parameters"


@dataclass
class ConfigMetadata:
    """Metadata about a configuration file."""
    version: str
    tax_year: int
    effective_date: str
    source: str  # "IRS", "state", "custom"
    irs_references: List[str] = field(default_factory=list)
    notes: str = ""


class TaxConfigLoader:
    """
    Loads and caches tax parameters per tax year.

    Parameters come from ``tax_year_<year>.yaml`` in the config directory.
    Top-level scalar parameters may be overridden with environment variables
    of the form ``TAX_<year>_<PARAM>``, e.g. ``TAX_2025_SCHEDULE_B_THRESHOLD=2000``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize the config loader.

        Args:
            config_dir: Directory containing YAML config files.
                       Defaults to src/config/tax_parameters/
        """
        self.config_dir = config_dir or CONFIG_DIR
        self._configs: Dict[int, Dict[str, Any]] = {}
        self._metadata: Dict[int, ConfigMetadata] = {}

    def load_config(self, tax_year: int) -> Dict[str, Any]:
        """
        Load configuration for a specific tax year.

        Args:
            tax_year: The tax year to load (e.g., 2025)

        Returns:
            Dictionary of tax parameters

        Raises:
            ValueError: If no parameter file exists for the year
        """
        if tax_year in self._configs:
            return self._configs[tax_year]

        config = self._load_from_file(tax_year)
        config = self._apply_env_overrides(config, tax_year)

        self._configs[tax_year] = config
        return config

    def get_metadata(self, tax_year: int) -> Optional[ConfigMetadata]:
        """Get metadata for a tax year's configuration."""
        self.load_config(tax_year)
        return self._metadata.get(tax_year)

    def _load_from_file(self, tax_year: int) -> Dict[str, Any]:
        year_file = self.config_dir / f"tax_year_{tax_year}.yaml"
        if not year_file.exists():
            raise ValueError(
                f"Tax year {tax_year} is not supported: {year_file.name} not found"
            )

        logger.debug("Loading tax parameters from %s", year_file)
        with open(year_file, "r") as f:
            data = yaml.safe_load(f) or {}

        if "_metadata" in data:
            self._metadata[tax_year] = ConfigMetadata(**data.pop("_metadata"))
        return data

    def _apply_env_overrides(self, config: Dict[str, Any], tax_year: int) -> Dict[str, Any]:
        """Apply environment variable overrides to top-level scalar parameters."""
        prefix = f"TAX_{tax_year}_"

        for key, value in os.environ.items():
            if not key.startswith(prefix):
                continue
            param_name = key[len(prefix):].lower()
            current = config.get(param_name)
            if isinstance(current, (dict, list)):
                logger.warning("Ignoring env override for structured parameter: %s", key)
                continue
            try:
                config[param_name] = float(value) if "." in value else int(value)
                logger.info("Applied env override: %s=%s", param_name, value)
            except ValueError:
                logger.warning("Could not parse env override: %s=%s", key, value)

        return config


@lru_cache
def get_config_loader() -> TaxConfigLoader:
    """Get the shared configuration loader."""
    return TaxConfigLoader()


def load_tax_parameters(tax_year: int) -> Dict[str, Any]:
    """Load the raw (dollar-denominated) parameter tree for a tax year."""
    return get_config_loader().load_config(tax_year)
