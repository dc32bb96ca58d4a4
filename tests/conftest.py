"""Pytest configuration and fixtures for test suite."""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from calculator.engine import FederalTaxEngine  # noqa: E402
from calculator.tax_year_config import TaxYearConfig  # noqa: E402
from calculator.traced_value import TraceGraphBuilder  # noqa: E402
from tests.helpers.builders import make_return, make_w2  # noqa: E402


@pytest.fixture
def config_2025() -> TaxYearConfig:
    return TaxYearConfig.for_year(2025)


@pytest.fixture
def engine() -> FederalTaxEngine:
    return FederalTaxEngine()


@pytest.fixture
def trace() -> TraceGraphBuilder:
    return TraceGraphBuilder()


@pytest.fixture
def single_return():
    """Single filer, $75,000 wages, $9,000 federal withholding."""
    return make_return(w2s=[make_w2(75000, federal_withheld=9000)])
