from .engine import FederalTaxEngine, Form1040Result, LineAmount
from .tax_year_config import TaxYearConfig
from .traced_value import TraceGraph, TraceGraphBuilder, TraceGraphError, TracedValue
from .validation import TaxReturnValidator, ValidationItem, ValidationSeverity
from .qbi_calculator import QBICalculator, QBIBreakdown
from .state import (
    StateTaxEngine,
    StateTaxConfig,
    StateCalculatorRegistry,
    BaseStateCalculator,
    StateComputeResult,
    NO_INCOME_TAX_STATES,
)
from .orchestrator import ReturnComputation, ReturnOrchestrator, compute_return

__all__ = [
    "FederalTaxEngine",
    "Form1040Result",
    "LineAmount",
    "TaxYearConfig",
    "TraceGraph",
    "TraceGraphBuilder",
    "TraceGraphError",
    "TracedValue",
    "TaxReturnValidator",
    "ValidationItem",
    "ValidationSeverity",
    "QBICalculator",
    "QBIBreakdown",
    "StateTaxEngine",
    "StateTaxConfig",
    "StateCalculatorRegistry",
    "BaseStateCalculator",
    "StateComputeResult",
    "NO_INCOME_TAX_STATES",
    "ReturnComputation",
    "ReturnOrchestrator",
    "compute_return",
]
