"""State tax calculation module."""

from calculator.state.state_tax_config import StateTaxConfig
from calculator.state.state_tax_engine import StateTaxEngine
from calculator.state.state_registry import (
    NO_INCOME_TAX_STATES,
    StateCalculatorRegistry,
    StateModuleMetadata,
    get_calculator,
    get_metadata,
    register_state,
    supported_states,
)
from calculator.state.base_state_calculator import (
    BaseStateCalculator,
    ReviewSection,
    StateComputeResult,
    apportionment_ratio,
)

# Import configs to register state calculators
from calculator.state import configs  # noqa: F401

__all__ = [
    "StateTaxConfig",
    "StateTaxEngine",
    "StateCalculatorRegistry",
    "StateModuleMetadata",
    "NO_INCOME_TAX_STATES",
    "register_state",
    "supported_states",
    "get_calculator",
    "get_metadata",
    "BaseStateCalculator",
    "ReviewSection",
    "StateComputeResult",
    "apportionment_ratio",
]
