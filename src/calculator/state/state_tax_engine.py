"""State tax engine - dispatches one state return to its registered calculator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from calculator.state.base_state_calculator import StateComputeResult
from calculator.state.state_registry import NO_INCOME_TAX_STATES, StateCalculatorRegistry
from calculator.traced_value import TraceGraphBuilder
from models.state_return import StateReturnConfig

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn

logger = logging.getLogger(__name__)


class StateTaxEngine:
    """
    Orchestrates state tax calculations.

    Looks up the state's calculator from the registry and runs it against a
    namespaced view of the shared trace. No-income-tax and unsupported
    states return None.
    """

    def __init__(self, tax_year: int = 2025):
        """
        Initialize the state tax engine.

        Args:
            tax_year: Tax year whose calculators are used
        """
        self.tax_year = tax_year

    def compute(
        self,
        tax_return: "TaxReturn",
        federal: "Form1040Result",
        state_config: StateReturnConfig,
        trace: TraceGraphBuilder,
    ) -> Optional[StateComputeResult]:
        """
        Calculate one state's return.

        Args:
            tax_return: The filer's input
            federal: Completed federal result (read only)
            state_config: Residency and elections for this state
            trace: Shared builder; the state's nodes are recorded under its
                node prefix

        Returns:
            StateComputeResult, or None if the state has no income tax or
            is not supported
        """
        state_upper = state_config.state_code.upper()

        if state_upper in NO_INCOME_TAX_STATES:
            logger.info("State %s has no income tax; nothing to compute", state_upper)
            return None

        calculator = StateCalculatorRegistry.get_calculator(state_upper, self.tax_year)
        if not calculator:
            logger.warning("No calculator registered for state %s (%s)", state_upper, self.tax_year)
            return None

        view = trace.namespaced(calculator.node_prefix)
        view.add_labels(calculator.node_labels())
        return calculator.compute(tax_return, federal, state_config, view)

    def is_state_supported(self, state_code: str) -> bool:
        return StateCalculatorRegistry.is_supported(state_code, self.tax_year)

    def has_income_tax(self, state_code: str) -> bool:
        """
        Check if a state has income tax.

        Args:
            state_code: Two-letter state code

        Returns:
            True if state has income tax, False otherwise
        """
        return state_code.upper() not in NO_INCOME_TAX_STATES

    def get_supported_states(self) -> List[str]:
        """
        Get list of states with registered calculators.

        Returns:
            Sorted list of supported state codes
        """
        return StateCalculatorRegistry.get_supported_states(self.tax_year)

    def get_no_income_tax_states(self) -> List[str]:
        """
        Get list of states with no income tax.

        Returns:
            Sorted list of state codes with no income tax
        """
        return sorted(NO_INCOME_TAX_STATES)
