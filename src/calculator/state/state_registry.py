"""State calculator registry for dynamic lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Type

from calculator.state.base_state_calculator import BaseStateCalculator

DEFAULT_TAX_YEAR = 2025

# States without income tax
NO_INCOME_TAX_STATES = frozenset({
    "AK",  # Alaska
    "FL",  # Florida
    "NV",  # Nevada
    "SD",  # South Dakota
    "TX",  # Texas
    "WA",  # Washington
    "WY",  # Wyoming
    "TN",  # Tennessee
    "NH",  # New Hampshire (interest and dividends tax repealed for 2025)
})


@dataclass(frozen=True)
class StateModuleMetadata:
    """What the UI needs to list a state without importing its module."""
    state_code: str
    state_name: str
    form_label: str
    node_prefix: str
    template_files: Tuple[str, ...]


class StateCalculatorRegistry:
    """
    Registry for state tax calculators.

    Uses a factory pattern to register and retrieve state-specific calculators
    based on state code and tax year. Exactly one calculator may be
    registered per state and year.
    """

    # Storage: state_code -> tax_year -> calculator_class
    _calculators: Dict[str, Dict[int, Type[BaseStateCalculator]]] = {}

    @classmethod
    def register(
        cls,
        state_code: str,
        tax_year: int,
        calculator_class: Type[BaseStateCalculator]
    ) -> None:
        """
        Register a calculator for a state and year.

        Args:
            state_code: Two-letter state code (e.g., "CA", "KY")
            tax_year: Tax year this calculator handles
            calculator_class: The calculator class to register

        Raises:
            ValueError: if a different class is already registered
        """
        state_upper = state_code.upper()
        years = cls._calculators.setdefault(state_upper, {})
        existing = years.get(tax_year)
        if existing is not None and existing is not calculator_class:
            raise ValueError(f"{state_upper} {tax_year} already registered to {existing.__name__}")
        years[tax_year] = calculator_class

    @classmethod
    def get_calculator_class(cls, state_code: str, tax_year: int) -> Optional[Type[BaseStateCalculator]]:
        state_calcs = cls._calculators.get(state_code.upper())
        if not state_calcs:
            return None
        return state_calcs.get(tax_year)

    @classmethod
    def get_calculator(
        cls,
        state_code: str,
        tax_year: int
    ) -> Optional[BaseStateCalculator]:
        """
        Get calculator instance for a state and year.

        Args:
            state_code: Two-letter state code
            tax_year: Tax year

        Returns:
            Calculator instance or None if not supported
        """
        state_upper = state_code.upper()

        # No income tax states return None
        if state_upper in NO_INCOME_TAX_STATES:
            return None

        calculator_class = cls.get_calculator_class(state_upper, tax_year)
        if not calculator_class:
            return None

        return calculator_class()

    @classmethod
    def get_metadata(cls, state_code: str, tax_year: int) -> Optional[StateModuleMetadata]:
        calculator_class = cls.get_calculator_class(state_code, tax_year)
        if calculator_class is None:
            return None
        return StateModuleMetadata(
            state_code=calculator_class.state_code,
            state_name=calculator_class.state_name,
            form_label=calculator_class.form_label,
            node_prefix=calculator_class.node_prefix,
            template_files=tuple(calculator_class.template_files),
        )

    @classmethod
    def get_supported_states(cls, tax_year: int) -> List[str]:
        """
        Get list of supported state codes for a tax year.

        Args:
            tax_year: Tax year to check

        Returns:
            Sorted list of supported state codes
        """
        supported = []
        for state_code, years in cls._calculators.items():
            if tax_year in years:
                supported.append(state_code)
        return sorted(supported)

    @classmethod
    def is_supported(cls, state_code: str, tax_year: int) -> bool:
        """
        Check if a state has a registered calculator for a tax year.

        No-income-tax states are not "supported": they have no return to
        compute.
        """
        state_calcs = cls._calculators.get(state_code.upper())
        if not state_calcs:
            return False
        return tax_year in state_calcs


def register_state(state_code: str, tax_year: int) -> Callable:
    """
    Decorator to register a state calculator.

    Usage:
        @register_state("CA", 2025)
        class CaliforniaCalculator(BaseStateCalculator):
            ...
    """
    def decorator(cls: Type[BaseStateCalculator]) -> Type[BaseStateCalculator]:
        StateCalculatorRegistry.register(state_code, tax_year, cls)
        return cls
    return decorator


def supported_states(tax_year: int = DEFAULT_TAX_YEAR) -> List[str]:
    return StateCalculatorRegistry.get_supported_states(tax_year)


def get_calculator(state_code: str, tax_year: int = DEFAULT_TAX_YEAR) -> Optional[BaseStateCalculator]:
    return StateCalculatorRegistry.get_calculator(state_code, tax_year)


def get_metadata(state_code: str, tax_year: int = DEFAULT_TAX_YEAR) -> Optional[StateModuleMetadata]:
    return StateCalculatorRegistry.get_metadata(state_code, tax_year)
