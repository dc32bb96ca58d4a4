"""State tax configuration dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from calculator.decimal_math import Bracket, Cents, brackets_from_floors


# Type alias for bracket tables: filing_status -> [(floor in cents, rate), ...]
StateBracketTable = Dict[str, List[Tuple[Cents, Decimal]]]


@dataclass(frozen=True)
class StateTaxConfig:
    """
    Configuration for a specific state and tax year.

    Holds the static data a state calculator needs: rate structure,
    deductions, exemptions and the generic credit parameters. Amounts are
    integer cents; rates are Decimals. Constants that only one state uses
    stay in that state's module.
    """

    # Basic identification
    state_code: str
    state_name: str
    tax_year: int

    # Tax structure
    is_flat_tax: bool
    flat_rate: Optional[Decimal] = None  # If is_flat_tax is True
    brackets: Optional[StateBracketTable] = None  # If progressive

    # "federal_agi" for every supported state except PA ("income_classes")
    starts_from: str = "federal_agi"

    # Standard deduction amounts by filing status
    standard_deduction: Dict[str, Cents] = field(default_factory=dict)

    # Personal exemption amounts
    personal_exemption_amount: Dict[str, Cents] = field(default_factory=dict)
    dependent_exemption_amount: Cents = 0

    # State-specific income rules
    social_security_taxable: bool = False
    us_obligation_interest_taxable: bool = False
    hsa_deduction_allowed: bool = True
    pension_exclusion_limit: Optional[Cents] = None

    # State EITC (as percentage of federal EITC, e.g. 0.20 = 20%)
    eitc_percentage: Optional[Decimal] = None

    # Renter's credit
    renter_credit_single: Cents = 0
    renter_credit_joint: Cents = 0
    renter_credit_income_limit_single: Optional[Cents] = None
    renter_credit_income_limit_joint: Optional[Cents] = None

    def get_standard_deduction(self, filing_status: str) -> Cents:
        """Get standard deduction for a filing status."""
        return self.standard_deduction.get(filing_status, 0)

    def get_personal_exemption(self, filing_status: str) -> Cents:
        """Get personal exemption amount for a filing status."""
        return self.personal_exemption_amount.get(filing_status, 0)

    def get_brackets(self, filing_status: str) -> List[Bracket]:
        """Get tax brackets for a filing status."""
        if self.is_flat_tax:
            return brackets_from_floors([(0, self.flat_rate or Decimal("0"))])
        if self.brackets:
            table = self.brackets.get(filing_status, self.brackets.get("single", []))
            return brackets_from_floors(table)
        return []
