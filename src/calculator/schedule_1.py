"""
Schedule 1 - Additional Income and Adjustments to Income.

Part I totals flow to Form 1040 line 8, Part II to line 10. Part II is
assembled in two stages by the engine: the adjustments known before line 9
feed the Social Security worksheet, while the IRA and student loan interest
deductions depend on line 9 itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from calculator.decimal_math import Cents, sum_cents
from calculator.hsa_deduction import HSAResult
from calculator.schedule_c import ScheduleCResult
from calculator.tax_year_config import TaxYearConfig
from models.tax_return import TaxReturn
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Schedule1Income:
    taxable_refunds: Cents              # line 1
    business_income: Cents              # line 3
    rents_and_royalties: Cents          # line 5
    unemployment: Cents                 # line 7
    hsa_distributions: Cents            # line 8f
    other_income: Cents                 # line 8z

    @property
    def total_other_income(self) -> Cents:
        """Line 9."""
        return self.hsa_distributions + self.other_income

    @property
    def total(self) -> Cents:
        """Line 10, to Form 1040 line 8."""
        return (
            self.taxable_refunds
            + self.business_income
            + self.rents_and_royalties
            + self.unemployment
            + self.total_other_income
        )


@dataclass(frozen=True)
class Schedule1Adjustments:
    educator_expenses: Cents = 0        # line 11
    hsa_deduction: Cents = 0            # line 13
    self_employment_tax: Cents = 0      # line 15
    early_withdrawal_penalty: Cents = 0  # line 18
    ira_deduction: Cents = 0            # line 20
    student_loan_interest: Cents = 0    # line 21

    @property
    def before_ira(self) -> Cents:
        """Adjustments that do not depend on Form 1040 line 9."""
        return (
            self.educator_expenses
            + self.hsa_deduction
            + self.self_employment_tax
            + self.early_withdrawal_penalty
        )

    @property
    def total(self) -> Cents:
        """Line 26, to Form 1040 line 10."""
        return self.before_ira + self.ira_deduction + self.student_loan_interest


def compute_schedule1_income(
    tax_return: TaxReturn,
    businesses: Sequence[ScheduleCResult],
    hsa: Optional[HSAResult],
) -> Schedule1Income:
    refunds = 0
    if tax_return.prior_year.itemized_last_year:
        refunds = sum_cents(g.box2_state_refund for g in tax_return.form1099_g)

    income = Schedule1Income(
        taxable_refunds=refunds,
        business_income=sum_cents(b.net_profit for b in businesses),
        rents_and_royalties=sum_cents(m.box1_rents + m.box2_royalties for m in tax_return.form1099_misc),
        unemployment=sum_cents(g.box1_unemployment for g in tax_return.form1099_g),
        hsa_distributions=hsa.taxable_distributions if hsa is not None else 0,
        other_income=sum_cents(m.box3_other_income for m in tax_return.form1099_misc),
    )
    logger.debug("Schedule 1 Part I total=%s", income.total)
    return income


def educator_expense_deduction(
    expenses: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Cents:
    """$300 per eligible educator; both spouses may qualify on a joint return."""
    educators = 2 if filing_status == FilingStatus.MARRIED_JOINT else 1
    return min(expenses, config.educator_expense_limit * educators)
