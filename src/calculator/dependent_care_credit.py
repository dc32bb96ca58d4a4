"""
Child and Dependent Care Credit (Form 2441).

Qualified expenses are limited to $3,000 (one person) or $6,000 (two or
more), reduced by excluded employer benefits (W-2 box 10), and to the lower
earner's earned income on a joint return. The credit rate starts at 35% and
drops one point per $2,000 of AGI (or part) over $15,000, down to 20%.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from calculator.decimal_math import Cents, apply_rate, max_zero, phase_out_reduction
from calculator.tax_year_config import TaxYearConfig
from models.credits import DependentCareExpenses
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

EMPLOYER_BENEFIT_EXCLUSION_LIMIT = 500000
PERCENT_STEP = Decimal("0.01")


@dataclass(frozen=True)
class DependentCareCreditResult:
    qualifying_persons: int
    expenses_paid: Cents
    expense_limit: Cents
    employer_benefits_excluded: Cents
    earned_income_limit: Cents
    qualified_expenses: Cents
    credit_rate: Decimal
    credit: Cents                       # line 11, before the tax liability limit


def credit_rate(agi: Cents, config: TaxYearConfig) -> Decimal:
    excess = max_zero(agi - config.dependent_care_agi_threshold)
    steps = phase_out_reduction(excess, config.dependent_care_agi_step) // config.dependent_care_agi_step
    return max(config.dependent_care_min_rate, config.dependent_care_max_rate - PERCENT_STEP * steps)


def compute_dependent_care_credit(
    expenses: DependentCareExpenses,
    employer_benefits: Cents,
    filing_status: FilingStatus,
    taxpayer_earned_income: Cents,
    spouse_earned_income: Optional[Cents],
    agi: Cents,
    config: TaxYearConfig,
) -> Optional[DependentCareCreditResult]:
    """Returns None without a qualifying person or expenses."""
    if expenses.qualifying_persons <= 0 or expenses.expenses_paid <= 0:
        return None

    base_limit = (
        config.dependent_care_limit_one
        if expenses.qualifying_persons == 1
        else config.dependent_care_limit_two_or_more
    )
    excluded = min(employer_benefits, EMPLOYER_BENEFIT_EXCLUSION_LIMIT)
    limit = max_zero(base_limit - excluded)

    earned_limit = taxpayer_earned_income
    if filing_status == FilingStatus.MARRIED_JOINT:
        earned_limit = min(taxpayer_earned_income, spouse_earned_income or 0)
    qualified = max_zero(min(expenses.expenses_paid, limit, earned_limit))

    rate = credit_rate(agi, config)
    credit = 0 if filing_status == FilingStatus.MARRIED_SEPARATE else apply_rate(qualified, rate)

    logger.debug("Dependent care: qualified=%s rate=%s credit=%s", qualified, rate, credit)
    return DependentCareCreditResult(
        qualifying_persons=expenses.qualifying_persons,
        expenses_paid=expenses.expenses_paid,
        expense_limit=limit,
        employer_benefits_excluded=excluded,
        earned_income_limit=earned_limit,
        qualified_expenses=qualified,
        credit_rate=rate,
        credit=credit,
    )
