"""
Traditional IRA deduction (Schedule 1, line 20).

The deduction phases out for filers covered by a workplace retirement plan
(or whose spouse is covered) inside a MAGI range set by filing status.

MAGI here is Form 1040 line 9 (total income) as supplied by the caller.
AGI depends on this deduction, so the module never looks up AGI itself.

Reference: IRS Publication 590-A, Worksheet 1-2.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence, Tuple

from calculator.decimal_math import Cents, linear_phase_out
from calculator.tax_year_config import TaxYearConfig
from models.documents import W2
from models.taxpayer import FilingStatus, Owner, age_at_end_of_year

logger = logging.getLogger(__name__)

CATCH_UP_AGE = 50


@dataclass(frozen=True)
class IRADeductionResult:
    owner: Owner
    contribution: Cents
    contribution_limit: Cents
    allowable_contribution: Cents
    covered_by_plan: bool
    spouse_covered: bool
    magi: Cents
    phaseout_start: Optional[Cents]
    phaseout_end: Optional[Cents]
    reduction: Cents
    deductible_amount: Cents

    @property
    def nondeductible_amount(self) -> Cents:
        """Basis reported on Form 8606."""
        return self.contribution - self.deductible_amount


def plan_coverage(w2s: Sequence[W2]) -> Tuple[bool, bool]:
    """(taxpayer covered, spouse covered) from W-2 box 13."""
    taxpayer = any(w2.box13_retirement_plan for w2 in w2s if w2.owner == Owner.TAXPAYER)
    spouse = any(w2.box13_retirement_plan for w2 in w2s if w2.owner == Owner.SPOUSE)
    return taxpayer, spouse


def phaseout_range(
    filing_status: FilingStatus,
    covered_by_plan: bool,
    spouse_covered: bool,
    config: TaxYearConfig,
) -> Optional[Tuple[Cents, Cents]]:
    """MAGI range for the deduction, or None when no phase-out applies."""
    status = filing_status.value
    if covered_by_plan:
        return config.ira_phaseout_covered.get(status)
    if spouse_covered:
        return config.ira_phaseout_spouse_covered.get(status)
    return None


def contribution_limit(date_of_birth: Optional[date], tax_year: int, config: TaxYearConfig) -> Cents:
    age = age_at_end_of_year(date_of_birth, tax_year)
    if age is not None and age >= CATCH_UP_AGE:
        return config.ira_contribution_limit + config.ira_catchup_50_plus
    return config.ira_contribution_limit


def compute_ira_deduction(
    contribution: Cents,
    date_of_birth: Optional[date],
    filing_status: FilingStatus,
    covered_by_plan: bool,
    spouse_covered: bool,
    magi: Cents,
    compensation: Cents,
    config: TaxYearConfig,
    owner: Owner = Owner.TAXPAYER,
) -> Optional[IRADeductionResult]:
    """
    Compute the deductible part of one person's traditional IRA contribution.

    Args:
        contribution: Traditional IRA contribution for the year
        date_of_birth: Contributor's date of birth (age 50+ gets the catch-up)
        filing_status: Return filing status
        covered_by_plan: Contributor is an active participant (W-2 box 13)
        spouse_covered: Contributor's spouse is an active participant
        magi: Total income before this deduction (Form 1040 line 9)
        compensation: Taxable compensation available for the contribution
        config: Federal constants
        owner: Whose IRA this is

    Returns:
        IRADeductionResult, or None when nothing was contributed
    """
    if contribution <= 0:
        return None

    limit = contribution_limit(date_of_birth, config.tax_year, config)
    allowable = max(0, min(contribution, limit, compensation))

    bounds = phaseout_range(filing_status, covered_by_plan, spouse_covered, config)
    deductible = allowable
    if bounds is not None:
        start, end = bounds
        deductible = linear_phase_out(allowable, magi, start, end, config.ira_phaseout_rounding)
    reduction = allowable - deductible
    logger.debug(
        "IRA deduction %s: contribution=%s allowable=%s magi=%s range=%s deductible=%s",
        owner.value, contribution, allowable, magi, bounds, deductible,
    )
    return IRADeductionResult(
        owner=owner,
        contribution=contribution,
        contribution_limit=limit,
        allowable_contribution=allowable,
        covered_by_plan=covered_by_plan,
        spouse_covered=spouse_covered,
        magi=magi,
        phaseout_start=bounds[0] if bounds else None,
        phaseout_end=bounds[1] if bounds else None,
        reduction=reduction,
        deductible_amount=deductible,
    )
