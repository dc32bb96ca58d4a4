"""
Earned Income Credit (Form 1040 line 27, Schedule EIC).

Computed from the credit formula rather than the EIC table: the phase-in
credit up to the maximum, reduced by the phase-out rate on the greater of
earned income and AGI above the phase-out start.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from calculator.child_tax_credit import MIN_MONTHS_LIVED, QUALIFYING_CHILD_RELATIONSHIPS, normalize_relationship
from calculator.decimal_math import Cents, apply_rate, max_zero
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import Dependent, FilingStatus

logger = logging.getLogger(__name__)

EIC_CHILD_AGE_LIMIT = 19
MAX_COUNTED_CHILDREN = 3
CHILDLESS_MIN_AGE = 25
CHILDLESS_MAX_AGE = 64


@dataclass(frozen=True)
class EarnedIncomeCreditResult:
    qualifying_children: int
    earned_income: Cents
    agi: Cents
    investment_income: Cents
    phase_in_credit: Cents
    phaseout_income: Cents
    phaseout_reduction: Cents
    credit: Cents
    disqualified_reason: Optional[str] = None


def count_eic_children(dependents: Sequence[Dependent], tax_year: int) -> int:
    count = 0
    for dependent in dependents:
        if normalize_relationship(dependent.relationship) not in QUALIFYING_CHILD_RELATIONSHIPS:
            continue
        if dependent.months_lived < MIN_MONTHS_LIVED or not dependent.has_valid_ssn:
            continue
        age = dependent.age_at_end_of(tax_year)
        if dependent.is_permanently_disabled or (age is not None and age < EIC_CHILD_AGE_LIMIT):
            count += 1
    return min(count, MAX_COUNTED_CHILDREN)


def compute_earned_income_credit(
    filing_status: FilingStatus,
    earned_income: Cents,
    agi: Cents,
    investment_income: Cents,
    dependents: Sequence[Dependent],
    taxpayer_age: Optional[int],
    can_be_claimed_as_dependent: bool,
    config: TaxYearConfig,
) -> Optional[EarnedIncomeCreditResult]:
    """Returns None when there is no earned income."""
    if earned_income <= 0:
        return None

    children = count_eic_children(dependents, config.tax_year)

    reason = None
    if filing_status == FilingStatus.MARRIED_SEPARATE:
        reason = "Married filing separately"
    elif investment_income > config.eitc_investment_income_limit:
        reason = "Investment income exceeds the limit"
    elif can_be_claimed_as_dependent:
        reason = "Taxpayer can be claimed as a dependent"
    elif children == 0 and taxpayer_age is not None and not (CHILDLESS_MIN_AGE <= taxpayer_age <= CHILDLESS_MAX_AGE):
        reason = "Age requirement for filers without a qualifying child not met"

    phase_in = min(
        apply_rate(earned_income, config.eitc_phase_in_rate[children]),
        config.eitc_max_credit[children],
    )
    start_table = (
        config.eitc_phaseout_start_joint
        if filing_status == FilingStatus.MARRIED_JOINT
        else config.eitc_phaseout_start
    )
    phaseout_income = max(earned_income, agi)
    reduction = apply_rate(max_zero(phaseout_income - start_table[children]), config.eitc_phaseout_rate[children])
    credit = 0 if reason else min(phase_in, max_zero(config.eitc_max_credit[children] - reduction))

    logger.debug("EIC: children=%s earned=%s agi=%s credit=%s reason=%s", children, earned_income, agi, credit, reason)
    return EarnedIncomeCreditResult(
        qualifying_children=children,
        earned_income=earned_income,
        agi=agi,
        investment_income=investment_income,
        phase_in_credit=phase_in,
        phaseout_income=phaseout_income,
        phaseout_reduction=reduction,
        credit=credit,
        disqualified_reason=reason,
    )
