"""
Child Tax Credit, Credit for Other Dependents and Additional Child Tax
Credit (Schedule 8812).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from calculator.decimal_math import Cents, apply_rate, max_zero, phase_out_reduction
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import Dependent, FilingStatus

logger = logging.getLogger(__name__)

CTC_AGE_LIMIT = 17
MIN_MONTHS_LIVED = 7

QUALIFYING_CHILD_RELATIONSHIPS = frozenset({
    "son",
    "daughter",
    "child",
    "stepchild",
    "foster_child",
    "sibling",
    "grandchild",
    "niece",
    "nephew",
})

_RELATIONSHIP_ALIASES = {
    "stepson": "stepchild",
    "stepdaughter": "stepchild",
    "foster": "foster_child",
    "brother": "sibling",
    "sister": "sibling",
    "half_brother": "sibling",
    "half_sister": "sibling",
    "stepbrother": "sibling",
    "stepsister": "sibling",
    "grandson": "grandchild",
    "granddaughter": "grandchild",
}


def normalize_relationship(relationship: str) -> str:
    key = relationship.strip().lower().replace("-", "_").replace(" ", "_")
    return _RELATIONSHIP_ALIASES.get(key, key)


def is_qualifying_child(dependent: Dependent, tax_year: int) -> bool:
    """Qualifying child for the CTC: relationship, residency, SSN and age under 17."""
    if normalize_relationship(dependent.relationship) not in QUALIFYING_CHILD_RELATIONSHIPS:
        return False
    if dependent.months_lived < MIN_MONTHS_LIVED:
        return False
    if not dependent.has_valid_ssn:
        return False
    age = dependent.age_at_end_of(tax_year)
    return age is not None and age < CTC_AGE_LIMIT


@dataclass(frozen=True)
class ChildTaxCreditResult:
    qualifying_children: int
    other_dependents: int
    initial_credit: Cents               # 8812 line 8
    phaseout_reduction: Cents           # line 11
    credit_after_phaseout: Cents        # line 12
    tax_liability_limit: Cents          # line 13
    nonrefundable_credit: Cents         # line 14, Form 1040 line 19
    unused_credit: Cents
    earned_income: Cents
    earned_income_amount: Cents         # line 20 (15% of earned income over $2,500)
    additional_child_tax_credit: Cents  # line 27, Form 1040 line 28


def compute_child_tax_credit(
    dependents: Sequence[Dependent],
    filing_status: FilingStatus,
    magi: Cents,
    tax_liability: Cents,
    earned_income: Cents,
    config: TaxYearConfig,
) -> Optional[ChildTaxCreditResult]:
    """Returns None when there are no dependents."""
    if not dependents:
        return None

    children = sum(1 for d in dependents if is_qualifying_child(d, config.tax_year))
    others = len(dependents) - children
    initial = children * config.ctc_per_qualifying_child + others * config.ctc_per_other_dependent

    threshold = config.ctc_phaseout_threshold.get(filing_status.value, 0)
    excess = max_zero(magi - threshold)
    steps = phase_out_reduction(excess, config.ctc_phaseout_step) // config.ctc_phaseout_step
    reduction = min(initial, steps * config.ctc_phaseout_per_step)
    after_phaseout = initial - reduction

    limit = max_zero(tax_liability)
    nonrefundable = min(after_phaseout, limit)
    unused = after_phaseout - nonrefundable

    earned_amount = apply_rate(max_zero(earned_income - config.ctc_earned_income_threshold), config.ctc_refundable_rate)
    actc = 0
    if children > 0 and unused > 0:
        actc = min(unused, children * config.ctc_refundable_max_per_child, earned_amount)

    logger.debug(
        "CTC: children=%s others=%s initial=%s reduction=%s nonrefundable=%s actc=%s",
        children, others, initial, reduction, nonrefundable, actc,
    )
    return ChildTaxCreditResult(
        qualifying_children=children,
        other_dependents=others,
        initial_credit=initial,
        phaseout_reduction=reduction,
        credit_after_phaseout=after_phaseout,
        tax_liability_limit=limit,
        nonrefundable_credit=nonrefundable,
        unused_credit=unused,
        earned_income=earned_income,
        earned_income_amount=earned_amount,
        additional_child_tax_credit=actc,
    )
