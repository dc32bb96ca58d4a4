"""
Additional standard deduction for age and blindness.

For 2025 through 2028 the age 65+ amount is the enhanced senior figure
($4,000 single or head of household, $3,200 otherwise, per qualifying
person). Blindness keeps the regular per-condition amount. Both are added
on top of the base standard deduction, after any dependent-filer limit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from calculator.decimal_math import Cents
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import FilingStatus, Person

logger = logging.getLogger(__name__)

SENIOR_AGE = 65


@dataclass(frozen=True)
class AdditionalDeductionResult:
    senior_count: int
    blind_count: int
    senior_per_person: Cents
    blind_per_person: Cents

    @property
    def senior_amount(self) -> Cents:
        return self.senior_count * self.senior_per_person

    @property
    def blind_amount(self) -> Cents:
        return self.blind_count * self.blind_per_person

    @property
    def total(self) -> Cents:
        return self.senior_amount + self.blind_amount


def compute_additional_standard_deduction(
    people: Sequence[Optional[Person]],
    filing_status: FilingStatus,
    tax_year: int,
    config: TaxYearConfig,
) -> AdditionalDeductionResult:
    """
    Count the age and blindness boxes checked on Form 1040 page 1.

    Args:
        people: Taxpayer, plus the spouse on a joint return
        filing_status: Return filing status (selects the per-person amounts)
        tax_year: Year whose last day fixes the age
        config: Federal constants
    """
    seniors = 0
    blind = 0
    for person in people:
        if person is None:
            continue
        age = person.age_at_end_of(tax_year)
        if age is not None and age >= SENIOR_AGE:
            seniors += 1
        if person.is_blind:
            blind += 1

    status = filing_status.value
    result = AdditionalDeductionResult(
        senior_count=seniors,
        blind_count=blind,
        senior_per_person=config.senior_additional_standard_deduction[status],
        blind_per_person=config.additional_standard_deduction[status],
    )
    if result.total:
        logger.debug("Additional standard deduction: seniors=%s blind=%s total=%s", seniors, blind, result.total)
    return result
