"""
Education credits (Form 8863).

American opportunity credit (AOTC): per student, 100% of the first $2,000
of qualified expenses plus 25% of the next $2,000. Forty percent of the
credit after the phase-out is refundable (Form 1040 line 29); the rest is
nonrefundable (Schedule 3 line 3).

Lifetime learning credit (LLC): 20% of up to $10,000 of expenses per
return, nonrefundable.

Both credits share one MAGI phase-out. Married filing separately and
filers someone else can claim as a dependent get neither.

Reference: IRC Section 25A, Instructions for Form 8863.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from calculator.decimal_math import ONE, ZERO, Cents, apply_rate, ratio, round_cents, sum_cents
from calculator.tax_year_config import TaxYearConfig
from models.credits import EducationCreditType, EducationExpenses, Student
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentCreditResult:
    name: str
    qualified_expenses: Cents
    tentative_credit: Cents     # Part III line 30
    credit: Cents               # after the phase-out
    refundable: Cents
    nonrefundable: Cents


@dataclass(frozen=True)
class EducationCreditResult:
    students: Tuple[StudentCreditResult, ...]
    llc_qualified_expenses: Cents
    llc_tentative_credit: Cents
    llc_credit: Cents
    phase_out_fraction: Decimal     # share of each credit removed
    eligible: bool = True
    ineligible_reason: Optional[str] = None

    @property
    def aotc_credit(self) -> Cents:
        return sum_cents(s.credit for s in self.students)

    @property
    def refundable(self) -> Cents:
        """Form 8863 line 8, to Form 1040 line 29."""
        return sum_cents(s.refundable for s in self.students)

    @property
    def nonrefundable(self) -> Cents:
        """Form 8863 line 19, to Schedule 3 line 3, before the tax limit."""
        return sum_cents(s.nonrefundable for s in self.students) + self.llc_credit


def aotc_eligible(student: Student, config: TaxYearConfig) -> bool:
    """Half-time enrollment, not past the fourth year, and under the claim limit."""
    return (
        student.at_least_half_time
        and not student.completed_four_years
        and student.prior_aotc_years < config.aotc_max_years
    )


def tentative_aotc(expenses: Cents, config: TaxYearConfig) -> Cents:
    first = min(expenses, config.aotc_first_tier)
    second = min(max(expenses - config.aotc_first_tier, 0), config.aotc_second_tier)
    return first + apply_rate(second, config.aotc_second_tier_rate)


def phase_out_fraction(magi: Cents, bounds: Tuple[Cents, Cents]) -> Decimal:
    start, end = bounds
    if magi <= start:
        return ZERO
    if magi >= end:
        return ONE
    return ratio(magi - start, end - start)


def compute_education_credit(
    expenses: EducationExpenses,
    filing_status: FilingStatus,
    magi: Cents,
    can_be_claimed_as_dependent: bool,
    config: TaxYearConfig,
) -> Optional[EducationCreditResult]:
    """
    Args:
        expenses: Students and their qualified expenses
        filing_status: Return filing status
        magi: Modified AGI (Form 1040 line 11)
        can_be_claimed_as_dependent: Filer is someone else's dependent
        config: Federal constants

    Returns:
        EducationCreditResult, or None when no student is listed
    """
    if not expenses.students:
        return None

    bounds = config.education_credit_phaseout.get(filing_status.value)
    reason = None
    if bounds is None:
        reason = "Married filing separately cannot claim education credits"
    elif can_be_claimed_as_dependent:
        reason = "A filer claimed as a dependent cannot claim education credits"
    if reason is not None:
        return EducationCreditResult((), 0, 0, 0, ONE, eligible=False, ineligible_reason=reason)

    fraction = phase_out_fraction(magi, bounds)
    kept = ONE - fraction

    students = []
    for student in expenses.students:
        if student.credit_type != EducationCreditType.AOTC:
            continue
        if not aotc_eligible(student, config):
            logger.debug("AOTC not allowed for student %r", student.name)
            continue
        tentative = tentative_aotc(student.qualified_expenses, config)
        credit = round_cents(tentative * kept)
        refundable = apply_rate(credit, config.aotc_refundable_rate)
        students.append(StudentCreditResult(
            name=student.name,
            qualified_expenses=student.qualified_expenses,
            tentative_credit=tentative,
            credit=credit,
            refundable=refundable,
            nonrefundable=credit - refundable,
        ))

    llc_expenses = min(
        sum_cents(s.qualified_expenses for s in expenses.students if s.credit_type == EducationCreditType.LLC),
        config.llc_expense_limit,
    )
    llc_tentative = apply_rate(llc_expenses, config.llc_rate)
    llc_credit = round_cents(llc_tentative * kept)

    result = EducationCreditResult(
        students=tuple(students),
        llc_qualified_expenses=llc_expenses,
        llc_tentative_credit=llc_tentative,
        llc_credit=llc_credit,
        phase_out_fraction=fraction,
    )
    logger.debug(
        "Education credits: magi=%s fraction=%s aotc=%s llc=%s refundable=%s",
        magi, fraction, result.aotc_credit, llc_credit, result.refundable,
    )
    return result
