"""Student loan interest deduction (Schedule 1, line 21)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from calculator.decimal_math import Cents, linear_phase_out
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentLoanInterestResult:
    interest_paid: Cents
    max_deductible: Cents
    magi: Cents
    deduction: Cents
    eligible: bool = True


def compute_student_loan_deduction(
    interest_paid: Cents,
    filing_status: FilingStatus,
    magi: Cents,
    config: TaxYearConfig,
) -> Optional[StudentLoanInterestResult]:
    """
    Deduction after the MAGI phase-out.

    ``magi`` is total income less the IRA and HSA deductions, supplied by the
    caller because AGI itself includes this deduction.
    """
    if interest_paid <= 0:
        return None

    capped = min(interest_paid, config.student_loan_interest_max)
    bounds = config.student_loan_phaseout.get(filing_status.value)
    if bounds is None:
        # Married filing separately cannot take the deduction
        return StudentLoanInterestResult(interest_paid, capped, magi, 0, eligible=False)

    start, end = bounds
    deduction = linear_phase_out(capped, magi, start, end)
    logger.debug("Student loan interest: paid=%s magi=%s deduction=%s", interest_paid, magi, deduction)
    return StudentLoanInterestResult(interest_paid, capped, magi, deduction)
