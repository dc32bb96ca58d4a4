"""Retirement Savings Contributions Credit (Form 8880)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from calculator.decimal_math import ZERO, Cents, apply_rate
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

MINIMUM_AGE = 18
CREDIT_RATES = (Decimal("0.50"), Decimal("0.20"), Decimal("0.10"))


@dataclass(frozen=True)
class SaversCreditResult:
    eligible_contributions: Cents       # line 6, both people
    agi: Cents
    credit_rate: Decimal                # line 9
    credit: Cents                       # line 10, before the tax liability limit


def savers_credit_rate(agi: Cents, filing_status: FilingStatus, config: TaxYearConfig) -> Decimal:
    limits = config.savers_credit_agi_limits.get(filing_status.value)
    if not limits:
        return ZERO
    for limit, rate in zip(limits, CREDIT_RATES):
        if agi <= limit:
            return rate
    return ZERO


def compute_savers_credit(
    contributions: Sequence[Cents],
    ages: Sequence[Optional[int]],
    agi: Cents,
    filing_status: FilingStatus,
    can_be_claimed_as_dependent: bool,
    config: TaxYearConfig,
) -> Optional[SaversCreditResult]:
    """
    Args:
        contributions: Per-person IRA contributions plus elective deferrals
        ages: Matching ages (None when unknown)

    Returns None when nothing was contributed.
    """
    if not any(c > 0 for c in contributions):
        return None

    eligible = 0
    if not can_be_claimed_as_dependent:
        for amount, age in zip(contributions, ages):
            if age is not None and age < MINIMUM_AGE:
                continue
            eligible += min(amount, config.savers_credit_max_contribution)

    rate = savers_credit_rate(agi, filing_status, config)
    credit = apply_rate(eligible, rate)
    logger.debug("Saver's credit: eligible=%s rate=%s credit=%s", eligible, rate, credit)
    return SaversCreditResult(eligible_contributions=eligible, agi=agi, credit_rate=rate, credit=credit)
