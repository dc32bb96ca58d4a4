"""
Taxable Social Security benefits (Form 1040 lines 6a/6b).

Social Security Benefits Worksheet from the Form 1040 instructions. The
adjustments on worksheet line 6 exclude the IRA and student loan interest
deductions, both of which are computed after line 6b.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from calculator.decimal_math import Cents, apply_rate, max_zero
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

HALF = Decimal("0.5")
EIGHTY_FIVE_PERCENT = Decimal("0.85")


@dataclass(frozen=True)
class SocialSecurityResult:
    net_benefits: Cents                 # line 6a
    provisional_income: Cents           # worksheet line 8
    base_amount: Cents                  # worksheet line 9
    taxable_benefits: Cents             # line 6b

    @property
    def nontaxable_benefits(self) -> Cents:
        return max_zero(self.net_benefits - self.taxable_benefits)


def compute_taxable_social_security(
    net_benefits: Cents,
    other_income: Cents,
    tax_exempt_interest: Cents,
    adjustments: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Optional[SocialSecurityResult]:
    """
    Args:
        net_benefits: Total of SSA-1099 box 5
        other_income: Form 1040 lines 1z, 2b, 3b, 4b, 5b, 7 and 8
        tax_exempt_interest: Form 1040 line 2a
        adjustments: Schedule 1 adjustments other than IRA and student loan interest

    Returns None without benefits.
    """
    if net_benefits == 0:
        return None
    status = filing_status.value
    base = config.ss_benefits_base_amount[status]
    adjusted_base = config.ss_benefits_adjusted_base_amount[status]

    if net_benefits < 0:
        return SocialSecurityResult(net_benefits, 0, base, 0)

    half_benefits = apply_rate(net_benefits, HALF)                         # line 2
    combined = half_benefits + other_income + tax_exempt_interest          # line 5
    if adjustments >= combined:                                            # line 7
        return SocialSecurityResult(net_benefits, 0, base, 0)
    provisional = combined - adjustments                                   # line 8
    if base >= provisional and base > 0:                                   # line 9/10
        return SocialSecurityResult(net_benefits, provisional, base, 0)

    line10 = provisional - base
    line11 = adjusted_base - base
    line12 = max_zero(line10 - line11)
    line13 = min(line10, line11)
    line14 = apply_rate(line13, HALF)
    line15 = min(half_benefits, line14)
    line16 = apply_rate(line12, EIGHTY_FIVE_PERCENT)
    line17 = line15 + line16
    line18 = apply_rate(net_benefits, EIGHTY_FIVE_PERCENT)
    taxable = min(line17, line18)

    logger.debug("Social Security: benefits=%s provisional=%s taxable=%s", net_benefits, provisional, taxable)
    return SocialSecurityResult(net_benefits, provisional, base, taxable)
