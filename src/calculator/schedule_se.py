"""
Schedule SE - Self-Employment Tax.

Computed per person. Net earnings are 92.35% of net profit; the social
security portion applies only to earnings up to the wage base remaining
after W-2 social security wages, the Medicare portion to all of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from calculator.decimal_math import Cents, apply_rate, max_zero, round_cents
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import Owner

logger = logging.getLogger(__name__)

DEDUCTIBLE_PORTION = Decimal("0.5")


@dataclass(frozen=True)
class ScheduleSEResult:
    owner: Owner
    net_profit: Cents                   # line 2
    net_earnings: Cents                 # line 6
    social_security_wages: Cents        # line 8d
    social_security_base: Cents         # line 10 base
    social_security_tax: Cents          # line 10
    medicare_tax: Cents                 # line 11
    self_employment_tax: Cents          # line 12
    deduction: Cents                    # line 13, to Schedule 1 line 15


def compute_schedule_se(
    net_profit: Cents,
    w2_social_security_wages: Cents,
    config: TaxYearConfig,
    owner: Owner = Owner.TAXPAYER,
) -> Optional[ScheduleSEResult]:
    """Returns None when net earnings are under $400 (no SE tax due)."""
    net_earnings = round_cents(max_zero(net_profit) * config.se_net_earnings_factor)
    if net_earnings < config.se_minimum_earnings:
        return None

    ss_base = min(net_earnings, max_zero(config.ss_wage_base - w2_social_security_wages))
    ss_tax = ss_base * config.se_ss_rate
    medicare_tax = net_earnings * config.se_medicare_rate
    se_tax = round_cents(ss_tax + medicare_tax)
    deduction = apply_rate(se_tax, DEDUCTIBLE_PORTION)

    logger.debug("Schedule SE %s: earnings=%s se_tax=%s", owner.value, net_earnings, se_tax)
    return ScheduleSEResult(
        owner=owner,
        net_profit=net_profit,
        net_earnings=net_earnings,
        social_security_wages=w2_social_security_wages,
        social_security_base=ss_base,
        social_security_tax=round_cents(ss_tax),
        medicare_tax=round_cents(medicare_tax),
        self_employment_tax=se_tax,
        deduction=deduction,
    )
