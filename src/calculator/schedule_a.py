"""
Schedule A - Itemized Deductions.

SALT: the base cap ($40,000, $20,000 MFS) is reduced by 30% of MAGI over
$500,000 ($250,000 MFS) but never below $10,000 ($5,000 MFS).
Mortgage interest is prorated when acquisition debt exceeds the limit.
Business-use portions of mortgage interest and real estate taxes claimed
on Form 8829 are removed first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from calculator.decimal_math import Cents, apply_rate, max_zero, ratio, round_cents
from calculator.tax_year_config import TaxYearConfig
from models.deductions import ItemizedDeductions
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleAResult:
    medical_expenses: Cents             # line 1
    medical_floor: Cents                # line 3
    medical_deduction: Cents            # line 4
    salt_paid: Cents                    # line 5d
    salt_cap: Cents
    salt_deduction: Cents               # line 5e
    other_taxes: Cents                  # line 6
    total_taxes: Cents                  # line 7
    mortgage_interest: Cents            # lines 8a-8e
    investment_interest: Cents          # line 9
    total_interest: Cents               # line 10
    charitable_deduction: Cents         # line 14
    casualty_losses: Cents              # line 15
    other_itemized: Cents               # line 16
    total_itemized: Cents               # line 17


def salt_cap(agi: Cents, filing_status: FilingStatus, config: TaxYearConfig) -> Cents:
    status = filing_status.value
    reduction = apply_rate(max_zero(agi - config.salt_phaseout_threshold[status]), config.salt_phaseout_rate)
    return max(config.salt_base_cap[status] - reduction, config.salt_floor[status])


def compute_schedule_a(
    itemized: ItemizedDeductions,
    agi: Cents,
    filing_status: FilingStatus,
    net_investment_income: Cents,
    config: TaxYearConfig,
    home_office_mortgage_interest: Cents = 0,
    home_office_real_estate_taxes: Cents = 0,
) -> ScheduleAResult:
    status = filing_status.value

    medical_floor = apply_rate(max_zero(agi), config.medical_floor_rate)
    medical = max_zero(itemized.medical_expenses - medical_floor)

    salt_paid = (
        max(itemized.state_local_income_tax, itemized.state_local_sales_tax)
        + max_zero(itemized.real_estate_taxes - home_office_real_estate_taxes)
        + itemized.personal_property_taxes
    )
    cap = salt_cap(agi, filing_status, config)
    salt = min(salt_paid, cap)
    total_taxes = salt

    interest = max_zero(itemized.mortgage_interest - home_office_mortgage_interest)
    limit = (config.mortgage_limit_pre_tcja if itemized.mortgage_is_pre_tcja else config.mortgage_limit)[status]
    if itemized.mortgage_principal > limit:
        interest = round_cents(interest * ratio(limit, itemized.mortgage_principal))
    mortgage = interest + itemized.mortgage_points
    investment = min(itemized.investment_interest, max_zero(net_investment_income))

    agi_base = max_zero(agi)
    cash = min(itemized.charitable_cash, apply_rate(agi_base, config.charitable_cash_rate))
    noncash = min(itemized.charitable_noncash, apply_rate(agi_base, config.charitable_noncash_rate))
    charitable = min(cash + noncash, apply_rate(agi_base, config.charitable_cash_rate))

    total = (
        medical
        + total_taxes
        + mortgage
        + investment
        + charitable
        + itemized.casualty_losses
        + itemized.other_itemized
    )
    logger.debug("Schedule A: salt=%s/%s mortgage=%s charitable=%s total=%s", salt, cap, mortgage, charitable, total)
    return ScheduleAResult(
        medical_expenses=itemized.medical_expenses,
        medical_floor=medical_floor,
        medical_deduction=medical,
        salt_paid=salt_paid,
        salt_cap=cap,
        salt_deduction=salt,
        other_taxes=0,
        total_taxes=total_taxes,
        mortgage_interest=mortgage,
        investment_interest=investment,
        total_interest=mortgage + investment,
        charitable_deduction=charitable,
        casualty_losses=itemized.casualty_losses,
        other_itemized=itemized.other_itemized,
        total_itemized=total,
    )
