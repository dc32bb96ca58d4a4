"""
Premium Tax Credit reconciliation (Form 8962).

Marketplace statements (1095-A) are merged month by month. A month that
appears on several statements sums the enrollment premium and advance
payments but takes the maximum benchmark (SLCSP) premium, since the
benchmark describes the market, not the policy.

Household income is expressed as a percentage of the federal poverty line;
the applicable percentage comes from the graduated bands in the tax-year
config. Excess advance payments are repaid, capped by income band below
400% of the poverty line and uncapped above it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from calculator.decimal_math import (
    HUNDRED,
    ZERO,
    Cents,
    divide,
    interpolate_band,
    max_zero,
    round_cents,
)
from calculator.tax_year_config import TaxYearConfig
from models.documents import Form1095A
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

MINIMUM_FPL_PERCENTAGE = Decimal("100")
UNCAPPED_REPAYMENT_PERCENTAGE = Decimal("400")


@dataclass(frozen=True)
class MarketplaceMonth:
    month: int
    enrollment_premium: Cents
    slcsp_premium: Cents
    advance_ptc: Cents


@dataclass(frozen=True)
class PTCMonthResult:
    month: int
    enrollment_premium: Cents
    slcsp_premium: Cents
    monthly_contribution: Cents
    premium_tax_credit: Cents
    advance_ptc: Cents


@dataclass(frozen=True)
class PremiumTaxCreditResult:
    household_size: int
    household_income: Cents                   # line 3
    federal_poverty_line: Cents               # line 4
    fpl_percentage: Decimal                   # line 5
    applicable_percentage: Decimal            # line 7
    annual_contribution: Cents                # line 8a
    monthly_contribution: Cents               # line 8b
    months: Tuple[PTCMonthResult, ...]
    annual_credit: Cents                      # line 24
    total_advance_ptc: Cents                  # line 25
    net_premium_tax_credit: Cents             # line 26
    excess_advance_ptc: Cents                 # line 27
    repayment_limit: Optional[Cents]          # line 28, None when uncapped
    excess_advance_repayment: Cents           # line 29
    eligible: bool = True
    ineligible_reason: Optional[str] = None


def merge_marketplace_rows(statements: Sequence[Form1095A]) -> List[MarketplaceMonth]:
    """Combine 1095-A rows by month, in month order."""
    merged: Dict[int, Tuple[Cents, Cents, Cents]] = {}
    for statement in statements:
        for row in statement.rows:
            enrollment, slcsp, advance = merged.get(row.month, (0, 0, 0))
            merged[row.month] = (
                enrollment + row.enrollment_premium,
                max(slcsp, row.slcsp_premium),
                advance + row.advance_ptc,
            )
    return [
        MarketplaceMonth(month, enrollment, slcsp, advance)
        for month, (enrollment, slcsp, advance) in sorted(merged.items())
    ]


def federal_poverty_line(household_size: int, config: TaxYearConfig) -> Cents:
    size = max(1, household_size)
    return config.fpl_base + (size - 1) * config.fpl_per_additional_person


def repayment_limit(
    fpl_percentage: Decimal,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Optional[Cents]:
    """Cap on excess APTC repayment (Table 5), or None at 400% FPL and above."""
    single_cap = filing_status in (FilingStatus.SINGLE, FilingStatus.MARRIED_SEPARATE)
    for upper, single_limit, other_limit in config.ptc_repayment_caps:
        if fpl_percentage < upper:
            return single_limit if single_cap else other_limit
    return None


def compute_premium_tax_credit(
    statements: Sequence[Form1095A],
    household_size: int,
    household_income: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Optional[PremiumTaxCreditResult]:
    """
    Reconcile advance payments against the allowed credit.

    Args:
        statements: Every 1095-A on the return
        household_size: Taxpayer, spouse (joint) and dependents
        household_income: AGI + tax-exempt interest + non-taxable Social Security
        filing_status: Return filing status
        config: Federal constants

    Returns:
        PremiumTaxCreditResult, or None when the return has no 1095-A
    """
    if not statements:
        return None

    rows = merge_marketplace_rows(statements)
    total_advance = sum(row.advance_ptc for row in rows)
    fpl = federal_poverty_line(household_size, config)
    fpl_pct = divide(household_income * HUNDRED, fpl, default=ZERO)
    applicable = interpolate_band(fpl_pct, config.ptc_applicable_bands)
    annual_contribution = round_cents(household_income * applicable) if household_income > 0 else 0
    monthly_contribution = round_cents(Decimal(annual_contribution) / 12)

    ineligible_reason = None
    if filing_status == FilingStatus.MARRIED_SEPARATE:
        ineligible_reason = "Married filing separately filers cannot claim the premium tax credit"
    elif fpl_pct < MINIMUM_FPL_PERCENTAGE and total_advance == 0:
        ineligible_reason = "Household income is below 100% of the federal poverty line"

    months: List[PTCMonthResult] = []
    for row in rows:
        if ineligible_reason:
            credit = 0
        else:
            credit = max_zero(min(row.enrollment_premium, row.slcsp_premium - monthly_contribution))
        months.append(PTCMonthResult(
            month=row.month,
            enrollment_premium=row.enrollment_premium,
            slcsp_premium=row.slcsp_premium,
            monthly_contribution=monthly_contribution,
            premium_tax_credit=credit,
            advance_ptc=row.advance_ptc,
        ))

    annual_credit = sum(m.premium_tax_credit for m in months)
    net_credit = max_zero(annual_credit - total_advance)
    excess = max_zero(total_advance - annual_credit)
    limit = repayment_limit(fpl_pct, filing_status, config)
    repayment = excess if limit is None else min(excess, limit)

    logger.debug(
        "PTC: size=%s income=%s fpl%%=%s rate=%s credit=%s aptc=%s repayment=%s",
        household_size, household_income, fpl_pct, applicable, annual_credit, total_advance, repayment,
    )
    return PremiumTaxCreditResult(
        household_size=household_size,
        household_income=household_income,
        federal_poverty_line=fpl,
        fpl_percentage=fpl_pct,
        applicable_percentage=applicable,
        annual_contribution=annual_contribution,
        monthly_contribution=monthly_contribution,
        months=tuple(months),
        annual_credit=annual_credit,
        total_advance_ptc=total_advance,
        net_premium_tax_credit=net_credit,
        excess_advance_ptc=excess,
        repayment_limit=limit,
        excess_advance_repayment=repayment,
        eligible=ineligible_reason is None,
        ineligible_reason=ineligible_reason,
    )
