"""
Business use of home (Form 8829 / simplified method worksheet).

Simplified method: $5 per square foot, at most 300 square feet. Any amount
above the business's profit is lost; there is no carryover.

Regular method: direct expenses plus the business percentage of indirect
expenses, plus straight-line depreciation of the home (39-year
nonresidential real property, mid-month convention in the year placed in
service). The total is limited to the business's tentative profit; the
excess is reported as a carryforward for information only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from calculator.decimal_math import HUNDRED, ZERO, Cents, clamp, max_zero, ratio, round_cents, to_decimal
from models.form_8829 import HomeOffice, HomeOfficeMethod

logger = logging.getLogger(__name__)

SIMPLIFIED_RATE_PER_SQFT = 500  # cents
SIMPLIFIED_MAX_SQFT = 300
RECOVERY_PERIOD_YEARS = 39


@dataclass(frozen=True)
class HomeOfficeResult:
    business_id: str
    method: HomeOfficeMethod
    business_percentage: Decimal
    direct_expenses: Cents
    indirect_expenses: Cents             # business share
    mortgage_interest_business: Cents    # removed from Schedule A
    real_estate_taxes_business: Cents    # removed from Schedule A
    depreciation: Cents
    tentative_deduction: Cents
    allowable_deduction: Cents           # Schedule C line 30
    carryforward: Cents


def business_percentage(office: HomeOffice) -> Decimal:
    """Business-use percentage, 0-100."""
    if office.business_percentage is not None:
        return clamp(to_decimal(office.business_percentage), ZERO, HUNDRED)
    if office.home_square_feet <= 0:
        return ZERO
    return clamp(ratio(office.office_square_feet, office.home_square_feet) * HUNDRED, ZERO, HUNDRED)


def depreciation_months(office: HomeOffice, tax_year: int) -> Decimal:
    """Months of depreciation in the tax year under the mid-month convention."""
    placed = office.date_placed_in_service
    if placed is None or placed.year < tax_year:
        return Decimal(12)
    if placed.year > tax_year:
        return ZERO
    return Decimal(13) - placed.month - Decimal("0.5")


def compute_home_office(office: HomeOffice, tentative_profit: Cents, tax_year: int) -> HomeOfficeResult:
    """Compute the home office deduction for one business."""
    pct = business_percentage(office)
    limit = max_zero(tentative_profit)

    if office.method == HomeOfficeMethod.SIMPLIFIED:
        sqft = min(office.office_square_feet, SIMPLIFIED_MAX_SQFT)
        tentative = sqft * SIMPLIFIED_RATE_PER_SQFT
        allowed = min(tentative, limit)
        return HomeOfficeResult(
            business_id=office.business_id,
            method=office.method,
            business_percentage=pct,
            direct_expenses=0,
            indirect_expenses=0,
            mortgage_interest_business=0,
            real_estate_taxes_business=0,
            depreciation=0,
            tentative_deduction=tentative,
            allowable_deduction=allowed,
            carryforward=0,
        )

    share = pct / HUNDRED
    mortgage_business = round_cents(office.mortgage_interest * share)
    taxes_business = round_cents(office.real_estate_taxes * share)
    other_indirect = (
        office.insurance
        + office.rent
        + office.repairs_and_maintenance
        + office.utilities
        + office.other_expenses
    )
    indirect = mortgage_business + taxes_business + round_cents(other_indirect * share)

    depreciation = 0
    if office.is_homeowner and office.home_basis > 0:
        annual = Decimal(office.home_basis) / RECOVERY_PERIOD_YEARS * share
        depreciation = round_cents(annual * depreciation_months(office, tax_year) / 12)

    tentative = office.direct_expenses + indirect + depreciation
    allowed = min(tentative, limit)
    carryforward = tentative - allowed

    logger.debug(
        "Home office %s: pct=%s tentative=%s allowed=%s carryforward=%s",
        office.business_id, pct, tentative, allowed, carryforward,
    )
    return HomeOfficeResult(
        business_id=office.business_id,
        method=office.method,
        business_percentage=pct,
        direct_expenses=office.direct_expenses,
        indirect_expenses=indirect,
        mortgage_interest_business=mortgage_business,
        real_estate_taxes_business=taxes_business,
        depreciation=depreciation,
        tentative_deduction=tentative,
        allowable_deduction=allowed,
        carryforward=carryforward,
    )
