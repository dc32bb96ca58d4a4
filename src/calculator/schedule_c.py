"""
Schedule C - Profit or Loss From Business.

Net profit flows to Schedule 1 line 3, Schedule SE and the QBI deduction.
The home office deduction (line 30) is limited to the tentative profit on
line 29, so it is computed here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from calculator.decimal_math import Cents, apply_rate
from calculator.home_office import HomeOfficeResult, compute_home_office
from models.form_8829 import HomeOffice
from models.schedule_c import ScheduleCBusiness
from models.taxpayer import Owner

logger = logging.getLogger(__name__)

MEALS_DEDUCTIBLE_RATE = Decimal("0.50")


@dataclass(frozen=True)
class ScheduleCResult:
    business_id: str
    business_name: str
    owner: Owner
    gross_income: Cents                 # line 7
    total_expenses: Cents               # line 28
    tentative_profit: Cents             # line 29
    home_office: Optional[HomeOfficeResult]
    home_office_deduction: Cents        # line 30
    net_profit: Cents                   # line 31 (negative for a loss)
    w2_wages_paid: Cents
    ubia: Cents
    is_sstb: bool


def total_expenses(business: ScheduleCBusiness) -> Cents:
    """Line 28. Meals are 50% deductible."""
    return (
        business.advertising
        + business.car_and_truck
        + business.contract_labor
        + business.depreciation
        + business.insurance
        + business.legal_and_professional
        + business.office_expense
        + business.rent_or_lease
        + business.supplies
        + business.taxes_and_licenses
        + business.travel
        + apply_rate(business.meals, MEALS_DEDUCTIBLE_RATE)
        + business.utilities
        + business.wages
        + business.other_expenses
    )


def compute_schedule_c(
    business: ScheduleCBusiness,
    home_office: Optional[HomeOffice],
    tax_year: int,
) -> ScheduleCResult:
    gross_profit = business.gross_receipts - business.returns_and_allowances - business.cost_of_goods_sold
    gross_income = gross_profit + business.other_income
    expenses = total_expenses(business)
    tentative = gross_income - expenses

    office_result = None
    office_deduction = 0
    if home_office is not None:
        office_result = compute_home_office(home_office, tentative, tax_year)
        office_deduction = office_result.allowable_deduction

    net = tentative - office_deduction
    logger.debug("Schedule C %s: gross=%s expenses=%s net=%s", business.id, gross_income, expenses, net)
    return ScheduleCResult(
        business_id=business.id,
        business_name=business.business_name,
        owner=business.owner,
        gross_income=gross_income,
        total_expenses=expenses,
        tentative_profit=tentative,
        home_office=office_result,
        home_office_deduction=office_deduction,
        net_profit=net,
        w2_wages_paid=business.w2_wages_paid,
        ubia=business.ubia,
        is_sstb=business.is_sstb,
    )
