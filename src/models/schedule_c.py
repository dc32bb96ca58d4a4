"""
Schedule C (Form 1040) - Profit or Loss From Business

One sole proprietorship. Expense fields mirror Part II of the form; meals
are entered at full cost and limited to 50% by the calculator.
"""

from typing import Optional

from pydantic import BaseModel, Field

from models.taxpayer import Owner


class ScheduleCBusiness(BaseModel):
    """A Schedule C business (sole proprietor or single-member LLC)."""
    id: str
    business_name: str = ""
    principal_business_code: Optional[str] = Field(default=None, description="6-digit NAICS code")
    owner: Owner = Owner.TAXPAYER

    # Part I - Income
    gross_receipts: int = Field(default=0, ge=0, description="Line 1")
    returns_and_allowances: int = Field(default=0, ge=0, description="Line 2")
    cost_of_goods_sold: int = Field(default=0, ge=0, description="Line 4")
    other_income: int = Field(default=0, ge=0, description="Line 6")

    # Part II - Expenses
    advertising: int = Field(default=0, ge=0, description="Line 8")
    car_and_truck: int = Field(default=0, ge=0, description="Line 9")
    contract_labor: int = Field(default=0, ge=0, description="Line 11")
    depreciation: int = Field(default=0, ge=0, description="Line 13")
    insurance: int = Field(default=0, ge=0, description="Line 15")
    legal_and_professional: int = Field(default=0, ge=0, description="Line 17")
    office_expense: int = Field(default=0, ge=0, description="Line 18")
    rent_or_lease: int = Field(default=0, ge=0, description="Line 20")
    supplies: int = Field(default=0, ge=0, description="Line 22")
    taxes_and_licenses: int = Field(default=0, ge=0, description="Line 23")
    travel: int = Field(default=0, ge=0, description="Line 24a")
    meals: int = Field(default=0, ge=0, description="Line 24b, before the 50% limit")
    utilities: int = Field(default=0, ge=0, description="Line 25")
    wages: int = Field(default=0, ge=0, description="Line 26")
    other_expenses: int = Field(default=0, ge=0, description="Line 27a")

    # Section 199A facts
    w2_wages_paid: int = Field(default=0, ge=0, description="W-2 wages paid by the business")
    ubia: int = Field(default=0, ge=0, description="Unadjusted basis of qualified property")
    is_sstb: bool = Field(default=False, description="Specified service trade or business")
