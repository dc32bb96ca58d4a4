"""
Form 8829 - Expenses for Business Use of Your Home

Supports both the simplified method ($5 per square foot, up to 300 sq ft)
and the regular method (actual expenses prorated by business percentage
plus depreciation of the home).
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class HomeOfficeMethod(str, Enum):
    SIMPLIFIED = "simplified"
    REGULAR = "regular"


class HomeOffice(BaseModel):
    """Home office used regularly and exclusively for one Schedule C business."""
    business_id: str = Field(description="Schedule C business this office belongs to")
    method: HomeOfficeMethod = HomeOfficeMethod.SIMPLIFIED

    office_square_feet: int = Field(default=0, ge=0, description="Area used for business")
    home_square_feet: int = Field(default=0, ge=0, description="Total area of the home")
    business_percentage: Optional[Decimal] = Field(
        default=None, ge=0,
        description="Explicit business-use percentage (0-100); overrides the area ratio"
    )

    # Regular method expenses (whole-home amounts unless noted)
    direct_expenses: int = Field(default=0, ge=0, description="Expenses for the office only")
    mortgage_interest: int = Field(default=0, ge=0)
    real_estate_taxes: int = Field(default=0, ge=0)
    insurance: int = Field(default=0, ge=0)
    rent: int = Field(default=0, ge=0)
    repairs_and_maintenance: int = Field(default=0, ge=0)
    utilities: int = Field(default=0, ge=0)
    other_expenses: int = Field(default=0, ge=0)

    # Depreciation (owners only)
    is_homeowner: bool = True
    home_basis: int = Field(default=0, ge=0, description="Building basis, excluding land")
    date_placed_in_service: Optional[date] = None
