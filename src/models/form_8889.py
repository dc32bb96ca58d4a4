"""
Form 8889 - Health Savings Accounts (HSAs)

Contribution and distribution facts for the HSA deduction. Employer
contributions normally come from W-2 Box 12 code W; an explicit
``employer_contributions`` value overrides the W-2 total.

Reference: IRS Instructions for Form 8889
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from models.taxpayer import Owner


class HSACoverageType(str, Enum):
    """HSA-eligible HDHP coverage type."""
    SELF_ONLY = "self_only"
    FAMILY = "family"


class HSAInfo(BaseModel):
    """Full-year HDHP coverage and HSA activity for one account holder."""
    owner: Owner = Owner.TAXPAYER
    coverage_type: HSACoverageType = Field(
        default=HSACoverageType.SELF_ONLY,
        description="HDHP coverage type for the year"
    )
    personal_contributions: int = Field(
        default=0, ge=0,
        description="Contributions made by the account holder (Form 8889 line 2)"
    )
    employer_contributions: Optional[int] = Field(
        default=None, ge=0,
        description="Employer contributions; None means use W-2 Box 12 code W"
    )
    qualified_medical_expenses: int = Field(
        default=0, ge=0,
        description="Distributions used for qualified medical expenses (line 15)"
    )
