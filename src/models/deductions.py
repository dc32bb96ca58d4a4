from enum import Enum

from pydantic import BaseModel, Field


class ItemizedDeductions(BaseModel):
    """Schedule A inputs (whole-year amounts, before any limits)."""
    medical_expenses: int = Field(default=0, ge=0, description="Unreimbursed medical and dental")
    state_local_income_tax: int = Field(default=0, ge=0, description="State/local income tax paid")
    state_local_sales_tax: int = Field(default=0, ge=0, description="Used instead of income tax if larger")
    real_estate_taxes: int = Field(default=0, ge=0)
    personal_property_taxes: int = Field(default=0, ge=0)
    mortgage_interest: int = Field(default=0, ge=0, description="Form 1098 box 1")
    mortgage_points: int = Field(default=0, ge=0)
    mortgage_principal: int = Field(default=0, ge=0, description="Average acquisition debt; 0 = assume within limit")
    mortgage_is_pre_tcja: bool = Field(default=False, description="Debt incurred before Dec 16, 2017")
    investment_interest: int = Field(default=0, ge=0, description="Form 4952")
    charitable_cash: int = Field(default=0, ge=0)
    charitable_noncash: int = Field(default=0, ge=0)
    casualty_losses: int = Field(default=0, ge=0, description="Federally declared disasters only")
    other_itemized: int = Field(default=0, ge=0)


class DeductionMethod(str, Enum):
    AUTO = "auto"
    STANDARD = "standard"
    ITEMIZED = "itemized"


class DeductionElection(BaseModel):
    method: DeductionMethod = Field(
        default=DeductionMethod.AUTO,
        description="AUTO takes the larger of standard and itemized"
    )
