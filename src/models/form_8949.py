"""
Form 8949 - Sales and Other Dispositions of Capital Assets

Equity compensation inputs (RSU vests, ISO exercises) and the derived
capital transactions that feed Schedule D.

Category codes:
    A = short-term, basis reported to IRS
    B = short-term, basis NOT reported to IRS
    D = long-term, basis reported to IRS
    E = long-term, basis NOT reported to IRS

Adjustment codes (column f): B = basis reported incorrectly, W = wash sale.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Form8949Category(str, Enum):
    A = "A"
    B = "B"
    D = "D"
    E = "E"

    @property
    def is_long_term(self) -> bool:
        return self in (Form8949Category.D, Form8949Category.E)


class AdjustmentCode(str, Enum):
    BASIS_INCORRECT = "B"
    WASH_SALE = "W"


class RSUVestEvent(BaseModel):
    """One RSU vesting event as reported by the employer's equity plan."""
    id: str
    vest_date: date
    symbol: str
    cusip: Optional[str] = None
    shares_vested: Decimal = Field(ge=0)
    shares_withheld_for_tax: Decimal = Field(default=Decimal("0"), ge=0)
    shares_delivered: Decimal = Field(ge=0, description="Net shares received")
    fmv_at_vest: int = Field(ge=0, description="Fair market value per share at vest (cents)")
    linked_w2_id: Optional[str] = Field(default=None, description="W-2 that includes this income")

    @field_validator("symbol", "cusip")
    @classmethod
    def upper_identifier(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    @property
    def total_fmv(self) -> Decimal:
        return self.shares_vested * self.fmv_at_vest


class ISOExercise(BaseModel):
    """Incentive stock option exercise (AMT preference item)."""
    id: str
    exercise_date: date
    symbol: str
    shares_exercised: Decimal = Field(ge=0)
    exercise_price: int = Field(ge=0, description="Cents per share")
    fmv_at_exercise: int = Field(ge=0, description="Cents per share")

    @property
    def bargain_element(self) -> Decimal:
        spread = self.fmv_at_exercise - self.exercise_price
        return self.shares_exercised * spread if spread > 0 else Decimal("0")


class CapitalTransaction(BaseModel):
    """A Form 8949 row, derived from a 1099-B and any basis correction."""
    model_config = ConfigDict(frozen=True)

    id: str
    description: str = ""
    date_acquired: Optional[date] = None
    date_sold: date
    proceeds: int
    reported_basis: int
    adjusted_basis: int
    adjustment_codes: Tuple[AdjustmentCode, ...] = ()
    adjustment_amount: int = Field(default=0, description="Column g, positive adds to gain")
    gain_loss: int
    wash_sale_loss_disallowed: int = 0
    long_term: bool
    category: Form8949Category
    source_1099b_id: str
    linked_rsu_vest_id: Optional[str] = None

    @property
    def adjustment_code_text(self) -> str:
        """Column (f) as printed, e.g. ``"BW"``."""
        return "".join(code.value for code in self.adjustment_codes)
