from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ResidencyType(str, Enum):
    FULL_YEAR = "full_year"
    PART_YEAR = "part_year"
    NONRESIDENT = "nonresident"


class StateReturnConfig(BaseModel):
    """Per-state elections. Order in ``TaxReturn.state_returns`` is the run order."""
    state_code: str = Field(description="2-letter state code")
    residency: ResidencyType = ResidencyType.FULL_YEAR
    move_in_date: Optional[date] = Field(default=None, description="Part-year: first day resident")
    move_out_date: Optional[date] = Field(default=None, description="Part-year: last day resident")
    rent_paid: int = Field(default=0, ge=0, description="Rent paid on a principal residence in the state")
    contributions: int = Field(default=0, ge=0, description="Voluntary contributions on the state form")

    @field_validator("state_code")
    @classmethod
    def upper_state(cls, v: str) -> str:
        return v.strip().upper()
