from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class FilingStatus(str, Enum):
    """IRS filing status options"""
    SINGLE = "single"
    MARRIED_JOINT = "married_joint"
    MARRIED_SEPARATE = "married_separate"
    HEAD_OF_HOUSEHOLD = "head_of_household"
    QUALIFYING_WIDOW = "qualifying_widow"

    @property
    def is_joint(self) -> bool:
        """Statuses that use the joint-return thresholds."""
        return self in (FilingStatus.MARRIED_JOINT, FilingStatus.QUALIFYING_WIDOW)


class Owner(str, Enum):
    """Whose document this is on a joint return."""
    TAXPAYER = "taxpayer"
    SPOUSE = "spouse"


def age_at_end_of_year(date_of_birth: Optional[date], tax_year: int) -> Optional[int]:
    """Age attained during the tax year (year difference), or None if unknown."""
    if date_of_birth is None:
        return None
    return tax_year - date_of_birth.year


class Person(BaseModel):
    """Taxpayer or spouse identity and age/vision facts used by the rules."""
    first_name: str = ""
    last_name: str = ""
    ssn: Optional[str] = Field(default=None, description="9 digits, no dashes")
    date_of_birth: Optional[date] = None
    is_blind: bool = Field(default=False, description="Legally blind at year end")
    is_disabled: bool = Field(default=False, description="Permanently and totally disabled")

    @field_validator("ssn")
    @classmethod
    def strip_ssn(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.replace("-", "").strip()

    def age_at_end_of(self, tax_year: int) -> Optional[int]:
        return age_at_end_of_year(self.date_of_birth, tax_year)


class Dependent(BaseModel):
    """
    Tax dependent information.

    Relationship is kept as free text (e.g. "son", "foster_child", "sibling");
    the credit modules normalise spelling before applying the qualifying
    child relationship test.
    """
    first_name: str = ""
    last_name: str = ""
    ssn: Optional[str] = None
    relationship: str
    months_lived: int = Field(default=12, ge=0, le=12, description="Months lived with taxpayer in tax year")
    date_of_birth: Optional[date] = None
    is_permanently_disabled: bool = Field(default=False, description="Permanently and totally disabled")

    @field_validator("ssn")
    @classmethod
    def strip_ssn(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.replace("-", "").strip()

    def age_at_end_of(self, tax_year: int) -> Optional[int]:
        return age_at_end_of_year(self.date_of_birth, tax_year)

    @property
    def has_valid_ssn(self) -> bool:
        return bool(self.ssn) and len(self.ssn) == 9 and self.ssn.isdigit()
