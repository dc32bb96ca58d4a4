"""
Credit-related inputs that are not carried on an information return.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class DependentCareExpenses(BaseModel):
    """Form 2441 inputs."""
    qualifying_persons: int = Field(default=0, ge=0, description="Children under 13 or disabled dependents")
    expenses_paid: int = Field(default=0, ge=0, description="Care expenses paid during the year")


class RetirementContributions(BaseModel):
    """IRA contributions made for the tax year (Form 5498 box 1 / box 10)."""
    traditional_ira: int = Field(default=0, ge=0, description="Taxpayer traditional IRA")
    spouse_traditional_ira: int = Field(default=0, ge=0)
    roth_ira: int = Field(default=0, ge=0, description="Taxpayer Roth IRA")
    spouse_roth_ira: int = Field(default=0, ge=0)


class EnergyImprovements(BaseModel):
    """
    Form 5695 inputs.

    Part I (residential clean energy) items are uncapped; Part II
    (energy efficient home improvement) items are subject to the
    per-item and annual credit limits.
    """
    # Part I
    solar_electric: int = Field(default=0, ge=0)
    solar_water_heating: int = Field(default=0, ge=0)
    geothermal_heat_pump: int = Field(default=0, ge=0)
    small_wind: int = Field(default=0, ge=0)
    battery_storage: int = Field(default=0, ge=0)

    # Part II
    heat_pump: int = Field(default=0, ge=0, description="Heat pumps and heat pump water heaters")
    biomass_stove: int = Field(default=0, ge=0)
    insulation: int = Field(default=0, ge=0)
    windows: int = Field(default=0, ge=0)
    doors: int = Field(default=0, ge=0)
    energy_property: int = Field(default=0, ge=0, description="Central AC, water heaters, furnaces, panelboards")
    home_energy_audit: int = Field(default=0, ge=0)


class EducationCreditType(str, Enum):
    AOTC = "aotc"
    LLC = "llc"


class Student(BaseModel):
    """One student on Form 8863 Part III, with Form 1098-T expenses."""
    name: str = ""
    credit_type: EducationCreditType = EducationCreditType.AOTC
    qualified_expenses: int = Field(default=0, ge=0, description="Tuition and required fees paid, net of aid")
    at_least_half_time: bool = True
    completed_four_years: bool = Field(default=False, description="Finished the first four years of postsecondary study")
    prior_aotc_years: int = Field(default=0, ge=0, description="Years the AOTC was claimed before this one")


class EducationExpenses(BaseModel):
    """Form 8863 inputs."""
    students: List[Student] = Field(default_factory=list)
