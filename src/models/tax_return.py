"""
Complete tax return input.

``TaxReturn`` is built by intake code and treated as immutable for one
engine run; the engine never writes back to it.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models.credits import DependentCareExpenses, EducationExpenses, EnergyImprovements, RetirementContributions
from models.deductions import DeductionElection, ItemizedDeductions
from models.documents import (
    W2,
    SSA1099,
    Form1095A,
    Form1099B,
    Form1099DIV,
    Form1099G,
    Form1099INT,
    Form1099MISC,
    Form1099R,
    Form1099SA,
)
from models.form_8829 import HomeOffice
from models.form_8889 import HSAInfo
from models.form_8949 import ISOExercise, RSUVestEvent
from models.schedule_c import ScheduleCBusiness
from models.state_return import StateReturnConfig
from models.taxpayer import Dependent, FilingStatus, Owner, Person


class PriorYearInfo(BaseModel):
    """Carryovers and prior-year facts this return depends on."""
    short_term_loss_carryover: int = Field(default=0, ge=0)
    long_term_loss_carryover: int = Field(default=0, ge=0)
    itemized_last_year: bool = Field(
        default=False,
        description="State refund on 1099-G is taxable only if the filer itemized last year"
    )


class TaxReturn(BaseModel):
    """Complete tax return input for one filer (or married couple)."""
    tax_year: int = 2025
    filing_status: FilingStatus = FilingStatus.SINGLE
    taxpayer: Person = Field(default_factory=Person)
    spouse: Optional[Person] = None
    dependents: List[Dependent] = Field(default_factory=list)
    can_be_claimed_as_dependent: bool = False

    # Information returns
    w2s: List[W2] = Field(default_factory=list)
    form1099_int: List[Form1099INT] = Field(default_factory=list)
    form1099_div: List[Form1099DIV] = Field(default_factory=list)
    form1099_b: List[Form1099B] = Field(default_factory=list)
    form1099_misc: List[Form1099MISC] = Field(default_factory=list)
    form1099_r: List[Form1099R] = Field(default_factory=list)
    form1099_g: List[Form1099G] = Field(default_factory=list)
    ssa1099: List[SSA1099] = Field(default_factory=list)
    form1099_sa: List[Form1099SA] = Field(default_factory=list)
    form1095_a: List[Form1095A] = Field(default_factory=list)

    # Equity compensation
    rsu_vest_events: List[RSUVestEvent] = Field(default_factory=list)
    iso_exercises: List[ISOExercise] = Field(default_factory=list)

    # Business
    schedule_c_businesses: List[ScheduleCBusiness] = Field(default_factory=list)
    home_offices: List[HomeOffice] = Field(default_factory=list)

    # Deductions, adjustments and credits
    hsa: Optional[HSAInfo] = None
    itemized: ItemizedDeductions = Field(default_factory=ItemizedDeductions)
    deduction_election: DeductionElection = Field(default_factory=DeductionElection)
    retirement_contributions: RetirementContributions = Field(default_factory=RetirementContributions)
    student_loan_interest: int = Field(default=0, ge=0, description="Form 1098-E box 1")
    educator_expenses: int = Field(default=0, ge=0)
    dependent_care: DependentCareExpenses = Field(default_factory=DependentCareExpenses)
    education_expenses: EducationExpenses = Field(default_factory=EducationExpenses)
    energy_improvements: EnergyImprovements = Field(default_factory=EnergyImprovements)
    estimated_tax_payments: int = Field(default=0, ge=0, description="Form 1040 line 26")

    prior_year: PriorYearInfo = Field(default_factory=PriorYearInfo)
    state_returns: List[StateReturnConfig] = Field(default_factory=list)

    @field_validator("tax_year")
    @classmethod
    def validate_year(cls, v: int) -> int:
        if v < 2000 or v > 2100:
            raise ValueError(f"Implausible tax year {v}")
        return v

    @field_validator("state_returns")
    @classmethod
    def unique_states(cls, v: List[StateReturnConfig]) -> List[StateReturnConfig]:
        seen = set()
        for state in v:
            if state.state_code in seen:
                raise ValueError(f"State {state.state_code} is listed more than once")
            seen.add(state.state_code)
        return v

    @property
    def is_joint(self) -> bool:
        return self.filing_status.is_joint

    def person(self, owner: Owner) -> Optional[Person]:
        return self.spouse if owner == Owner.SPOUSE else self.taxpayer

    def w2s_for(self, owner: Owner) -> List[W2]:
        return [w2 for w2 in self.w2s if w2.owner == owner]

    @property
    def household_size(self) -> int:
        """Taxpayer, spouse on a joint return, and every dependent."""
        size = 1 + len(self.dependents)
        if self.filing_status == FilingStatus.MARRIED_JOINT and self.spouse is not None:
            size += 1
        return size
