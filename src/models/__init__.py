"""Input models for the tax engine. Every money field is integer cents."""

from models.taxpayer import FilingStatus, Owner, Person, Dependent
from models.documents import (
    W2,
    W2Box12Entry,
    Form1099INT,
    Form1099DIV,
    Form1099B,
    Form1099MISC,
    Form1099R,
    Form1099G,
    SSA1099,
    Form1099SA,
    Form1095A,
    Form1095ARow,
)
from models.form_8949 import (
    AdjustmentCode,
    CapitalTransaction,
    Form8949Category,
    ISOExercise,
    RSUVestEvent,
)
from models.schedule_c import ScheduleCBusiness
from models.form_8829 import HomeOffice, HomeOfficeMethod
from models.form_8889 import HSAInfo, HSACoverageType
from models.deductions import DeductionElection, DeductionMethod, ItemizedDeductions
from models.credits import (
    DependentCareExpenses,
    EducationCreditType,
    EducationExpenses,
    EnergyImprovements,
    RetirementContributions,
    Student,
)
from models.state_return import ResidencyType, StateReturnConfig
from models.tax_return import PriorYearInfo, TaxReturn

__all__ = [
    "FilingStatus",
    "Owner",
    "Person",
    "Dependent",
    "W2",
    "W2Box12Entry",
    "Form1099INT",
    "Form1099DIV",
    "Form1099B",
    "Form1099MISC",
    "Form1099R",
    "Form1099G",
    "SSA1099",
    "Form1099SA",
    "Form1095A",
    "Form1095ARow",
    "AdjustmentCode",
    "CapitalTransaction",
    "Form8949Category",
    "ISOExercise",
    "RSUVestEvent",
    "ScheduleCBusiness",
    "HomeOffice",
    "HomeOfficeMethod",
    "HSAInfo",
    "HSACoverageType",
    "DeductionElection",
    "DeductionMethod",
    "ItemizedDeductions",
    "DependentCareExpenses",
    "EducationCreditType",
    "EducationExpenses",
    "EnergyImprovements",
    "RetirementContributions",
    "Student",
    "ResidencyType",
    "StateReturnConfig",
    "PriorYearInfo",
    "TaxReturn",
]
