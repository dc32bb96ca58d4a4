"""
Income and information documents.

Every money field is integer cents. Each document carries an ``id`` that is
unique within the return; the engine uses it to build traced-value node ids
such as ``w2.<id>.box1``.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models.taxpayer import Owner


# =============================================================================
# W-2
# =============================================================================


class W2Box12Entry(BaseModel):
    """W-2 Box 12 code + amount pair (up to 4 per W-2: 12a-12d)."""
    code: str = Field(description="e.g. D, DD, W, AA")
    amount: int = Field(default=0, ge=0)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class W2(BaseModel):
    """Wage and Tax Statement."""
    id: str
    employer_name: str = ""
    employer_ein: Optional[str] = None
    owner: Owner = Owner.TAXPAYER

    box1_wages: int = Field(default=0, ge=0, description="Wages, tips, other compensation")
    box2_federal_withheld: int = Field(default=0, ge=0, description="Federal income tax withheld")
    box3_ss_wages: int = Field(default=0, ge=0, description="Social security wages")
    box4_ss_withheld: int = Field(default=0, ge=0, description="Social security tax withheld")
    box5_medicare_wages: int = Field(default=0, ge=0, description="Medicare wages and tips")
    box6_medicare_withheld: int = Field(default=0, ge=0, description="Medicare tax withheld")
    box7_ss_tips: int = Field(default=0, ge=0, description="Social security tips")
    box10_dependent_care: int = Field(default=0, ge=0, description="Dependent care benefits")
    box12: List[W2Box12Entry] = Field(default_factory=list)
    box13_statutory_employee: bool = False
    box13_retirement_plan: bool = Field(default=False, description="Covered by an employer retirement plan")

    box15_state: Optional[str] = Field(default=None, description="2-letter state code")
    box16_state_wages: int = Field(default=0, ge=0)
    box17_state_income_tax: int = Field(default=0, ge=0)

    @field_validator("box15_state")
    @classmethod
    def upper_state(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    def box12_total(self, code: str) -> int:
        """Sum of Box 12 amounts for one code."""
        code = code.upper()
        return sum(entry.amount for entry in self.box12 if entry.code == code)


# =============================================================================
# 1099 SERIES
# =============================================================================


class Form1099INT(BaseModel):
    id: str
    payer_name: str = ""
    box1_interest: int = Field(default=0, ge=0)
    box2_early_withdrawal_penalty: int = Field(default=0, ge=0)
    box3_us_obligation_interest: int = Field(default=0, ge=0, description="U.S. savings bonds and Treasury interest")
    box4_federal_withheld: int = Field(default=0, ge=0)
    box8_tax_exempt_interest: int = Field(default=0, ge=0)


class Form1099DIV(BaseModel):
    id: str
    payer_name: str = ""
    box1a_ordinary_dividends: int = Field(default=0, ge=0)
    box1b_qualified_dividends: int = Field(default=0, ge=0)
    box2a_capital_gain_distributions: int = Field(default=0, ge=0)
    box4_federal_withheld: int = Field(default=0, ge=0)
    box5_section_199a_dividends: int = Field(default=0, ge=0)
    box11_exempt_interest_dividends: int = Field(default=0, ge=0)


class Form1099B(BaseModel):
    """One brokerage sale."""
    id: str
    broker_name: str = ""
    description: str = ""
    symbol: Optional[str] = None
    cusip: Optional[str] = None
    quantity: Optional[Decimal] = Field(default=None, gt=0, description="Shares sold, when reported")
    date_acquired: Optional[date] = Field(default=None, description="None when reported as 'Various'")
    date_sold: date
    proceeds: int = Field(default=0, ge=0)
    cost_basis: Optional[int] = Field(default=None, ge=0, description="None if not reported")
    wash_sale_loss_disallowed: int = Field(default=0, ge=0)
    basis_reported_to_irs: bool = True
    long_term: Optional[bool] = Field(default=None, description="None when the broker left it unknown")
    federal_withheld: int = Field(default=0, ge=0)

    @field_validator("symbol", "cusip")
    @classmethod
    def upper_identifier(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else None


class Form1099MISC(BaseModel):
    id: str
    payer_name: str = ""
    box1_rents: int = Field(default=0, ge=0)
    box2_royalties: int = Field(default=0, ge=0)
    box3_other_income: int = Field(default=0, ge=0)
    box4_federal_withheld: int = Field(default=0, ge=0)


class Form1099R(BaseModel):
    """Distributions from pensions, annuities, retirement plans and IRAs."""
    id: str
    payer_name: str = ""
    owner: Owner = Owner.TAXPAYER
    box1_gross_distribution: int = Field(default=0, ge=0)
    box2a_taxable_amount: int = Field(default=0, ge=0)
    box4_federal_withheld: int = Field(default=0, ge=0)
    box7_distribution_code: str = Field(default="7", description="1 = early, 7 = normal, G = rollover")
    is_ira: bool = Field(default=False, description="IRA/SEP/SIMPLE box checked")

    @property
    def is_rollover(self) -> bool:
        return "G" in self.box7_distribution_code.upper()

    @property
    def is_early_distribution(self) -> bool:
        return "1" in self.box7_distribution_code


class Form1099G(BaseModel):
    id: str
    payer_name: str = ""
    box1_unemployment: int = Field(default=0, ge=0)
    box2_state_refund: int = Field(default=0, ge=0)
    box4_federal_withheld: int = Field(default=0, ge=0)


class SSA1099(BaseModel):
    """Social Security Benefit Statement."""
    id: str
    owner: Owner = Owner.TAXPAYER
    box5_net_benefits: int = Field(default=0, description="May be negative after repayments")
    box6_voluntary_withheld: int = Field(default=0, ge=0)


class Form1099SA(BaseModel):
    """Distributions from an HSA."""
    id: str
    payer_name: str = ""
    box1_gross_distribution: int = Field(default=0, ge=0)
    box2_excess_earnings: int = Field(default=0, ge=0)


# =============================================================================
# 1095-A (Health Insurance Marketplace Statement)
# =============================================================================


class Form1095ARow(BaseModel):
    month: int = Field(ge=1, le=12)
    enrollment_premium: int = Field(default=0, ge=0, description="Column A")
    slcsp_premium: int = Field(default=0, ge=0, description="Column B: benchmark silver plan")
    advance_ptc: int = Field(default=0, ge=0, description="Column C")


class Form1095A(BaseModel):
    id: str
    marketplace_name: str = ""
    rows: List[Form1095ARow] = Field(default_factory=list)
