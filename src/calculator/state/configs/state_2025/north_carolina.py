"""North Carolina state tax configuration for tax year 2025 (D-400)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List

from calculator.decimal_math import Cents, max_zero
from calculator.state.base_state_calculator import (
    BaseStateCalculator,
    ReviewSection,
    StateComputeResult,
    apportion,
    present,
    review_section,
)
from calculator.state.state_registry import register_state
from calculator.state.state_tax_config import StateTaxConfig
from calculator.traced_value import NamespacedTraceBuilder
from models.state_return import StateReturnConfig

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn


def get_north_carolina_config() -> StateTaxConfig:
    """North Carolina 2025: 4.25% flat tax."""
    return StateTaxConfig(
        state_code="NC",
        state_name="North Carolina",
        tax_year=2025,
        is_flat_tax=True,
        flat_rate=Decimal("0.0425"),
        standard_deduction={
            "single": 1275000,
            "married_separate": 1275000,
            "married_joint": 2550000,
            "qualifying_widow": 2550000,
            "head_of_household": 1912500,
        },
        social_security_taxable=False,
        hsa_deduction_allowed=False,
    )


@dataclass(frozen=True)
class FormD400Result:
    federal_agi: Cents
    hsa_addback: Cents
    additions: Cents
    social_security_exclusion: Cents
    us_obligation_interest: Cents
    deductions: Cents                   # Schedule S Part B
    nc_agi: Cents
    standard_deduction: Cents
    nc_taxable_income: Cents
    nc_tax: Cents
    tax_after_credits: Cents


@register_state("NC", 2025)
class NorthCarolinaCalculator(BaseStateCalculator):
    state_code = "NC"
    state_name = "North Carolina"
    form_label = "NC D-400"
    node_prefix = "d400"
    template_files = ("d400.pdf",)

    @classmethod
    def default_config(cls) -> StateTaxConfig:
        return get_north_carolina_config()

    def compute(
        self,
        tax_return: "TaxReturn",
        federal: "Form1040Result",
        state_config: StateReturnConfig,
        trace: NamespacedTraceBuilder,
    ) -> StateComputeResult:
        cfg = self.config
        status = tax_return.filing_status.value
        ratio = self.ratio_for(tax_return, state_config)

        # Schedule S Part A: NC does not conform to the HSA deduction
        hsa_addback = 0 if cfg.hsa_deduction_allowed else self.hsa_deduction(federal)
        if hsa_addback:
            trace.computed("ncAdditions", hsa_addback, present(trace, ["schedule1.line13"]))

        # Schedule S Part B
        ss_exclusion = 0 if cfg.social_security_taxable else federal.line6b.amount
        us_interest = self.us_obligation_interest(tax_return)
        deductions = ss_exclusion + us_interest
        if deductions:
            trace.computed("ncDeductions", deductions, [federal.line6b.trace_id, federal.line2b.trace_id])

        nc_agi = federal.agi + hsa_addback - deductions
        trace.computed(
            "ncAGI", nc_agi,
            [federal.line11.trace_id] + present(trace, ["ncAdditions", "ncDeductions"]),
        )

        standard = cfg.get_standard_deduction(status)
        trace.user_entry("standardDeduction", standard)
        taxable = max_zero(nc_agi - standard)
        trace.computed("ncTaxableIncome", taxable, ["ncAGI", "standardDeduction"])

        nc_tax = apportion(self.calculate_brackets(taxable, status), ratio)
        trace.computed("ncTax", nc_tax, ["ncTaxableIncome"])
        trace.computed("taxAfterCredits", nc_tax, ["ncTax"])

        settlement = self.settle(tax_return, nc_tax, trace)
        detail = FormD400Result(
            federal_agi=federal.agi,
            hsa_addback=hsa_addback,
            additions=hsa_addback,
            social_security_exclusion=ss_exclusion,
            us_obligation_interest=us_interest,
            deductions=deductions,
            nc_agi=nc_agi,
            standard_deduction=standard,
            nc_taxable_income=taxable,
            nc_tax=nc_tax,
            tax_after_credits=nc_tax,
        )
        return self.result(state_config, ratio, nc_agi, taxable, nc_tax, 0, nc_tax, settlement, detail)

    def node_labels(self) -> Dict[str, str]:
        return {
            "ncAdditions": "NC additions (Schedule S Part A)",
            "ncDeductions": "NC deductions (Schedule S Part B)",
            "ncAGI": "North Carolina adjusted gross income",
            "standardDeduction": "NC standard deduction",
            "ncTaxableIncome": "North Carolina taxable income",
            "ncTax": "North Carolina income tax (4.25%)",
            "taxAfterCredits": "NC tax after credits",
            "stateWithholding": "NC state income tax withheld",
            "overpaid": "NC overpaid (refund)",
            "amountOwed": "NC amount you owe",
        }

    def review_layout(self) -> List[ReviewSection]:
        p = self.node_prefix
        return [
            review_section(
                "Income",
                ("Federal AGI", "form1040.line11"),
                ("NC Additions", f"{p}.ncAdditions"),
                ("NC Deductions", f"{p}.ncDeductions"),
                ("NC AGI", f"{p}.ncAGI"),
            ),
            review_section(
                "Tax",
                ("NC Standard Deduction", f"{p}.standardDeduction"),
                ("NC Taxable Income", f"{p}.ncTaxableIncome"),
                ("NC Tax (4.25%)", f"{p}.ncTax"),
            ),
            review_section(
                "Payments",
                ("NC Withholding", f"{p}.stateWithholding"),
                ("Refund", f"{p}.overpaid"),
                ("Amount You Owe", f"{p}.amountOwed"),
            ),
        ]
