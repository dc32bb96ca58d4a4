"""Massachusetts state tax configuration for tax year 2025 (Form 1)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List

from calculator.decimal_math import Cents, apply_rate, max_zero
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
from models.taxpayer import FilingStatus

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn

SHORT_TERM_GAIN_RATE = Decimal("0.12")
SURTAX_RATE = Decimal("0.04")
SURTAX_THRESHOLD = 108315000

AGE_65_EXEMPTION = 70000
BLIND_EXEMPTION = 220000

RENT_DEDUCTION_RATE = Decimal("0.50")
RENT_DEDUCTION_CAP = 400000
RENT_DEDUCTION_CAP_MFS = 200000

NO_TAX_STATUS_LIMIT = {
    "single": 800000,
    "married_separate": 800000,
    "married_joint": 1640000,
    "qualifying_widow": 1640000,
    "head_of_household": 1440000,
}


def get_massachusetts_config() -> StateTaxConfig:
    """Massachusetts 2025: 5% on Part B income, 12% on short-term gains, 4% surtax."""
    return StateTaxConfig(
        state_code="MA",
        state_name="Massachusetts",
        tax_year=2025,
        is_flat_tax=True,
        flat_rate=Decimal("0.05"),
        personal_exemption_amount={
            "single": 440000,
            "married_separate": 440000,
            "married_joint": 880000,
            "qualifying_widow": 440000,
            "head_of_household": 680000,
        },
        dependent_exemption_amount=100000,
        social_security_taxable=False,
        hsa_deduction_allowed=False,
    )


@dataclass(frozen=True)
class Form1Result:
    federal_agi: Cents
    hsa_addback: Cents
    social_security_exclusion: Cents
    us_obligation_interest: Cents
    ma_agi: Cents
    short_term_gains: Cents             # Part A, taxed at 12%
    exemptions: Cents
    rent_deduction: Cents
    part_b_taxable_income: Cents
    income_tax: Cents
    short_term_gains_tax: Cents
    surtax: Cents
    no_tax_status: bool
    ma_tax: Cents
    tax_after_credits: Cents


def rent_deduction(rent_paid: Cents, filing_status: FilingStatus) -> Cents:
    """Half of rent paid on a principal residence, capped."""
    cap = RENT_DEDUCTION_CAP_MFS if filing_status == FilingStatus.MARRIED_SEPARATE else RENT_DEDUCTION_CAP
    return min(apply_rate(rent_paid, RENT_DEDUCTION_RATE), cap)


@register_state("MA", 2025)
class MassachusettsCalculator(BaseStateCalculator):
    """Massachusetts Form 1."""

    state_code = "MA"
    state_name = "Massachusetts"
    form_label = "MA Form 1"
    node_prefix = "ma1"
    template_files = ("form1.pdf",)

    @classmethod
    def default_config(cls) -> StateTaxConfig:
        return get_massachusetts_config()

    def exemptions(self, tax_return: "TaxReturn") -> Cents:
        """Personal exemption plus dependent, age 65+ and blindness exemptions."""
        cfg = self.config
        total = cfg.get_personal_exemption(tax_return.filing_status.value)
        total += len(tax_return.dependents) * cfg.dependent_exemption_amount
        people = [tax_return.taxpayer]
        if tax_return.is_joint and tax_return.spouse is not None:
            people.append(tax_return.spouse)
        for person in people:
            age = person.age_at_end_of(tax_return.tax_year)
            if age is not None and age >= 65:
                total += AGE_65_EXEMPTION
            if person.is_blind:
                total += BLIND_EXEMPTION
        return total

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

        hsa_addback = 0 if cfg.hsa_deduction_allowed else self.hsa_deduction(federal)
        if hsa_addback:
            trace.computed("maAdditions", hsa_addback, present(trace, ["schedule1.line13"]))

        ss_exclusion = 0 if cfg.social_security_taxable else federal.line6b.amount
        us_interest = self.us_obligation_interest(tax_return)
        subtractions = ss_exclusion + us_interest
        if subtractions:
            trace.computed("maSubtractions", subtractions, [federal.line6b.trace_id, federal.line2b.trace_id])

        ma_agi = max_zero(federal.agi + hsa_addback - subtractions)
        trace.computed(
            "maAGI", ma_agi,
            [federal.line11.trace_id] + present(trace, ["maAdditions", "maSubtractions"]),
        )

        schedule_d = federal.schedule_d
        short_term = min(max_zero(schedule_d.net_short_term), ma_agi) if schedule_d else 0
        if short_term:
            trace.computed("shortTermGains", short_term, present(trace, ["scheduleD.line7"]))

        exemptions = self.exemptions(tax_return)
        trace.user_entry("exemptions", exemptions)
        rent = rent_deduction(state_config.rent_paid, tax_return.filing_status)
        part_b_inputs = ["maAGI", "exemptions"] + present(trace, ["shortTermGains"])
        if rent:
            trace.user_entry("rentDeduction", rent)
            part_b_inputs.append("rentDeduction")

        part_b = max_zero(ma_agi - short_term - exemptions - rent)
        trace.computed("partBTaxableIncome", part_b, part_b_inputs)

        no_tax_status = ma_agi <= NO_TAX_STATUS_LIMIT[status]
        if no_tax_status:
            income_tax = short_term_tax = surtax = 0
        else:
            income_tax = self.calculate_brackets(part_b, status)
            short_term_tax = apply_rate(short_term, SHORT_TERM_GAIN_RATE)
            surtax = apply_rate(max_zero(part_b + short_term - SURTAX_THRESHOLD), SURTAX_RATE)
        trace.computed("incomeTax", income_tax, ["partBTaxableIncome"])
        tax_ids = ["incomeTax"]
        if short_term_tax:
            trace.computed("shortTermGainsTax", short_term_tax, ["shortTermGains"])
            tax_ids.append("shortTermGainsTax")
        if surtax:
            trace.computed("surtax", surtax, ["partBTaxableIncome"] + present(trace, ["shortTermGains"]))
            tax_ids.append("surtax")

        ma_tax = apportion(income_tax + short_term_tax + surtax, ratio)
        trace.computed("maTax", ma_tax, tax_ids)
        trace.computed("taxAfterCredits", ma_tax, ["maTax"])

        settlement = self.settle(tax_return, ma_tax, trace)
        detail = Form1Result(
            federal_agi=federal.agi,
            hsa_addback=hsa_addback,
            social_security_exclusion=ss_exclusion,
            us_obligation_interest=us_interest,
            ma_agi=ma_agi,
            short_term_gains=short_term,
            exemptions=exemptions,
            rent_deduction=rent,
            part_b_taxable_income=part_b,
            income_tax=income_tax,
            short_term_gains_tax=short_term_tax,
            surtax=surtax,
            no_tax_status=no_tax_status,
            ma_tax=ma_tax,
            tax_after_credits=ma_tax,
        )
        return self.result(
            state_config, ratio, ma_agi, part_b + short_term, ma_tax, 0, ma_tax, settlement, detail,
        )

    def node_labels(self) -> Dict[str, str]:
        return {
            "maAdditions": "MA additions",
            "maSubtractions": "MA subtractions",
            "maAGI": "Massachusetts adjusted gross income",
            "shortTermGains": "MA short-term capital gains (Part A)",
            "exemptions": "MA exemptions",
            "rentDeduction": "MA rental deduction",
            "partBTaxableIncome": "MA Part B taxable income",
            "incomeTax": "MA income tax (5%)",
            "shortTermGainsTax": "MA tax on short-term gains (12%)",
            "surtax": "MA surtax (4%)",
            "maTax": "Massachusetts income tax",
            "taxAfterCredits": "MA tax after credits",
            "stateWithholding": "MA state income tax withheld",
            "overpaid": "MA overpaid (refund)",
            "amountOwed": "MA amount you owe",
        }

    def review_layout(self) -> List[ReviewSection]:
        p = self.node_prefix
        return [
            review_section(
                "Income",
                ("Federal AGI", "form1040.line11"),
                ("MA Additions", f"{p}.maAdditions"),
                ("MA Subtractions", f"{p}.maSubtractions"),
                ("MA AGI", f"{p}.maAGI"),
            ),
            review_section(
                "Deductions & Exemptions",
                ("Exemptions", f"{p}.exemptions"),
                ("Rental Deduction", f"{p}.rentDeduction"),
                ("Part B Taxable Income", f"{p}.partBTaxableIncome"),
                ("Short-Term Gains", f"{p}.shortTermGains"),
            ),
            review_section(
                "Tax",
                ("Income Tax (5%)", f"{p}.incomeTax"),
                ("Short-Term Gains Tax (12%)", f"{p}.shortTermGainsTax"),
                ("Surtax (4%)", f"{p}.surtax"),
                ("MA Tax", f"{p}.maTax"),
            ),
            review_section(
                "Payments",
                ("MA Withholding", f"{p}.stateWithholding"),
                ("Refund", f"{p}.overpaid"),
                ("Amount You Owe", f"{p}.amountOwed"),
            ),
        ]
