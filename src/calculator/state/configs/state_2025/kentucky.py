"""Kentucky state tax configuration for tax year 2025 (Form 740)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List

from calculator.decimal_math import ONE, Cents, max_zero, round_cents, sum_cents
from calculator.state.base_state_calculator import (
    BaseStateCalculator,
    ReviewSection,
    StateComputeResult,
    apportion,
    review_section,
)
from calculator.state.state_registry import register_state
from calculator.state.state_tax_config import StateTaxConfig
from calculator.traced_value import NamespacedTraceBuilder
from models.state_return import StateReturnConfig

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn

PERSONAL_TAX_CREDIT = 4000
# Family Size Tax Credit: 100% of the poverty-level threshold, phasing to 0 at 133%
FSTC_BASE_THRESHOLD = 1288000
FSTC_PER_ADDITIONAL_PERSON = 454000
FSTC_MAX_FAMILY_SIZE = 4
FSTC_PHASEOUT_END_RATIO = Decimal("1.33")


def get_kentucky_config() -> StateTaxConfig:
    """Kentucky 2025: 4.0% flat tax, $3,160 standard deduction per person."""
    return StateTaxConfig(
        state_code="KY",
        state_name="Kentucky",
        tax_year=2025,
        is_flat_tax=True,
        flat_rate=Decimal("0.04"),
        standard_deduction={
            "single": 316000,
            "married_joint": 632000,
            "married_separate": 316000,
            "head_of_household": 316000,
            "qualifying_widow": 632000,
        },
        social_security_taxable=False,
        pension_exclusion_limit=3111000,
    )


@dataclass(frozen=True)
class Form740Result:
    federal_agi: Cents
    tax_exempt_interest: Cents            # Schedule M addition
    additions: Cents
    us_obligation_interest: Cents
    social_security_exclusion: Cents
    pension_exclusion: Cents
    subtractions: Cents
    ky_agi: Cents
    standard_deduction: Cents
    ky_taxable_income: Cents
    ky_tax: Cents
    personal_credit_count: int
    personal_tax_credit: Cents
    family_size: int
    family_size_threshold: Cents
    family_size_tax_credit: Cents
    total_credits: Cents
    tax_after_credits: Cents


def family_size_threshold(family_size: int) -> Cents:
    size = min(max(family_size, 1), FSTC_MAX_FAMILY_SIZE)
    return FSTC_BASE_THRESHOLD + (size - 1) * FSTC_PER_ADDITIONAL_PERSON


def family_size_tax_credit(income: Cents, family_size: int, tax: Cents) -> Cents:
    """
    Share of ``tax`` forgiven: all of it at or below the threshold, none at
    or above 133% of it, linear in between.
    """
    if tax <= 0:
        return 0
    threshold = family_size_threshold(family_size)
    if income <= threshold:
        return tax
    end = threshold * FSTC_PHASEOUT_END_RATIO
    if income >= end:
        return 0
    share = ONE - (Decimal(income - threshold) / (end - threshold))
    return round_cents(tax * share)


@register_state("KY", 2025)
class KentuckyCalculator(BaseStateCalculator):
    """Kentucky Form 740 for residents, part-year residents and nonresidents."""

    state_code = "KY"
    state_name = "Kentucky"
    form_label = "KY Form 740"
    node_prefix = "form740"
    template_files = ("740.pdf",)

    @classmethod
    def default_config(cls) -> StateTaxConfig:
        return get_kentucky_config()

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
        agi_id = federal.line11.trace_id

        # Schedule M Part I
        exempt_interest = self.tax_exempt_interest(tax_return)
        additions = exempt_interest
        if additions:
            trace.computed("kyAdditions", additions, [federal.line2a.trace_id])

        # Schedule M Part II; the pension exclusion is one limit for the whole return
        us_interest = self.us_obligation_interest(tax_return)
        ss_exclusion = 0 if cfg.social_security_taxable else federal.line6b.amount
        pensions = sum_cents(d.box2a_taxable_amount for d in tax_return.form1099_r if not d.is_rollover)
        pension_exclusion = min(pensions, cfg.pension_exclusion_limit or 0)
        subtractions = us_interest + ss_exclusion + pension_exclusion
        if subtractions:
            trace.computed(
                "kySubtractions", subtractions,
                [federal.line2b.trace_id, federal.line6b.trace_id,
                 federal.line4b.trace_id, federal.line5b.trace_id],
            )

        ky_agi = max_zero(federal.agi + additions - subtractions)
        agi_inputs = [agi_id] + [n for n in ("kyAdditions", "kySubtractions") if n in trace]
        trace.computed("kyAGI", ky_agi, agi_inputs)

        deduction = cfg.get_standard_deduction(status)
        trace.user_entry("standardDeduction", deduction)
        taxable = max_zero(ky_agi - deduction)
        trace.computed("kyTaxableIncome", taxable, ["kyAGI", "standardDeduction"])

        full_year_tax = self.calculate_brackets(taxable, status)
        ky_tax = apportion(full_year_tax, ratio)
        trace.computed("kyTax", ky_tax, ["kyTaxableIncome"])

        # Credits
        persons = self.person_count(tax_return)
        people = [tax_return.taxpayer]
        if tax_return.is_joint and tax_return.spouse is not None:
            people.append(tax_return.spouse)
        credit_count = persons
        for person in people:
            age = person.age_at_end_of(tax_return.tax_year)
            if age is not None and age >= 65:
                credit_count += 1
            if person.is_blind:
                credit_count += 1
        personal_credit = credit_count * PERSONAL_TAX_CREDIT
        trace.user_entry("personalTaxCredit", personal_credit,
                         f"KY personal tax credit ($40 x {credit_count})")

        after_personal = max_zero(ky_tax - personal_credit)
        threshold = family_size_threshold(persons)
        fstc = family_size_tax_credit(ky_agi, persons, after_personal)
        credit_ids = ["personalTaxCredit"]
        if fstc:
            trace.computed("familySizeTaxCredit", fstc, ["kyAGI", "kyTax", "personalTaxCredit"])
            credit_ids.append("familySizeTaxCredit")

        total_credits = personal_credit + fstc
        trace.computed("totalCredits", total_credits, credit_ids)
        tax_after = max_zero(ky_tax - total_credits)
        trace.computed("taxAfterCredits", tax_after, ["kyTax", "totalCredits"])

        settlement = self.settle(tax_return, tax_after, trace)
        detail = Form740Result(
            federal_agi=federal.agi,
            tax_exempt_interest=exempt_interest,
            additions=additions,
            us_obligation_interest=us_interest,
            social_security_exclusion=ss_exclusion,
            pension_exclusion=pension_exclusion,
            subtractions=subtractions,
            ky_agi=ky_agi,
            standard_deduction=deduction,
            ky_taxable_income=taxable,
            ky_tax=ky_tax,
            personal_credit_count=credit_count,
            personal_tax_credit=personal_credit,
            family_size=persons,
            family_size_threshold=threshold,
            family_size_tax_credit=fstc,
            total_credits=total_credits,
            tax_after_credits=tax_after,
        )
        return self.result(
            state_config, ratio, ky_agi, taxable, ky_tax, total_credits, tax_after, settlement, detail,
        )

    def node_labels(self) -> Dict[str, str]:
        return {
            "kyAdditions": "KY additions (Schedule M Part I)",
            "kySubtractions": "KY subtractions (Schedule M Part II)",
            "kyAGI": "Kentucky adjusted gross income",
            "standardDeduction": "KY standard deduction",
            "kyTaxableIncome": "Kentucky taxable income",
            "kyTax": "Kentucky income tax (4.0%)",
            "personalTaxCredit": "KY personal tax credit",
            "familySizeTaxCredit": "KY Family Size Tax Credit",
            "totalCredits": "KY total credits",
            "taxAfterCredits": "KY tax after credits",
            "stateWithholding": "KY state income tax withheld",
            "overpaid": "KY overpaid (refund)",
            "amountOwed": "KY amount you owe",
        }

    def review_layout(self) -> List[ReviewSection]:
        p = self.node_prefix
        return [
            review_section(
                "Income",
                ("Federal AGI", "form1040.line11"),
                ("KY Additions", f"{p}.kyAdditions"),
                ("KY Subtractions", f"{p}.kySubtractions"),
                ("KY AGI", f"{p}.kyAGI"),
            ),
            review_section(
                "Deductions",
                ("KY Standard Deduction", f"{p}.standardDeduction"),
                ("KY Taxable Income", f"{p}.kyTaxableIncome"),
            ),
            review_section(
                "Tax & Credits",
                ("KY Tax (4.0%)", f"{p}.kyTax"),
                ("Personal Tax Credit", f"{p}.personalTaxCredit"),
                ("Family Size Tax Credit", f"{p}.familySizeTaxCredit"),
                ("Tax After Credits", f"{p}.taxAfterCredits"),
            ),
            review_section(
                "Payments",
                ("KY Withholding", f"{p}.stateWithholding"),
                ("Refund", f"{p}.overpaid"),
                ("Amount You Owe", f"{p}.amountOwed"),
            ),
        ]
