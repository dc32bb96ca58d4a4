"""California state tax configuration for tax year 2025 (Form 540)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Optional

from calculator.decimal_math import Cents, apply_rate, max_zero, ratio, round_cents, sum_cents
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
from models.deductions import DeductionMethod
from models.state_return import StateReturnConfig
from models.taxpayer import FilingStatus

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn

MEDICAL_FLOOR_RATE = Decimal("0.075")
MENTAL_HEALTH_THRESHOLD = 100000000
MENTAL_HEALTH_RATE = Decimal("0.01")

PERSONAL_EXEMPTION_CREDIT = 15300
DEPENDENT_EXEMPTION_CREDIT = 47500
EXEMPTION_PHASEOUT_THRESHOLD = {
    "single": 25220300,
    "married_separate": 25220300,
    "married_joint": 50441100,
    "qualifying_widow": 50441100,
    "head_of_household": 37831000,
}
EXEMPTION_PHASEOUT_RATE = Decimal("0.06")

# Acquisition debt limit; CA did not adopt the federal $750,000 limit
MORTGAGE_LIMIT = {
    "single": 100000000,
    "married_joint": 100000000,
    "married_separate": 50000000,
    "head_of_household": 100000000,
    "qualifying_widow": 100000000,
}


def _floors(*dollars: int) -> List:
    rates = ("0.01", "0.02", "0.04", "0.06", "0.08", "0.093", "0.103", "0.113", "0.123")
    return [(d * 100, Decimal(r)) for d, r in zip(dollars, rates)]


_SINGLE = _floors(0, 11079, 26264, 41452, 57542, 72724, 371479, 445771, 742953)
_JOINT = _floors(0, 22158, 52528, 82904, 115084, 145448, 742958, 891542, 1485906)
_HOH = _floors(0, 22173, 52530, 67716, 83805, 98990, 505208, 606251, 1010417)


def get_california_config() -> StateTaxConfig:
    """California 2025: nine brackets from 1% to 12.3%."""
    return StateTaxConfig(
        state_code="CA",
        state_name="California",
        tax_year=2025,
        is_flat_tax=False,
        brackets={
            "single": _SINGLE,
            "married_separate": _SINGLE,
            "married_joint": _JOINT,
            "qualifying_widow": _JOINT,
            "head_of_household": _HOH,
        },
        standard_deduction={
            "single": 570600,
            "married_separate": 570600,
            "married_joint": 1141200,
            "head_of_household": 1141200,
            "qualifying_widow": 1141200,
        },
        social_security_taxable=False,
        hsa_deduction_allowed=False,
        renter_credit_single=6000,
        renter_credit_joint=12000,
        renter_credit_income_limit_single=5399400,
        renter_credit_income_limit_joint=10798700,
    )


@dataclass(frozen=True)
class ExemptionCredits:
    personal_credit: Cents
    dependent_credit: Cents
    phase_out_reduction: Cents
    total: Cents


@dataclass(frozen=True)
class Form540Result:
    federal_agi: Cents
    hsa_addback: Cents                  # Schedule CA additions
    additions: Cents
    social_security_exclusion: Cents
    us_obligation_interest: Cents
    subtractions: Cents
    ca_agi: Cents
    standard_deduction: Cents
    itemized_deduction: Cents           # 0 when not computed
    deduction_used: Cents
    deduction_method: str
    ca_taxable_income: Cents
    ca_tax: Cents
    exemption_credits: ExemptionCredits
    tax_after_exemptions: Cents
    mental_health_tax: Cents
    renters_credit: Cents
    tax_after_credits: Cents


def exemption_credits(filing_status: FilingStatus, joint: bool, dependents: int, ca_agi: Cents) -> ExemptionCredits:
    """
    Personal and dependent exemption credits, reduced 6% for each $2,500
    (or part of it; $1,250 when married filing separately) of CA AGI over
    the threshold.
    """
    personal = (2 if joint else 1) * PERSONAL_EXEMPTION_CREDIT
    dependent = dependents * DEPENDENT_EXEMPTION_CREDIT
    before = personal + dependent
    reduction = 0
    excess = ca_agi - EXEMPTION_PHASEOUT_THRESHOLD[filing_status.value]
    if excess > 0:
        step = 125000 if filing_status == FilingStatus.MARRIED_SEPARATE else 250000
        increments = math.ceil(excess / step)
        reduction = min(round_cents(before * EXEMPTION_PHASEOUT_RATE * increments), before)
    return ExemptionCredits(personal, dependent, reduction, before - reduction)


@register_state("CA", 2025)
class CaliforniaCalculator(BaseStateCalculator):
    """California Form 540 with Schedule CA adjustments."""

    state_code = "CA"
    state_name = "California"
    form_label = "CA Form 540"
    node_prefix = "form540"
    template_files = ("540.pdf",)

    @classmethod
    def default_config(cls) -> StateTaxConfig:
        return get_california_config()

    def itemized_deduction(
        self, tax_return: "TaxReturn", federal: "Form1040Result", ca_agi: Cents,
    ) -> Optional[Cents]:
        """
        Federal Schedule A with California's differences: medical floor on
        CA AGI, no state income tax and no SALT cap, and the $1,000,000
        mortgage limit. None when the federal return did not itemize.
        """
        schedule_a = federal.schedule_a
        itemized = tax_return.itemized
        if schedule_a is None or itemized is None or federal.deduction_method != DeductionMethod.ITEMIZED.value:
            return None
        status = tax_return.filing_status.value
        office_interest = sum_cents(
            c.home_office.mortgage_interest_business for c in federal.schedule_c if c.home_office
        )
        office_taxes = sum_cents(
            c.home_office.real_estate_taxes_business for c in federal.schedule_c if c.home_office
        )

        medical = max_zero(itemized.medical_expenses - apply_rate(ca_agi, MEDICAL_FLOOR_RATE))
        taxes = (
            max_zero(itemized.real_estate_taxes - office_taxes)
            + itemized.personal_property_taxes
            + itemized.state_local_sales_tax
        )
        interest = max_zero(itemized.mortgage_interest - office_interest)
        limit = MORTGAGE_LIMIT[status]
        if itemized.mortgage_principal > limit:
            interest = round_cents(interest * ratio(limit, itemized.mortgage_principal))
        mortgage = interest + itemized.mortgage_points
        return (
            medical
            + taxes
            + mortgage
            + schedule_a.investment_interest
            + schedule_a.charitable_deduction
            + schedule_a.casualty_losses
            + schedule_a.other_itemized
        )

    def renters_credit(self, tax_return: "TaxReturn", state_config: StateReturnConfig, ca_agi: Cents) -> Cents:
        cfg = self.config
        if state_config.rent_paid <= 0:
            return 0
        if tax_return.filing_status in (FilingStatus.SINGLE, FilingStatus.MARRIED_SEPARATE):
            credit, limit = cfg.renter_credit_single, cfg.renter_credit_income_limit_single
        else:
            credit, limit = cfg.renter_credit_joint, cfg.renter_credit_income_limit_joint
        return credit if limit is not None and ca_agi <= limit else 0

    def compute(
        self,
        tax_return: "TaxReturn",
        federal: "Form1040Result",
        state_config: StateReturnConfig,
        trace: NamespacedTraceBuilder,
    ) -> StateComputeResult:
        cfg = self.config
        status = tax_return.filing_status.value
        ratio_ = self.ratio_for(tax_return, state_config)

        # Schedule CA
        hsa_addback = 0 if cfg.hsa_deduction_allowed else self.hsa_deduction(federal)
        additions = hsa_addback
        if additions:
            trace.computed("caAdditions", additions, present(trace, ["schedule1.line13"]) or [federal.line10.trace_id])

        ss_exclusion = 0 if cfg.social_security_taxable else federal.line6b.amount
        us_interest = self.us_obligation_interest(tax_return)
        subtractions = ss_exclusion + us_interest
        if subtractions:
            trace.computed("caSubtractions", subtractions, [federal.line6b.trace_id, federal.line2b.trace_id])

        ca_agi = max_zero(federal.agi + additions - subtractions)
        trace.computed(
            "caAGI", ca_agi,
            [federal.line11.trace_id] + present(trace, ["caAdditions", "caSubtractions"]),
        )

        standard = cfg.get_standard_deduction(status)
        itemized = self.itemized_deduction(tax_return, federal, ca_agi)
        use_itemized = itemized is not None and itemized > standard
        deduction = itemized if use_itemized else standard
        if use_itemized:
            trace.computed("itemizedDeduction", deduction, ["caAGI", "scheduleA.line17"])
            deduction_id = "itemizedDeduction"
        else:
            trace.user_entry("standardDeduction", deduction)
            deduction_id = "standardDeduction"

        taxable = max_zero(ca_agi - deduction)
        trace.computed("caTaxableIncome", taxable, ["caAGI", deduction_id])

        ca_tax = apportion(self.calculate_brackets(taxable, status), ratio_)
        trace.computed("caTax", ca_tax, ["caTaxableIncome"])

        exemptions = exemption_credits(
            tax_return.filing_status, tax_return.is_joint, len(tax_return.dependents), ca_agi,
        )
        trace.computed("exemptionCredits", exemptions.total, ["caAGI"])
        after_exemptions = max_zero(ca_tax - exemptions.total)
        trace.computed("taxAfterExemptions", after_exemptions, ["caTax", "exemptionCredits"])

        mhst = apportion(apply_rate(max_zero(taxable - MENTAL_HEALTH_THRESHOLD), MENTAL_HEALTH_RATE), ratio_)
        net_ids = ["taxAfterExemptions"]
        if mhst:
            trace.computed("mentalHealthTax", mhst, ["caTaxableIncome"])
            net_ids.append("mentalHealthTax")
        net_tax = after_exemptions + mhst
        trace.computed("netTax", net_tax, net_ids)

        renters = self.renters_credit(tax_return, state_config, ca_agi)
        after_ids = ["netTax"]
        if renters:
            trace.computed("rentersCredit", renters, ["caAGI"])
            after_ids.append("rentersCredit")
        tax_after = max_zero(net_tax - renters)
        trace.computed("taxAfterCredits", tax_after, after_ids)

        settlement = self.settle(tax_return, tax_after, trace)
        detail = Form540Result(
            federal_agi=federal.agi,
            hsa_addback=hsa_addback,
            additions=additions,
            social_security_exclusion=ss_exclusion,
            us_obligation_interest=us_interest,
            subtractions=subtractions,
            ca_agi=ca_agi,
            standard_deduction=standard,
            itemized_deduction=itemized or 0,
            deduction_used=deduction,
            deduction_method="itemized" if use_itemized else "standard",
            ca_taxable_income=taxable,
            ca_tax=ca_tax,
            exemption_credits=exemptions,
            tax_after_exemptions=after_exemptions,
            mental_health_tax=mhst,
            renters_credit=renters,
            tax_after_credits=tax_after,
        )
        return self.result(
            state_config, ratio_, ca_agi, taxable, ca_tax + mhst,
            exemptions.total + renters, tax_after, settlement, detail,
        )

    def node_labels(self) -> Dict[str, str]:
        return {
            "caAdditions": "Schedule CA additions",
            "caSubtractions": "Schedule CA subtractions",
            "caAGI": "California adjusted gross income",
            "standardDeduction": "CA standard deduction",
            "itemizedDeduction": "CA itemized deductions",
            "caTaxableIncome": "California taxable income",
            "caTax": "California tax",
            "exemptionCredits": "CA exemption credits",
            "taxAfterExemptions": "CA tax after exemption credits",
            "mentalHealthTax": "Mental Health Services Tax",
            "netTax": "CA net tax",
            "rentersCredit": "CA renter's credit",
            "taxAfterCredits": "CA tax after credits",
            "stateWithholding": "CA state income tax withheld",
            "overpaid": "CA overpaid (refund)",
            "amountOwed": "CA amount you owe",
        }

    def review_layout(self) -> List[ReviewSection]:
        p = self.node_prefix
        return [
            review_section(
                "Income",
                ("Federal AGI", "form1040.line11"),
                ("CA Additions", f"{p}.caAdditions"),
                ("CA Subtractions", f"{p}.caSubtractions"),
                ("CA AGI", f"{p}.caAGI"),
            ),
            review_section(
                "Deductions",
                ("CA Standard Deduction", f"{p}.standardDeduction"),
                ("CA Itemized Deductions", f"{p}.itemizedDeduction"),
                ("CA Taxable Income", f"{p}.caTaxableIncome"),
            ),
            review_section(
                "Tax & Credits",
                ("CA Tax", f"{p}.caTax"),
                ("Exemption Credits", f"{p}.exemptionCredits"),
                ("Mental Health Services Tax", f"{p}.mentalHealthTax"),
                ("Renter's Credit", f"{p}.rentersCredit"),
                ("Tax After Credits", f"{p}.taxAfterCredits"),
            ),
            review_section(
                "Payments",
                ("CA Withholding", f"{p}.stateWithholding"),
                ("Refund", f"{p}.overpaid"),
                ("Amount You Owe", f"{p}.amountOwed"),
            ),
        ]
