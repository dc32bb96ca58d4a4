"""Pennsylvania state tax configuration for tax year 2025 (PA-40)."""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List

from calculator.decimal_math import ONE, Cents, max_zero, round_cents, sum_cents
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
from models.state_return import ResidencyType, StateReturnConfig
from models.taxpayer import FilingStatus

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn

# Schedule SP (Tax Forgiveness)
FORGIVENESS_SINGLE_BASE = 650000
FORGIVENESS_MARRIED_BASE = 1300000
FORGIVENESS_PER_DEPENDENT = 950000
FORGIVENESS_STEP = 25000


def get_pennsylvania_config() -> StateTaxConfig:
    """Pennsylvania 2025: 3.07% flat tax on eight income classes, no deductions."""
    return StateTaxConfig(
        state_code="PA",
        state_name="Pennsylvania",
        tax_year=2025,
        is_flat_tax=True,
        flat_rate=Decimal("0.0307"),
        starts_from="income_classes",
        social_security_taxable=False,
    )


@dataclass(frozen=True)
class PAIncomeClasses:
    """
    PA-40 lines 1 through 8. Each class is floored at zero on its own; a
    loss in one class never offsets another.
    """
    compensation: Cents
    interest: Cents
    dividends: Cents
    net_business_income: Cents
    net_gains: Cents

    @property
    def total(self) -> Cents:
        return (
            self.compensation
            + self.interest
            + self.dividends
            + self.net_business_income
            + self.net_gains
        )


@dataclass(frozen=True)
class ScheduleSPResult:
    eligibility_income: Cents           # PA taxable income plus Social Security
    dependents: int
    married: bool
    forgiveness_percentage: int         # 0-100 in steps of 10
    forgiveness_credit: Cents

    @property
    def qualifies(self) -> bool:
        return self.forgiveness_percentage > 0


@dataclass(frozen=True)
class PA40Result:
    income_classes: PAIncomeClasses
    total_taxable_income: Cents
    pa_tax: Cents
    tax_forgiveness: ScheduleSPResult
    tax_after_credits: Cents


def classify_income(
    tax_return: "TaxReturn", federal: "Form1040Result", residency: ResidencyType,
) -> PAIncomeClasses:
    """
    Sort income into PA classes from the source documents.

    Nonresidents are taxed only on PA-source income: wages from W-2s with
    box 15 "PA". Interest, dividends, business income and gains carry no
    PA situs on the documents and count as zero.
    """
    nonresident = residency == ResidencyType.NONRESIDENT
    w2s = [w for w in tax_return.w2s if w.box15_state == "PA"] if nonresident else tax_return.w2s
    compensation = sum_cents(
        w.box16_state_wages if w.box15_state == "PA" and w.box16_state_wages else w.box1_wages
        for w in w2s
    )
    if nonresident:
        return PAIncomeClasses(compensation, 0, 0, 0, 0)

    interest = sum_cents(i.box1_interest + i.box8_tax_exempt_interest for i in tax_return.form1099_int)
    dividends = sum_cents(
        d.box1a_ordinary_dividends + d.box2a_capital_gain_distributions for d in tax_return.form1099_div
    )
    business = max_zero(sum_cents(c.net_profit for c in federal.schedule_c))
    transactions = federal.rsu_adjustments.transactions if federal.rsu_adjustments else ()
    gains = max_zero(sum_cents(t.gain_loss for t in transactions))
    return PAIncomeClasses(max_zero(compensation), interest, dividends, business, gains)


def forgiveness_percentage(eligibility_income: Cents, married: bool, dependents: int) -> int:
    base = FORGIVENESS_MARRIED_BASE if married else FORGIVENESS_SINGLE_BASE
    base += dependents * FORGIVENESS_PER_DEPENDENT
    if eligibility_income <= base:
        return 100
    steps = math.ceil((eligibility_income - base) / FORGIVENESS_STEP)
    if steps >= 10:
        return 0
    return 100 - steps * 10


def schedule_sp(tax_return: "TaxReturn", taxable_income: Cents, pa_tax: Cents) -> ScheduleSPResult:
    married = tax_return.filing_status == FilingStatus.MARRIED_JOINT
    dependents = len(tax_return.dependents)
    eligibility = taxable_income + max_zero(sum_cents(s.box5_net_benefits for s in tax_return.ssa1099))
    pct = forgiveness_percentage(eligibility, married, dependents)
    credit = round_cents(Decimal(pa_tax) * pct / 100)
    return ScheduleSPResult(eligibility, dependents, married, pct, credit)


@register_state("PA", 2025)
class PennsylvaniaCalculator(BaseStateCalculator):
    """
    Pennsylvania PA-40.

    PA does not start from federal AGI; it classifies income from the
    source documents. Retirement income and Social Security are not taxed.
    Part-year residents pay the full-year tax scaled by days resident.
    Nonresidents pay the full rate on their PA-source classes.
    """

    state_code = "PA"
    state_name = "Pennsylvania"
    form_label = "PA-40"
    node_prefix = "pa40"
    template_files = ("pa40.pdf",)

    @classmethod
    def default_config(cls) -> StateTaxConfig:
        return get_pennsylvania_config()

    def compute(
        self,
        tax_return: "TaxReturn",
        federal: "Form1040Result",
        state_config: StateReturnConfig,
        trace: NamespacedTraceBuilder,
    ) -> StateComputeResult:
        status = tax_return.filing_status.value
        ratio = self.ratio_for(tax_return, state_config)
        classes = classify_income(tax_return, federal, state_config.residency)

        class_ids: List[str] = []
        wage_ids = present(trace, [f"w2.{w.id}.box1" for w in tax_return.w2s])
        for node_id, amount, inputs in (
            ("compensation", classes.compensation, wage_ids),
            ("interest", classes.interest, [federal.line2a.trace_id, federal.line2b.trace_id]),
            ("dividends", classes.dividends, [federal.line3b.trace_id]),
            ("netBusinessIncome", classes.net_business_income,
             present(trace, [f"scheduleC.{c.business_id}.line31" for c in federal.schedule_c])),
            ("netGains", classes.net_gains, [federal.line7.trace_id]),
        ):
            if amount:
                trace.computed(node_id, amount, inputs)
                class_ids.append(node_id)

        total = classes.total
        trace.computed("totalTaxableIncome", total, class_ids)

        tax_ratio = ONE if state_config.residency == ResidencyType.NONRESIDENT else ratio
        pa_tax = apportion(self.calculate_brackets(total, status), tax_ratio)
        trace.computed("paTax", pa_tax, ["totalTaxableIncome"])

        sp = schedule_sp(tax_return, total, pa_tax)
        after_ids = ["paTax"]
        if sp.forgiveness_credit:
            ss_ids = present(trace, [f"ssa1099.{s.id}.box5" for s in tax_return.ssa1099])
            trace.computed("taxForgiveness", sp.forgiveness_credit, ["paTax", "totalTaxableIncome"] + ss_ids)
            after_ids.append("taxForgiveness")

        tax_after = max_zero(pa_tax - sp.forgiveness_credit)
        trace.computed("taxAfterCredits", tax_after, after_ids)

        settlement = self.settle(tax_return, tax_after, trace)
        detail = PA40Result(
            income_classes=classes,
            total_taxable_income=total,
            pa_tax=pa_tax,
            tax_forgiveness=sp,
            tax_after_credits=tax_after,
        )
        return self.result(
            state_config, ratio, total, total, pa_tax, sp.forgiveness_credit, tax_after, settlement, detail,
        )

    def node_labels(self) -> Dict[str, str]:
        return {
            "compensation": "PA compensation (line 1a)",
            "interest": "PA interest income (line 2)",
            "dividends": "PA dividend income (line 3)",
            "netBusinessIncome": "PA net business income (line 4)",
            "netGains": "PA net gains (line 5)",
            "totalTaxableIncome": "PA total taxable income",
            "paTax": "Pennsylvania income tax (3.07%)",
            "taxForgiveness": "PA tax forgiveness (Schedule SP)",
            "taxAfterCredits": "PA tax after credits",
            "stateWithholding": "PA state income tax withheld",
            "overpaid": "PA overpaid (refund)",
            "amountOwed": "PA amount you owe",
        }

    def review_layout(self) -> List[ReviewSection]:
        p = self.node_prefix
        return [
            review_section(
                "Income Classes",
                ("Compensation", f"{p}.compensation"),
                ("Interest", f"{p}.interest"),
                ("Dividends", f"{p}.dividends"),
                ("Net Business Income", f"{p}.netBusinessIncome"),
                ("Net Gains", f"{p}.netGains"),
                ("Total Taxable Income", f"{p}.totalTaxableIncome"),
            ),
            review_section(
                "Tax & Credits",
                ("PA Tax (3.07%)", f"{p}.paTax"),
                ("Tax Forgiveness", f"{p}.taxForgiveness"),
                ("Tax After Credits", f"{p}.taxAfterCredits"),
            ),
            review_section(
                "Payments",
                ("PA Withholding", f"{p}.stateWithholding"),
                ("Refund", f"{p}.overpaid"),
                ("Amount You Owe", f"{p}.amountOwed"),
            ),
        ]
