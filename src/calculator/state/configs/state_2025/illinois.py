"""Illinois state tax configuration for tax year 2025 (IL-1040)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List

from calculator.decimal_math import Cents, max_zero, sum_cents
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

PERSONAL_EXEMPTION = 285000


def get_illinois_config() -> StateTaxConfig:
    """Illinois 2025: 4.95% flat tax, $2,850 exemption per person, EIC at 20% of federal."""
    return StateTaxConfig(
        state_code="IL",
        state_name="Illinois",
        tax_year=2025,
        is_flat_tax=True,
        flat_rate=Decimal("0.0495"),
        dependent_exemption_amount=PERSONAL_EXEMPTION,
        social_security_taxable=False,
        eitc_percentage=Decimal("0.20"),
    )


@dataclass(frozen=True)
class IL1040Result:
    federal_agi: Cents
    tax_exempt_interest: Cents
    additions: Cents
    us_obligation_interest: Cents
    social_security_exclusion: Cents
    retirement_income_exclusion: Cents
    state_refund_subtraction: Cents
    subtractions: Cents
    base_income: Cents
    exemption_count: int
    exemption_allowance: Cents
    net_income: Cents
    taxable_income: Cents               # net income after apportionment
    il_tax: Cents
    il_eic: Cents
    tax_after_credits: Cents


@register_state("IL", 2025)
class IllinoisCalculator(BaseStateCalculator):
    """Illinois IL-1040; part-year and nonresident returns apportion net income."""

    state_code = "IL"
    state_name = "Illinois"
    form_label = "IL-1040"
    node_prefix = "il1040"
    template_files = ("il1040.pdf",)

    @classmethod
    def default_config(cls) -> StateTaxConfig:
        return get_illinois_config()

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

        # Schedule M additions
        exempt_interest = self.tax_exempt_interest(tax_return)
        additions = exempt_interest
        if additions:
            trace.computed("ilAdditions", additions, [federal.line2a.trace_id])

        # Schedule M subtractions
        us_interest = self.us_obligation_interest(tax_return)
        ss_exclusion = 0 if cfg.social_security_taxable else federal.line6b.amount
        retirement = federal.line4b.amount + federal.line5b.amount
        refund = 0
        refund_ids: List[str] = []
        if tax_return.prior_year.itemized_last_year:
            refund = sum_cents(g.box2_state_refund for g in tax_return.form1099_g)
            refund_ids = present(trace, [f"1099g.{g.id}.box2" for g in tax_return.form1099_g])
        subtractions = us_interest + ss_exclusion + retirement + refund
        if subtractions:
            trace.computed(
                "ilSubtractions", subtractions,
                [federal.line2b.trace_id, federal.line6b.trace_id,
                 federal.line4b.trace_id, federal.line5b.trace_id] + refund_ids,
            )

        base_income = max_zero(federal.agi + additions - subtractions)
        trace.computed(
            "ilBaseIncome", base_income,
            [federal.line11.trace_id] + present(trace, ["ilAdditions", "ilSubtractions"]),
        )

        count = self.person_count(tax_return)
        allowance = count * cfg.dependent_exemption_amount
        trace.user_entry("exemptionAllowance", allowance, f"IL exemption allowance ({count} x $2,850)")

        net_income = max_zero(base_income - allowance)
        trace.computed("ilNetIncome", net_income, ["ilBaseIncome", "exemptionAllowance"])

        taxable = apportion(net_income, ratio)
        trace.computed("ilTaxableIncome", taxable, ["ilNetIncome"])

        il_tax = self.calculate_brackets(taxable, status)
        trace.computed("ilTax", il_tax, ["ilTaxableIncome"])

        federal_eic = federal.earned_income_credit.credit if federal.earned_income_credit else 0
        il_eic = self.calculate_state_eitc(federal_eic)
        after_ids = ["ilTax"]
        if il_eic:
            trace.computed("ilEIC", il_eic, [federal.line27.trace_id])
            after_ids.append("ilEIC")

        tax_after = max_zero(il_tax - il_eic)
        trace.computed("taxAfterCredits", tax_after, after_ids)

        settlement = self.settle(tax_return, tax_after, trace)
        detail = IL1040Result(
            federal_agi=federal.agi,
            tax_exempt_interest=exempt_interest,
            additions=additions,
            us_obligation_interest=us_interest,
            social_security_exclusion=ss_exclusion,
            retirement_income_exclusion=retirement,
            state_refund_subtraction=refund,
            subtractions=subtractions,
            base_income=base_income,
            exemption_count=count,
            exemption_allowance=allowance,
            net_income=net_income,
            taxable_income=taxable,
            il_tax=il_tax,
            il_eic=il_eic,
            tax_after_credits=tax_after,
        )
        return self.result(
            state_config, ratio, base_income, taxable, il_tax, il_eic, tax_after, settlement, detail,
        )

    def node_labels(self) -> Dict[str, str]:
        return {
            "ilAdditions": "IL additions (Schedule M)",
            "ilSubtractions": "IL subtractions (Schedule M)",
            "ilBaseIncome": "Illinois base income",
            "exemptionAllowance": "IL exemption allowance",
            "ilNetIncome": "Illinois net income",
            "ilTaxableIncome": "Illinois net income after apportionment",
            "ilTax": "Illinois income tax (4.95%)",
            "ilEIC": "Illinois earned income credit",
            "taxAfterCredits": "IL tax after credits",
            "stateWithholding": "IL state income tax withheld",
            "overpaid": "IL overpaid (refund)",
            "amountOwed": "IL amount you owe",
        }

    def review_layout(self) -> List[ReviewSection]:
        p = self.node_prefix
        return [
            review_section(
                "Income",
                ("Federal AGI", "form1040.line11"),
                ("IL Additions", f"{p}.ilAdditions"),
                ("IL Subtractions", f"{p}.ilSubtractions"),
                ("IL Base Income", f"{p}.ilBaseIncome"),
            ),
            review_section(
                "Exemptions",
                ("Exemption Allowance", f"{p}.exemptionAllowance"),
                ("IL Net Income", f"{p}.ilNetIncome"),
            ),
            review_section(
                "Tax & Credits",
                ("IL Tax (4.95%)", f"{p}.ilTax"),
                ("IL Earned Income Credit", f"{p}.ilEIC"),
                ("Tax After Credits", f"{p}.taxAfterCredits"),
            ),
            review_section(
                "Payments",
                ("IL Withholding", f"{p}.stateWithholding"),
                ("Refund", f"{p}.overpaid"),
                ("Amount You Owe", f"{p}.amountOwed"),
            ),
        ]
