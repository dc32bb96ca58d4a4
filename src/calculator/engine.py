"""
Federal tax engine (Form 1040, tax year 2025).

Lines are composed strictly top to bottom; every line is recorded in the
trace graph with the node ids it was computed from, so any amount on the
return can be explained back to the documents and entries behind it.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence, Tuple

from calculator.child_tax_credit import ChildTaxCreditResult, compute_child_tax_credit
from calculator.decimal_math import Cents, max_zero, round_cents, sum_cents
from calculator.dependent_care_credit import DependentCareCreditResult, compute_dependent_care_credit
from calculator.earned_income_credit import EarnedIncomeCreditResult, compute_earned_income_credit
from calculator.education_credit import EducationCreditResult, compute_education_credit
from calculator.energy_credit import EnergyCreditResult, compute_energy_credits
from calculator.hsa_deduction import HSAResult, compute_hsa_deduction
from calculator.ira_deduction import IRADeductionResult, compute_ira_deduction, plan_coverage
from calculator.other_taxes import (
    AdditionalMedicareResult,
    AMTResult,
    EarlyDistributionResult,
    NIITResult,
    compute_additional_medicare,
    compute_amt,
    compute_early_distribution_tax,
    compute_niit,
)
from calculator.premium_tax_credit import PremiumTaxCreditResult, compute_premium_tax_credit
from calculator.qbi_calculator import QBIBreakdown, QBICalculator
from calculator.refundable_credits import (
    RefundableCreditContext,
    RefundableCreditRegistry,
    RefundableCreditsResult,
    aggregate_refundable_credits,
)
from calculator.rsu_adjustment import RSUAdjustmentResult, compute_rsu_adjustments
from calculator.savers_credit import SaversCreditResult, compute_savers_credit
from calculator.schedule_1 import (
    Schedule1Adjustments,
    Schedule1Income,
    compute_schedule1_income,
    educator_expense_deduction,
)
from calculator.schedule_a import ScheduleAResult, compute_schedule_a
from calculator.schedule_c import ScheduleCResult, compute_schedule_c
from calculator.schedule_d import ScheduleDResult, compute_schedule_d
from calculator.schedule_se import ScheduleSEResult, compute_schedule_se
from calculator.senior_deduction import AdditionalDeductionResult, compute_additional_standard_deduction
from calculator.social_security import SocialSecurityResult, compute_taxable_social_security
from calculator.student_loan_deduction import StudentLoanInterestResult, compute_student_loan_deduction
from calculator.tax_computation import TaxComputationResult, compute_tax
from calculator.tax_year_config import TaxYearConfig
from calculator.traced_value import TraceGraphBuilder
from models.deductions import DeductionMethod
from models.tax_return import TaxReturn
from models.taxpayer import FilingStatus, Owner

logger = logging.getLogger(__name__)

FORM_1040 = "form1040"


def line_id(number: str) -> str:
    """Trace node id for a Form 1040 line, e.g. ``line_id("11")``."""
    return f"{FORM_1040}.line{number}"


@dataclass(frozen=True)
class LineAmount:
    amount: Cents
    trace_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"amount": self.amount, "trace_id": self.trace_id}


@dataclass
class Form1040Result:
    """
    Form 1040 line by line, plus the entity results behind the lines.

    Every ``lineN`` field is a ``LineAmount`` whose ``trace_id`` names the
    node in the trace graph that explains it.
    """
    tax_year: int
    filing_status: FilingStatus

    line1a: LineAmount
    line1z: LineAmount
    line2a: LineAmount
    line2b: LineAmount
    line3a: LineAmount
    line3b: LineAmount
    line4a: LineAmount
    line4b: LineAmount
    line5a: LineAmount
    line5b: LineAmount
    line6a: LineAmount
    line6b: LineAmount
    line7: LineAmount
    line8: LineAmount
    line9: LineAmount
    line10: LineAmount
    line11: LineAmount
    line12: LineAmount
    line13: LineAmount
    line14: LineAmount
    line15: LineAmount
    line16: LineAmount
    line17: LineAmount
    line18: LineAmount
    line19: LineAmount
    line20: LineAmount
    line21: LineAmount
    line22: LineAmount
    line23: LineAmount
    line24: LineAmount
    line25a: LineAmount
    line25b: LineAmount
    line25c: LineAmount
    line25d: LineAmount
    line26: LineAmount
    line27: LineAmount
    line28: LineAmount
    line29: LineAmount
    line31: LineAmount
    line32: LineAmount
    line33: LineAmount
    line34: LineAmount
    line37: LineAmount

    deduction_method: str = DeductionMethod.STANDARD.value
    standard_deduction: Cents = 0
    executed_schedules: List[str] = field(default_factory=list)

    # Entity details
    rsu_adjustments: Optional[RSUAdjustmentResult] = None
    schedule_d: Optional[ScheduleDResult] = None
    schedule_c: Tuple[ScheduleCResult, ...] = ()
    schedule_se: Tuple[ScheduleSEResult, ...] = ()
    hsa: Optional[HSAResult] = None
    schedule1_income: Optional[Schedule1Income] = None
    schedule1_adjustments: Optional[Schedule1Adjustments] = None
    social_security: Optional[SocialSecurityResult] = None
    ira_deduction: Optional[IRADeductionResult] = None
    spouse_ira_deduction: Optional[IRADeductionResult] = None
    student_loan_interest: Optional[StudentLoanInterestResult] = None
    additional_standard_deduction: Optional[AdditionalDeductionResult] = None
    schedule_a: Optional[ScheduleAResult] = None
    qbi: Optional[QBIBreakdown] = None
    premium_tax_credit: Optional[PremiumTaxCreditResult] = None
    refundable_credits: Optional[RefundableCreditsResult] = None
    tax_computation: Optional[TaxComputationResult] = None
    amt: Optional[AMTResult] = None
    child_tax_credit: Optional[ChildTaxCreditResult] = None
    dependent_care_credit: Optional[DependentCareCreditResult] = None
    education_credit: Optional[EducationCreditResult] = None
    savers_credit: Optional[SaversCreditResult] = None
    energy_credit: Optional[EnergyCreditResult] = None
    additional_medicare: Optional[AdditionalMedicareResult] = None
    niit: Optional[NIITResult] = None
    early_distribution: Optional[EarlyDistributionResult] = None
    earned_income_credit: Optional[EarnedIncomeCreditResult] = None

    def lines(self) -> Dict[str, LineAmount]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name.startswith("line") and isinstance(getattr(self, f.name), LineAmount)
        }

    @property
    def agi(self) -> Cents:
        return self.line11.amount

    @property
    def taxable_income(self) -> Cents:
        return self.line15.amount

    @property
    def total_tax(self) -> Cents:
        return self.line24.amount

    @property
    def refund(self) -> Cents:
        return self.line34.amount

    @property
    def amount_owed(self) -> Cents:
        return self.line37.amount

    def to_dict(self) -> Dict[str, Any]:
        details: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name.startswith("line") or value is None:
                continue
            if is_dataclass(value):
                details[f.name] = asdict(value)
            elif isinstance(value, tuple) and value and is_dataclass(value[0]):
                details[f.name] = [asdict(v) for v in value]
        return {
            "tax_year": self.tax_year,
            "filing_status": self.filing_status.value,
            "deduction_method": self.deduction_method,
            "lines": {name: line.to_dict() for name, line in self.lines().items()},
            "executed_schedules": list(self.executed_schedules),
            "details": details,
        }


class FederalTaxEngine:
    """
    Federal tax calculation engine for Tax Year 2025.

    Implements:
    - Progressive tax brackets (7 rates)
    - Qualified dividends / long-term capital gains preferential rates (0%, 15%, 20%)
    - Self-employment tax with the Social Security wage base cap
    - Additional Medicare Tax (0.9%) and Net Investment Income Tax (3.8%)
    - Alternative Minimum Tax including ISO exercises
    - Standard deduction with the enhanced 65+ amount, itemized deductions, QBI deduction
    - Education credits with the refundable AOTC on line 29
    - Nonrefundable credits applied in order, refundable credits via providers

    The engine holds no per-return state; ``compute`` may be called
    repeatedly with different returns.
    """

    def __init__(
        self,
        config: Optional[TaxYearConfig] = None,
        refundable_registry: Optional[RefundableCreditRegistry] = None,
    ):
        self.config = config
        self.refundable_registry = refundable_registry

    def config_for(self, tax_return: TaxReturn) -> TaxYearConfig:
        if self.config is None:
            return TaxYearConfig.for_year(tax_return.tax_year)
        if self.config.tax_year != tax_return.tax_year:
            raise ValueError(
                f"Engine configured for {self.config.tax_year}, return is for {tax_return.tax_year}"
            )
        return self.config

    def compute(
        self,
        tax_return: TaxReturn,
        trace: Optional[TraceGraphBuilder] = None,
    ) -> Form1040Result:
        """
        Execute the full federal computation.

        Args:
            tax_return: Complete return input; never modified
            trace: Builder to record nodes into (a fresh one when omitted)

        Returns:
            Form1040Result with every line and its trace id
        """
        config = self.config_for(tax_return)
        run = _FederalComputation(
            tax_return,
            config,
            trace if trace is not None else TraceGraphBuilder(),
            self.refundable_registry,
        )
        return run.run()


class _FederalComputation:
    """State for one engine run. Steps execute in Form 1040 order."""

    def __init__(
        self,
        tax_return: TaxReturn,
        config: TaxYearConfig,
        trace: TraceGraphBuilder,
        registry: Optional[RefundableCreditRegistry],
    ):
        self.r = tax_return
        self.config = config
        self.trace = trace
        self.registry = registry
        self.status = tax_return.filing_status
        self.lines: Dict[str, LineAmount] = {}
        self.details: Dict[str, Any] = {}

        self.transactions: Tuple = ()
        self.schedule_d: Optional[ScheduleDResult] = None
        self.schedule_c: List[ScheduleCResult] = []
        self.schedule_se: List[ScheduleSEResult] = []
        self.hsa: Optional[HSAResult] = None
        self.schedule1_income: Optional[Schedule1Income] = None
        self.social_security: Optional[SocialSecurityResult] = None
        self.schedule_a: Optional[ScheduleAResult] = None
        self.itemize = False
        self.standard_deduction: Cents = 0
        self.ptc: Optional[PremiumTaxCreditResult] = None
        self.ctc: Optional[ChildTaxCreditResult] = None
        self.qbi: Optional[QBIBreakdown] = None
        self.amt: Optional[AMTResult] = None
        self.additional_medicare: Optional[AdditionalMedicareResult] = None
        self.earned_income: Cents = 0

        self.adjustments: Dict[str, Cents] = {}
        self.adjustment_ids: List[str] = []

    # -- trace helpers --------------------------------------------------------

    def doc(self, node_id: str, amount: Cents, label: Optional[str] = None, document_ref: Optional[str] = None) -> str:
        if node_id not in self.trace:
            self.trace.document(node_id, amount, label=label, document_ref=document_ref)
        return node_id

    def user(self, node_id: str, amount: Cents, label: Optional[str] = None) -> str:
        if node_id not in self.trace:
            self.trace.user_entry(node_id, amount, label=label)
        return node_id

    def node(
        self,
        node_id: str,
        amount: Cents,
        inputs: Sequence[str] = (),
        label: Optional[str] = None,
        citation: Optional[str] = None,
    ) -> str:
        self.trace.computed(node_id, amount, inputs, label=label, irs_citation=citation)
        return node_id

    def line(self, number: str, amount: Cents, inputs: Sequence[str] = (), citation: Optional[str] = None) -> Cents:
        node_id = line_id(number)
        self.trace.computed(node_id, amount, inputs, irs_citation=citation or f"Form 1040, line {number}")
        self.lines[f"line{number}"] = LineAmount(amount, node_id)
        return amount

    def amount(self, number: str) -> Cents:
        return self.lines[f"line{number}"].amount

    # -- run ------------------------------------------------------------------

    def run(self) -> Form1040Result:
        self._record_w2s()
        self._capital_gains()
        self._businesses()
        self._self_employment()
        self._hsa()
        self._schedule1_income()
        self._income_lines()
        self._adjustments_before_line9()
        self._taxable_social_security()
        self._total_income()
        self._ira_deductions()
        self._student_loan_interest()
        self._agi()
        self._deduction()
        self._qbi_deduction()
        self._taxable_income()
        self._refundable_credits()
        self._tax()
        self._schedule2_part1()
        self._child_tax_credit()
        self._schedule3_part1()
        self._tax_after_credits()
        self._schedule2_part2()
        self._payments()
        self._refund_or_owed()

        result = Form1040Result(
            tax_year=self.r.tax_year,
            filing_status=self.status,
            deduction_method=(DeductionMethod.ITEMIZED if self.itemize else DeductionMethod.STANDARD).value,
            standard_deduction=self.standard_deduction,
            executed_schedules=self._executed_schedules(),
            **self.lines,
            **self.details,
        )
        logger.debug(
            "Federal return: agi=%s taxable=%s total_tax=%s refund=%s owed=%s",
            result.agi, result.taxable_income, result.total_tax, result.refund, result.amount_owed,
        )
        return result

    # -- documents ------------------------------------------------------------

    def _record_w2s(self) -> None:
        for w2 in self.r.w2s:
            name = w2.employer_name or w2.id
            ref = f"W-2 {w2.id}"
            self.doc(f"w2.{w2.id}.box1", w2.box1_wages, f"{name} W-2 box 1 wages", ref)
            self.doc(f"w2.{w2.id}.box2", w2.box2_federal_withheld, f"{name} W-2 box 2 federal withholding", ref)
            self.doc(f"w2.{w2.id}.box3", w2.box3_ss_wages, f"{name} W-2 box 3 social security wages", ref)
            self.doc(f"w2.{w2.id}.box4", w2.box4_ss_withheld, f"{name} W-2 box 4 social security tax", ref)
            self.doc(f"w2.{w2.id}.box5", w2.box5_medicare_wages, f"{name} W-2 box 5 Medicare wages", ref)
            self.doc(f"w2.{w2.id}.box6", w2.box6_medicare_withheld, f"{name} W-2 box 6 Medicare tax", ref)

    # -- Form 8949 / Schedule D ---------------------------------------------

    def _capital_gains(self) -> None:
        r = self.r
        rsu = compute_rsu_adjustments(r.form1099_b, r.rsu_vest_events) if r.form1099_b else None
        self.details["rsu_adjustments"] = rsu
        self.transactions = rsu.transactions if rsu else ()
        vests = {v.id: v for v in r.rsu_vest_events}

        for txn in self.transactions:
            ref = f"1099-B {txn.source_1099b_id}"
            proceeds = self.doc(f"1099b.{txn.id}.proceeds", txn.proceeds, f"{txn.description} proceeds", ref)
            basis = self.doc(f"1099b.{txn.id}.basis", txn.reported_basis, f"{txn.description} reported basis", ref)
            adjustment_inputs = []
            if txn.wash_sale_loss_disallowed:
                adjustment_inputs.append(self.doc(
                    f"1099b.{txn.id}.washSale", txn.wash_sale_loss_disallowed,
                    f"{txn.description} wash sale loss disallowed", ref,
                ))
            if txn.linked_rsu_vest_id:
                vest = vests[txn.linked_rsu_vest_id]
                adjustment_inputs.append(self.user(
                    f"rsu.{vest.id}.fmvAtVest", round_cents(vest.total_fmv),
                    f"{vest.symbol} RSU value at vest {vest.vest_date.isoformat()}",
                ))
                adjustment_inputs.append(basis)
            gain_inputs = [proceeds, basis]
            if adjustment_inputs:
                gain_inputs.append(self.node(
                    f"form8949.{txn.id}.columnG", txn.adjustment_amount, adjustment_inputs,
                    label=f"{txn.description} adjustment ({txn.adjustment_code_text})",
                    citation="Form 8949, column (g)",
                ))
            self.node(
                f"form8949.{txn.id}.columnH", txn.gain_loss, gain_inputs,
                label=f"{txn.description} gain or (loss)", citation="Form 8949, column (h)",
            )

        distribution_ids = [
            self.doc(f"1099div.{d.id}.box2a", d.box2a_capital_gain_distributions,
                     f"{d.payer_name or d.id} capital gain distributions", f"1099-DIV {d.id}")
            for d in r.form1099_div if d.box2a_capital_gain_distributions
        ]
        distributions = sum_cents(d.box2a_capital_gain_distributions for d in r.form1099_div)
        self.schedule_d = compute_schedule_d(
            self.transactions, distributions, r.prior_year, self.status, self.config,
        )
        self.details["schedule_d"] = self.schedule_d
        if self.schedule_d is None:
            return

        sd = self.schedule_d
        st_inputs = [f"form8949.{t.id}.columnH" for t in self.transactions if not t.long_term]
        lt_inputs = [f"form8949.{t.id}.columnH" for t in self.transactions if t.long_term] + distribution_ids
        if sd.short_term_carryover_in:
            st_inputs.append(self.user("scheduleD.line6", sd.short_term_carryover_in, "Short-term capital loss carryover"))
        if sd.long_term_carryover_in:
            lt_inputs.append(self.user("scheduleD.line14", sd.long_term_carryover_in, "Long-term capital loss carryover"))
        self.node("scheduleD.line7", sd.net_short_term, st_inputs, "Net short-term capital gain or (loss)", "Schedule D, line 7")
        self.node("scheduleD.line15", sd.net_long_term, lt_inputs, "Net long-term capital gain or (loss)", "Schedule D, line 15")
        self.node(
            "scheduleD.line16", sd.net_gain_or_loss, ["scheduleD.line7", "scheduleD.line15"],
            "Net capital gain or (loss)", "Schedule D, line 16",
        )

    # -- Schedule C / Form 8829 ---------------------------------------------

    def _businesses(self) -> None:
        offices = {o.business_id: o for o in self.r.home_offices}
        for business in self.r.schedule_c_businesses:
            result = compute_schedule_c(business, offices.get(business.id), self.r.tax_year)
            self.schedule_c.append(result)
            prefix = f"scheduleC.{business.id}"
            name = business.business_name or business.id
            gross = self.user(f"{prefix}.line7", result.gross_income, f"{name} gross income")
            expenses = self.user(f"{prefix}.line28", result.total_expenses, f"{name} total expenses")
            tentative = self.node(
                f"{prefix}.line29", result.tentative_profit, [gross, expenses],
                f"{name} tentative profit", "Schedule C, line 29",
            )
            inputs = [tentative]
            if result.home_office is not None:
                inputs.append(self.node(
                    f"form8829.{business.id}.deduction", result.home_office_deduction, [tentative],
                    f"{name} business use of home", "Form 8829 / Schedule C, line 30",
                ))
            self.node(f"{prefix}.line31", result.net_profit, inputs, f"{name} net profit or (loss)", "Schedule C, line 31")
        self.details["schedule_c"] = tuple(self.schedule_c)

    # -- Schedule SE ----------------------------------------------------------

    def _self_employment(self) -> None:
        for owner in (Owner.TAXPAYER, Owner.SPOUSE):
            owned = [c for c in self.schedule_c if c.owner == owner]
            if not owned:
                continue
            w2s = self.r.w2s_for(owner)
            ss_wages = sum_cents(w.box3_ss_wages + w.box7_ss_tips for w in w2s)
            result = compute_schedule_se(sum_cents(c.net_profit for c in owned), ss_wages, self.config, owner)
            if result is None:
                continue
            self.schedule_se.append(result)
            inputs = [f"scheduleC.{c.business_id}.line31" for c in owned] + [f"w2.{w.id}.box3" for w in w2s]
            tax_id = self.node(
                f"scheduleSE.{owner.value}.line12", result.self_employment_tax, inputs,
                f"Self-employment tax ({owner.value})", "Schedule SE, line 12",
            )
            self.node(
                f"scheduleSE.{owner.value}.line13", result.deduction, [tax_id],
                f"Deductible part of self-employment tax ({owner.value})", "Schedule SE, line 13",
            )
        self.details["schedule_se"] = tuple(self.schedule_se)

        wages = sum_cents(w.box1_wages for w in self.r.w2s)
        profit = sum_cents(c.net_profit for c in self.schedule_c)
        se_deduction = sum_cents(s.deduction for s in self.schedule_se)
        self.earned_income = max_zero(wages + profit - se_deduction)

    # -- Form 8889 ------------------------------------------------------------

    def _hsa(self) -> None:
        r = self.r
        info = r.hsa
        owner = info.owner if info else Owner.TAXPAYER
        person = r.person(owner) or r.taxpayer
        self.hsa = compute_hsa_deduction(
            info, r.form1099_sa, r.w2s, person.age_at_end_of(r.tax_year), person.is_disabled, self.config,
        )
        self.details["hsa"] = self.hsa
        if self.hsa is None:
            return

        hsa = self.hsa
        personal = self.user("form8889.line2", hsa.personal_contributions, "HSA contributions you made")
        employer_inputs = [
            self.doc(f"w2.{w.id}.box12W", w.box12_total("W"), f"{w.employer_name or w.id} W-2 box 12 code W", f"W-2 {w.id}")
            for w in r.w2s_for(owner) if w.box12_total("W")
        ]
        employer = self.node("form8889.line9", hsa.employer_contributions, employer_inputs,
                             "Employer HSA contributions", "Form 8889, line 9")
        self.node("form8889.line13", hsa.deductible_amount, [personal, employer], "HSA deduction", "Form 8889, line 13")

        distribution_ids = [
            self.doc(f"1099sa.{d.id}.box1", d.box1_gross_distribution,
                     f"{d.payer_name or d.id} HSA distribution", f"1099-SA {d.id}")
            for d in r.form1099_sa
        ]
        qualified = self.user("form8889.line15", hsa.qualified_expenses, "Qualified medical expenses paid from the HSA")
        taxable = self.node("form8889.line16", hsa.taxable_distributions, distribution_ids + [qualified],
                            "Taxable HSA distributions", "Form 8889, line 16")
        self.node("form8889.line17b", hsa.additional_tax, [taxable], "Additional 20% tax on HSA distributions",
                  "Form 8889, line 17b")

    # -- Schedule 1 Part I ----------------------------------------------------

    def _schedule1_income(self) -> None:
        r = self.r
        income = compute_schedule1_income(r, self.schedule_c, self.hsa)
        self.schedule1_income = income
        self.details["schedule1_income"] = income
        if not any((
            income.taxable_refunds, income.business_income, income.rents_and_royalties,
            income.unemployment, income.hsa_distributions, income.other_income,
        )):
            return

        def docs(prefix: str, box: str, attr: str, items, form: str) -> List[str]:
            return [
                self.doc(f"{prefix}.{item.id}.{box}", getattr(item, attr),
                         f"{item.payer_name or item.id} {form} {box}", f"{form} {item.id}")
                for item in items if getattr(item, attr)
            ]

        refund_ids = docs("1099g", "box2", "box2_state_refund", r.form1099_g, "1099-G") if income.taxable_refunds else []
        line1 = self.node("schedule1.line1", income.taxable_refunds, refund_ids,
                          "Taxable refunds of state and local income taxes", "Schedule 1, line 1")
        line3 = self.node("schedule1.line3", income.business_income,
                          [f"scheduleC.{c.business_id}.line31" for c in self.schedule_c],
                          "Business income or (loss)", "Schedule 1, line 3")
        line5 = self.node("schedule1.line5", income.rents_and_royalties,
                          docs("1099misc", "box1", "box1_rents", r.form1099_misc, "1099-MISC")
                          + docs("1099misc", "box2", "box2_royalties", r.form1099_misc, "1099-MISC"),
                          "Rental real estate and royalties", "Schedule 1, line 5")
        line7 = self.node("schedule1.line7", income.unemployment,
                          docs("1099g", "box1", "box1_unemployment", r.form1099_g, "1099-G"),
                          "Unemployment compensation", "Schedule 1, line 7")
        line8f = self.node("schedule1.line8f", income.hsa_distributions,
                           ["form8889.line16"] if self.hsa else [],
                           "Taxable HSA distributions", "Schedule 1, line 8f")
        line8z = self.node("schedule1.line8z", income.other_income,
                           docs("1099misc", "box3", "box3_other_income", r.form1099_misc, "1099-MISC"),
                           "Other income", "Schedule 1, line 8z")
        line9 = self.node("schedule1.line9", income.total_other_income, [line8f, line8z],
                          "Total other income", "Schedule 1, line 9")
        self.node("schedule1.line10", income.total, [line1, line3, line5, line7, line9],
                  "Additional income", "Schedule 1, line 10")

    # -- Form 1040 lines 1a-8 -------------------------------------------------

    def _income_lines(self) -> None:
        r = self.r
        wages = self.line("1a", sum_cents(w.box1_wages for w in r.w2s), [f"w2.{w.id}.box1" for w in r.w2s])
        self.line("1z", wages, [line_id("1a")])

        exempt_ids: List[str] = []
        taxable_ids: List[str] = []
        for i in r.form1099_int:
            ref = f"1099-INT {i.id}"
            name = i.payer_name or i.id
            if i.box1_interest:
                taxable_ids.append(self.doc(f"1099int.{i.id}.box1", i.box1_interest, f"{name} interest", ref))
            if i.box3_us_obligation_interest:
                taxable_ids.append(self.doc(f"1099int.{i.id}.box3", i.box3_us_obligation_interest,
                                            f"{name} U.S. obligation interest", ref))
            if i.box8_tax_exempt_interest:
                exempt_ids.append(self.doc(f"1099int.{i.id}.box8", i.box8_tax_exempt_interest,
                                           f"{name} tax-exempt interest", ref))
        for d in r.form1099_div:
            if d.box11_exempt_interest_dividends:
                exempt_ids.append(self.doc(f"1099div.{d.id}.box11", d.box11_exempt_interest_dividends,
                                           f"{d.payer_name or d.id} exempt-interest dividends", f"1099-DIV {d.id}"))
        self.line("2a", sum_cents(
            [i.box8_tax_exempt_interest for i in r.form1099_int]
            + [d.box11_exempt_interest_dividends for d in r.form1099_div]
        ), exempt_ids)
        self.line("2b", sum_cents(i.box1_interest + i.box3_us_obligation_interest for i in r.form1099_int), taxable_ids)

        qualified_ids = [
            self.doc(f"1099div.{d.id}.box1b", d.box1b_qualified_dividends,
                     f"{d.payer_name or d.id} qualified dividends", f"1099-DIV {d.id}")
            for d in r.form1099_div if d.box1b_qualified_dividends
        ]
        ordinary_ids = [
            self.doc(f"1099div.{d.id}.box1a", d.box1a_ordinary_dividends,
                     f"{d.payer_name or d.id} ordinary dividends", f"1099-DIV {d.id}")
            for d in r.form1099_div if d.box1a_ordinary_dividends
        ]
        self.line("3a", sum_cents(d.box1b_qualified_dividends for d in r.form1099_div), qualified_ids)
        self.line("3b", sum_cents(d.box1a_ordinary_dividends for d in r.form1099_div), ordinary_ids)

        for is_ira, gross_line, taxable_line in ((True, "4a", "4b"), (False, "5a", "5b")):
            items = [d for d in r.form1099_r if d.is_ira == is_ira]
            gross_ids = [
                self.doc(f"1099r.{d.id}.box1", d.box1_gross_distribution,
                         f"{d.payer_name or d.id} gross distribution", f"1099-R {d.id}")
                for d in items
            ]
            taxable_ids = [
                self.doc(f"1099r.{d.id}.box2a", d.box2a_taxable_amount,
                         f"{d.payer_name or d.id} taxable amount", f"1099-R {d.id}")
                for d in items if not d.is_rollover
            ]
            self.line(gross_line, sum_cents(d.box1_gross_distribution for d in items), gross_ids)
            self.line(taxable_line, sum_cents(d.box2a_taxable_amount for d in items if not d.is_rollover),
                      taxable_ids + [line_id(gross_line)])

        ss_ids = [
            self.doc(f"ssa1099.{s.id}.box5", s.box5_net_benefits, f"SSA-1099 {s.id} net benefits", f"SSA-1099 {s.id}")
            for s in r.ssa1099
        ]
        self.line("6a", sum_cents(s.box5_net_benefits for s in r.ssa1099), ss_ids)

        if self.schedule_d is not None:
            self.line("7", self.schedule_d.form1040_line7, ["scheduleD.line16"],
                      "Form 1040, line 7 / Schedule D, line 16 or 21")
        else:
            self.line("7", 0)

        income = self.schedule1_income
        schedule1_ids = ["schedule1.line10"] if "schedule1.line10" in self.trace else []
        self.line("8", income.total if income else 0, schedule1_ids)

    # -- Schedule 1 Part II (before line 9) ----------------------------------

    def _adjustment(self, key: str, node_id: str, amount: Cents, inputs: Sequence[str], label: str, citation: str) -> None:
        self.adjustments[key] = amount
        if amount:
            self.adjustment_ids.append(self.node(node_id, amount, inputs, label, citation))

    def _adjustments_before_line9(self) -> None:
        r = self.r
        educator = educator_expense_deduction(r.educator_expenses, self.status, self.config)
        educator_inputs = [self.user("entries.educatorExpenses", r.educator_expenses, "Educator expenses paid")] if educator else []
        self._adjustment("educator_expenses", "schedule1.line11", educator, educator_inputs,
                         "Educator expenses", "Schedule 1, line 11")

        hsa_deduction = self.hsa.deductible_amount if self.hsa else 0
        self._adjustment("hsa_deduction", "schedule1.line13", hsa_deduction,
                         ["form8889.line13"] if self.hsa else [], "Health savings account deduction", "Schedule 1, line 13")

        self._adjustment("self_employment_tax", "schedule1.line15", sum_cents(s.deduction for s in self.schedule_se),
                         [f"scheduleSE.{s.owner.value}.line13" for s in self.schedule_se],
                         "Deductible part of self-employment tax", "Schedule 1, line 15")

        penalty_ids = [
            self.doc(f"1099int.{i.id}.box2", i.box2_early_withdrawal_penalty,
                     f"{i.payer_name or i.id} early withdrawal penalty", f"1099-INT {i.id}")
            for i in r.form1099_int if i.box2_early_withdrawal_penalty
        ]
        self._adjustment("early_withdrawal_penalty", "schedule1.line18",
                         sum_cents(i.box2_early_withdrawal_penalty for i in r.form1099_int), penalty_ids,
                         "Penalty on early withdrawal of savings", "Schedule 1, line 18")

    def _taxable_social_security(self) -> None:
        other_income = sum(self.amount(n) for n in ("1z", "2b", "3b", "4b", "5b", "7", "8"))
        adjustments = sum(self.adjustments.values())
        self.social_security = compute_taxable_social_security(
            self.amount("6a"), other_income, self.amount("2a"), adjustments, self.status, self.config,
        )
        self.details["social_security"] = self.social_security
        if self.social_security is None:
            self.line("6b", 0, [line_id("6a")])
            return
        inputs = [line_id(n) for n in ("6a", "1z", "2a", "2b", "3b", "4b", "5b", "7", "8")] + self.adjustment_ids
        self.line("6b", self.social_security.taxable_benefits, inputs,
                  "Form 1040, line 6b / Social Security Benefits Worksheet")

    def _total_income(self) -> None:
        parts = ("1z", "2b", "3b", "4b", "5b", "6b", "7", "8")
        self.line("9", sum(self.amount(n) for n in parts), [line_id(n) for n in parts])

    # -- IRA and student loan interest (depend on line 9) --------------------

    def _ira_deductions(self) -> None:
        r = self.r
        contributions = r.retirement_contributions
        covered_tp, covered_sp = plan_coverage(r.w2s)
        magi = self.amount("9")

        compensation = {}
        for owner in (Owner.TAXPAYER, Owner.SPOUSE):
            wages = sum_cents(w.box1_wages for w in r.w2s_for(owner))
            se = sum_cents(s.net_profit - s.deduction for s in self.schedule_se if s.owner == owner)
            compensation[owner] = wages + max_zero(se)
        if self.status == FilingStatus.MARRIED_JOINT:
            # Spousal IRA: combined compensation less the other spouse's contributions
            tp_avail = compensation[Owner.TAXPAYER] + max_zero(
                compensation[Owner.SPOUSE] - contributions.spouse_traditional_ira - contributions.spouse_roth_ira
            )
            sp_avail = compensation[Owner.SPOUSE] + max_zero(
                compensation[Owner.TAXPAYER] - contributions.traditional_ira - contributions.roth_ira
            )
            compensation = {Owner.TAXPAYER: tp_avail, Owner.SPOUSE: sp_avail}

        results: Dict[Owner, Optional[IRADeductionResult]] = {}
        ids: List[str] = []
        for owner, contribution, covered, other_covered in (
            (Owner.TAXPAYER, contributions.traditional_ira, covered_tp, covered_sp),
            (Owner.SPOUSE, contributions.spouse_traditional_ira, covered_sp, covered_tp),
        ):
            person = r.person(owner)
            if owner == Owner.SPOUSE and (person is None or self.status != FilingStatus.MARRIED_JOINT):
                results[owner] = None
                continue
            result = compute_ira_deduction(
                contribution,
                person.date_of_birth if person else None,
                self.status,
                covered,
                other_covered if self.status.is_joint or self.status == FilingStatus.MARRIED_SEPARATE else False,
                magi,
                compensation[owner],
                self.config,
                owner,
            )
            results[owner] = result
            if result is None:
                continue
            entry = self.user(f"ira.{owner.value}.contribution", contribution,
                              f"Traditional IRA contribution ({owner.value})")
            inputs = [entry, line_id("9")] + [f"w2.{w.id}.box1" for w in r.w2s_for(owner)]
            ids.append(self.node(f"ira.{owner.value}.deduction", result.deductible_amount, inputs,
                                 f"IRA deduction ({owner.value})", "IRA Deduction Worksheet (Pub 590-A)"))

        self.details["ira_deduction"] = results[Owner.TAXPAYER]
        self.details["spouse_ira_deduction"] = results[Owner.SPOUSE]
        total = sum_cents(res.deductible_amount for res in results.values() if res is not None)
        self._adjustment("ira_deduction", "schedule1.line20", total, ids, "IRA deduction", "Schedule 1, line 20")

    def _student_loan_interest(self) -> None:
        magi = self.amount("9") - self.adjustments["ira_deduction"] - self.adjustments["hsa_deduction"]
        result = compute_student_loan_deduction(self.r.student_loan_interest, self.status, magi, self.config)
        self.details["student_loan_interest"] = result
        amount = result.deduction if result else 0
        inputs: List[str] = []
        if result is not None:
            inputs = [self.user("form1098e.box1", self.r.student_loan_interest, "Student loan interest paid"), line_id("9")]
            inputs += [i for i in ("schedule1.line20", "schedule1.line13") if i in self.trace]
        self._adjustment("student_loan_interest", "schedule1.line21", amount, inputs,
                         "Student loan interest deduction", "Schedule 1, line 21")

    def _agi(self) -> None:
        adjustments = Schedule1Adjustments(**self.adjustments)
        self.details["schedule1_adjustments"] = adjustments
        inputs: List[str] = []
        if adjustments.total:
            inputs = [self.node("schedule1.line26", adjustments.total, self.adjustment_ids,
                                "Adjustments to income", "Schedule 1, line 26")]
        self.line("10", adjustments.total, inputs)
        self.line("11", self.amount("9") - self.amount("10"), [line_id("9"), line_id("10")])

    # -- Deductions -----------------------------------------------------------

    def _standard_deduction_amount(self) -> Cents:
        r = self.r
        status = self.status.value
        base = self.config.standard_deduction[status]
        if r.can_be_claimed_as_dependent:
            base = min(base, max(
                self.config.dependent_standard_deduction_min,
                self.earned_income + self.config.dependent_standard_deduction_earned_add,
            ))
        people = [r.taxpayer]
        if self.status == FilingStatus.MARRIED_JOINT:
            people.append(r.spouse)
        additional = compute_additional_standard_deduction(people, self.status, r.tax_year, self.config)
        self.details["additional_standard_deduction"] = additional
        return base + additional.total

    def _deduction(self) -> None:
        r = self.r
        agi = self.amount("11")
        self.standard_deduction = self._standard_deduction_amount()
        standard_id = self.node("deduction.standard", self.standard_deduction, [],
                                "Standard deduction", "Form 1040, line 12 / Standard Deduction Chart")

        method = r.deduction_election.method
        itemized_id = None
        if method != DeductionMethod.STANDARD:
            self._schedule_a(agi)
            itemized_id = "scheduleA.line17"

        if method == DeductionMethod.ITEMIZED:
            self.itemize = True
        elif method == DeductionMethod.AUTO and self.schedule_a is not None:
            self.itemize = self.schedule_a.total_itemized > self.standard_deduction

        if self.itemize:
            self.line("12", self.schedule_a.total_itemized, [itemized_id], "Form 1040, line 12 / Schedule A, line 17")
        else:
            self.line("12", self.standard_deduction, [standard_id])

    def _schedule_a(self, agi: Cents) -> None:
        items = self.r.itemized
        offices = [c.home_office for c in self.schedule_c if c.home_office is not None]
        short_term = self.schedule_d.net_short_term if self.schedule_d else 0
        net_investment_income = (
            self.amount("2b") + max_zero(self.amount("3b") - self.amount("3a")) + max_zero(short_term)
        )
        sa = compute_schedule_a(
            items,
            agi,
            self.status,
            net_investment_income,
            self.config,
            home_office_mortgage_interest=sum_cents(o.mortgage_interest_business for o in offices),
            home_office_real_estate_taxes=sum_cents(o.real_estate_taxes_business for o in offices),
        )
        self.schedule_a = sa
        self.details["schedule_a"] = sa

        agi_id = line_id("11")
        office_ids = [f"form8829.{o.business_id}.deduction" for o in offices]
        medical = self.node("scheduleA.line4", sa.medical_deduction,
                            [self.user("scheduleA.line1", items.medical_expenses, "Medical and dental expenses"), agi_id],
                            "Medical and dental expenses over 7.5% of AGI", "Schedule A, line 4")
        taxes = self.node("scheduleA.line7", sa.total_taxes,
                          [self.user("scheduleA.line5", sa.salt_paid, "State and local taxes paid"), agi_id] + office_ids,
                          "State and local taxes (after the SALT limit)", "Schedule A, line 7")
        interest = self.node("scheduleA.line10", sa.total_interest,
                             [self.user("scheduleA.line8", items.mortgage_interest + items.mortgage_points,
                                        "Home mortgage interest and points"),
                              self.user("scheduleA.line9", items.investment_interest, "Investment interest")]
                             + office_ids,
                             "Interest you paid", "Schedule A, line 10")
        gifts = self.node("scheduleA.line14", sa.charitable_deduction,
                          [self.user("scheduleA.line11", items.charitable_cash, "Gifts by cash or check"),
                           self.user("scheduleA.line12", items.charitable_noncash, "Gifts other than by cash"),
                           agi_id],
                          "Gifts to charity", "Schedule A, line 14")
        other = self.user("scheduleA.line15_16", items.casualty_losses + items.other_itemized,
                          "Casualty and other itemized deductions")
        self.node("scheduleA.line17", sa.total_itemized, [medical, taxes, interest, gifts, other],
                  "Total itemized deductions", "Schedule A, line 17")

    # -- QBI and taxable income ----------------------------------------------

    def _qbi_deduction(self) -> None:
        r = self.r
        reit = sum_cents(d.box5_section_199a_dividends for d in r.form1099_div)
        if not self.schedule_c and not reit:
            self.details["qbi"] = None
            self.line("13", 0)
            return

        net_capital_gain = self.amount("3a") + (self.schedule_d.net_capital_gain if self.schedule_d else 0)
        self.qbi = QBICalculator().calculate(
            self.schedule_c,
            self.adjustments["self_employment_tax"],
            reit,
            max_zero(self.amount("11") - self.amount("12")),
            net_capital_gain,
            self.status,
            self.config,
        )
        self.details["qbi"] = self.qbi
        inputs = [f"scheduleC.{c.business_id}.line31" for c in self.schedule_c]
        if "schedule1.line15" in self.trace:
            inputs.append("schedule1.line15")
        inputs += [
            self.doc(f"1099div.{d.id}.box5", d.box5_section_199a_dividends,
                     f"{d.payer_name or d.id} section 199A dividends", f"1099-DIV {d.id}")
            for d in r.form1099_div if d.box5_section_199a_dividends
        ]
        inputs += [line_id("11"), line_id("12")]
        qbi_id = self.node("form8995.line15", self.qbi.final_qbi_deduction, inputs,
                           "Qualified business income deduction", "Form 8995, line 15")
        self.line("13", self.qbi.final_qbi_deduction, [qbi_id])

    def _taxable_income(self) -> None:
        self.line("14", self.amount("12") + self.amount("13"), [line_id("12"), line_id("13")])
        self.line("15", max_zero(self.amount("11") - self.amount("14")), [line_id("11"), line_id("14")])

    # -- Refundable credits (PTC on household income) ------------------------

    def _refundable_credits(self) -> None:
        r = self.r
        if r.form1095_a:
            nontaxable = self.social_security.nontaxable_benefits if self.social_security else 0
            household_income = self.amount("11") + self.amount("2a") + nontaxable
            income_id = self.node("form8962.line3", household_income,
                                  [line_id("11"), line_id("2a"), line_id("6a"), line_id("6b")],
                                  "Household income", "Form 8962, line 3")
            self.ptc = compute_premium_tax_credit(
                r.form1095_a, r.household_size, household_income, self.status, self.config,
            )
            premium_ids: List[str] = []
            advance_ids: List[str] = []
            for statement in r.form1095_a:
                ref = f"1095-A {statement.id}"
                name = statement.marketplace_name or statement.id
                premium_ids.append(self.doc(f"1095a.{statement.id}.columnA",
                                            sum_cents(row.enrollment_premium for row in statement.rows),
                                            f"{name} enrollment premiums", ref))
                premium_ids.append(self.doc(f"1095a.{statement.id}.columnB",
                                            sum_cents(row.slcsp_premium for row in statement.rows),
                                            f"{name} benchmark (SLCSP) premiums", ref))
                advance_ids.append(self.doc(f"1095a.{statement.id}.columnC",
                                            sum_cents(row.advance_ptc for row in statement.rows),
                                            f"{name} advance premium tax credit", ref))
            ptc = self.ptc
            credit = self.node("form8962.line24", ptc.annual_credit, [income_id] + premium_ids,
                               "Total premium tax credit", "Form 8962, line 24")
            advance = self.node("form8962.line25", ptc.total_advance_ptc, advance_ids,
                                "Advance payment of premium tax credit", "Form 8962, line 25")
            self.node("form8962.line26", ptc.net_premium_tax_credit, [credit, advance],
                      "Net premium tax credit", "Form 8962, line 26")
            self.node("form8962.line29", ptc.excess_advance_repayment, [credit, advance, income_id],
                      "Excess advance premium tax credit repayment", "Form 8962, line 29")
        self.details["premium_tax_credit"] = self.ptc

        context = RefundableCreditContext(tax_return=r, config=self.config, premium_tax_credit=self.ptc)
        refundable = aggregate_refundable_credits(context, self.registry)
        self.details["refundable_credits"] = refundable
        item_ids = [
            self.node(item.node_id, item.amount, item.input_node_ids, item.label, item.irs_citation)
            for item in refundable.items
        ]
        if item_ids:
            self.node("schedule3.line15", refundable.total, item_ids,
                      "Other payments and refundable credits", "Schedule 3, line 15")

    # -- Tax and Schedule 2 Part I -------------------------------------------

    def _net_capital_gain(self) -> Cents:
        return self.schedule_d.net_capital_gain if self.schedule_d else 0

    def _tax(self) -> None:
        computation = compute_tax(
            self.amount("15"), self.amount("3a"), self._net_capital_gain(), self.status, self.config,
        )
        self.details["tax_computation"] = computation
        inputs = [line_id("15")]
        citation = "Form 1040, line 16 / Tax Table"
        if computation.used_capital_gain_worksheet:
            inputs.append(line_id("3a"))
            if self.schedule_d is not None:
                inputs.append("scheduleD.line16")
            citation = "Qualified Dividends and Capital Gain Tax Worksheet"
        self.line("16", computation.tax, inputs, citation)

    def _schedule2_part1(self) -> None:
        r = self.r
        iso = round_cents(sum((e.bargain_element for e in r.iso_exercises), Decimal(0)))
        if self.itemize:
            adjustment = self.schedule_a.total_taxes
            adjustment_id = "scheduleA.line7"
        else:
            adjustment = self.amount("12")
            adjustment_id = line_id("12")
        self.amt = compute_amt(
            self.amount("15"), adjustment, iso, self.amount("16"),
            self.amount("3a"), self._net_capital_gain(), self.status, self.config,
        )
        self.details["amt"] = self.amt

        parts: List[str] = []
        excess_aptc = self.ptc.excess_advance_repayment if self.ptc else 0
        if excess_aptc:
            parts.append(self.node("schedule2.line1a", excess_aptc, ["form8962.line29"],
                                   "Excess advance premium tax credit repayment", "Schedule 2, line 1a"))
        if self.amt.owes_amt:
            amt_inputs = [line_id("15"), adjustment_id, line_id("16")]
            if iso:
                amt_inputs.append(self.user("form6251.line2i", iso, "Incentive stock options bargain element"))
            amt_id = self.node("form6251.line11", self.amt.amt, amt_inputs,
                               "Alternative minimum tax", "Form 6251, line 11")
            parts.append(self.node("schedule2.line2", self.amt.amt, [amt_id],
                                   "Alternative minimum tax", "Schedule 2, line 2"))
        total = excess_aptc + self.amt.amt
        inputs = [self.node("schedule2.line3", total, parts, "Schedule 2 Part I total", "Schedule 2, line 3")] if parts else []
        self.line("17", total, inputs)
        self.line("18", self.amount("16") + self.amount("17"), [line_id("16"), line_id("17")])

    # -- Nonrefundable credits -----------------------------------------------

    def _child_tax_credit(self) -> None:
        r = self.r
        self.ctc = compute_child_tax_credit(
            r.dependents, self.status, self.amount("11"), self.amount("18"), self.earned_income, self.config,
        )
        self.details["child_tax_credit"] = self.ctc
        if self.ctc is None:
            self.line("19", 0)
            return
        initial = self.user("schedule8812.line8", self.ctc.initial_credit,
                            "Credit for qualifying children and other dependents")
        credit = self.node("schedule8812.line14", self.ctc.nonrefundable_credit,
                           [initial, line_id("11"), line_id("18")],
                           "Child tax credit and credit for other dependents", "Schedule 8812, line 14")
        self.line("19", self.ctc.nonrefundable_credit, [credit])

    def _schedule3_part1(self) -> None:
        r = self.r
        agi = self.amount("11")
        remaining = max_zero(self.amount("18") - self.amount("19"))
        parts: List[str] = []

        taxpayer_earned, spouse_earned = self._earned_by_owner()
        dependent_care = compute_dependent_care_credit(
            r.dependent_care,
            sum_cents(w.box10_dependent_care for w in r.w2s),
            self.status,
            taxpayer_earned,
            spouse_earned if self.status == FilingStatus.MARRIED_JOINT else None,
            agi,
            self.config,
        )
        self.details["dependent_care_credit"] = dependent_care
        if dependent_care is not None and dependent_care.credit:
            allowed = min(dependent_care.credit, remaining)
            remaining -= allowed
            inputs = [self.user("form2441.line2", r.dependent_care.expenses_paid, "Qualified care expenses paid"),
                      line_id("11")]
            inputs += [
                self.doc(f"w2.{w.id}.box10", w.box10_dependent_care,
                         f"{w.employer_name or w.id} W-2 box 10 dependent care benefits", f"W-2 {w.id}")
                for w in r.w2s if w.box10_dependent_care
            ]
            parts.append(self.node("schedule3.line2", allowed, inputs,
                                   "Credit for child and dependent care expenses", "Form 2441 / Schedule 3, line 2"))

        education = compute_education_credit(
            r.education_expenses, self.status, agi, r.can_be_claimed_as_dependent, self.config,
        )
        self.details["education_credit"] = education
        if education is not None and education.nonrefundable:
            allowed = min(education.nonrefundable, remaining)
            remaining -= allowed
            parts.append(self.node("schedule3.line3", allowed, self._education_entries() + [line_id("11")],
                                   "Education credits", "Form 8863, line 19 / Schedule 3, line 3"))

        contributions = r.retirement_contributions
        ages = [r.taxpayer.age_at_end_of(r.tax_year)]
        amounts = [contributions.traditional_ira + contributions.roth_ira]
        if self.status == FilingStatus.MARRIED_JOINT and r.spouse is not None:
            ages.append(r.spouse.age_at_end_of(r.tax_year))
            amounts.append(contributions.spouse_traditional_ira + contributions.spouse_roth_ira)
        savers = compute_savers_credit(amounts, ages, agi, self.status, r.can_be_claimed_as_dependent, self.config)
        self.details["savers_credit"] = savers
        if savers is not None and savers.credit:
            allowed = min(savers.credit, remaining)
            remaining -= allowed
            entry = self.user("form8880.line1", sum_cents(amounts), "Retirement contributions")
            parts.append(self.node("schedule3.line4", allowed, [entry, line_id("11")],
                                   "Retirement savings contributions credit", "Form 8880 / Schedule 3, line 4"))

        energy = compute_energy_credits(r.energy_improvements, self.config)
        self.details["energy_credit"] = energy
        if energy is not None:
            if energy.clean_energy_credit:
                allowed = min(energy.clean_energy_credit, remaining)
                remaining -= allowed
                entry = self.user("form5695.line6", energy.clean_energy_costs, "Residential clean energy costs")
                parts.append(self.node("schedule3.line5a", allowed, [entry],
                                       "Residential clean energy credit", "Form 5695 / Schedule 3, line 5a"))
            if energy.home_improvement_credit:
                allowed = min(energy.home_improvement_credit, remaining)
                remaining -= allowed
                entry = self.user("form5695.line32", energy.home_improvement_credit,
                                  "Energy efficient home improvement credit before the tax limit")
                parts.append(self.node("schedule3.line5b", allowed, [entry],
                                       "Energy efficient home improvement credit", "Form 5695 / Schedule 3, line 5b"))

        total = sum(self.trace.amount(p) for p in parts)
        inputs = [self.node("schedule3.line8", total, parts, "Nonrefundable credits", "Schedule 3, line 8")] if parts else []
        self.line("20", total, inputs)

    def _education_entries(self) -> List[str]:
        return [
            self.user(f"form8863.student{idx}.expenses", student.qualified_expenses,
                      f"Qualified education expenses ({student.name or idx})")
            for idx, student in enumerate(self.r.education_expenses.students, 1)
        ]

    def _earned_by_owner(self) -> Tuple[Cents, Cents]:
        earned = []
        for owner in (Owner.TAXPAYER, Owner.SPOUSE):
            wages = sum_cents(w.box1_wages for w in self.r.w2s_for(owner))
            se = sum_cents(s.net_profit - s.deduction for s in self.schedule_se if s.owner == owner)
            earned.append(max_zero(wages + se))
        return earned[0], earned[1]

    def _tax_after_credits(self) -> None:
        self.line("21", self.amount("19") + self.amount("20"), [line_id("19"), line_id("20")])
        self.line("22", max_zero(self.amount("18") - self.amount("21")), [line_id("18"), line_id("21")])

    # -- Schedule 2 Part II ---------------------------------------------------

    def _schedule2_part2(self) -> None:
        r = self.r
        parts: List[str] = []
        total = 0

        se_tax = sum_cents(s.self_employment_tax for s in self.schedule_se)
        if se_tax:
            parts.append(self.node("schedule2.line4", se_tax,
                                   [f"scheduleSE.{s.owner.value}.line12" for s in self.schedule_se],
                                   "Self-employment tax", "Schedule 2, line 4"))
            total += se_tax

        early = compute_early_distribution_tax(r.form1099_r, self.config)
        self.details["early_distribution"] = early
        hsa_excess = self.hsa.excess_contribution_tax if self.hsa else 0
        form5329: List[str] = []
        if early is not None:
            ids = [f"1099r.{d.id}.box2a" for d in r.form1099_r if d.is_early_distribution and not d.is_rollover]
            form5329.append(self.node("form5329.line4", early.tax, ids,
                                      "Additional tax on early distributions", "Form 5329, line 4"))
        if hsa_excess:
            form5329.append(self.node("form5329.line49", hsa_excess, ["form8889.line2", "form8889.line9"],
                                      "Excise tax on excess HSA contributions", "Form 5329, line 49"))
        if form5329:
            amount = (early.tax if early else 0) + hsa_excess
            parts.append(self.node("schedule2.line8", amount, form5329,
                                   "Additional tax on IRAs and tax-favored accounts", "Schedule 2, line 8"))
            total += amount

        se_earnings = sum_cents(s.net_earnings for s in self.schedule_se)
        self.additional_medicare = compute_additional_medicare(r.w2s, se_earnings, self.status, self.config)
        self.details["additional_medicare"] = self.additional_medicare
        if self.additional_medicare is not None:
            medicare = self.additional_medicare
            wage_ids = [f"w2.{w.id}.box5" for w in r.w2s]
            tax_id = self.node("form8959.line18", medicare.total_tax,
                               wage_ids + [f"scheduleSE.{s.owner.value}.line12" for s in self.schedule_se],
                               "Additional Medicare Tax", "Form 8959, line 18")
            self.node("form8959.line24", medicare.withholding_credit, wage_ids + [f"w2.{w.id}.box6" for w in r.w2s],
                      "Additional Medicare Tax withholding", "Form 8959, line 24")
            if medicare.total_tax:
                parts.append(self.node("schedule2.line11", medicare.total_tax, [tax_id],
                                       "Additional Medicare Tax", "Schedule 2, line 11"))
                total += medicare.total_tax

        income = self.schedule1_income
        investment_interest = self.schedule_a.investment_interest if self.itemize else 0
        niit = compute_niit(
            self.amount("2b"),
            self.amount("3b"),
            self.amount("7"),
            income.rents_and_royalties if income else 0,
            investment_interest,
            self.amount("11"),
            self.status,
            self.config,
        )
        self.details["niit"] = niit
        if niit is not None:
            inputs = [line_id("2b"), line_id("3b"), line_id("7"), line_id("11")]
            if "schedule1.line5" in self.trace:
                inputs.append("schedule1.line5")
            niit_id = self.node("form8960.line17", niit.tax, inputs, "Net investment income tax", "Form 8960, line 17")
            parts.append(self.node("schedule2.line12", niit.tax, [niit_id],
                                   "Net investment income tax", "Schedule 2, line 12"))
            total += niit.tax

        hsa_additional = self.hsa.additional_tax if self.hsa else 0
        if hsa_additional:
            parts.append(self.node("schedule2.line17c", hsa_additional, ["form8889.line17b"],
                                   "Additional tax on HSA distributions", "Schedule 2, line 17c"))
            total += hsa_additional

        inputs = [self.node("schedule2.line21", total, parts, "Total other taxes", "Schedule 2, line 21")] if parts else []
        self.line("23", total, inputs)
        self.line("24", self.amount("22") + self.amount("23"), [line_id("22"), line_id("23")])

    # -- Payments -------------------------------------------------------------

    def _payments(self) -> None:
        r = self.r
        self.line("25a", sum_cents(w.box2_federal_withheld for w in r.w2s), [f"w2.{w.id}.box2" for w in r.w2s])

        withheld: List[Tuple[str, Cents, str, str]] = []
        withheld += [(f"1099int.{i.id}.box4", i.box4_federal_withheld, "1099-INT", i.id) for i in r.form1099_int]
        withheld += [(f"1099div.{d.id}.box4", d.box4_federal_withheld, "1099-DIV", d.id) for d in r.form1099_div]
        withheld += [(f"1099b.{b.id}.box4", b.federal_withheld, "1099-B", b.id) for b in r.form1099_b]
        withheld += [(f"1099misc.{m.id}.box4", m.box4_federal_withheld, "1099-MISC", m.id) for m in r.form1099_misc]
        withheld += [(f"1099r.{d.id}.box4", d.box4_federal_withheld, "1099-R", d.id) for d in r.form1099_r]
        withheld += [(f"1099g.{g.id}.box4", g.box4_federal_withheld, "1099-G", g.id) for g in r.form1099_g]
        withheld += [(f"ssa1099.{s.id}.box6", s.box6_voluntary_withheld, "SSA-1099", s.id) for s in r.ssa1099]
        ids = [
            self.doc(node_id, amount, f"{form} {doc_id} federal withholding", f"{form} {doc_id}")
            for node_id, amount, form, doc_id in withheld if amount
        ]
        self.line("25b", sum_cents(amount for _, amount, _, _ in withheld), ids)

        medicare = self.additional_medicare
        self.line("25c", medicare.withholding_credit if medicare else 0, ["form8959.line24"] if medicare else [])
        self.line("25d", sum(self.amount(n) for n in ("25a", "25b", "25c")), [line_id(n) for n in ("25a", "25b", "25c")])

        estimated = self.user("payments.estimated", r.estimated_tax_payments, "Estimated tax payments")
        self.line("26", r.estimated_tax_payments, [estimated])

        eic = compute_earned_income_credit(
            self.status,
            self.earned_income,
            self.amount("11"),
            self._investment_income(),
            r.dependents,
            r.taxpayer.age_at_end_of(r.tax_year),
            r.can_be_claimed_as_dependent,
            self.config,
        )
        self.details["earned_income_credit"] = eic
        eic_inputs = [line_id("1z"), line_id("11")] + [f"scheduleSE.{s.owner.value}.line13" for s in self.schedule_se]
        self.line("27", eic.credit if eic else 0, eic_inputs if eic else [], "Form 1040, line 27 / EIC Worksheet")

        actc = self.ctc.additional_child_tax_credit if self.ctc else 0
        self.line("28", actc, ["schedule8812.line14"] if self.ctc else [], "Schedule 8812, line 27")
        education = self.details["education_credit"]
        aotc_inputs: List[str] = []
        if education is not None and education.refundable:
            aotc_inputs = [self.node("form8863.line8", education.refundable, self._education_entries() + [line_id("11")],
                                     "Refundable American opportunity credit", "Form 8863, line 8")]
        self.line("29", education.refundable if education else 0, aotc_inputs)

        refundable = self.details["refundable_credits"]
        self.line("31", refundable.total, ["schedule3.line15"] if refundable.items else [])
        self.line("32", sum(self.amount(n) for n in ("27", "28", "29", "31")),
                  [line_id(n) for n in ("27", "28", "29", "31")])
        self.line("33", sum(self.amount(n) for n in ("25d", "26", "32")), [line_id(n) for n in ("25d", "26", "32")])

    def _investment_income(self) -> Cents:
        income = self.schedule1_income
        rents = income.rents_and_royalties if income else 0
        return self.amount("2a") + self.amount("2b") + self.amount("3b") + max_zero(self.amount("7")) + max_zero(rents)

    def _refund_or_owed(self) -> None:
        total_tax = self.amount("24")
        payments = self.amount("33")
        self.line("34", max_zero(payments - total_tax), [line_id("33"), line_id("24")])
        self.line("37", max_zero(total_tax - payments), [line_id("24"), line_id("33")])

    # -- Reporting ------------------------------------------------------------

    def _executed_schedules(self) -> List[str]:
        d = self.details
        adjustments: Schedule1Adjustments = d["schedule1_adjustments"]
        threshold = self.config.schedule_b_threshold
        dependent_care = d.get("dependent_care_credit")
        savers = d.get("savers_credit")
        eic = d.get("earned_income_credit")
        education = d.get("education_credit")
        checks = [
            ("Schedule 1", "schedule1.line10" in self.trace or adjustments.total > 0),
            ("Schedule 2", self.amount("17") > 0 or self.amount("23") > 0),
            ("Schedule 3", self.amount("20") > 0 or self.amount("31") > 0),
            ("Schedule A", self.itemize),
            ("Schedule B", self.amount("2b") > threshold or self.amount("3b") > threshold),
            ("Schedule C", bool(self.schedule_c)),
            ("Schedule D", self.schedule_d is not None),
            ("Schedule SE", bool(self.schedule_se)),
            ("Schedule 8812", self.ctc is not None),
            ("Schedule EIC", eic is not None and eic.credit > 0 and eic.qualifying_children > 0),
            ("Form 2441", dependent_care is not None and dependent_care.credit > 0),
            ("Form 5329", "schedule2.line8" in self.trace),
            ("Form 5695", d.get("energy_credit") is not None),
            ("Form 6251", self.amt is not None and self.amt.owes_amt),
            ("Form 8829", any(c.home_office is not None for c in self.schedule_c)),
            ("Form 8863", education is not None and education.aotc_credit + education.llc_credit > 0),
            ("Form 8880", savers is not None and savers.credit > 0),
            ("Form 8889", self.hsa is not None),
            ("Form 8949", bool(self.transactions)),
            ("Form 8959", self.additional_medicare is not None),
            ("Form 8960", d.get("niit") is not None),
            ("Form 8962", self.ptc is not None),
            ("Form 8995", self.qbi is not None and self.qbi.final_qbi_deduction > 0),
        ]
        return [name for name, executed in checks if executed]
