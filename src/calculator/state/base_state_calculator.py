"""Base class for state tax calculators."""

from __future__ import annotations

import calendar
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field, is_dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from calculator.decimal_math import ONE, ZERO, Cents, compute_bracket_tax, max_zero, round_cents, sum_cents
from calculator.state.state_tax_config import StateTaxConfig
from calculator.traced_value import NamespacedTraceBuilder
from models.state_return import ResidencyType, StateReturnConfig

if TYPE_CHECKING:
    from calculator.engine import Form1040Result
    from models.tax_return import TaxReturn

logger = logging.getLogger(__name__)


# =============================================================================
# RESIDENCY APPORTIONMENT
# =============================================================================


def days_in_year(tax_year: int) -> int:
    return 366 if calendar.isleap(tax_year) else 365


def resident_days(state_config: StateReturnConfig, tax_year: int) -> int:
    """
    Inclusive count of days resident during ``tax_year``.

    Dates outside the year clamp to Jan 1 / Dec 31; a move-out before the
    move-in yields 0.
    """
    year_start = date(tax_year, 1, 1)
    year_end = date(tax_year, 12, 31)
    start = max(state_config.move_in_date or year_start, year_start)
    end = min(state_config.move_out_date or year_end, year_end)
    if end < start:
        return 0
    return (end - start).days + 1


def apportionment_ratio(state_config: StateReturnConfig, tax_year: int) -> Decimal:
    """
    Fraction of the year resident, always in ``[0, 1]``.

    Full-year residents get 1 and nonresidents 0; part-year residents get
    resident days over days in the year.

    Examples:
        >>> cfg = StateReturnConfig(state_code="KY", residency="part_year",
        ...                         move_in_date=date(2025, 7, 1))
        >>> apportionment_ratio(cfg, 2025) == Decimal(184) / Decimal(365)
        True
    """
    if state_config.residency == ResidencyType.FULL_YEAR:
        return ONE
    if state_config.residency == ResidencyType.NONRESIDENT:
        return ZERO
    ratio = Decimal(resident_days(state_config, tax_year)) / Decimal(days_in_year(tax_year))
    return min(ONE, max(ZERO, ratio))


def apportion(amount: Cents, ratio: Decimal) -> Cents:
    """Scale ``amount`` by ``ratio``; a full ratio leaves it untouched."""
    if ratio >= ONE:
        return amount
    return round_cents(amount * ratio)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class ReviewItem:
    label: str
    node_id: str


@dataclass(frozen=True)
class ReviewSection:
    title: str
    items: Tuple[ReviewItem, ...]


def review_section(title: str, *items: Tuple[str, str]) -> ReviewSection:
    return ReviewSection(title, tuple(ReviewItem(label, node_id) for label, node_id in items))


@dataclass(frozen=True)
class StateComputeResult:
    """
    One state's aggregate result.

    ``detail`` is the state-specific breakdown dataclass (``Form740Result``,
    ``Form540Result``, ...). ``source_income`` is state AGI scaled by the
    apportionment ratio and is None for full-year residents.
    """
    state_code: str
    form_label: str
    residency: ResidencyType
    state_agi: Cents
    state_taxable_income: Cents
    state_tax: Cents
    state_credits: Cents
    tax_after_credits: Cents
    state_withholding: Cents
    overpaid: Cents
    amount_owed: Cents
    apportionment_ratio: Decimal
    source_income: Optional[Cents] = None
    detail: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state_code": self.state_code,
            "form_label": self.form_label,
            "residency": self.residency.value,
            "state_agi": self.state_agi,
            "state_taxable_income": self.state_taxable_income,
            "state_tax": self.state_tax,
            "state_credits": self.state_credits,
            "tax_after_credits": self.tax_after_credits,
            "state_withholding": self.state_withholding,
            "overpaid": self.overpaid,
            "amount_owed": self.amount_owed,
            "apportionment_ratio": str(self.apportionment_ratio),
            "source_income": self.source_income,
            "detail": asdict(self.detail) if is_dataclass(self.detail) else self.detail,
        }


@dataclass
class StateSettlement:
    """Withholding reconciliation shared by every state."""
    withholding: Cents = 0
    overpaid: Cents = 0
    amount_owed: Cents = 0
    withholding_ids: List[str] = field(default_factory=list)


# =============================================================================
# BASE CALCULATOR
# =============================================================================


class BaseStateCalculator(ABC):
    """
    Abstract base class for state tax calculators.

    Each state implements ``compute`` with its own rules for:
    - Income adjustments (additions and subtractions)
    - Deduction and exemption calculations
    - Credit calculations
    - Special rules (Social Security, pension exclusions, etc.)

    A calculator reads only the return, the federal result and its own
    ``StateReturnConfig``; it never looks at another state's result.
    """

    state_code: str = ""
    state_name: str = ""
    form_label: str = ""
    node_prefix: str = ""
    template_files: Tuple[str, ...] = ()

    def __init__(self, config: Optional[StateTaxConfig] = None):
        self.config = config or self.default_config()

    @classmethod
    @abstractmethod
    def default_config(cls) -> StateTaxConfig:
        """Constants for the tax year this calculator is registered for."""

    @abstractmethod
    def compute(
        self,
        tax_return: "TaxReturn",
        federal: "Form1040Result",
        state_config: StateReturnConfig,
        trace: NamespacedTraceBuilder,
    ) -> StateComputeResult:
        """
        Calculate state tax for the given return.

        Args:
            tax_return: The filer's input
            federal: Completed Form 1040 result
            state_config: This state's residency and elections
            trace: Builder view whose local ids carry this state's prefix

        Returns:
            StateComputeResult with the state-specific breakdown in ``detail``
        """

    @abstractmethod
    def node_labels(self) -> Dict[str, str]:
        """Display labels for this state's node ids (unprefixed)."""

    @abstractmethod
    def review_layout(self) -> List[ReviewSection]:
        """Review-screen sections as ``(label, node_id)`` items."""

    # -- shared helpers -------------------------------------------------------

    def ratio_for(self, tax_return: "TaxReturn", state_config: StateReturnConfig) -> Decimal:
        return apportionment_ratio(state_config, tax_return.tax_year)

    def calculate_brackets(self, taxable_income: Cents, filing_status: str) -> Cents:
        """Tax from the flat rate or progressive brackets, rounded once."""
        if taxable_income <= 0:
            return 0
        return compute_bracket_tax(taxable_income, self.config.get_brackets(filing_status))

    def calculate_state_eitc(self, federal_eitc: Cents) -> Cents:
        """State EITC as a percentage of the federal credit."""
        if self.config.eitc_percentage and federal_eitc > 0:
            return round_cents(federal_eitc * self.config.eitc_percentage)
        return 0

    def person_count(self, tax_return: "TaxReturn") -> int:
        """Taxpayer, spouse on a joint return, and dependents."""
        count = 1
        if tax_return.is_joint and tax_return.spouse is not None:
            count += 1
        return count + len(tax_return.dependents)

    def us_obligation_interest(self, tax_return: "TaxReturn") -> Cents:
        return sum_cents(i.box3_us_obligation_interest for i in tax_return.form1099_int)

    def tax_exempt_interest(self, tax_return: "TaxReturn") -> Cents:
        return sum_cents(
            [i.box8_tax_exempt_interest for i in tax_return.form1099_int]
            + [d.box11_exempt_interest_dividends for d in tax_return.form1099_div]
        )

    def hsa_deduction(self, federal: "Form1040Result") -> Cents:
        """Federal Schedule 1 line 13, added back by states that do not conform."""
        adjustments = federal.schedule1_adjustments
        return adjustments.hsa_deduction if adjustments else 0

    def settle(
        self,
        tax_return: "TaxReturn",
        tax_after_credits: Cents,
        trace: NamespacedTraceBuilder,
        tax_node: str = "taxAfterCredits",
    ) -> StateSettlement:
        """
        Record W-2 box 17 withholding for this state and split the balance
        into overpaid or owed (never both).
        """
        settlement = StateSettlement()
        for w2 in tax_return.w2s:
            if w2.box15_state != self.state_code or not w2.box17_state_income_tax:
                continue
            node = trace.document(
                f"w2.{w2.id}.box17",
                w2.box17_state_income_tax,
                f"{w2.employer_name or w2.id} W-2 box 17 {self.state_code} income tax",
                f"W-2 {w2.id}",
            )
            settlement.withholding += w2.box17_state_income_tax
            settlement.withholding_ids.append(node.node_id)

        inputs = [tax_node]
        if settlement.withholding_ids:
            trace.computed("stateWithholding", settlement.withholding, settlement.withholding_ids)
            inputs.append("stateWithholding")
        settlement.overpaid = max_zero(settlement.withholding - tax_after_credits)
        settlement.amount_owed = max_zero(tax_after_credits - settlement.withholding)
        if settlement.overpaid:
            trace.computed("overpaid", settlement.overpaid, inputs)
        if settlement.amount_owed:
            trace.computed("amountOwed", settlement.amount_owed, inputs)
        return settlement

    def result(
        self,
        state_config: StateReturnConfig,
        ratio: Decimal,
        state_agi: Cents,
        taxable_income: Cents,
        state_tax: Cents,
        credits: Cents,
        tax_after_credits: Cents,
        settlement: StateSettlement,
        detail: Any,
    ) -> StateComputeResult:
        result = StateComputeResult(
            state_code=self.state_code,
            form_label=self.form_label,
            residency=state_config.residency,
            state_agi=state_agi,
            state_taxable_income=taxable_income,
            state_tax=state_tax,
            state_credits=credits,
            tax_after_credits=tax_after_credits,
            state_withholding=settlement.withholding,
            overpaid=settlement.overpaid,
            amount_owed=settlement.amount_owed,
            apportionment_ratio=ratio,
            source_income=apportion(state_agi, ratio) if ratio < ONE else None,
            detail=detail,
        )
        logger.debug(
            "%s: agi=%s taxable=%s tax=%s credits=%s ratio=%s",
            self.form_label, state_agi, taxable_income, state_tax, credits, ratio,
        )
        return result


def sum_positive(values: Sequence[Cents]) -> Cents:
    return sum(max_zero(v) for v in values)


def present(trace: NamespacedTraceBuilder, node_ids: Sequence[str]) -> List[str]:
    """The subset of ``node_ids`` already recorded, in order."""
    return [n for n in node_ids if n in trace]
