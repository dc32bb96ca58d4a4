"""
RSU cost-basis correction for Form 8949.

Brokers often report RSU sales with a zero or understated cost basis. The
value of the shares at vest was already taxed as wages on the W-2, so the
correct basis is the fair market value at vest; without the correction the
same income is taxed twice.

Matching a 1099-B sale to the vest lot that supplied its shares:

- symbol or CUSIP equality is a hard filter
- acquisition date within MATCH_WINDOW_DAYS of the vest date scores +0.6,
  an unknown ("Various") acquisition date +0.3, anything else disqualifies
- CUSIP match +0.3, symbol match +0.1, "RSU" in the description +0.1
- scores cap at 1.0 and must reach MIN_MATCH_SCORE

Sales are matched in (date sold, id) order; each takes the best-scoring
lot that no earlier sale has consumed, so a vest lot backs at most one
sale and the result is the same on every run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from calculator.decimal_math import Cents, apply_rate, round_cents
from models.documents import Form1099B
from models.form_8949 import AdjustmentCode, CapitalTransaction, Form8949Category, RSUVestEvent

logger = logging.getLogger(__name__)

MATCH_WINDOW_DAYS = 3
MIN_MATCH_SCORE = Decimal("0.4")
MAX_MATCH_SCORE = Decimal("1.0")
DATE_MATCH_SCORE = Decimal("0.6")
UNKNOWN_DATE_SCORE = Decimal("0.3")
CUSIP_SCORE = Decimal("0.3")
SYMBOL_SCORE = Decimal("0.1")
DESCRIPTION_HINT_SCORE = Decimal("0.1")

# Basis within this tolerance of the vest value is treated as correct
BASIS_TOLERANCE_RATE = Decimal("0.01")
BASIS_TOLERANCE_FLOOR = 100

DEFAULT_MARGINAL_RATE = Decimal("0.24")


class BasisStatus(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    ZERO = "zero"


@dataclass(frozen=True)
class RSUMatch:
    sale_id: str
    vest_id: str
    score: Decimal
    reasons: Tuple[str, ...]


@dataclass(frozen=True)
class RSUBasisAnalysis:
    sale_id: str
    vest_id: str
    shares_sold: Decimal
    fmv_at_vest: Cents
    reported_basis: Cents
    correct_basis: Cents
    status: BasisStatus

    @property
    def adjustment(self) -> Cents:
        if self.status == BasisStatus.CORRECT:
            return 0
        return self.correct_basis - self.reported_basis


@dataclass(frozen=True)
class RSUAdjustmentResult:
    matches: Tuple[RSUMatch, ...]
    analyses: Tuple[RSUBasisAnalysis, ...]
    transactions: Tuple[CapitalTransaction, ...]
    unmatched_sale_ids: Tuple[str, ...]

    @property
    def total_basis_adjustment(self) -> Cents:
        return sum(a.adjustment for a in self.analyses)

    @property
    def corrected_sale_count(self) -> int:
        return sum(1 for a in self.analyses if a.status != BasisStatus.CORRECT)


def score_match(sale: Form1099B, vest: RSUVestEvent) -> Optional[Tuple[Decimal, Tuple[str, ...]]]:
    """Score a sale against one vest lot, or None when it cannot match."""
    cusip_match = bool(sale.cusip and vest.cusip and sale.cusip == vest.cusip)
    symbol_match = bool(sale.symbol and sale.symbol == vest.symbol)
    if not (cusip_match or symbol_match):
        return None

    score = Decimal("0")
    reasons: List[str] = []
    if sale.date_acquired is None:
        score += UNKNOWN_DATE_SCORE
        reasons.append("acquisition date unknown")
    elif abs((sale.date_acquired - vest.vest_date).days) <= MATCH_WINDOW_DAYS:
        score += DATE_MATCH_SCORE
        reasons.append("acquired on vest date")
    else:
        return None

    if cusip_match:
        score += CUSIP_SCORE
        reasons.append("CUSIP match")
    if symbol_match:
        score += SYMBOL_SCORE
        reasons.append("symbol match")
    if "RSU" in sale.description.upper():
        score += DESCRIPTION_HINT_SCORE
        reasons.append("RSU in description")

    score = min(score, MAX_MATCH_SCORE)
    if score < MIN_MATCH_SCORE:
        return None
    return score, tuple(reasons)


def match_sales_to_vests(
    sales: Sequence[Form1099B],
    vests: Sequence[RSUVestEvent],
) -> List[RSUMatch]:
    """Greedy one-to-one matching, deterministic for a given input."""
    consumed = set()
    matches: List[RSUMatch] = []
    for sale in sorted(sales, key=lambda s: (s.date_sold, s.id)):
        candidates = []
        for vest in vests:
            if vest.id in consumed:
                continue
            scored = score_match(sale, vest)
            if scored is None:
                continue
            score, reasons = scored
            candidates.append((-score, vest.vest_date, vest.id, reasons))
        if not candidates:
            continue
        neg_score, _, vest_id, reasons = min(candidates)
        consumed.add(vest_id)
        matches.append(RSUMatch(sale_id=sale.id, vest_id=vest_id, score=-neg_score, reasons=reasons))
    return matches


def analyze_basis(sale: Form1099B, vest: RSUVestEvent) -> RSUBasisAnalysis:
    shares = vest.shares_delivered
    # A partial sale carries basis only for the shares it sold
    if sale.quantity is not None:
        shares = min(sale.quantity, vest.shares_delivered)
    correct = round_cents(shares * vest.fmv_at_vest)
    reported = sale.cost_basis or 0

    if reported == 0:
        status = BasisStatus.ZERO
    else:
        tolerance = max(round_cents(correct * BASIS_TOLERANCE_RATE), BASIS_TOLERANCE_FLOOR)
        status = BasisStatus.INCORRECT if abs(correct - reported) > tolerance else BasisStatus.CORRECT

    return RSUBasisAnalysis(
        sale_id=sale.id,
        vest_id=vest.id,
        shares_sold=shares,
        fmv_at_vest=vest.fmv_at_vest,
        reported_basis=reported,
        correct_basis=correct,
        status=status,
    )


def _one_year_after(d: date) -> date:
    try:
        return d.replace(year=d.year + 1)
    except ValueError:
        # Feb 29
        return d.replace(year=d.year + 1, month=3, day=1)


def is_long_term(date_acquired: Optional[date], date_sold: date) -> bool:
    """Held more than one year. Unknown acquisition dates default to short-term."""
    if date_acquired is None:
        return False
    return date_sold > _one_year_after(date_acquired)


def build_transaction(
    sale: Form1099B,
    analysis: Optional[RSUBasisAnalysis] = None,
    vest: Optional[RSUVestEvent] = None,
) -> CapitalTransaction:
    """Turn a 1099-B into a Form 8949 row, applying any basis correction."""
    reported = sale.cost_basis or 0
    basis_adjustment = analysis.adjustment if analysis else 0
    adjusted_basis = reported + basis_adjustment
    acquired = sale.date_acquired or (vest.vest_date if vest else None)

    codes: List[AdjustmentCode] = []
    if basis_adjustment:
        codes.append(AdjustmentCode.BASIS_INCORRECT)
    if sale.wash_sale_loss_disallowed:
        codes.append(AdjustmentCode.WASH_SALE)
    column_g = sale.wash_sale_loss_disallowed - basis_adjustment

    long_term = sale.long_term if sale.long_term is not None else is_long_term(acquired, sale.date_sold)
    basis_reported = sale.basis_reported_to_irs and sale.cost_basis is not None
    if long_term:
        category = Form8949Category.D if basis_reported else Form8949Category.E
    else:
        category = Form8949Category.A if basis_reported else Form8949Category.B

    return CapitalTransaction(
        id=sale.id,
        description=sale.description or (sale.symbol or ""),
        date_acquired=acquired,
        date_sold=sale.date_sold,
        proceeds=sale.proceeds,
        reported_basis=reported,
        adjusted_basis=adjusted_basis,
        adjustment_codes=tuple(codes),
        adjustment_amount=column_g,
        gain_loss=sale.proceeds - reported + column_g,
        wash_sale_loss_disallowed=sale.wash_sale_loss_disallowed,
        long_term=long_term,
        category=category,
        source_1099b_id=sale.id,
        linked_rsu_vest_id=vest.id if vest else None,
    )


def compute_rsu_adjustments(
    sales: Sequence[Form1099B],
    vests: Sequence[RSUVestEvent],
) -> RSUAdjustmentResult:
    """
    Match sales to vest lots and build Form 8949 rows for every sale.

    Unmatched sales pass through with their reported basis.
    """
    matches = match_sales_to_vests(sales, vests)
    vest_by_id: Dict[str, RSUVestEvent] = {v.id: v for v in vests}
    match_by_sale: Dict[str, RSUMatch] = {m.sale_id: m for m in matches}

    analyses: List[RSUBasisAnalysis] = []
    transactions: List[CapitalTransaction] = []
    unmatched: List[str] = []
    for sale in sales:
        match = match_by_sale.get(sale.id)
        if match is None:
            unmatched.append(sale.id)
            transactions.append(build_transaction(sale))
            continue
        vest = vest_by_id[match.vest_id]
        analysis = analyze_basis(sale, vest)
        analyses.append(analysis)
        transactions.append(build_transaction(sale, analysis, vest))

    result = RSUAdjustmentResult(
        matches=tuple(matches),
        analyses=tuple(analyses),
        transactions=tuple(transactions),
        unmatched_sale_ids=tuple(unmatched),
    )
    if vests:
        logger.debug(
            "RSU: %d sales, %d matched, %d corrected, adjustment=%s",
            len(sales), len(matches), result.corrected_sale_count, result.total_basis_adjustment,
        )
    return result


def estimate_rsu_impact(result: RSUAdjustmentResult, marginal_rate: Decimal = DEFAULT_MARGINAL_RATE) -> Cents:
    """Approximate tax avoided by the basis corrections at a flat marginal rate."""
    return apply_rate(max(0, result.total_basis_adjustment), marginal_rate)
