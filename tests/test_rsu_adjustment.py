"""
Tests for RSU cost-basis correction on Form 8949.

Tests cover:
- Matching sales to vest lots (date window, symbol and CUSIP filters, score floor)
- Deterministic one-to-one matching regardless of input order
- Basis analysis (zero, incorrect, within tolerance)
- Form 8949 row construction: column (g), codes, categories, holding period
- End-to-end: income taxed on the W-2 is not taxed again on Schedule D
"""

from datetime import date
from decimal import Decimal

from calculator.rsu_adjustment import (
    BasisStatus,
    analyze_basis,
    build_transaction,
    compute_rsu_adjustments,
    estimate_rsu_impact,
    is_long_term,
    match_sales_to_vests,
    score_match,
)
from models.documents import Form1099B
from models.form_8949 import AdjustmentCode, Form8949Category, RSUVestEvent
from tests.helpers.builders import dollars, make_return, make_w2


def sale(sale_id="b1", symbol="ACME", acquired=date(2025, 3, 1), sold=date(2025, 6, 1),
         proceeds=5100, basis=0, quantity=100, description="ACME RSU", **kwargs):
    return Form1099B(
        id=sale_id,
        symbol=symbol,
        description=description,
        quantity=Decimal(quantity) if quantity is not None else None,
        date_acquired=acquired,
        date_sold=sold,
        proceeds=dollars(proceeds),
        cost_basis=dollars(basis) if basis is not None else None,
        **kwargs,
    )


def vest(vest_id="v1", vest_date=date(2025, 3, 1), symbol="ACME", shares=100, fmv=50, **kwargs):
    return RSUVestEvent(
        id=vest_id,
        vest_date=vest_date,
        symbol=symbol,
        shares_vested=Decimal(shares),
        shares_delivered=Decimal(shares),
        fmv_at_vest=dollars(fmv),
        **kwargs,
    )


class TestScoreMatch:

    def test_date_symbol_and_description(self):
        """Vest date, symbol and 'RSU' hint: 0.8."""
        score, reasons = score_match(sale(), vest())
        assert score == Decimal("0.8")
        assert "symbol match" in reasons

    def test_within_three_days(self):
        """Settlement a few days after vest still matches."""
        assert score_match(sale(acquired=date(2025, 3, 4)), vest()) is not None

    def test_outside_window_disqualifies(self):
        """Four days away is a different lot."""
        assert score_match(sale(acquired=date(2025, 3, 5)), vest()) is None

    def test_different_symbol_disqualifies(self):
        """Symbol or CUSIP must agree."""
        assert score_match(sale(symbol="OTHER"), vest()) is None

    def test_cusip_match(self):
        """CUSIP agreement adds 0.3; the total caps at 1.0."""
        score, _ = score_match(sale(cusip="000000001"), vest(cusip="000000001"))
        assert score == Decimal("1.0")

    def test_various_date_without_hint_meets_floor(self):
        """Unknown date plus symbol is exactly the 0.4 floor."""
        score, _ = score_match(sale(acquired=None, description="ACME"), vest())
        assert score == Decimal("0.4")


class TestMatching:

    def test_one_to_one_in_sale_order(self):
        """Earlier sale takes the earlier lot when scores tie."""
        sales = [
            sale("s1", acquired=None, sold=date(2025, 6, 1), description="ACME"),
            sale("s2", acquired=None, sold=date(2025, 7, 1), description="ACME"),
        ]
        vests = [vest("v1", date(2025, 3, 1)), vest("v2", date(2025, 4, 1))]
        matches = match_sales_to_vests(sales, vests)
        assert [(m.sale_id, m.vest_id) for m in matches] == [("s1", "v1"), ("s2", "v2")]

    def test_input_order_does_not_matter(self):
        """Reversing both inputs gives the same pairs."""
        sales = [
            sale("s1", acquired=None, sold=date(2025, 6, 1), description="ACME"),
            sale("s2", acquired=None, sold=date(2025, 7, 1), description="ACME"),
        ]
        vests = [vest("v1", date(2025, 3, 1)), vest("v2", date(2025, 4, 1))]
        forward = match_sales_to_vests(sales, vests)
        backward = match_sales_to_vests(list(reversed(sales)), list(reversed(vests)))
        assert forward == backward

    def test_lot_backs_one_sale_only(self):
        """A second sale with no lot left passes through."""
        sales = [sale("s1"), sale("s2", sold=date(2025, 7, 1))]
        result = compute_rsu_adjustments(sales, [vest()])
        assert len(result.matches) == 1
        assert result.unmatched_sale_ids == ("s2",)


class TestBasisAnalysis:

    def test_zero_basis(self):
        """Zero reported basis: corrected to shares times FMV."""
        analysis = analyze_basis(sale(), vest())
        assert analysis.status == BasisStatus.ZERO
        assert analysis.correct_basis == dollars(5000)
        assert analysis.adjustment == dollars(5000)

    def test_within_tolerance_is_correct(self):
        """Off by less than 1%: left alone."""
        analysis = analyze_basis(sale(basis=4990), vest())
        assert analysis.status == BasisStatus.CORRECT
        assert analysis.adjustment == 0

    def test_understated_basis(self):
        """Basis well below vest value is incorrect."""
        analysis = analyze_basis(sale(basis=1000), vest())
        assert analysis.status == BasisStatus.INCORRECT
        assert analysis.adjustment == dollars(4000)

    def test_partial_sale_uses_quantity(self):
        """Only the shares sold get vest basis."""
        analysis = analyze_basis(sale(quantity=40, proceeds=2040), vest())
        assert analysis.correct_basis == dollars(2000)


class TestBuildTransaction:

    def test_basis_adjustment_in_column_g(self):
        """Column (g) is negative by the missing basis, code B."""
        s, v = sale(), vest()
        txn = build_transaction(s, analyze_basis(s, v), v)
        assert txn.adjustment_amount == -dollars(5000)
        assert txn.adjustment_codes == (AdjustmentCode.BASIS_INCORRECT,)
        assert txn.gain_loss == dollars(100)
        assert txn.category == Form8949Category.A
        assert txn.linked_rsu_vest_id == "v1"

    def test_wash_sale_added_back(self):
        """Disallowed wash sale loss is a positive adjustment, code W."""
        txn = build_transaction(sale(proceeds=4000, basis=5000, wash_sale_loss_disallowed=dollars(300)))
        assert txn.adjustment_amount == dollars(300)
        assert txn.gain_loss == -dollars(700)
        assert txn.adjustment_code_text == "W"

    def test_long_term_unreported_basis(self):
        """Held over a year with no basis reported: category E."""
        txn = build_transaction(sale(acquired=date(2023, 1, 10), basis=None, basis_reported_to_irs=False))
        assert txn.long_term
        assert txn.category == Form8949Category.E

    def test_holding_period_boundary(self):
        """Exactly one year is still short-term."""
        assert not is_long_term(date(2024, 6, 1), date(2025, 6, 1))
        assert is_long_term(date(2024, 6, 1), date(2025, 6, 2))

    def test_unknown_acquisition_date_is_short_term(self):
        """Unknown dates default to short-term."""
        assert not is_long_term(None, date(2025, 6, 1))


class TestRSUAdjustmentEngine:

    def test_double_taxation_eliminated(self, engine, trace):
        """$5,100 proceeds on a $5,000 vest: only $100 reaches line 7."""
        tax_return = make_return(
            w2s=[make_w2(100000)],
            form1099_b=[sale()],
            rsu_vest_events=[vest()],
        )
        result = engine.compute(tax_return, trace)

        assert result.rsu_adjustments.total_basis_adjustment == dollars(5000)
        assert trace.amount("form8949.b1.columnG") == -dollars(5000)
        assert trace.amount("form8949.b1.columnH") == dollars(100)
        assert trace.amount("scheduleD.line7") == dollars(100)
        assert result.line7.amount == dollars(100)
        assert "rsu.v1.fmvAtVest" in trace.get("form8949.b1.columnG").inputs
        assert "Form 8949" in result.executed_schedules
        assert "Schedule D" in result.executed_schedules

    def test_without_vest_data_full_proceeds_taxed(self, engine):
        """No vest lot: the zero basis stands."""
        result = engine.compute(make_return(w2s=[make_w2(100000)], form1099_b=[sale()]))
        assert result.line7.amount == dollars(5100)

    def test_impact_estimate(self):
        """Tax avoided at a flat 24%."""
        result = compute_rsu_adjustments([sale()], [vest()])
        assert estimate_rsu_impact(result) == dollars(1200)
