"""
Tests for Alternative Minimum Tax (AMT) - Form 6251

Tests verify:
- AMT exemption and its phaseout
- Two-tier rate system (26%/28%)
- ISO bargain element as the line 2i adjustment
- Tentative minimum tax versus regular tax
- Engine wiring to Schedule 2 line 2
"""

from datetime import date
from decimal import Decimal

import pytest

from calculator.other_taxes import amt_exemption, compute_amt
from models.form_8949 import ISOExercise
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2


class TestAMTExemption:

    def test_full_exemption_below_phaseout(self, config_2025):
        """Single exemption is $88,100."""
        assert amt_exemption(dollars(300000), FilingStatus.SINGLE, config_2025) == dollars(88100)

    def test_phaseout(self, config_2025):
        """25 cents per dollar over $626,350."""
        assert amt_exemption(dollars(700000), FilingStatus.SINGLE, config_2025) == dollars(69687.50)

    def test_fully_phased_out(self, config_2025):
        """Very high AMTI has no exemption."""
        assert amt_exemption(dollars(2000000), FilingStatus.SINGLE, config_2025) == 0


class TestComputeAMT:

    def test_iso_exercise_triggers_amt(self, config_2025):
        """$200,000 of ISO spread on $100,000 of wages."""
        result = compute_amt(
            dollars(85000), dollars(15000), dollars(200000), dollars(13614),
            0, 0, FilingStatus.SINGLE, config_2025,
        )
        assert result.amti == dollars(300000)
        assert result.exemption == dollars(88100)
        assert result.amt_base == dollars(211900)
        assert result.tentative_minimum_tax == dollars(55094)
        assert result.amt == dollars(41480)
        assert result.owes_amt

    def test_high_rate_above_threshold(self, config_2025):
        """28% applies above $239,100 of AMT base."""
        result = compute_amt(
            dollars(400000), 0, 0, 0, 0, 0, FilingStatus.SINGLE, config_2025,
        )
        expected = Decimal("239100") * Decimal("0.26") + (Decimal("311900") - Decimal("239100")) * Decimal("0.28")
        assert result.amt_base == dollars(311900)
        assert result.tentative_minimum_tax == dollars(expected)

    def test_wage_earner_owes_no_amt(self, config_2025):
        """Regular tax exceeds the TMT for an ordinary wage earner."""
        result = compute_amt(
            dollars(85000), dollars(15000), 0, dollars(13614), 0, 0, FilingStatus.SINGLE, config_2025,
        )
        assert result.amt == 0
        assert not result.owes_amt


class TestAMTEngine:

    def iso(self, fmv=300):
        return ISOExercise(
            id="grant-1",
            exercise_date=date(2025, 3, 15),
            symbol="ACME",
            shares_exercised=Decimal("1000"),
            exercise_price=dollars(100),
            fmv_at_exercise=dollars(fmv),
        )

    def test_iso_on_schedule2(self, engine, trace):
        """Bargain element flows through Form 6251 to Schedule 2 line 2."""
        tax_return = make_return(w2s=[make_w2(100000)], iso_exercises=[self.iso()])
        result = engine.compute(tax_return, trace)

        assert result.line16.amount == dollars(13614)
        assert trace.amount("form6251.line2i") == dollars(200000)
        assert trace.amount("form6251.line11") == dollars(41480)
        assert trace.amount("schedule2.line2") == dollars(41480)
        assert result.line17.amount == dollars(41480)
        assert result.line18.amount == dollars(55094)
        assert "Form 6251" in result.executed_schedules

    @pytest.mark.parametrize("fmv", [100, 50])
    def test_underwater_option_has_no_adjustment(self, engine, trace, fmv):
        """No spread, no AMT."""
        tax_return = make_return(w2s=[make_w2(100000)], iso_exercises=[self.iso(fmv)])
        result = engine.compute(tax_return, trace)
        assert result.line17.amount == 0
        assert "form6251.line11" not in trace
