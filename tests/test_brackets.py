"""
Tests for the 2025 rate schedules and the tax computation (Form 1040 line 16).

Tests cover:
- Ordinary brackets by filing status
- Qualified Dividends and Capital Gain Tax Worksheet split (0/15/20%)
- Worksheet tax never exceeds the regular tax
- Engine uses the worksheet when line 3a or Schedule D has a gain
"""

import pytest

from calculator.tax_computation import compute_tax, split_preferential_income
from models.documents import Form1099DIV
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2


class TestOrdinaryBrackets:

    @pytest.mark.parametrize("status,taxable,expected", [
        (FilingStatus.SINGLE, 10000, 1000),
        (FilingStatus.SINGLE, 60000, 8114),
        (FilingStatus.SINGLE, 100000, 16914),
        (FilingStatus.MARRIED_JOINT, 100000, 11828),
        (FilingStatus.HEAD_OF_HOUSEHOLD, 17000, 1700),
    ])
    def test_tax_by_status(self, config_2025, status, taxable, expected):
        """Bracket tax at a few representative incomes."""
        result = compute_tax(dollars(taxable), 0, 0, status, config_2025)
        assert result.tax == dollars(expected)
        assert not result.used_capital_gain_worksheet

    def test_zero_taxable_income(self, config_2025):
        """No taxable income, no tax."""
        assert compute_tax(0, dollars(1000), 0, FilingStatus.SINGLE, config_2025).tax == 0

    def test_brackets_loaded_in_order(self, config_2025):
        """Seven single brackets starting at zero."""
        brackets = config_2025.brackets_for("single")
        assert len(brackets) == 7
        assert brackets[0].start == 0


class TestCapitalGainWorksheet:

    def test_split_across_rates(self, config_2025):
        """$60,000 taxable with $20,000 of gain: $8,350 at 0%, $11,650 at 15%."""
        split = split_preferential_income(dollars(60000), dollars(20000), FilingStatus.SINGLE, config_2025)
        assert split.ordinary_income == dollars(40000)
        assert split.at_zero == dollars(8350)
        assert split.at_fifteen == dollars(11650)
        assert split.at_twenty == 0

    def test_worksheet_tax(self, config_2025):
        """Ordinary tax on $40,000 plus 15% of $11,650."""
        result = compute_tax(dollars(60000), 0, dollars(20000), FilingStatus.SINGLE, config_2025)
        assert result.used_capital_gain_worksheet
        assert result.regular_tax == dollars(8114)
        assert result.tax == dollars(6309)

    def test_twenty_percent_rate(self, config_2025):
        """Gain above the 20% threshold."""
        split = split_preferential_income(dollars(600000), dollars(100000), FilingStatus.SINGLE, config_2025)
        assert split.at_twenty == dollars(600000 - 533400)
        assert split.at_fifteen == dollars(100000 - 66600)


class TestTaxComputationEngine:

    def test_qualified_dividends(self, engine, trace):
        """Qualified dividends use the worksheet."""
        tax_return = make_return(
            w2s=[make_w2(55000)],
            form1099_div=[Form1099DIV(id="fund", box1a_ordinary_dividends=dollars(20000),
                                      box1b_qualified_dividends=dollars(20000))],
        )
        result = engine.compute(tax_return, trace)
        assert result.taxable_income == dollars(60000)
        assert result.line16.amount == dollars(6309)
        assert "form1040.line3a" in trace.get("form1040.line16").inputs
