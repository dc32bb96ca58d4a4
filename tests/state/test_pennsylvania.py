"""Tests for Pennsylvania state tax calculator."""

import pytest

from calculator.state.configs.state_2025.pennsylvania import forgiveness_percentage
from models.documents import Form1099DIV, Form1099INT, Form1099R
from models.state_return import ResidencyType, StateReturnConfig
from tests.helpers.builders import dollars, make_return, make_w2, run_state


class TestPennsylvaniaTax:

    def test_flat_rate_on_compensation(self):
        """3.07% with no standard deduction or exemption."""
        _, result, trace = run_state(make_return(wages=50000, state="PA"))
        assert result.state_taxable_income == dollars(50000)
        assert result.state_tax == dollars(1535)
        assert result.detail.tax_forgiveness.forgiveness_percentage == 0
        assert result.tax_after_credits == dollars(1535)
        assert trace.get("pa40.compensation").inputs == ("w2.w2-1.box1",)

    def test_retirement_income_not_taxed(self):
        """Pension distributions are not a PA income class."""
        tax_return = make_return(
            wages=20000, state="PA",
            form1099_r=[Form1099R(id="pension", box1_gross_distribution=dollars(30000),
                                  box2a_taxable_amount=dollars(30000))],
        )
        federal, result, _ = run_state(tax_return)
        assert federal.agi == dollars(50000)
        assert result.state_taxable_income == dollars(20000)
        assert result.state_tax == dollars(614)

    def test_income_classes(self):
        """Interest and dividends are separate classes; tax-exempt interest is taxable in PA."""
        tax_return = make_return(
            wages=40000, state="PA",
            form1099_int=[Form1099INT(id="bank", box1_interest=dollars(1000),
                                      box8_tax_exempt_interest=dollars(500))],
            form1099_div=[Form1099DIV(id="fund", box1a_ordinary_dividends=dollars(2000),
                                      box2a_capital_gain_distributions=dollars(300))],
        )
        _, result, trace = run_state(tax_return)
        classes = result.detail.income_classes
        assert classes.interest == dollars(1500)
        assert classes.dividends == dollars(2300)
        assert classes.total == dollars(43800)
        assert "pa40.interest" in trace
        assert "pa40.netGains" not in trace


class TestTaxForgiveness:

    @pytest.mark.parametrize("income,married,dependents,expected", [
        (6500, False, 0, 100),
        (6500.01, False, 0, 90),
        (7000, False, 0, 80),
        (8749.99, False, 0, 10),
        (9000, False, 0, 0),
        (32000, True, 2, 100),
    ])
    def test_percentage(self, income, married, dependents, expected):
        """10 points lost per $250 of eligibility income over the base."""
        assert forgiveness_percentage(dollars(income), married, dependents) == expected

    def test_full_forgiveness(self):
        _, result, _ = run_state(make_return(wages=6000, state="PA"))
        assert result.state_tax == dollars(184.20)
        assert result.detail.tax_forgiveness.qualifies
        assert result.tax_after_credits == 0

    def test_partial_forgiveness(self):
        """$7,000 single: 80% forgiven."""
        _, result, trace = run_state(make_return(wages=7000, state="PA"))
        assert result.state_tax == dollars(214.90)
        assert result.state_credits == dollars(171.92)
        assert result.tax_after_credits == dollars(42.98)
        assert trace.amount("pa40.taxForgiveness") == dollars(171.92)


class TestPennsylvaniaResidency:

    def test_nonresident_taxed_on_pa_wages(self):
        """Only wages from a PA employer count for a nonresident."""
        tax_return = make_return(
            w2s=[make_w2(30000, "pa-job", state="PA"), make_w2(20000, "nj-job", state="NJ")],
            state_returns=[StateReturnConfig(state_code="PA", residency=ResidencyType.NONRESIDENT)],
        )
        _, result, _ = run_state(tax_return)
        assert result.detail.income_classes.compensation == dollars(30000)
        assert result.state_tax == dollars(921)

    def test_withholding_from_pa_employer_only(self):
        tax_return = make_return(
            w2s=[make_w2(30000, "pa-job", state="PA", state_withheld=1000),
                 make_w2(20000, "nj-job", state="NJ", state_withheld=800)],
            state_returns=[StateReturnConfig(state_code="PA")],
        )
        _, result, _ = run_state(tax_return)
        assert result.state_withholding == dollars(1000)
        assert result.amount_owed == dollars(1535 - 1000)
