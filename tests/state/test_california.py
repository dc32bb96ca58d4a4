"""Tests for California state tax calculator."""

from calculator.state.configs.state_2025.california import exemption_credits
from models.deductions import ItemizedDeductions
from models.documents import SSA1099, Form1099R
from models.state_return import StateReturnConfig
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2, run_state


class TestCaliforniaTax:
    """Basic Form 540 computation."""

    def test_single_wage_earner(self):
        """$60,000 wages: brackets on $54,294 less the $153 exemption credit."""
        _, result, trace = run_state(make_return(wages=60000, state="CA"))
        detail = result.detail

        assert result.state_agi == dollars(60000)
        assert detail.standard_deduction == dollars(5706)
        assert result.state_taxable_income == dollars(54294)
        assert detail.ca_tax == dollars(1792.53)
        assert detail.exemption_credits.total == dollars(153)
        assert result.tax_after_credits == dollars(1639.53)
        assert result.form_label == "CA Form 540"
        assert trace.get("form540.caAGI").inputs == ("form1040.line11",)

    def test_social_security_subtracted(self):
        """Taxable federal benefits are not California income."""
        tax_return = make_return(
            state="CA",
            ssa1099=[SSA1099(id="ssa", box5_net_benefits=dollars(20000))],
            form1099_r=[Form1099R(id="pension", box1_gross_distribution=dollars(30000),
                                  box2a_taxable_amount=dollars(30000))],
        )
        federal, result, trace = run_state(tax_return)
        assert federal.agi == dollars(39600)
        assert result.detail.social_security_exclusion == dollars(9600)
        assert result.state_agi == dollars(30000)
        assert result.tax_after_credits == dollars(222.09)
        assert "form540.caSubtractions" in trace

    def test_renters_credit(self):
        """$60 renter's credit under the income limit."""
        tax_return = make_return(
            wages=40000,
            state_returns=[StateReturnConfig(state_code="CA", rent_paid=dollars(18000))],
        )
        _, result, _ = run_state(tax_return)
        assert result.detail.renters_credit == dollars(60)
        assert result.tax_after_credits == dollars(522.69)

    def test_renters_credit_over_limit(self):
        tax_return = make_return(
            wages=60000,
            state_returns=[StateReturnConfig(state_code="CA", rent_paid=dollars(18000))],
        )
        _, result, _ = run_state(tax_return)
        assert result.detail.renters_credit == 0

    def test_mental_health_services_tax(self):
        """1% on taxable income over $1,000,000."""
        _, result, trace = run_state(make_return(wages=1005706, state="CA"))
        assert result.state_taxable_income == dollars(1000000)
        assert result.detail.mental_health_tax == 0

        _, result, trace = run_state(make_return(wages=1105706, state="CA"))
        assert result.detail.mental_health_tax == dollars(1000)
        assert trace.amount("form540.mentalHealthTax") == dollars(1000)

    def test_withholding_refund(self):
        _, result, _ = run_state(make_return(wages=60000, state="CA", state_withheld=2000))
        assert result.overpaid == dollars(360.47)
        assert result.amount_owed == 0


class TestExemptionCredits:

    def test_dependents(self):
        """$153 personal plus $475 per dependent."""
        credits = exemption_credits(FilingStatus.HEAD_OF_HOUSEHOLD, False, 2, dollars(50000))
        assert credits.total == dollars(1103)

    def test_joint(self):
        credits = exemption_credits(FilingStatus.MARRIED_JOINT, True, 0, dollars(100000))
        assert credits.personal_credit == dollars(306)

    def test_phaseout_step(self):
        """Each $2,500 (or part) over the threshold costs 6%."""
        credits = exemption_credits(FilingStatus.SINGLE, False, 0, dollars(252203) + 1)
        assert credits.phase_out_reduction == dollars(9.18)
        assert credits.total == dollars(143.82)

    def test_fully_phased_out(self):
        credits = exemption_credits(FilingStatus.SINGLE, False, 0, dollars(400000))
        assert credits.total == 0


class TestCaliforniaItemized:

    def test_no_salt_cap_and_no_income_tax(self):
        """CA itemized drops state income tax but keeps property tax and mortgage interest."""
        tax_return = make_return(
            w2s=[make_w2(100000, state="CA")],
            state_returns=[StateReturnConfig(state_code="CA")],
            itemized=ItemizedDeductions(
                state_local_income_tax=dollars(8000),
                real_estate_taxes=dollars(4000),
                mortgage_interest=dollars(10000),
            ),
        )
        federal, result, trace = run_state(tax_return)
        assert federal.deduction_method == "itemized"
        assert result.detail.itemized_deduction == dollars(14000)
        assert result.detail.deduction_method == "itemized"
        assert result.state_taxable_income == dollars(86000)
        assert "scheduleA.line17" in trace.get("form540.itemizedDeduction").inputs

    def test_standard_when_federal_standard(self):
        _, result, _ = run_state(make_return(wages=60000, state="CA"))
        assert result.detail.deduction_method == "standard"
        assert result.detail.itemized_deduction == 0

    def test_schedule_a_below_federal_standard_not_used(self):
        """$10,000 of mortgage interest: federal takes the standard, so CA does too."""
        tax_return = make_return(
            wages=60000, state="CA",
            itemized=ItemizedDeductions(mortgage_interest=dollars(10000)),
        )
        federal, result, _ = run_state(tax_return)
        assert federal.schedule_a is not None
        assert federal.deduction_method == "standard"
        assert result.detail.deduction_method == "standard"
        assert result.detail.itemized_deduction == 0
