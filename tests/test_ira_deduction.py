"""
Tests for Traditional IRA Deduction with MAGI Phaseouts

Tests cover:
- No contribution means no result at all
- Full deduction when not covered by an employer plan
- Partial deduction in the phaseout range, with the reduction rounded up
- Zero deduction above the phaseout end
- Age 50+ catch-up contribution
- Spouse-covered thresholds on a joint return
- Compensation limit
- MFS $0-$10,000 phaseout range
- Engine wiring through Schedule 1 line 20
"""

from datetime import date

from calculator.decimal_math import linear_phase_out
from calculator.ira_deduction import compute_ira_deduction, plan_coverage
from models.credits import RetirementContributions
from models.taxpayer import FilingStatus, Owner, Person
from tests.helpers.builders import dollars, make_return, make_w2


def ira(config, contribution=7000, magi=84000, status=FilingStatus.SINGLE, covered=True,
        spouse_covered=False, compensation=None, dob=None):
    return compute_ira_deduction(
        dollars(contribution),
        dob,
        status,
        covered,
        spouse_covered,
        dollars(magi),
        dollars(compensation if compensation is not None else magi),
        config,
    )


class TestIRADeductionBasic:
    """Coverage and applicability."""

    def test_no_contribution_returns_none(self, config_2025):
        """No traditional IRA contribution is 'not applicable', not a zero result."""
        assert ira(config_2025, contribution=0) is None

    def test_full_deduction_not_covered_by_plan(self, config_2025):
        """Not covered by a plan: full deduction regardless of income."""
        result = ira(config_2025, magi=500000, covered=False)
        assert result.deductible_amount == dollars(7000)
        assert result.phaseout_start is None

    def test_plan_coverage_from_w2_box13(self):
        """Box 13 retirement plan flags coverage per owner."""
        w2s = [
            make_w2(50000, retirement_plan=True),
            make_w2(40000, w2_id="w2-2", owner=Owner.SPOUSE),
        ]
        assert plan_coverage(w2s) == (True, False)


class TestIRADeductionPhaseout:
    """Covered by an employer plan: single range $79,000 - $89,000."""

    def test_deduction_never_rises_with_magi(self, config_2025):
        amounts = [ira(config_2025, magi=m).deductible_amount for m in range(78000, 90001, 250)]
        assert all(a >= b for a, b in zip(amounts, amounts[1:]))
        assert amounts[0] == dollars(7000)
        assert amounts[-1] == 0

    def test_full_deduction_below_threshold(self, config_2025):
        """MAGI at the start of the range keeps the full deduction."""
        assert ira(config_2025, magi=79000).deductible_amount == dollars(7000)

    def test_midpoint_is_half(self, config_2025):
        """$84,000 MAGI is the midpoint: $3,500 deductible."""
        result = ira(config_2025, magi=84000)
        assert result.reduction == dollars(3500)
        assert result.deductible_amount == dollars(3500)
        assert result.nondeductible_amount == dollars(3500)

    def test_reduction_rounds_up_to_ten_dollars(self, config_2025):
        """$84,001 MAGI: $3,500.70 reduction rounds up to $3,510."""
        result = ira(config_2025, magi=84001)
        assert result.reduction == dollars(3510)
        assert result.deductible_amount == dollars(3490)

    def test_same_rounding_as_other_phaseouts(self, config_2025):
        """The worksheet follows the shared linear phase-out with a $10 unit."""
        for magi in (79001, 81234, 85555, 88999):
            expected = linear_phase_out(dollars(7000), dollars(magi), dollars(79000), dollars(89000), dollars(10))
            assert ira(config_2025, magi=magi).deductible_amount == expected

    def test_zero_deduction_above_threshold(self, config_2025):
        """MAGI at the end of the range eliminates the deduction."""
        result = ira(config_2025, magi=89000)
        assert result is not None
        assert result.deductible_amount == 0


class TestIRAAge50Plus:

    def test_catchup_contribution_age_50_plus(self, config_2025):
        """Age 50+ at year end may contribute $8,000."""
        result = ira(config_2025, contribution=8000, covered=False, dob=date(1970, 5, 1))
        assert result.contribution_limit == dollars(8000)
        assert result.deductible_amount == dollars(8000)

    def test_contribution_capped_under_50(self, config_2025):
        """Under 50 the limit is $7,000."""
        result = ira(config_2025, contribution=8000, covered=False, dob=date(1990, 5, 1))
        assert result.deductible_amount == dollars(7000)


class TestIRASpouseCovered:

    def test_mfj_spouse_covered_higher_threshold(self, config_2025):
        """Only the spouse covered: $236,000 - $246,000 range."""
        result = ira(config_2025, status=FilingStatus.MARRIED_JOINT, covered=False,
                     spouse_covered=True, magi=200000)
        assert result.deductible_amount == dollars(7000)

    def test_mfj_spouse_covered_in_phaseout(self, config_2025):
        """Midpoint of the spouse-covered range halves the deduction."""
        result = ira(config_2025, status=FilingStatus.MARRIED_JOINT, covered=False,
                     spouse_covered=True, magi=241000)
        assert result.deductible_amount == dollars(3500)


class TestIRACompensationLimit:

    def test_deduction_limited_by_compensation(self, config_2025):
        """Cannot deduct more than taxable compensation."""
        result = ira(config_2025, covered=False, magi=3000, compensation=3000)
        assert result.allowable_contribution == dollars(3000)
        assert result.deductible_amount == dollars(3000)

    def test_no_deduction_with_zero_compensation(self, config_2025):
        """No compensation, no deduction."""
        result = ira(config_2025, covered=False, magi=20000, compensation=0)
        assert result.deductible_amount == 0


class TestIRAMFSSpecialRules:

    def test_mfs_covered_narrow_phaseout(self, config_2025):
        """MFS covered: $5,000 MAGI is the midpoint of $0 - $10,000."""
        result = ira(config_2025, status=FilingStatus.MARRIED_SEPARATE, magi=5000, compensation=84000)
        assert result.deductible_amount == dollars(3500)

    def test_mfs_covered_above_10k_no_deduction(self, config_2025):
        """MFS covered at $10,000 MAGI or more: nothing deductible."""
        result = ira(config_2025, status=FilingStatus.MARRIED_SEPARATE, magi=10000)
        assert result.deductible_amount == 0


class TestIRADeductionEngine:
    """IRA deduction through the federal engine."""

    def test_single_covered_84k(self, engine):
        """$84,000 wages, covered, $7,000 contribution: $3,500 on Schedule 1 line 20."""
        tax_return = make_return(
            w2s=[make_w2(84000, retirement_plan=True)],
            retirement_contributions=RetirementContributions(traditional_ira=dollars(7000)),
        )
        result = engine.compute(tax_return)

        assert result.ira_deduction.deductible_amount == dollars(3500)
        assert result.schedule1_adjustments.ira_deduction == dollars(3500)
        assert result.line9.amount == dollars(84000)
        assert result.line10.amount == dollars(3500)
        assert result.agi == dollars(80500)

    def test_no_contribution_no_result(self, engine, single_return):
        """No contribution: the detail is None."""
        result = engine.compute(single_return)
        assert result.ira_deduction is None
        assert result.spouse_ira_deduction is None

    def test_spousal_ira_uses_combined_compensation(self, engine):
        """A non-working spouse may deduct against the other spouse's wages."""
        tax_return = make_return(
            FilingStatus.MARRIED_JOINT,
            w2s=[make_w2(100000)],
            retirement_contributions=RetirementContributions(
                traditional_ira=dollars(7000),
                spouse_traditional_ira=dollars(7000),
            ),
        )
        result = engine.compute(tax_return)
        assert result.ira_deduction.deductible_amount == dollars(7000)
        assert result.spouse_ira_deduction.deductible_amount == dollars(7000)
        assert result.schedule1_adjustments.ira_deduction == dollars(14000)

    def test_ira_trace_node(self, engine, trace):
        """The deduction node traces back to the contribution and line 9."""
        tax_return = make_return(
            w2s=[make_w2(84000, retirement_plan=True)],
            retirement_contributions=RetirementContributions(traditional_ira=dollars(7000)),
        )
        engine.compute(tax_return, trace)
        node = trace.get("ira.taxpayer.deduction")
        assert node.amount == dollars(3500)
        assert "ira.taxpayer.contribution" in node.inputs
        assert "form1040.line9" in node.inputs
        assert "ira.taxpayer.deduction" in trace.get("schedule1.line20").inputs
