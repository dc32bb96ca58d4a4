"""
Tests for taxable Social Security benefits (Form 1040 lines 6a/6b).

Tests cover:
- Provisional income at or below the base amount: nothing taxable
- The 50% tier between the base and adjusted base amounts
- The 85% cap
- MFS (lived with spouse) base of zero
- Adjustments that exceed combined income
"""

import pytest

from calculator.social_security import compute_taxable_social_security
from models.documents import SSA1099, Form1099R
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return


def taxable(config, benefits, other, status=FilingStatus.SINGLE, exempt=0, adjustments=0):
    return compute_taxable_social_security(
        dollars(benefits), dollars(other), dollars(exempt), dollars(adjustments), status, config,
    )


class TestSocialSecurityWorksheet:

    def test_no_benefits_returns_none(self, config_2025):
        """No SSA-1099: line 6b is not computed."""
        assert taxable(config_2025, 0, 50000) is None

    def test_below_base_amount(self, config_2025):
        """Provisional income of $20,000 is under the $25,000 base."""
        result = taxable(config_2025, 20000, 10000)
        assert result.provisional_income == dollars(20000)
        assert result.taxable_benefits == 0
        assert result.nontaxable_benefits == dollars(20000)

    def test_between_thresholds(self, config_2025):
        """$40,000 provisional income: $4,500 + 85% of $6,000."""
        result = taxable(config_2025, 20000, 30000)
        assert result.taxable_benefits == dollars(9600)

    def test_85_percent_cap(self, config_2025):
        """High income taxes 85% of benefits."""
        result = taxable(config_2025, 20000, 100000)
        assert result.taxable_benefits == dollars(17000)

    def test_tax_exempt_interest_counts(self, config_2025):
        """Line 2a interest is part of provisional income."""
        result = taxable(config_2025, 20000, 10000, exempt=10000)
        assert result.provisional_income == dollars(30000)
        assert result.taxable_benefits == dollars(2500)

    def test_mfs_base_is_zero(self, config_2025):
        """MFS with no other income still taxes 85% of half the benefits."""
        result = taxable(config_2025, 10000, 0, status=FilingStatus.MARRIED_SEPARATE)
        assert result.taxable_benefits == dollars(4250)

    def test_adjustments_exceed_income(self, config_2025):
        """Adjustments above combined income leave nothing taxable."""
        result = taxable(config_2025, 20000, 0, adjustments=15000)
        assert result.taxable_benefits == 0

    @pytest.mark.parametrize("status,other,expected", [
        (FilingStatus.MARRIED_JOINT, 22000, 0),
        (FilingStatus.MARRIED_JOINT, 30000, 4000),
    ])
    def test_joint_base(self, config_2025, status, other, expected):
        """Joint filers use $32,000 and $44,000."""
        assert taxable(config_2025, 20000, other, status=status).taxable_benefits == dollars(expected)


class TestSocialSecurityEngine:

    def test_retiree_with_pension(self, engine, trace):
        """$20,000 benefits and a $30,000 pension."""
        tax_return = make_return(
            ssa1099=[SSA1099(id="ssa", box5_net_benefits=dollars(20000))],
            form1099_r=[Form1099R(id="pension", box1_gross_distribution=dollars(30000),
                                  box2a_taxable_amount=dollars(30000))],
        )
        result = engine.compute(tax_return, trace)
        assert result.line6a.amount == dollars(20000)
        assert result.line6b.amount == dollars(9600)
        assert result.agi == dollars(39600)
        assert result.social_security.nontaxable_benefits == dollars(10400)
