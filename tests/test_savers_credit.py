"""
Tests for Saver's Credit (Retirement Savings Contributions Credit - Form 8880)

Tests cover:
- Credit rate tiers (50%, 20%, 10%, 0%)
- Contribution limits ($2,000 per person)
- Eligibility requirements (age 18, not a dependent)
- Integration with engine, limited by the remaining tax
"""

from decimal import Decimal

from calculator.savers_credit import compute_savers_credit, savers_credit_rate
from models.credits import RetirementContributions
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2


def savers(config, contributions=(3000,), ages=(30,), agi=20000,
           status=FilingStatus.SINGLE, dependent=False):
    return compute_savers_credit(
        [dollars(c) for c in contributions],
        list(ages),
        dollars(agi),
        status,
        dependent,
        config,
    )


class TestSaversCreditRates:
    """Credit rate tiers based on AGI."""

    def test_50_percent_rate_single(self, config_2025):
        """AGI $20,000: 50% of the $2,000 cap."""
        result = savers(config_2025)
        assert result.credit_rate == Decimal("0.50")
        assert result.eligible_contributions == dollars(2000)
        assert result.credit == dollars(1000)

    def test_20_percent_rate_single(self, config_2025):
        """AGI $25,000 is in the 20% tier."""
        result = savers(config_2025, agi=25000)
        assert result.credit_rate == Decimal("0.20")
        assert result.credit == dollars(400)

    def test_above_limit_no_credit(self, config_2025):
        """AGI $40,000 is above every tier."""
        result = savers(config_2025, agi=40000)
        assert result.credit == 0

    def test_joint_tiers_are_wider(self, config_2025):
        """$45,000 joint AGI still earns 50%."""
        assert savers_credit_rate(dollars(45000), FilingStatus.MARRIED_JOINT, config_2025) == Decimal("0.50")

    def test_mfs_uses_single_tiers(self, config_2025):
        """Married filing separately uses the single limits."""
        rate = savers_credit_rate(dollars(24000), FilingStatus.MARRIED_SEPARATE, config_2025)
        assert rate == Decimal("0.20")


class TestSaversCreditEligibility:

    def test_no_contributions_returns_none(self, config_2025):
        """Nothing contributed: not applicable."""
        assert savers(config_2025, contributions=(0,)) is None

    def test_under_18_not_eligible(self, config_2025):
        """Contributions by someone under 18 do not count."""
        result = savers(config_2025, ages=(17,))
        assert result.eligible_contributions == 0
        assert result.credit == 0

    def test_dependent_not_eligible(self, config_2025):
        """Someone who can be claimed as a dependent gets nothing."""
        result = savers(config_2025, dependent=True)
        assert result.eligible_contributions == 0

    def test_cap_is_per_person(self, config_2025):
        """Each spouse counts up to $2,000."""
        result = savers(config_2025, contributions=(3000, 1500), ages=(40, 38), agi=40000,
                        status=FilingStatus.MARRIED_JOINT)
        assert result.eligible_contributions == dollars(3500)
        assert result.credit == dollars(1750)


class TestSaversCreditEngine:

    def test_limited_to_tax(self, engine, trace):
        """$20,000 wages and a $2,000 IRA: the $1,000 credit is held to the $300 tax."""
        tax_return = make_return(
            w2s=[make_w2(20000)],
            retirement_contributions=RetirementContributions(traditional_ira=dollars(2000)),
        )
        result = engine.compute(tax_return, trace)
        assert result.agi == dollars(18000)
        assert result.savers_credit.credit == dollars(1000)
        assert result.line18.amount == dollars(300)
        assert trace.amount("schedule3.line4") == dollars(300)
        assert result.line22.amount == 0
        assert "Form 8880" in result.executed_schedules
