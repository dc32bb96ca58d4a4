"""
Tests for the Child Tax Credit, Credit for Other Dependents and the
Additional Child Tax Credit (Schedule 8812).

Tests cover:
- $2,000 per qualifying child, $500 per other dependent
- Age, SSN and relationship tests
- $50 per $1,000 (or part) phaseout above $200,000 / $400,000
- Nonrefundable portion limited to tax, refundable ACTC for the rest
"""

from datetime import date

from calculator.child_tax_credit import compute_child_tax_credit, is_qualifying_child
from models.taxpayer import Dependent, FilingStatus
from tests.helpers.builders import dollars, make_dependents, make_return, make_w2


def ctc(config, dependents, magi=50000, tax=10000, earned=None, status=FilingStatus.SINGLE):
    return compute_child_tax_credit(
        dependents,
        status,
        dollars(magi),
        dollars(tax),
        dollars(earned if earned is not None else magi),
        config,
    )


class TestQualifyingChild:

    def test_child_under_17_qualifies(self):
        """An 8-year-old son with an SSN is a qualifying child."""
        assert is_qualifying_child(make_dependents(1)[0], 2025)

    def test_age_17_is_other_dependent(self):
        """Turning 17 during the year disqualifies."""
        child = Dependent(first_name="Teen", relationship="daughter", ssn="555000009",
                          date_of_birth=date(2008, 3, 1))
        assert not is_qualifying_child(child, 2025)

    def test_missing_ssn_does_not_qualify(self):
        """No SSN: only the $500 credit."""
        child = Dependent(first_name="Kid", relationship="son", date_of_birth=date(2017, 6, 1))
        assert not is_qualifying_child(child, 2025)

    def test_relationship_aliases(self):
        """Stepdaughter normalises to stepchild."""
        child = Dependent(first_name="Kid", relationship="Stepdaughter",
                          ssn="555000008", date_of_birth=date(2017, 6, 1))
        assert is_qualifying_child(child, 2025)


class TestChildTaxCredit:

    def test_no_dependents_returns_none(self, config_2025):
        """No dependents: Schedule 8812 is not filed."""
        assert ctc(config_2025, []) is None

    def test_two_children_fully_nonrefundable(self, config_2025):
        """Enough tax absorbs the whole $4,000."""
        result = ctc(config_2025, make_dependents(2))
        assert result.qualifying_children == 2
        assert result.initial_credit == dollars(4000)
        assert result.nonrefundable_credit == dollars(4000)
        assert result.additional_child_tax_credit == 0

    def test_other_dependent(self, config_2025):
        """A parent is an other dependent worth $500."""
        parent = Dependent(first_name="Mom", relationship="parent", ssn="555000007",
                           date_of_birth=date(1950, 1, 1))
        result = ctc(config_2025, [parent])
        assert result.other_dependents == 1
        assert result.initial_credit == dollars(500)

    def test_unused_credit_becomes_actc(self, config_2025):
        """$1,000 of tax: $3,000 left over, all refundable."""
        result = ctc(config_2025, make_dependents(2), tax=1000)
        assert result.nonrefundable_credit == dollars(1000)
        assert result.unused_credit == dollars(3000)
        assert result.earned_income_amount == dollars(7125)
        assert result.additional_child_tax_credit == dollars(3000)

    def test_actc_limited_by_earned_income(self, config_2025):
        """15% of earned income over $2,500 caps the refund."""
        result = ctc(config_2025, make_dependents(2), magi=10000, tax=0)
        assert result.earned_income_amount == dollars(1125)
        assert result.additional_child_tax_credit == dollars(1125)

    def test_actc_limited_per_child(self, config_2025):
        """At most $1,700 per child is refundable."""
        result = ctc(config_2025, make_dependents(1), magi=40000, tax=0)
        assert result.additional_child_tax_credit == dollars(1700)

    def test_other_dependents_get_no_actc(self, config_2025):
        """The $500 credit is never refundable."""
        parent = Dependent(first_name="Mom", relationship="parent", ssn="555000007")
        result = ctc(config_2025, [parent], tax=0)
        assert result.additional_child_tax_credit == 0


class TestPhaseout:

    def test_exactly_at_threshold(self, config_2025):
        """No reduction at $200,000."""
        result = ctc(config_2025, make_dependents(2), magi=200000)
        assert result.phaseout_reduction == 0

    def test_one_dollar_over_rounds_up(self, config_2025):
        """$1 over the threshold is a full $1,000 step: $50."""
        result = ctc(config_2025, make_dependents(2), magi=200001)
        assert result.phaseout_reduction == dollars(50)
        assert result.credit_after_phaseout == dollars(3950)

    def test_joint_threshold(self, config_2025):
        """Joint filers start at $400,000."""
        result = ctc(config_2025, make_dependents(2), magi=410000, status=FilingStatus.MARRIED_JOINT)
        assert result.phaseout_reduction == dollars(500)


class TestChildTaxCreditEngine:

    def test_low_income_family(self, engine, trace):
        """$30,000 wages, two children: tax wiped out, remainder refundable."""
        tax_return = make_return(w2s=[make_w2(30000)], dependents=2)
        result = engine.compute(tax_return, trace)
        assert result.line18.amount == dollars(1561.50)
        assert result.line19.amount == dollars(1561.50)
        assert trace.amount("schedule8812.line14") == dollars(1561.50)
        assert result.line28.amount == dollars(2438.50)
        assert result.line22.amount == 0
        assert "Schedule 8812" in result.executed_schedules
