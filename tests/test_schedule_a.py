"""
Tests for Schedule A (Itemized Deductions).

Tests cover:
- Medical expenses over 7.5% of AGI
- SALT cap with the high-income phasedown and floor
- Mortgage interest proration above the acquisition debt limit
- Charitable limits
- Home office share removed from mortgage interest and taxes
- Standard versus itemized election in the engine
"""

import pytest

from calculator.schedule_a import compute_schedule_a, salt_cap
from models.deductions import DeductionElection, DeductionMethod, ItemizedDeductions
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2


def schedule_a(config, agi=100000, status=FilingStatus.SINGLE, nii=0, office_interest=0, office_taxes=0, **items):
    return compute_schedule_a(
        ItemizedDeductions(**{k: v if isinstance(v, bool) else dollars(v) for k, v in items.items()}),
        dollars(agi),
        status,
        dollars(nii),
        config,
        home_office_mortgage_interest=dollars(office_interest),
        home_office_real_estate_taxes=dollars(office_taxes),
    )


class TestSaltCap:

    @pytest.mark.parametrize("agi,expected", [
        (100000, 40000),
        (500000, 40000),
        (550000, 25000),
        (600000, 10000),
        (1000000, 10000),
    ])
    def test_single_cap_by_agi(self, config_2025, agi, expected):
        """30% of MAGI over $500,000 comes off the $40,000 cap, floor $10,000."""
        assert salt_cap(dollars(agi), FilingStatus.SINGLE, config_2025) == dollars(expected)

    def test_mfs_cap(self, config_2025):
        """MFS has half the cap."""
        assert salt_cap(dollars(100000), FilingStatus.MARRIED_SEPARATE, config_2025) == dollars(20000)

    def test_larger_of_income_or_sales_tax(self, config_2025):
        """Sales tax is used instead of income tax when larger."""
        result = schedule_a(config_2025, state_local_income_tax=3000, state_local_sales_tax=4000)
        assert result.salt_paid == dollars(4000)


class TestScheduleAItems:

    def test_medical_floor(self, config_2025):
        """Only the part over 7.5% of AGI counts."""
        result = schedule_a(config_2025, medical_expenses=10000)
        assert result.medical_floor == dollars(7500)
        assert result.medical_deduction == dollars(2500)

    def test_mortgage_interest_prorated(self, config_2025):
        """$1,000,000 of post-2017 debt: 75% of interest."""
        result = schedule_a(config_2025, mortgage_interest=30000, mortgage_principal=1000000)
        assert result.mortgage_interest == dollars(22500)

    def test_pre_tcja_debt_limit(self, config_2025):
        """Older debt keeps the $1,000,000 limit."""
        result = schedule_a(config_2025, mortgage_interest=30000, mortgage_principal=1000000,
                            mortgage_is_pre_tcja=True)
        assert result.mortgage_interest == dollars(30000)

    def test_investment_interest_limited(self, config_2025):
        """Investment interest cannot exceed net investment income."""
        result = schedule_a(config_2025, investment_interest=5000, nii=2000)
        assert result.investment_interest == dollars(2000)

    def test_charitable_cash_limit(self, config_2025):
        """Cash gifts limited to 60% of AGI."""
        result = schedule_a(config_2025, charitable_cash=70000)
        assert result.charitable_deduction == dollars(60000)

    def test_home_office_share_removed(self, config_2025):
        """Amounts claimed on Form 8829 are not itemized again."""
        result = schedule_a(config_2025, mortgage_interest=10000, real_estate_taxes=5000,
                            office_interest=1000, office_taxes=500)
        assert result.mortgage_interest == dollars(9000)
        assert result.salt_paid == dollars(4500)
        assert result.total_itemized == dollars(13500)


class TestItemizeElection:

    def itemizer(self, **kwargs):
        return make_return(
            w2s=[make_w2(100000)],
            itemized=ItemizedDeductions(
                state_local_income_tax=dollars(8000),
                real_estate_taxes=dollars(4000),
                mortgage_interest=dollars(10000),
            ),
            **kwargs,
        )

    def test_auto_picks_larger(self, engine, trace):
        """$22,000 of itemized beats the $15,000 standard deduction."""
        result = engine.compute(self.itemizer(), trace)
        assert result.deduction_method == "itemized"
        assert result.line12.amount == dollars(22000)
        assert trace.amount("scheduleA.line7") == dollars(12000)
        assert trace.amount("scheduleA.line17") == dollars(22000)
        assert result.standard_deduction == dollars(15000)
        assert "Schedule A" in result.executed_schedules

    def test_forced_standard(self, engine):
        """Electing the standard deduction skips Schedule A."""
        result = engine.compute(self.itemizer(
            deduction_election=DeductionElection(method=DeductionMethod.STANDARD),
        ))
        assert result.deduction_method == "standard"
        assert result.line12.amount == dollars(15000)
        assert result.schedule_a is None

    def test_auto_keeps_standard_when_larger(self, engine, single_return):
        """No itemized amounts: standard deduction."""
        result = engine.compute(single_return)
        assert result.deduction_method == "standard"
        assert "Schedule A" not in result.executed_schedules
