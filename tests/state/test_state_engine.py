"""
Tests for the state tax engine, registry and residency apportionment.

Tests cover:
- No-income-tax states return None
- Registry lookup, metadata and duplicate registration
- Apportionment ratio for full-year, part-year and nonresident filers
- State nodes recorded under the state's form prefix
"""

from datetime import date
from decimal import Decimal

import pytest

from calculator.state import (
    NO_INCOME_TAX_STATES,
    StateCalculatorRegistry,
    StateTaxEngine,
    apportionment_ratio,
    get_metadata,
    supported_states,
)
from calculator.state.base_state_calculator import resident_days
from calculator.state.configs.state_2025.kentucky import KentuckyCalculator
from calculator.state.configs.state_2025.california import CaliforniaCalculator
from models.state_return import ResidencyType, StateReturnConfig
from tests.helpers.builders import make_return


def part_year(move_in=None, move_out=None, state="KY"):
    return StateReturnConfig(
        state_code=state,
        residency=ResidencyType.PART_YEAR,
        move_in_date=move_in,
        move_out_date=move_out,
    )


class TestNoIncomeTaxStates:
    """Test handling of states with no income tax."""

    def test_no_income_tax_states_list(self):
        expected = {"AK", "FL", "NV", "SD", "TX", "WA", "WY", "TN", "NH"}
        assert NO_INCOME_TAX_STATES == expected

    @pytest.mark.parametrize("state", ["TX", "FL", "WA"])
    def test_no_income_tax_state_returns_none(self, engine, trace, state):
        """States with no income tax produce no result."""
        tax_return = make_return(wages=50000, state=state)
        federal = engine.compute(tax_return, trace)
        result = StateTaxEngine(2025).compute(tax_return, federal, tax_return.state_returns[0], trace)
        assert result is None
        assert not StateTaxEngine(2025).has_income_tax(state)


class TestStateRegistry:

    def test_supported_states(self):
        assert supported_states(2025) == ["CA", "IL", "KY", "MA", "NC", "PA"]

    def test_no_calculators_for_other_years(self):
        assert supported_states(2024) == []

    def test_get_calculator(self):
        assert isinstance(StateCalculatorRegistry.get_calculator("ky", 2025), KentuckyCalculator)
        assert StateCalculatorRegistry.get_calculator("NY", 2025) is None

    def test_metadata(self):
        """Metadata is available without computing anything."""
        meta = get_metadata("CA")
        assert meta.form_label == "CA Form 540"
        assert meta.node_prefix == "form540"
        assert meta.template_files == ("540.pdf",)

    def test_duplicate_registration_rejected(self):
        """One calculator per state and year."""
        with pytest.raises(ValueError, match="already registered"):
            StateCalculatorRegistry.register("KY", 2025, CaliforniaCalculator)

    def test_reregistering_same_class_allowed(self):
        StateCalculatorRegistry.register("KY", 2025, KentuckyCalculator)
        assert StateCalculatorRegistry.is_supported("KY", 2025)

    def test_unsupported_state_returns_none(self, engine, trace):
        tax_return = make_return(wages=50000, state="NY")
        federal = engine.compute(tax_return, trace)
        assert StateTaxEngine(2025).compute(tax_return, federal, tax_return.state_returns[0], trace) is None


class TestApportionment:

    def test_full_year(self):
        assert apportionment_ratio(StateReturnConfig(state_code="KY"), 2025) == Decimal(1)

    def test_nonresident(self):
        config = StateReturnConfig(state_code="KY", residency=ResidencyType.NONRESIDENT)
        assert apportionment_ratio(config, 2025) == Decimal(0)

    def test_move_in_july_first(self):
        """July 1 through December 31 is 184 days."""
        config = part_year(move_in=date(2025, 7, 1))
        assert resident_days(config, 2025) == 184
        assert apportionment_ratio(config, 2025) == Decimal(184) / Decimal(365)

    def test_move_out(self):
        config = part_year(move_out=date(2025, 1, 31))
        assert resident_days(config, 2025) == 31

    def test_dates_clamped_to_year(self):
        """A move-in before January 1 counts from January 1."""
        config = part_year(move_in=date(2024, 6, 1), move_out=date(2025, 3, 31))
        assert resident_days(config, 2025) == 90

    def test_move_out_before_move_in(self):
        config = part_year(move_in=date(2025, 9, 1), move_out=date(2025, 3, 1))
        assert apportionment_ratio(config, 2025) == Decimal(0)

    def test_leap_year(self):
        config = part_year(move_in=date(2024, 7, 1))
        assert apportionment_ratio(config, 2024) == Decimal(184) / Decimal(366)


class TestStateTrace:

    def test_nodes_prefixed(self, engine, trace):
        """Kentucky nodes live under form740 and reference federal AGI."""
        tax_return = make_return(wages=50000, state="KY")
        federal = engine.compute(tax_return, trace)
        result = StateTaxEngine(2025).compute(tax_return, federal, tax_return.state_returns[0], trace)

        assert result.form_label == "KY Form 740"
        assert "form740.kyAGI" in trace
        assert trace.get("form740.kyAGI").inputs == ("form1040.line11",)
        assert trace.get("form740.kyAGI").label == "Kentucky adjusted gross income"

    def test_review_layout_points_at_recorded_nodes(self, engine, trace):
        """Every always-present review item resolves in the graph."""
        tax_return = make_return(wages=50000, state="KY")
        federal = engine.compute(tax_return, trace)
        StateTaxEngine(2025).compute(tax_return, federal, tax_return.state_returns[0], trace)
        for section in KentuckyCalculator().review_layout():
            for item in section.items:
                if item.node_id in ("form740.kyAdditions", "form740.kySubtractions",
                                    "form740.familySizeTaxCredit", "form740.stateWithholding",
                                    "form740.overpaid", "form740.amountOwed"):
                    continue
                assert item.node_id in trace
