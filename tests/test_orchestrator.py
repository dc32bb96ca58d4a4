"""
Tests for the return orchestrator.

Tests cover:
- Federal plus state results on one merged graph
- Executed schedule list including state forms
- Unsupported and no-income-tax states
- Explanations and serialization of the combined run
"""

import logging

import pytest
from pydantic import ValidationError

from calculator.orchestrator import ReturnOrchestrator, compute_return
from calculator.validation import TaxReturnValidator
from models.state_return import StateReturnConfig
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2


@pytest.fixture
def two_state_return():
    return make_return(
        FilingStatus.MARRIED_JOINT,
        w2s=[make_w2(60000, "ky-job", federal_withheld=5000, state="KY", state_withheld=2000),
             make_w2(40000, "ca-job", federal_withheld=3000, state="CA", state_withheld=700)],
        state_returns=[StateReturnConfig(state_code="KY"), StateReturnConfig(state_code="CA")],
    )


class TestReturnOrchestrator:

    def test_federal_and_states(self, two_state_return):
        computation = compute_return(two_state_return)

        assert computation.form1040.agi == dollars(100000)
        assert [s.state_code for s in computation.state_results] == ["KY", "CA"]
        assert computation.state_result("ky").state_agi == dollars(100000)
        assert computation.state_result("NC") is None

    def test_single_merged_graph(self, two_state_return):
        computation = compute_return(two_state_return)
        values = computation.values

        assert values.get("form1040.line11").amount == dollars(100000)
        assert "form740.kyAGI" in values
        assert "form540.caAGI" in values
        assert "form1040.line11" in values.get("form540.caAGI").inputs
        values.topological_order()

    def test_state_withholding_per_state(self, two_state_return):
        computation = compute_return(two_state_return)
        assert computation.state_result("KY").state_withholding == dollars(2000)
        assert computation.state_result("CA").state_withholding == dollars(700)

    def test_executed_schedules_include_state_forms(self, two_state_return):
        computation = compute_return(two_state_return)
        executed = computation.executed_schedules
        assert executed[-2:] == ("KY Form 740", "CA Form 540")
        assert list(executed[:-2]) == computation.form1040.executed_schedules

    def test_explain(self, two_state_return):
        computation = compute_return(two_state_return)
        text = computation.explain("form1040.line11")
        assert text.splitlines()[0].startswith("Adjusted gross income: $100,000.00")

    def test_to_dict(self, two_state_return):
        data = compute_return(two_state_return).to_dict()
        assert set(data) == {"form1040", "state_results", "values", "executed_schedules", "validation_items"}
        assert data["state_results"][0]["state_code"] == "KY"
        assert data["values"]["form1040.line11"]["amount"] == dollars(100000)


class TestStateCoverage:

    def test_unsupported_state_reported(self):
        computation = compute_return(make_return(wages=50000, state="NY"))
        assert computation.state_results == ()
        assert [i.code for i in computation.validation_items] == ["UNSUPPORTED_STATE"]

    def test_no_income_tax_state_is_silent(self):
        computation = compute_return(make_return(wages=50000, state="TX"))
        assert computation.state_results == ()
        assert computation.validation_items == ()

    def test_repeated_state_rejected_at_intake(self):
        """The same state twice, in any case, is an input error rather than a second run."""
        with pytest.raises(ValidationError, match="KY is listed more than once"):
            make_return(
                wages=50000,
                state_returns=[StateReturnConfig(state_code="KY"), StateReturnConfig(state_code="ky")],
            )

    def test_custom_validator(self):
        orchestrator = ReturnOrchestrator(validator=TaxReturnValidator())
        computation = orchestrator.compute(make_return(wages=50000, state="NY"))
        assert computation.validation_items == ()


class TestComputationLogging:

    def test_run_logged(self, caplog, two_state_return):
        caplog.set_level(logging.INFO, logger="calculator.computation")
        compute_return(two_state_return)
        finished = [r for r in caplog.records if r.getMessage() == "Return computed"]
        assert len(finished) == 1
        assert finished[0].extra_data["states"] == 2
