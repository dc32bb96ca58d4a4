"""
Tests for the federal engine end to end.

Tests cover:
- Simple W-2 return through refund
- Every Form 1040 line has a node in the trace graph
- Refund and amount owed are mutually exclusive
- Excess social security refundable credit
- Registering an additional refundable credit provider
- Engine configured for one year rejects another
"""

import pytest

from calculator.engine import FederalTaxEngine, line_id
from calculator.refundable_credits import (
    RefundableCreditItem,
    RefundableCreditProvider,
    RefundableCreditRegistry,
    aggregate_refundable_credits,
    default_registry,
    RefundableCreditContext,
)
from calculator.traced_value import TraceGraphBuilder
from models.taxpayer import Owner
from tests.helpers.builders import dollars, make_return, make_w2


class FlatRefundableCredit(RefundableCreditProvider):
    credit_id = "flatCredit"
    label = "Flat refundable credit"

    def compute(self, context):
        return RefundableCreditItem(
            credit_id=self.credit_id,
            label=self.label,
            amount=dollars(500),
            node_id="schedule3.line13z",
            input_node_ids=("form1040.line11",),
            irs_citation="Schedule 3, line 13z",
        )


class TestSimpleReturn:

    def test_wage_earner_refund(self, engine, trace, single_return):
        """$75,000 wages, $9,000 withheld."""
        result = engine.compute(single_return, trace)

        assert result.line1a.amount == dollars(75000)
        assert result.line9.amount == dollars(75000)
        assert result.agi == dollars(75000)
        assert result.line12.amount == dollars(15000)
        assert result.taxable_income == dollars(60000)
        assert result.line16.amount == dollars(8114)
        assert result.total_tax == dollars(8114)
        assert result.line25d.amount == dollars(9000)
        assert result.refund == dollars(886)
        assert result.amount_owed == 0

    def test_every_line_traced(self, engine, trace, single_return):
        """Each line's trace id resolves to a node with the same amount."""
        result = engine.compute(single_return, trace)
        for name, line in result.lines().items():
            assert line.trace_id == line_id(name[len("line"):])
            assert trace.amount(line.trace_id) == line.amount

    def test_trace_graph_is_acyclic(self, engine, trace, single_return):
        engine.compute(single_return, trace)
        graph = trace.freeze()
        assert len(graph.topological_order()) == len(graph)

    def test_agi_explanation_reaches_w2(self, engine, trace, single_return):
        engine.compute(single_return, trace)
        text = trace.freeze().explain("form1040.line11")
        assert text.splitlines()[0].startswith("Adjusted gross income: $75,000.00")
        assert "|  |- Total wages: $75,000.00" in text

    def test_amount_owed(self, engine):
        """No withholding leaves a balance due."""
        result = engine.compute(make_return(w2s=[make_w2(75000)]))
        assert result.refund == 0
        assert result.amount_owed == dollars(8114)

    @pytest.mark.parametrize("withheld", [0, 5000, 8114, 20000])
    def test_refund_and_owed_exclusive(self, engine, withheld):
        result = engine.compute(make_return(w2s=[make_w2(75000, federal_withheld=withheld)]))
        assert result.refund == 0 or result.amount_owed == 0
        assert result.refund - result.amount_owed == result.line33.amount - result.total_tax

    def test_engine_reusable(self, engine, single_return):
        """Two runs on the same return give the same lines."""
        first = engine.compute(single_return)
        second = engine.compute(single_return)
        assert first.to_dict() == second.to_dict()

    def test_to_dict(self, engine, single_return):
        data = engine.compute(single_return).to_dict()
        assert data["filing_status"] == "single"
        assert data["deduction_method"] == "standard"
        assert data["lines"]["line11"] == {"amount": dollars(75000), "trace_id": "form1040.line11"}

    def test_config_year_mismatch(self, config_2025):
        """An engine built for 2025 refuses another year."""
        engine = FederalTaxEngine(config=config_2025)
        with pytest.raises(ValueError, match="configured for 2025"):
            engine.compute(make_return(tax_year=2024, w2s=[make_w2(1000)]))

    def test_unsupported_year(self):
        with pytest.raises(ValueError, match="not supported"):
            FederalTaxEngine().compute(make_return(tax_year=2019, w2s=[make_w2(1000)]))


class TestRefundableCredits:

    def test_excess_social_security(self, engine, trace):
        """Two employers withholding over the annual maximum."""
        tax_return = make_return(w2s=[
            make_w2(100000, w2_id="a"),
            make_w2(100000, w2_id="b"),
        ])
        result = engine.compute(tax_return, trace)
        assert trace.amount("schedule3.line11") == dollars(1481.80)
        assert trace.amount("schedule3.line15") == dollars(1481.80)
        assert result.line31.amount == dollars(1481.80)
        assert result.refundable_credits.amount_for("excessSocialSecurity") == dollars(1481.80)
        assert set(trace.get("schedule3.line11").inputs) == {"w2.a.box4", "w2.b.box4"}

    def test_single_employer_no_credit(self, engine):
        """One employer caps its own withholding."""
        result = engine.compute(make_return(w2s=[make_w2(200000)]))
        assert result.line31.amount == 0
        assert result.refundable_credits.items == ()

    def test_spouses_counted_separately(self, engine, config_2025):
        """Each spouse's W-2s are compared with their own maximum."""
        from models.taxpayer import FilingStatus

        tax_return = make_return(
            FilingStatus.MARRIED_JOINT,
            w2s=[make_w2(100000, w2_id="a"), make_w2(100000, w2_id="b", owner=Owner.SPOUSE)],
        )
        context = RefundableCreditContext(tax_return=tax_return, config=config_2025)
        assert aggregate_refundable_credits(context).total == 0

    def test_default_registry_ids(self):
        assert default_registry().credit_ids() == ["excessSocialSecurity", "premiumTaxCredit"]

    def test_duplicate_registration_rejected(self):
        registry = default_registry()
        with pytest.raises(ValueError, match="already registered"):
            registry.register(FlatRefundableCredit())
            registry.register(FlatRefundableCredit())

    def test_new_provider_flows_to_line31(self, single_return):
        """A registered provider adds to Schedule 3 line 15 without engine changes."""
        registry = default_registry()
        registry.register(FlatRefundableCredit())
        trace = TraceGraphBuilder()
        result = FederalTaxEngine(refundable_registry=registry).compute(single_return, trace)

        assert trace.amount("schedule3.line13z") == dollars(500)
        assert result.line31.amount == dollars(500)
        assert result.refund == dollars(1386)
        assert "Schedule 3" in result.executed_schedules

    def test_empty_registry(self, single_return, config_2025):
        context = RefundableCreditContext(tax_return=single_return, config=config_2025)
        assert aggregate_refundable_credits(context, RefundableCreditRegistry()).total == 0
