"""
Tests for Schedule D (Capital Gains and Losses).

Tests cover:
- Short-term and long-term netting by Form 8949 category
- Capital gain distributions on line 13
- $3,000 / $1,500 loss limit and the carryover worksheet
- Prior-year carryovers
"""

from datetime import date

from calculator.schedule_d import compute_schedule_d
from models.documents import Form1099B, Form1099DIV
from models.form_8949 import CapitalTransaction, Form8949Category
from models.tax_return import PriorYearInfo
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, make_w2


def txn(txn_id, gain, long_term=False, category=None):
    category = category or (Form8949Category.D if long_term else Form8949Category.A)
    return CapitalTransaction(
        id=txn_id,
        date_sold=date(2025, 9, 1),
        proceeds=max(gain, 0),
        reported_basis=max(-gain, 0),
        adjusted_basis=max(-gain, 0),
        gain_loss=gain,
        long_term=long_term,
        category=category,
        source_1099b_id=txn_id,
    )


def schedule_d(config, transactions, distributions=0, prior=None, status=FilingStatus.SINGLE):
    return compute_schedule_d(transactions, distributions, prior or PriorYearInfo(), status, config)


class TestScheduleDNetting:

    def test_nothing_to_report(self, config_2025):
        """No sales, distributions or carryovers: not filed."""
        assert schedule_d(config_2025, []) is None

    def test_short_and_long_term_totals(self, config_2025):
        """Categories add up into lines 7 and 15."""
        result = schedule_d(config_2025, [
            txn("a", dollars(1000)),
            txn("b", dollars(500), category=Form8949Category.B),
            txn("d", dollars(2000), long_term=True),
            txn("e", -dollars(300), long_term=True, category=Form8949Category.E),
        ])
        assert result.category_totals["A"] == dollars(1000)
        assert result.net_short_term == dollars(1500)
        assert result.net_long_term == dollars(1700)
        assert result.net_gain_or_loss == dollars(3200)
        assert result.form1040_line7 == dollars(3200)
        assert result.net_capital_gain == dollars(1700)

    def test_distributions_are_long_term(self, config_2025):
        """1099-DIV box 2a goes to line 13."""
        result = schedule_d(config_2025, [], distributions=dollars(400))
        assert result.net_long_term == dollars(400)
        assert result.form1040_line7 == dollars(400)


class TestCapitalLossLimit:

    def test_loss_limited_to_3000(self, config_2025):
        """A $5,000 short-term loss: $3,000 now, $2,000 carried."""
        result = schedule_d(config_2025, [txn("a", -dollars(5000))])
        assert result.allowed_loss == dollars(3000)
        assert result.form1040_line7 == -dollars(3000)
        assert result.short_term_carryover_out == dollars(2000)
        assert result.long_term_carryover_out == 0
        assert result.net_capital_gain == 0

    def test_mfs_limit(self, config_2025):
        """Married filing separately: $1,500."""
        result = schedule_d(config_2025, [txn("a", -dollars(5000))], status=FilingStatus.MARRIED_SEPARATE)
        assert result.form1040_line7 == -dollars(1500)

    def test_long_term_loss_carryover(self, config_2025):
        """Short-term gain absorbs long-term loss first."""
        result = schedule_d(config_2025, [
            txn("a", dollars(1000)),
            txn("d", -dollars(6000), long_term=True),
        ])
        assert result.net_gain_or_loss == -dollars(5000)
        assert result.allowed_loss == dollars(3000)
        assert result.short_term_carryover_out == 0
        assert result.long_term_carryover_out == dollars(2000)

    def test_prior_year_carryover(self, config_2025):
        """Carryover alone is enough to file."""
        prior = PriorYearInfo(short_term_loss_carryover=dollars(1000))
        result = schedule_d(config_2025, [], prior=prior)
        assert result.short_term_carryover_in == dollars(1000)
        assert result.form1040_line7 == -dollars(1000)


class TestScheduleDEngine:

    def test_loss_reduces_agi(self, engine, trace):
        """A $10,000 loss deducts $3,000 against wages."""
        tax_return = make_return(
            w2s=[make_w2(60000)],
            form1099_b=[Form1099B(
                id="b1", description="XYZ", symbol="XYZ",
                date_acquired=date(2025, 1, 5), date_sold=date(2025, 8, 1),
                proceeds=dollars(5000), cost_basis=dollars(15000),
            )],
        )
        result = engine.compute(tax_return, trace)
        assert result.line7.amount == -dollars(3000)
        assert result.agi == dollars(57000)
        assert result.schedule_d.short_term_carryover_out == dollars(7000)
        assert "form8949.b1.columnH" in trace.get("scheduleD.line7").inputs

    def test_capital_gain_distributions(self, engine, trace):
        """Distributions flow through line 15."""
        tax_return = make_return(
            w2s=[make_w2(60000)],
            form1099_div=[Form1099DIV(id="fund", box2a_capital_gain_distributions=dollars(800))],
        )
        result = engine.compute(tax_return, trace)
        assert result.line7.amount == dollars(800)
        assert trace.amount("scheduleD.line15") == dollars(800)
