"""Tests for North Carolina state tax calculator."""

import pytest

from models.documents import SSA1099, Form1099R
from models.form_8889 import HSAInfo
from models.taxpayer import FilingStatus
from tests.helpers.builders import dollars, make_return, run_state


class TestNorthCarolinaTax:

    def test_single_wage_earner(self):
        """4.25% after the $12,750 standard deduction."""
        _, result, _ = run_state(make_return(wages=50000, state="NC"))
        assert result.state_taxable_income == dollars(37250)
        assert result.state_tax == dollars(1583.13)
        assert result.form_label == "NC D-400"

    @pytest.mark.parametrize("status,deduction", [
        (FilingStatus.MARRIED_JOINT, 25500),
        (FilingStatus.HEAD_OF_HOUSEHOLD, 19125),
    ])
    def test_standard_deduction_by_status(self, status, deduction):
        _, result, _ = run_state(make_return(status, wages=60000, state="NC"))
        assert result.detail.standard_deduction == dollars(deduction)

    def test_hsa_deduction_added_back(self):
        """NC does not allow the federal HSA deduction."""
        tax_return = make_return(wages=60000, state="NC", hsa=HSAInfo(personal_contributions=dollars(3000)))
        federal, result, trace = run_state(tax_return)
        assert federal.agi == dollars(57000)
        assert result.detail.hsa_addback == dollars(3000)
        assert result.state_agi == dollars(60000)
        assert result.state_tax == dollars(2008.13)
        assert "form1040.line11" in trace.get("d400.ncAGI").inputs
        assert "d400.ncAdditions" in trace.get("d400.ncAGI").inputs

    def test_social_security_deducted(self):
        tax_return = make_return(
            state="NC",
            ssa1099=[SSA1099(id="ssa", box5_net_benefits=dollars(20000))],
            form1099_r=[Form1099R(id="pension", box1_gross_distribution=dollars(30000),
                                  box2a_taxable_amount=dollars(30000))],
        )
        _, result, _ = run_state(tax_return)
        assert result.detail.social_security_exclusion == dollars(9600)
        assert result.state_agi == dollars(30000)
        assert result.state_tax == dollars(733.13)
