from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Tuple

from calculator.decimal_math import (
    Bracket,
    Cents,
    PercentageBand,
    brackets_from_floors,
    cents,
    to_decimal,
)
from config.tax_config_loader import load_tax_parameters


BracketTable = Dict[str, List[Bracket]]
StatusAmounts = Dict[str, Cents]
StatusRange = Dict[str, Tuple[Cents, Cents]]


def _status_cents(raw: Dict[str, Any]) -> StatusAmounts:
    return {status: cents(value) for status, value in raw.items()}


def _status_ranges(raw: Dict[str, Any]) -> StatusRange:
    return {status: (cents(lo), cents(hi)) for status, (lo, hi) in raw.items()}


def _by_children(raw: Dict[Any, Any], convert) -> Dict[int, Any]:
    return {int(k): convert(v) for k, v in raw.items()}


@dataclass(frozen=True)
class TaxYearConfig:
    """
    Centralized federal constants for a given tax year.

    Money fields are integer cents and rate fields are Decimal. Values are
    loaded from ``config/tax_parameters/tax_year_<year>.yaml``; review the
    YAML annually against IRS published figures.
    """

    tax_year: int
    ordinary_income_brackets: BracketTable
    standard_deduction: StatusAmounts
    additional_standard_deduction: StatusAmounts
    senior_additional_standard_deduction: StatusAmounts

    # Qualified dividends / long-term capital gains thresholds
    qd_ltcg_0_rate_threshold: StatusAmounts
    qd_ltcg_15_rate_threshold: StatusAmounts
    capital_loss_limit: StatusAmounts

    # Payroll and self-employment
    ss_wage_base: Cents
    ss_employee_rate: Decimal
    se_net_earnings_factor: Decimal
    se_ss_rate: Decimal
    se_medicare_rate: Decimal
    se_minimum_earnings: Cents
    additional_medicare_rate: Decimal
    additional_medicare_threshold: StatusAmounts
    niit_rate: Decimal
    niit_threshold: StatusAmounts

    # Alternative Minimum Tax (Form 6251)
    amt_rate_low: Decimal
    amt_rate_high: Decimal
    amt_exemption: StatusAmounts
    amt_phaseout_start: StatusAmounts
    amt_phaseout_rate: Decimal
    amt_high_rate_threshold: StatusAmounts

    # Social Security benefits worksheet
    ss_benefits_base_amount: StatusAmounts
    ss_benefits_adjusted_base_amount: StatusAmounts

    # IRA (Pub 590-A)
    ira_contribution_limit: Cents
    ira_catchup_50_plus: Cents
    ira_phaseout_rounding: Cents
    ira_phaseout_covered: StatusRange
    ira_phaseout_spouse_covered: StatusRange

    # HSA (Form 8889)
    hsa_self_only_limit: Cents
    hsa_family_limit: Cents
    hsa_catchup_55_plus: Cents
    hsa_excess_contribution_rate: Decimal
    hsa_nonqualified_distribution_rate: Decimal

    # Student loan interest
    student_loan_interest_max: Cents
    student_loan_phaseout: StatusRange

    # QBI (Section 199A)
    qbi_rate: Decimal
    qbi_threshold_start: StatusAmounts
    qbi_phase_in_range: StatusAmounts

    # Schedule A
    medical_floor_rate: Decimal
    salt_base_cap: StatusAmounts
    salt_phaseout_threshold: StatusAmounts
    salt_phaseout_rate: Decimal
    salt_floor: StatusAmounts
    mortgage_limit: StatusAmounts
    mortgage_limit_pre_tcja: StatusAmounts
    charitable_cash_rate: Decimal
    charitable_noncash_rate: Decimal

    # Child Tax Credit (Schedule 8812)
    ctc_per_qualifying_child: Cents
    ctc_per_other_dependent: Cents
    ctc_refundable_max_per_child: Cents
    ctc_earned_income_threshold: Cents
    ctc_refundable_rate: Decimal
    ctc_phaseout_step: Cents
    ctc_phaseout_per_step: Cents
    ctc_phaseout_threshold: StatusAmounts

    # Earned Income Credit, keyed by qualifying children (3 = three or more)
    eitc_investment_income_limit: Cents
    eitc_max_credit: Dict[int, Cents]
    eitc_phase_in_rate: Dict[int, Decimal]
    eitc_phaseout_rate: Dict[int, Decimal]
    eitc_phaseout_start: Dict[int, Cents]
    eitc_phaseout_start_joint: Dict[int, Cents]

    # Dependent care (Form 2441)
    dependent_care_limit_one: Cents
    dependent_care_limit_two_or_more: Cents
    dependent_care_max_rate: Decimal
    dependent_care_min_rate: Decimal
    dependent_care_agi_threshold: Cents
    dependent_care_agi_step: Cents

    # Saver's credit (Form 8880)
    savers_credit_max_contribution: Cents
    savers_credit_agi_limits: Dict[str, Tuple[Cents, Cents, Cents]]

    # Education credits (Form 8863)
    aotc_first_tier: Cents
    aotc_second_tier: Cents
    aotc_second_tier_rate: Decimal
    aotc_refundable_rate: Decimal
    aotc_max_years: int
    llc_expense_limit: Cents
    llc_rate: Decimal
    education_credit_phaseout: StatusRange

    # Energy credits (Form 5695)
    clean_energy_rate: Decimal
    home_improvement_rate: Decimal
    home_improvement_annual_limit: Cents
    heat_pump_limit: Cents
    window_limit: Cents
    door_limit: Cents
    audit_limit: Cents

    # Premium Tax Credit (Form 8962)
    fpl_base: Cents
    fpl_per_additional_person: Cents
    ptc_applicable_bands: List[PercentageBand]
    ptc_repayment_caps: List[Tuple[Decimal, Cents, Cents]]

    early_distribution_penalty_rate: Decimal = Decimal("0.10")
    schedule_b_threshold: Cents = 150000
    educator_expense_limit: Cents = 30000
    dependent_standard_deduction_min: Cents = 135000
    dependent_standard_deduction_earned_add: Cents = 45000

    def brackets_for(self, filing_status: str) -> List[Bracket]:
        return self.ordinary_income_brackets.get(
            filing_status, self.ordinary_income_brackets["single"]
        )

    @staticmethod
    def from_parameters(tax_year: int, data: Dict[str, Any]) -> "TaxYearConfig":
        """Build a config from a dollar-denominated parameter tree."""
        payroll = data["payroll"]
        amt = data["amt"]
        ssb = data["social_security_benefits"]
        ira = data["ira"]
        hsa = data["hsa"]
        sli = data["student_loan_interest"]
        qbi = data["qbi"]
        item = data["itemized"]
        ctc = data["child_tax_credit"]
        eic = data["earned_income_credit"]
        dc = data["dependent_care"]
        sav = data["savers_credit"]
        edu = data["education_credit"]
        energy = data["energy_credit"]
        ptc = data["premium_tax_credit"]
        cap_gains = data["capital_gains_brackets"]

        brackets = {
            status: brackets_from_floors([(cents(floor), r) for floor, r in rows])
            for status, rows in data["ordinary_income_brackets"].items()
        }

        return TaxYearConfig(
            tax_year=tax_year,
            ordinary_income_brackets=brackets,
            standard_deduction=_status_cents(data["standard_deduction"]),
            additional_standard_deduction=_status_cents(data["additional_standard_deduction"]),
            senior_additional_standard_deduction=_status_cents(data["senior_additional_standard_deduction"]),
            qd_ltcg_0_rate_threshold=_status_cents(cap_gains["zero_rate_threshold"]),
            qd_ltcg_15_rate_threshold=_status_cents(cap_gains["twenty_rate_threshold"]),
            capital_loss_limit=_status_cents(data["capital_loss_limit"]),
            ss_wage_base=cents(payroll["ss_wage_base"]),
            ss_employee_rate=to_decimal(payroll["ss_employee_rate"]),
            se_net_earnings_factor=to_decimal(payroll["se_net_earnings_factor"]),
            se_ss_rate=to_decimal(payroll["se_ss_rate"]),
            se_medicare_rate=to_decimal(payroll["se_medicare_rate"]),
            se_minimum_earnings=cents(payroll["se_minimum_earnings"]),
            additional_medicare_rate=to_decimal(data["additional_medicare"]["rate"]),
            additional_medicare_threshold=_status_cents(data["additional_medicare"]["threshold"]),
            niit_rate=to_decimal(data["niit"]["rate"]),
            niit_threshold=_status_cents(data["niit"]["threshold"]),
            amt_rate_low=to_decimal(amt["rate_low"]),
            amt_rate_high=to_decimal(amt["rate_high"]),
            amt_exemption=_status_cents(amt["exemption"]),
            amt_phaseout_start=_status_cents(amt["phaseout_start"]),
            amt_phaseout_rate=to_decimal(amt["phaseout_rate"]),
            amt_high_rate_threshold=_status_cents(amt["high_rate_threshold"]),
            ss_benefits_base_amount=_status_cents(ssb["base_amount"]),
            ss_benefits_adjusted_base_amount=_status_cents(ssb["adjusted_base_amount"]),
            ira_contribution_limit=cents(ira["contribution_limit"]),
            ira_catchup_50_plus=cents(ira["catchup_50_plus"]),
            ira_phaseout_rounding=cents(ira["phaseout_rounding"]),
            ira_phaseout_covered=_status_ranges(ira["covered"]),
            ira_phaseout_spouse_covered=_status_ranges(ira["spouse_covered"]),
            hsa_self_only_limit=cents(hsa["self_only_limit"]),
            hsa_family_limit=cents(hsa["family_limit"]),
            hsa_catchup_55_plus=cents(hsa["catchup_55_plus"]),
            hsa_excess_contribution_rate=to_decimal(hsa["excess_contribution_rate"]),
            hsa_nonqualified_distribution_rate=to_decimal(hsa["nonqualified_distribution_rate"]),
            student_loan_interest_max=cents(sli["max_deduction"]),
            student_loan_phaseout=_status_ranges(sli["phaseout"]),
            qbi_rate=to_decimal(qbi["rate"]),
            qbi_threshold_start=_status_cents(qbi["threshold_start"]),
            qbi_phase_in_range=_status_cents(qbi["phase_in_range"]),
            medical_floor_rate=to_decimal(item["medical_floor_rate"]),
            salt_base_cap=_status_cents(item["salt_base_cap"]),
            salt_phaseout_threshold=_status_cents(item["salt_phaseout_threshold"]),
            salt_phaseout_rate=to_decimal(item["salt_phaseout_rate"]),
            salt_floor=_status_cents(item["salt_floor"]),
            mortgage_limit=_status_cents(item["mortgage_limit"]),
            mortgage_limit_pre_tcja=_status_cents(item["mortgage_limit_pre_tcja"]),
            charitable_cash_rate=to_decimal(item["charitable_cash_rate"]),
            charitable_noncash_rate=to_decimal(item["charitable_noncash_rate"]),
            ctc_per_qualifying_child=cents(ctc["per_qualifying_child"]),
            ctc_per_other_dependent=cents(ctc["per_other_dependent"]),
            ctc_refundable_max_per_child=cents(ctc["refundable_max_per_child"]),
            ctc_earned_income_threshold=cents(ctc["earned_income_threshold"]),
            ctc_refundable_rate=to_decimal(ctc["refundable_rate"]),
            ctc_phaseout_step=cents(ctc["phaseout_step"]),
            ctc_phaseout_per_step=cents(ctc["phaseout_per_step"]),
            ctc_phaseout_threshold=_status_cents(ctc["phaseout_threshold"]),
            eitc_investment_income_limit=cents(eic["investment_income_limit"]),
            eitc_max_credit=_by_children(eic["max_credit"], cents),
            eitc_phase_in_rate=_by_children(eic["phase_in_rate"], to_decimal),
            eitc_phaseout_rate=_by_children(eic["phaseout_rate"], to_decimal),
            eitc_phaseout_start=_by_children(eic["phaseout_start"], cents),
            eitc_phaseout_start_joint=_by_children(eic["phaseout_start_joint"], cents),
            dependent_care_limit_one=cents(dc["expense_limit_one"]),
            dependent_care_limit_two_or_more=cents(dc["expense_limit_two_or_more"]),
            dependent_care_max_rate=to_decimal(dc["max_rate"]),
            dependent_care_min_rate=to_decimal(dc["min_rate"]),
            dependent_care_agi_threshold=cents(dc["agi_threshold"]),
            dependent_care_agi_step=cents(dc["agi_step"]),
            savers_credit_max_contribution=cents(sav["max_contribution"]),
            savers_credit_agi_limits={
                status: tuple(cents(v) for v in limits)
                for status, limits in sav["agi_limits"].items()
            },
            aotc_first_tier=cents(edu["aotc_first_tier"]),
            aotc_second_tier=cents(edu["aotc_second_tier"]),
            aotc_second_tier_rate=to_decimal(edu["aotc_second_tier_rate"]),
            aotc_refundable_rate=to_decimal(edu["aotc_refundable_rate"]),
            aotc_max_years=int(edu["aotc_max_years"]),
            llc_expense_limit=cents(edu["llc_expense_limit"]),
            llc_rate=to_decimal(edu["llc_rate"]),
            education_credit_phaseout=_status_ranges(edu["phaseout"]),
            clean_energy_rate=to_decimal(energy["clean_energy_rate"]),
            home_improvement_rate=to_decimal(energy["home_improvement_rate"]),
            home_improvement_annual_limit=cents(energy["home_improvement_annual_limit"]),
            heat_pump_limit=cents(energy["heat_pump_limit"]),
            window_limit=cents(energy["window_limit"]),
            door_limit=cents(energy["door_limit"]),
            audit_limit=cents(energy["audit_limit"]),
            fpl_base=cents(ptc["fpl_base"]),
            fpl_per_additional_person=cents(ptc["fpl_per_additional_person"]),
            ptc_applicable_bands=[
                PercentageBand(
                    start=to_decimal(start),
                    end=to_decimal(end),
                    start_rate=to_decimal(start_rate),
                    end_rate=to_decimal(end_rate),
                )
                for start, end, start_rate, end_rate in ptc["applicable_percentage_bands"]
            ],
            ptc_repayment_caps=[
                (to_decimal(upper), cents(single_cap), cents(other_cap))
                for upper, single_cap, other_cap in ptc["repayment_caps"]
            ],
            early_distribution_penalty_rate=to_decimal(data.get("early_distribution_penalty_rate", "0.10")),
            schedule_b_threshold=cents(data.get("schedule_b_threshold", 1500)),
            educator_expense_limit=cents(data.get("educator_expense_limit", 300)),
            dependent_standard_deduction_min=cents(data.get("dependent_standard_deduction", {}).get("minimum", 1350)),
            dependent_standard_deduction_earned_add=cents(
                data.get("dependent_standard_deduction", {}).get("earned_income_addition", 450)
            ),
        )

    @staticmethod
    def for_2025() -> "TaxYearConfig":
        return TaxYearConfig.for_year(2025)

    @staticmethod
    def for_year(tax_year: int) -> "TaxYearConfig":
        """
        Load the federal configuration for a supported tax year.

        Raises:
            ValueError: If no parameter file exists for the year
        """
        return TaxYearConfig.from_parameters(tax_year, load_tax_parameters(tax_year))
