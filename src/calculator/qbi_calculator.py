"""
QBI (Qualified Business Income) Deduction Calculator - Section 199A

Implements the 20% pass-through deduction for qualified business income
from sole proprietorships, plus the REIT component for section 199A
dividends (Form 1099-DIV box 5).

Tax Year 2025 implementation per IRS Rev. Proc. 2024-40.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence

from calculator.decimal_math import (
    ONE,
    ZERO,
    Cents,
    apply_rate,
    clamp,
    max_zero,
    ratio,
    round_cents,
    sum_cents,
)
from calculator.schedule_c import ScheduleCResult
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

WAGE_LIMIT_RATE = Decimal("0.50")
ALT_WAGE_LIMIT_RATE = Decimal("0.25")
UBIA_RATE = Decimal("0.025")


@dataclass
class QBIBreakdown:
    """Detailed breakdown of QBI deduction calculation."""

    # QBI components
    total_qbi: Cents = 0
    qbi_from_self_employment: Cents = 0
    self_employment_adjustment: Cents = 0
    section_199a_dividends: Cents = 0

    # Limitation factors
    w2_wages_total: Cents = 0
    ubia_total: Cents = 0
    has_sstb: bool = False

    # Threshold analysis
    taxable_income_before_qbi: Cents = 0
    threshold_start: Cents = 0
    threshold_end: Cents = 0
    is_below_threshold: bool = True
    is_above_threshold: bool = False
    phase_in_ratio: Decimal = ZERO  # 0 = below threshold, 1 = above threshold

    # Limitation calculations
    sstb_applicable_percentage: Decimal = ONE  # 1 = full QBI, 0 = no QBI for SSTB
    wage_limit_50_pct: Cents = 0  # 50% of W-2 wages
    wage_limit_25_2_5_pct: Cents = 0  # 25% of W-2 wages + 2.5% of UBIA
    wage_limitation: Cents = 0  # Greater of the two wage limits
    wage_limitation_applies: bool = False

    # Deduction calculation
    tentative_qbi_deduction: Cents = 0  # 20% of QBI (before limits)
    qbi_after_wage_limit: Cents = 0  # After applying wage limitation
    reit_component: Cents = 0  # 20% of section 199A dividends
    taxable_income_limit: Cents = 0  # 20% of (taxable income - net capital gain)
    final_qbi_deduction: Cents = 0  # Final deduction amount (Form 1040 line 13)


class QBICalculator:
    """
    Calculator for Section 199A Qualified Business Income deduction.

    The QBI deduction allows eligible taxpayers to deduct up to 20% of their
    qualified business income, subject to limitations based on taxable
    income, W-2 wages, and UBIA of qualified property.
    """

    def calculate(
        self,
        businesses: Sequence[ScheduleCResult],
        self_employment_deduction: Cents,
        section_199a_dividends: Cents,
        taxable_income_before_qbi: Cents,
        net_capital_gain: Cents,
        filing_status: FilingStatus,
        config: TaxYearConfig,
    ) -> QBIBreakdown:
        """
        Calculate the QBI deduction per Section 199A.

        Args:
            businesses: Schedule C results (net profit, wages paid, UBIA)
            self_employment_deduction: Deductible part of SE tax, which reduces QBI
            section_199a_dividends: Qualified REIT dividends
            taxable_income_before_qbi: Form 1040 line 11 minus line 12
            net_capital_gain: Net capital gain plus qualified dividends
            filing_status: Filing status for threshold lookup
            config: Tax year configuration with thresholds

        Returns:
            QBIBreakdown with detailed calculation breakdown
        """
        breakdown = QBIBreakdown()
        breakdown.taxable_income_before_qbi = taxable_income_before_qbi
        breakdown.section_199a_dividends = section_199a_dividends
        qbi_rate = config.qbi_rate

        # Step 1: QBI is Schedule C profit less the SE tax deduction attributable to it
        breakdown.qbi_from_self_employment = sum_cents(b.net_profit for b in businesses)
        if breakdown.qbi_from_self_employment > 0:
            breakdown.self_employment_adjustment = min(
                self_employment_deduction, breakdown.qbi_from_self_employment
            )
        breakdown.total_qbi = max_zero(
            breakdown.qbi_from_self_employment - breakdown.self_employment_adjustment
        )
        breakdown.reit_component = apply_rate(max_zero(section_199a_dividends), qbi_rate)

        # Step 2: W-2 wages and UBIA for limitations
        breakdown.w2_wages_total = sum_cents(b.w2_wages_paid for b in businesses)
        breakdown.ubia_total = sum_cents(b.ubia for b in businesses)
        breakdown.has_sstb = any(b.is_sstb for b in businesses)

        # Step 3: Thresholds for filing status
        status = filing_status.value
        breakdown.threshold_start = config.qbi_threshold_start[status]
        breakdown.threshold_end = breakdown.threshold_start + config.qbi_phase_in_range[status]

        # Step 4: Threshold position
        breakdown.is_below_threshold = taxable_income_before_qbi <= breakdown.threshold_start
        breakdown.is_above_threshold = taxable_income_before_qbi >= breakdown.threshold_end
        if breakdown.is_below_threshold:
            breakdown.phase_in_ratio = ZERO
        elif breakdown.is_above_threshold:
            breakdown.phase_in_ratio = ONE
        else:
            breakdown.phase_in_ratio = ratio(
                taxable_income_before_qbi - breakdown.threshold_start,
                breakdown.threshold_end - breakdown.threshold_start,
            )

        # Step 5: SSTB applicable percentage shrinks QBI, wages and UBIA alike
        if breakdown.has_sstb:
            breakdown.sstb_applicable_percentage = clamp(ONE - breakdown.phase_in_ratio, ZERO, ONE)
        applicable = breakdown.sstb_applicable_percentage
        effective_qbi = round_cents(breakdown.total_qbi * applicable)
        effective_wages = round_cents(breakdown.w2_wages_total * applicable)
        effective_ubia = round_cents(breakdown.ubia_total * applicable)

        # Step 6: Tentative deduction
        breakdown.tentative_qbi_deduction = apply_rate(effective_qbi, qbi_rate)

        # Step 7: Wage limitations
        breakdown.wage_limit_50_pct = apply_rate(effective_wages, WAGE_LIMIT_RATE)
        breakdown.wage_limit_25_2_5_pct = round_cents(
            effective_wages * ALT_WAGE_LIMIT_RATE + effective_ubia * UBIA_RATE
        )
        breakdown.wage_limitation = max(breakdown.wage_limit_50_pct, breakdown.wage_limit_25_2_5_pct)

        # Step 8: Apply wage limitation above the threshold, phased in across the range
        tentative = breakdown.tentative_qbi_deduction
        if breakdown.is_below_threshold:
            breakdown.wage_limitation_applies = False
            breakdown.qbi_after_wage_limit = tentative
        elif breakdown.is_above_threshold:
            breakdown.wage_limitation_applies = True
            breakdown.qbi_after_wage_limit = min(tentative, breakdown.wage_limitation)
        else:
            breakdown.wage_limitation_applies = True
            if tentative > breakdown.wage_limitation:
                reduction = tentative - breakdown.wage_limitation
                breakdown.qbi_after_wage_limit = tentative - round_cents(
                    reduction * breakdown.phase_in_ratio
                )
            else:
                breakdown.qbi_after_wage_limit = tentative

        # Step 9: Taxable income limitation, 20% of (taxable income - net capital gain)
        breakdown.taxable_income_limit = apply_rate(
            max_zero(taxable_income_before_qbi - net_capital_gain), qbi_rate
        )

        # Step 10: Lesser of the combined components and the income limit
        breakdown.final_qbi_deduction = max_zero(
            min(
                breakdown.qbi_after_wage_limit + breakdown.reit_component,
                breakdown.taxable_income_limit,
            )
        )
        logger.debug(
            "QBI: qbi=%s reit=%s limit=%s deduction=%s",
            breakdown.total_qbi,
            breakdown.reit_component,
            breakdown.taxable_income_limit,
            breakdown.final_qbi_deduction,
        )
        return breakdown
