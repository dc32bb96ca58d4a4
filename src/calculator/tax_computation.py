"""
Tax computation (Form 1040 line 16).

Ordinary income is taxed through the brackets. When there are qualified
dividends or a net capital gain the Qualified Dividends and Capital Gain
Tax Worksheet applies and the result is the smaller of the worksheet tax and
the regular bracket tax. Pieces are kept exact and rounded once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from calculator.decimal_math import (
    ZERO,
    Cents,
    compute_bracket_tax_exact,
    max_zero,
    round_cents,
)
from calculator.tax_year_config import TaxYearConfig
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

FIFTEEN_PERCENT = Decimal("0.15")
TWENTY_PERCENT = Decimal("0.20")


@dataclass(frozen=True)
class PreferentialSplit:
    """How taxable income divides across the 0%, 15% and 20% rates."""

    taxable_income: Cents
    preferential_income: Cents      # worksheet line 10
    ordinary_income: Cents          # worksheet line 5
    at_zero: Cents                  # line 9
    at_fifteen: Cents               # line 17
    at_twenty: Cents                # line 20

    def preferential_tax_exact(self) -> Decimal:
        return self.at_fifteen * FIFTEEN_PERCENT + self.at_twenty * TWENTY_PERCENT


def split_preferential_income(
    taxable_income: Cents,
    preferential_income: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> PreferentialSplit:
    """
    Worksheet lines 1-20. Form 6251 Part III uses the same split with the
    AMT base in place of taxable income.
    """
    status = filing_status.value
    line1 = max_zero(taxable_income)
    line4 = max_zero(preferential_income)
    line5 = max_zero(line1 - line4)
    line7 = min(line1, config.qd_ltcg_0_rate_threshold[status])
    line8 = min(line5, line7)
    line9 = line7 - line8
    line10 = min(line1, line4)
    line12 = line10 - line9
    line14 = min(line1, config.qd_ltcg_15_rate_threshold[status])
    line16 = max_zero(line14 - (line5 + line9))
    line17 = min(line12, line16)
    line20 = max_zero(line10 - (line9 + line17))
    return PreferentialSplit(
        taxable_income=line1,
        preferential_income=line10,
        ordinary_income=line5,
        at_zero=line9,
        at_fifteen=line17,
        at_twenty=line20,
    )


@dataclass(frozen=True)
class TaxComputationResult:
    taxable_income: Cents
    qualified_dividends: Cents
    net_capital_gain: Cents
    regular_tax: Cents                  # brackets on all taxable income
    tax: Cents                          # line 16
    split: Optional[PreferentialSplit]  # None when the worksheet was not used

    @property
    def used_capital_gain_worksheet(self) -> bool:
        return self.split is not None


def compute_tax(
    taxable_income: Cents,
    qualified_dividends: Cents,
    net_capital_gain: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> TaxComputationResult:
    brackets = config.brackets_for(filing_status.value)
    regular_exact = compute_bracket_tax_exact(taxable_income, brackets)
    regular_tax = round_cents(regular_exact)
    preferential = max_zero(qualified_dividends) + max_zero(net_capital_gain)

    if taxable_income <= 0 or preferential <= 0:
        return TaxComputationResult(
            taxable_income=taxable_income,
            qualified_dividends=qualified_dividends,
            net_capital_gain=net_capital_gain,
            regular_tax=regular_tax,
            tax=regular_tax,
            split=None,
        )

    split = split_preferential_income(taxable_income, preferential, filing_status, config)
    worksheet_exact = (
        compute_bracket_tax_exact(split.ordinary_income, brackets) + split.preferential_tax_exact()
    )
    tax = round_cents(min(worksheet_exact, regular_exact) if worksheet_exact > ZERO else ZERO)
    logger.debug(
        "Tax computation: ti=%s preferential=%s regular=%s worksheet=%s",
        taxable_income,
        split.preferential_income,
        regular_tax,
        tax,
    )
    return TaxComputationResult(
        taxable_income=taxable_income,
        qualified_dividends=qualified_dividends,
        net_capital_gain=net_capital_gain,
        regular_tax=regular_tax,
        tax=tax,
        split=split,
    )
