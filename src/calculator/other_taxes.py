"""
Other taxes: Schedule 2 items and the AMT.

- Form 8959 Additional Medicare Tax (0.9%) on Medicare wages and SE
  earnings over the threshold, with the withholding credit for line 25c
- Form 8960 Net Investment Income Tax (3.8%)
- Form 6251 Alternative Minimum Tax including the ISO bargain element
- Form 5329 10% additional tax on early retirement distributions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence

from calculator.decimal_math import (
    Cents,
    apply_rate,
    max_zero,
    round_cents,
    sum_cents,
)
from calculator.tax_computation import split_preferential_income
from calculator.tax_year_config import TaxYearConfig
from models.documents import W2, Form1099R
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)

MEDICARE_EMPLOYEE_RATE = Decimal("0.0145")


# =============================================================================
# FORM 8959 - ADDITIONAL MEDICARE TAX
# =============================================================================


@dataclass(frozen=True)
class AdditionalMedicareResult:
    medicare_wages: Cents               # line 1
    wages_tax: Cents                    # line 7
    self_employment_earnings: Cents     # line 8
    self_employment_tax: Cents          # line 13
    total_tax: Cents                    # line 18, to Schedule 2 line 11
    medicare_withheld: Cents            # line 19
    regular_medicare_on_wages: Cents    # line 21
    withholding_credit: Cents           # line 24, to Form 1040 line 25c


def compute_additional_medicare(
    w2s: Sequence[W2],
    self_employment_earnings: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Optional[AdditionalMedicareResult]:
    """Returns None when there is neither tax nor excess withholding."""
    threshold = config.additional_medicare_threshold[filing_status.value]
    wages = sum_cents(w.box5_medicare_wages for w in w2s)
    withheld = sum_cents(w.box6_medicare_withheld for w in w2s)

    wages_tax = apply_rate(max_zero(wages - threshold), config.additional_medicare_rate)
    se_threshold = max_zero(threshold - wages)
    se_earnings = max_zero(self_employment_earnings)
    se_tax = apply_rate(max_zero(se_earnings - se_threshold), config.additional_medicare_rate)
    total = wages_tax + se_tax

    regular = apply_rate(wages, MEDICARE_EMPLOYEE_RATE)
    credit = max_zero(withheld - regular)
    if total == 0 and credit == 0:
        return None

    logger.debug("Form 8959: tax=%s withholding_credit=%s", total, credit)
    return AdditionalMedicareResult(
        medicare_wages=wages,
        wages_tax=wages_tax,
        self_employment_earnings=se_earnings,
        self_employment_tax=se_tax,
        total_tax=total,
        medicare_withheld=withheld,
        regular_medicare_on_wages=regular,
        withholding_credit=credit,
    )


# =============================================================================
# FORM 8960 - NET INVESTMENT INCOME TAX
# =============================================================================


@dataclass(frozen=True)
class NIITResult:
    net_investment_income: Cents        # line 12
    modified_agi: Cents                 # line 13
    threshold: Cents                    # line 14
    excess_magi: Cents                  # line 15
    tax: Cents                          # line 17, to Schedule 2 line 12


def compute_niit(
    taxable_interest: Cents,
    ordinary_dividends: Cents,
    capital_gain: Cents,
    rents_and_royalties: Cents,
    investment_interest_expense: Cents,
    modified_agi: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Optional[NIITResult]:
    """
    ``capital_gain`` is Form 1040 line 7 (a net loss is already limited to
    the deductible amount there). Returns None when no tax is due.
    """
    nii = max_zero(
        taxable_interest + ordinary_dividends + capital_gain + rents_and_royalties
        - investment_interest_expense
    )
    threshold = config.niit_threshold[filing_status.value]
    excess = max_zero(modified_agi - threshold)
    tax = apply_rate(min(nii, excess), config.niit_rate)
    if tax == 0:
        return None
    logger.debug("Form 8960: nii=%s excess=%s tax=%s", nii, excess, tax)
    return NIITResult(
        net_investment_income=nii,
        modified_agi=modified_agi,
        threshold=threshold,
        excess_magi=excess,
        tax=tax,
    )


# =============================================================================
# FORM 6251 - ALTERNATIVE MINIMUM TAX
# =============================================================================


@dataclass(frozen=True)
class AMTResult:
    taxable_income: Cents               # line 1
    taxes_or_standard_deduction: Cents  # line 2a
    iso_adjustment: Cents               # line 2i
    amti: Cents                         # line 4
    exemption: Cents                    # line 5
    amt_base: Cents                     # line 6
    tentative_minimum_tax: Cents        # line 9
    regular_tax: Cents                  # line 10
    amt: Cents                          # line 11, to Schedule 2 line 2

    @property
    def owes_amt(self) -> bool:
        return self.amt > 0


def amt_exemption(amti: Cents, filing_status: FilingStatus, config: TaxYearConfig) -> Cents:
    status = filing_status.value
    reduction = apply_rate(max_zero(amti - config.amt_phaseout_start[status]), config.amt_phaseout_rate)
    return max_zero(config.amt_exemption[status] - reduction)


def _amt_rate_tax_exact(base: Cents, filing_status: FilingStatus, config: TaxYearConfig) -> Decimal:
    threshold = config.amt_high_rate_threshold[filing_status.value]
    low = min(base, threshold)
    high = max_zero(base - threshold)
    return low * config.amt_rate_low + high * config.amt_rate_high


def compute_amt(
    taxable_income: Cents,
    taxes_or_standard_deduction: Cents,
    iso_bargain_element: Cents,
    regular_tax: Cents,
    qualified_dividends: Cents,
    net_capital_gain: Cents,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> AMTResult:
    """
    Args:
        taxes_or_standard_deduction: Schedule A line 7 when itemizing, else
            the standard deduction (Form 6251 line 2a)
        regular_tax: Form 1040 line 16
    """
    amti = taxable_income + taxes_or_standard_deduction + iso_bargain_element
    exemption = amt_exemption(amti, filing_status, config)
    base = max_zero(amti - exemption)

    straight = _amt_rate_tax_exact(base, filing_status, config)
    preferential = max_zero(qualified_dividends) + max_zero(net_capital_gain)
    if base > 0 and preferential > 0:
        # Part III
        split = split_preferential_income(base, preferential, filing_status, config)
        part3 = _amt_rate_tax_exact(split.ordinary_income, filing_status, config) + split.preferential_tax_exact()
        tmt = round_cents(min(part3, straight))
    else:
        tmt = round_cents(straight)

    amt = max_zero(tmt - regular_tax)
    logger.debug("Form 6251: amti=%s exemption=%s tmt=%s amt=%s", amti, exemption, tmt, amt)
    return AMTResult(
        taxable_income=taxable_income,
        taxes_or_standard_deduction=taxes_or_standard_deduction,
        iso_adjustment=iso_bargain_element,
        amti=amti,
        exemption=exemption,
        amt_base=base,
        tentative_minimum_tax=tmt,
        regular_tax=regular_tax,
        amt=amt,
    )


# =============================================================================
# FORM 5329 - EARLY DISTRIBUTIONS
# =============================================================================


@dataclass(frozen=True)
class EarlyDistributionResult:
    early_distributions: Cents          # line 1
    tax: Cents                          # line 4, to Schedule 2 line 8


def compute_early_distribution_tax(
    distributions: Sequence[Form1099R],
    config: TaxYearConfig,
) -> Optional[EarlyDistributionResult]:
    early = sum_cents(
        d.box2a_taxable_amount
        for d in distributions
        if d.is_early_distribution and not d.is_rollover
    )
    if early == 0:
        return None
    return EarlyDistributionResult(
        early_distributions=early,
        tax=apply_rate(early, config.early_distribution_penalty_rate),
    )
