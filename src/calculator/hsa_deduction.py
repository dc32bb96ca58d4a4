"""
HSA deduction, Form 8889.

Part I: contribution limit, employer contributions and the deduction.
Part II: distributions, taxable amount and the 20% additional tax.
Excess contributions carry the 6% excise tax from Form 5329 Part VII.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from calculator.decimal_math import Cents, apply_rate, max_zero
from calculator.tax_year_config import TaxYearConfig
from models.documents import W2, Form1099SA
from models.form_8889 import HSACoverageType, HSAInfo
from models.taxpayer import Owner

logger = logging.getLogger(__name__)

HSA_CATCH_UP_AGE = 55
PENALTY_EXEMPT_AGE = 65


@dataclass(frozen=True)
class HSAResult:
    owner: Owner
    coverage_type: Optional[HSACoverageType]
    contribution_limit: Cents           # line 7 (with catch-up)
    personal_contributions: Cents       # line 2
    employer_contributions: Cents       # line 9
    deductible_amount: Cents            # line 13
    excess_contributions: Cents
    excess_contribution_tax: Cents      # Form 5329 line 49
    total_distributions: Cents          # line 14a
    qualified_expenses: Cents           # line 15
    taxable_distributions: Cents        # line 16
    additional_tax_waived: bool
    additional_tax: Cents               # line 17b


def employer_contributions_from_w2s(w2s: Sequence[W2], owner: Owner) -> Cents:
    """W-2 box 12 code W for one person."""
    return sum(w2.box12_total("W") for w2 in w2s if w2.owner == owner)


def compute_hsa_deduction(
    hsa_info: Optional[HSAInfo],
    distributions: Sequence[Form1099SA],
    w2s: Sequence[W2],
    age: Optional[int],
    is_disabled: bool,
    config: TaxYearConfig,
) -> Optional[HSAResult]:
    """
    Compute the HSA deduction and related taxes.

    Returns None when there is no HSA activity on the return.
    """
    if hsa_info is None and not distributions:
        return None

    owner = hsa_info.owner if hsa_info else Owner.TAXPAYER

    if hsa_info is not None:
        base = (
            config.hsa_family_limit
            if hsa_info.coverage_type == HSACoverageType.FAMILY
            else config.hsa_self_only_limit
        )
        catch_up = config.hsa_catchup_55_plus if age is not None and age >= HSA_CATCH_UP_AGE else 0
        limit = base + catch_up
        personal = hsa_info.personal_contributions
        if hsa_info.employer_contributions is not None:
            employer = hsa_info.employer_contributions
        else:
            employer = employer_contributions_from_w2s(w2s, owner)
        qualified = hsa_info.qualified_medical_expenses
    else:
        # Distributions without coverage details: nothing deductible
        limit = personal = employer = qualified = 0

    room = max_zero(limit - employer)
    deductible = min(personal, room)
    excess = max_zero(personal + employer - limit)
    excess_tax = apply_rate(excess, config.hsa_excess_contribution_rate)

    total_distributions = sum(d.box1_gross_distribution for d in distributions)
    taxable = max_zero(total_distributions - qualified)
    waived = is_disabled or (age is not None and age >= PENALTY_EXEMPT_AGE)
    additional_tax = 0 if waived else apply_rate(taxable, config.hsa_nonqualified_distribution_rate)

    logger.debug(
        "HSA: limit=%s personal=%s employer=%s deductible=%s excess=%s taxable_dist=%s",
        limit, personal, employer, deductible, excess, taxable,
    )
    return HSAResult(
        owner=owner,
        coverage_type=hsa_info.coverage_type if hsa_info else None,
        contribution_limit=limit,
        personal_contributions=personal,
        employer_contributions=employer,
        deductible_amount=deductible,
        excess_contributions=excess,
        excess_contribution_tax=excess_tax,
        total_distributions=total_distributions,
        qualified_expenses=min(qualified, total_distributions),
        taxable_distributions=taxable,
        additional_tax_waived=waived,
        additional_tax=additional_tax,
    )
