"""
Schedule D - Capital Gains and Losses.

Totals Form 8949 rows by category, adds capital gain distributions and
prior-year loss carryovers, limits a net loss to $3,000 ($1,500 MFS) and
computes next year's carryovers with the Capital Loss Carryover Worksheet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from calculator.decimal_math import Cents, max_zero
from calculator.tax_year_config import TaxYearConfig
from models.form_8949 import CapitalTransaction, Form8949Category
from models.tax_return import PriorYearInfo
from models.taxpayer import FilingStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduleDResult:
    category_totals: Dict[str, Cents] = field(default_factory=dict)
    short_term_carryover_in: Cents = 0          # line 6
    net_short_term: Cents = 0                   # line 7
    capital_gain_distributions: Cents = 0       # line 13
    long_term_carryover_in: Cents = 0           # line 14
    net_long_term: Cents = 0                    # line 15
    net_gain_or_loss: Cents = 0                 # line 16
    allowed_loss: Cents = 0                     # line 21 (positive)
    form1040_line7: Cents = 0
    short_term_carryover_out: Cents = 0
    long_term_carryover_out: Cents = 0

    @property
    def net_capital_gain(self) -> Cents:
        """Smaller of lines 15 and 16 when both are gains (QDCG worksheet line 3)."""
        if self.net_long_term > 0 and self.net_gain_or_loss > 0:
            return min(self.net_long_term, self.net_gain_or_loss)
        return 0


def compute_schedule_d(
    transactions: Sequence[CapitalTransaction],
    capital_gain_distributions: Cents,
    prior_year: PriorYearInfo,
    filing_status: FilingStatus,
    config: TaxYearConfig,
) -> Optional[ScheduleDResult]:
    """Returns None when there is nothing to report."""
    st_in = prior_year.short_term_loss_carryover
    lt_in = prior_year.long_term_loss_carryover
    if not transactions and capital_gain_distributions == 0 and st_in == 0 and lt_in == 0:
        return None

    totals: Dict[str, Cents] = {c.value: 0 for c in Form8949Category}
    for txn in transactions:
        totals[txn.category.value] += txn.gain_loss

    line7 = totals["A"] + totals["B"] - st_in
    line15 = totals["D"] + totals["E"] + capital_gain_distributions - lt_in
    line16 = line7 + line15

    limit = config.capital_loss_limit.get(filing_status.value, 0)
    allowed = min(limit, -line16) if line16 < 0 else 0
    form_line7 = -allowed if line16 < 0 else line16

    # Capital Loss Carryover Worksheet (lines 5-13)
    st_loss = max_zero(-line7)
    lt_gain = max_zero(line15)
    st_out = max_zero(st_loss - (allowed + lt_gain))
    lt_loss = max_zero(-line15)
    st_gain = max_zero(line7)
    remaining_allowed = max_zero(allowed - st_loss)
    lt_out = max_zero(lt_loss - (st_gain + remaining_allowed))

    logger.debug("Schedule D: st=%s lt=%s net=%s to_1040=%s", line7, line15, line16, form_line7)
    return ScheduleDResult(
        category_totals=totals,
        short_term_carryover_in=st_in,
        net_short_term=line7,
        capital_gain_distributions=capital_gain_distributions,
        long_term_carryover_in=lt_in,
        net_long_term=line15,
        net_gain_or_loss=line16,
        allowed_loss=allowed,
        form1040_line7=form_line7,
        short_term_carryover_out=st_out,
        long_term_carryover_out=lt_out,
    )
