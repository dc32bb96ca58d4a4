"""
Refundable credits aggregator (Schedule 3, Part II).

Each refundable credit is an independent provider keyed by a stable credit
id. The aggregator asks every registered provider for an item and sums
what comes back; adding a credit means registering a new provider, never
editing an existing one.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from calculator.decimal_math import Cents, apply_rate, max_zero
from calculator.premium_tax_credit import PremiumTaxCreditResult
from calculator.tax_year_config import TaxYearConfig
from models.tax_return import TaxReturn
from models.taxpayer import Owner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefundableCreditContext:
    """Values a provider may read. Everything here is already computed."""
    tax_return: TaxReturn
    config: TaxYearConfig
    premium_tax_credit: Optional[PremiumTaxCreditResult] = None


@dataclass(frozen=True)
class RefundableCreditItem:
    credit_id: str
    label: str
    amount: Cents
    node_id: str
    input_node_ids: Tuple[str, ...] = ()
    irs_citation: Optional[str] = None


@dataclass(frozen=True)
class RefundableCreditsResult:
    items: Tuple[RefundableCreditItem, ...]

    @property
    def total(self) -> Cents:
        return sum(item.amount for item in self.items)

    def amount_for(self, credit_id: str) -> Cents:
        return sum(item.amount for item in self.items if item.credit_id == credit_id)


class RefundableCreditProvider(ABC):
    credit_id: str = ""
    label: str = ""

    @abstractmethod
    def compute(self, context: RefundableCreditContext) -> Optional[RefundableCreditItem]:
        """Return an item, or None when the credit does not apply."""


class ExcessSocialSecurityProvider(RefundableCreditProvider):
    """
    Excess social security tax withheld (Schedule 3, line 11).

    Applies per person with two or more employers whose combined box 4
    withholding exceeds the maximum employee tax for the year.
    """

    credit_id = "excessSocialSecurity"
    label = "Excess social security tax withheld"

    def compute(self, context: RefundableCreditContext) -> Optional[RefundableCreditItem]:
        config = context.config
        max_tax = apply_rate(config.ss_wage_base, config.ss_employee_rate)
        total = 0
        inputs: List[str] = []
        for owner in (Owner.TAXPAYER, Owner.SPOUSE):
            w2s = context.tax_return.w2s_for(owner)
            if len(w2s) < 2:
                continue
            excess = max_zero(sum(w2.box4_ss_withheld for w2 in w2s) - max_tax)
            if excess:
                total += excess
                inputs.extend(f"w2.{w2.id}.box4" for w2 in w2s)
        if total == 0:
            return None
        return RefundableCreditItem(
            credit_id=self.credit_id,
            label=self.label,
            amount=total,
            node_id="schedule3.line11",
            input_node_ids=tuple(inputs),
            irs_citation="Schedule 3, line 11",
        )


class PremiumTaxCreditProvider(RefundableCreditProvider):
    """Net premium tax credit from Form 8962 line 26 (Schedule 3, line 9)."""

    credit_id = "premiumTaxCredit"
    label = "Net premium tax credit"

    def compute(self, context: RefundableCreditContext) -> Optional[RefundableCreditItem]:
        ptc = context.premium_tax_credit
        if ptc is None or ptc.net_premium_tax_credit <= 0:
            return None
        return RefundableCreditItem(
            credit_id=self.credit_id,
            label=self.label,
            amount=ptc.net_premium_tax_credit,
            node_id="schedule3.line9",
            input_node_ids=("form8962.line26",),
            irs_citation="Form 8962, line 26",
        )


class RefundableCreditRegistry:
    """Ordered providers keyed by credit id."""

    def __init__(self) -> None:
        self._providers: Dict[str, RefundableCreditProvider] = {}

    def register(self, provider: RefundableCreditProvider) -> None:
        if provider.credit_id in self._providers:
            raise ValueError(f"Refundable credit '{provider.credit_id}' is already registered")
        self._providers[provider.credit_id] = provider

    def credit_ids(self) -> List[str]:
        return list(self._providers)

    def providers(self) -> List[RefundableCreditProvider]:
        return list(self._providers.values())


def default_registry() -> RefundableCreditRegistry:
    registry = RefundableCreditRegistry()
    registry.register(ExcessSocialSecurityProvider())
    registry.register(PremiumTaxCreditProvider())
    return registry


def aggregate_refundable_credits(
    context: RefundableCreditContext,
    registry: Optional[RefundableCreditRegistry] = None,
) -> RefundableCreditsResult:
    registry = registry or default_registry()
    items = []
    for provider in registry.providers():
        item = provider.compute(context)
        if item is not None:
            items.append(item)
    result = RefundableCreditsResult(items=tuple(items))
    logger.debug("Refundable credits: %s total=%s", [i.credit_id for i in items], result.total)
    return result
