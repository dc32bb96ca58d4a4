"""
Residential energy credits (Form 5695).

Part I, residential clean energy: 30% of qualified costs, no annual limit.
Part II, energy efficient home improvement: 30% of costs, with heat pumps
and biomass stoves sharing a $2,000 limit and everything else sharing an
aggregate $1,200 limit (windows $600, doors $500, home energy audit $150
and other energy property $600 as sub-limits on the credit).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from calculator.decimal_math import Cents, apply_rate
from calculator.tax_year_config import TaxYearConfig
from models.credits import EnergyImprovements

logger = logging.getLogger(__name__)

ENERGY_PROPERTY_LIMIT = 60000


@dataclass(frozen=True)
class EnergyCreditResult:
    clean_energy_costs: Cents
    clean_energy_credit: Cents          # Form 5695 line 15
    heat_pump_credit: Cents             # line 29h
    other_improvements_credit: Cents    # line 18, after the $1,200 limit
    home_improvement_credit: Cents      # line 32

    @property
    def total_credit(self) -> Cents:
        return self.clean_energy_credit + self.home_improvement_credit


def compute_energy_credits(improvements: EnergyImprovements, config: TaxYearConfig) -> Optional[EnergyCreditResult]:
    """Tentative energy credits before the tax liability limit, or None without costs."""
    clean_costs = (
        improvements.solar_electric
        + improvements.solar_water_heating
        + improvements.geothermal_heat_pump
        + improvements.small_wind
        + improvements.battery_storage
    )
    part_two_costs = (
        improvements.heat_pump
        + improvements.biomass_stove
        + improvements.insulation
        + improvements.windows
        + improvements.doors
        + improvements.energy_property
        + improvements.home_energy_audit
    )
    if clean_costs == 0 and part_two_costs == 0:
        return None

    clean_credit = apply_rate(clean_costs, config.clean_energy_rate)

    rate = config.home_improvement_rate
    heat_pump_credit = min(
        apply_rate(improvements.heat_pump + improvements.biomass_stove, rate),
        config.heat_pump_limit,
    )
    other = (
        apply_rate(improvements.insulation, rate)
        + min(apply_rate(improvements.windows, rate), config.window_limit)
        + min(apply_rate(improvements.doors, rate), config.door_limit)
        + min(apply_rate(improvements.energy_property, rate), ENERGY_PROPERTY_LIMIT)
        + min(apply_rate(improvements.home_energy_audit, rate), config.audit_limit)
    )
    other_credit = min(other, config.home_improvement_annual_limit)

    logger.debug(
        "Energy credits: clean=%s heat_pump=%s other=%s",
        clean_credit, heat_pump_credit, other_credit,
    )
    return EnergyCreditResult(
        clean_energy_costs=clean_costs,
        clean_energy_credit=clean_credit,
        heat_pump_credit=heat_pump_credit,
        other_improvements_credit=other_credit,
        home_improvement_credit=heat_pump_credit + other_credit,
    )
