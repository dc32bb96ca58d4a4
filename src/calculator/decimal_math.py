"""
Decimal Math Utilities for Tax Calculations.

Every stored amount in the engine is an integer number of cents. Intermediate
arithmetic (rates, ratios, phase-out fractions) runs on Decimal so results are
deterministic, and conversion back to cents happens only at the rounding
points defined here:

- ``round_cents``: nearest cent, half up (IRS convention)
- ``phase_out_reduction``: a reduction always rounds UP to its unit, so the
  remaining benefit rounds down
- ``compute_bracket_tax``: the bracket total is rounded once, never per bracket

Why Decimal?
- Float: 0.1 + 0.2 = 0.30000000000000004
- Decimal: 0.1 + 0.2 = 0.3
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING, ROUND_HALF_UP, InvalidOperation
from typing import Iterable, List, Optional, Sequence, Tuple, Union
import logging

logger = logging.getLogger(__name__)

# Type alias for values that can be converted to Decimal
Numeric = Union[int, float, str, Decimal]

# Integer cents. Never fractional.
Cents = int

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")
WHOLE_CENT = Decimal("1")
RATE_PLACES = Decimal("0.0001")


def to_decimal(value: Numeric) -> Decimal:
    """
    Convert a numeric value to Decimal.

    Args:
        value: Value to convert (int, float, str, or Decimal)

    Returns:
        Decimal representation

    Examples:
        >>> to_decimal(100)
        Decimal('100')
        >>> to_decimal(0.062)
        Decimal('0.062')
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # Convert float to string first to preserve representation
        return Decimal(str(value))
    return Decimal(value)


def round_cents(value: Numeric) -> Cents:
    """
    Round a (possibly fractional) cent amount to a whole cent, half up.

    Examples:
        >>> round_cents(Decimal("150.5"))
        151
        >>> round_cents(Decimal("-150.5"))
        -151
    """
    return int(to_decimal(value).quantize(WHOLE_CENT, rounding=ROUND_HALF_UP))


def cents(dollars: Numeric) -> Cents:
    """
    Convert a dollar amount to integer cents.

    Examples:
        >>> cents(176100)
        17610000
        >>> cents("12.345")
        1235
    """
    return round_cents(to_decimal(dollars) * HUNDRED)


def to_dollars(amount: Cents) -> Decimal:
    """Convert cents to a Decimal dollar amount (display boundary only)."""
    return (Decimal(amount) / HUNDRED).quantize(Decimal("0.01"))


def rate(value: Numeric) -> Decimal:
    """
    Convert value to a rate (4 decimal places).

    Examples:
        >>> rate(0.22)
        Decimal('0.2200')
    """
    return to_decimal(value).quantize(RATE_PLACES, rounding=ROUND_HALF_UP)


def apply_rate(amount: Numeric, rate_value: Numeric) -> Cents:
    """
    Multiply a cent amount by a rate and round to the nearest cent.

    Examples:
        >>> apply_rate(1000000, "0.062")
        62000
    """
    return round_cents(to_decimal(amount) * to_decimal(rate_value))


def divide(a: Numeric, b: Numeric, default: Optional[Numeric] = None) -> Decimal:
    """
    Divide a by b with Decimal precision.

    Args:
        a: Dividend
        b: Divisor
        default: Value to return if division by zero (None raises error)

    Raises:
        InvalidOperation: If b is zero and no default provided
    """
    b_dec = to_decimal(b)
    if b_dec == 0:
        if default is not None:
            return to_decimal(default)
        raise InvalidOperation("Division by zero")
    return to_decimal(a) / b_dec


def ratio(part: Numeric, whole: Numeric) -> Decimal:
    """``part / whole`` or 0 when ``whole`` is zero."""
    return divide(part, whole, default=0)


def clamp(value, minimum, maximum):
    """
    Clamp value between minimum and maximum.

    Examples:
        >>> clamp(150, 0, 100)
        100
        >>> clamp(Decimal("-0.5"), 0, 1)
        0
    """
    return max(minimum, min(value, maximum))


def max_zero(value: Cents) -> Cents:
    """Floor a subtraction result at zero."""
    return value if value > 0 else 0


def sum_cents(values: Iterable[Cents]) -> Cents:
    """Sum cent amounts (already integral, so no rounding needed)."""
    return sum(values, 0)


# =============================================================================
# BRACKET TAX
# =============================================================================


@dataclass(frozen=True)
class Bracket:
    """One marginal bracket: income in ``[start, end)`` is taxed at ``rate``."""
    start: Cents
    end: Optional[Cents]  # None for the top bracket
    rate: Decimal


def brackets_from_floors(floors: Sequence[Tuple[Cents, Numeric]]) -> List[Bracket]:
    """
    Build closed brackets from ``(floor, rate)`` pairs in ascending order.

    Each bracket ends where the next one begins; the last bracket is open.
    """
    result: List[Bracket] = []
    for idx, (floor, rate_value) in enumerate(floors):
        end = floors[idx + 1][0] if idx + 1 < len(floors) else None
        result.append(Bracket(start=floor, end=end, rate=to_decimal(rate_value)))
    return result


def compute_bracket_tax_exact(income: Cents, brackets: Sequence[Bracket]) -> Decimal:
    """Unrounded marginal tax (fractional cents) for ``income``."""
    if income <= 0:
        return ZERO
    total = ZERO
    for bracket in brackets:
        if income <= bracket.start:
            break
        top = income if bracket.end is None else min(income, bracket.end)
        total += bracket.rate * (top - bracket.start)
    return total


def compute_bracket_tax(income: Cents, brackets: Sequence[Bracket]) -> Cents:
    """
    Marginal tax on ``income``, rounding the total once at the end.

    Per-bracket rounding would drift by up to a cent per filled bracket;
    summing exact products keeps the function continuous at every boundary.

    Examples:
        >>> b = brackets_from_floors([(0, "0.10"), (1192500, "0.12")])
        >>> compute_bracket_tax(1192500, b)
        119250
        >>> compute_bracket_tax(1192600, b)
        119262
    """
    return round_cents(compute_bracket_tax_exact(income, brackets))


# =============================================================================
# PERCENTAGE BANDS
# =============================================================================


@dataclass(frozen=True)
class PercentageBand:
    """Graduated-rate band: the rate moves linearly from start_rate to end_rate."""
    start: Decimal
    end: Decimal
    start_rate: Decimal
    end_rate: Decimal


def interpolate_band(x: Numeric, bands: Sequence[PercentageBand]) -> Decimal:
    """
    Linearly interpolate a rate inside ordered bands.

    At or below the bottom band's start the rate is 0; at or above the top
    band's end it clamps to that band's end rate.

    Examples:
        >>> bands = [PercentageBand(Decimal(150), Decimal(200), ZERO, Decimal("0.02"))]
        >>> interpolate_band(175, bands)
        Decimal('0.010')
    """
    value = to_decimal(x)
    if not bands or value <= bands[0].start:
        return ZERO
    if value >= bands[-1].end:
        return bands[-1].end_rate
    for band in bands:
        if value < band.end:
            if value <= band.start:
                return band.start_rate
            progress = (value - band.start) / (band.end - band.start)
            return band.start_rate + progress * (band.end_rate - band.start_rate)
    return bands[-1].end_rate


# =============================================================================
# PHASE-OUTS
# =============================================================================


def phase_out_reduction(raw_reduction: Numeric, rounding_unit: Cents) -> Cents:
    """
    Round a phase-out reduction UP to the next multiple of ``rounding_unit``.

    Examples:
        >>> phase_out_reduction(Decimal("350001"), 1000)
        351000
        >>> phase_out_reduction(0, 1000)
        0
    """
    raw = to_decimal(raw_reduction)
    if raw <= 0:
        return 0
    if rounding_unit <= 1:
        return int(raw.quantize(WHOLE_CENT, rounding=ROUND_CEILING))
    units = (raw / rounding_unit).quantize(WHOLE_CENT, rounding=ROUND_CEILING)
    return int(units) * rounding_unit


def linear_phase_out(
    full_amount: Cents,
    value: Cents,
    start: Cents,
    end: Cents,
    rounding_unit: Cents = 1,
) -> Cents:
    """
    Remaining benefit after a linear phase-out between ``start`` and ``end``.

    Full amount at or below ``start``, zero at or above ``end``; inside the
    range the proportional reduction is rounded up per ``phase_out_reduction``.
    """
    if full_amount <= 0:
        return 0
    if value <= start:
        return full_amount
    if value >= end:
        return 0
    raw = to_decimal(full_amount) * (value - start) / (end - start)
    reduction = phase_out_reduction(raw, rounding_unit)
    return max_zero(full_amount - reduction)


# =============================================================================
# FORMATTING
# =============================================================================


def format_money(amount: Cents) -> str:
    """
    Format a cent amount as a dollar string.

    Examples:
        >>> format_money(123456789)
        '$1,234,567.89'
        >>> format_money(-5000)
        '-$50.00'
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}${to_dollars(abs(amount)):,.2f}"
