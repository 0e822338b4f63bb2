"""Half-up rounding used for percentages, minutes and day averages."""

from decimal import ROUND_HALF_UP, Decimal


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round half away from zero for positives (2.5 -> 3), unlike round()'s banker's rounding."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    """Return part/whole as a whole-number percentage, 0 when whole is 0."""
    if whole <= 0:
        return 0
    return int(round_half_up(part / whole * 100))
