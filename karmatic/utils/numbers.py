"""
Rounding helpers.

Python's round() is banker's rounding; trust scores round half up so that
x.5 always goes to the next integer.
"""
import math


def round_half_up(value: float, ndigits: int = 0) -> float:
    """
    Round to ndigits decimals with halves rounded up.

    Examples:
        >>> round_half_up(2.5)
        3.0
        >>> round_half_up(66.666, 2)
        66.67
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    """Half-up rounding to an int"""
    return int(round_half_up(value))


def percent(part: int, total: int) -> int:
    """Integer percentage of part over total, 0 when total is 0"""
    if total == 0:
        return 0
    return round_int(part / total * 100)
