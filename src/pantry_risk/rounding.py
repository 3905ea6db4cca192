"""Half-up rounding for scores, grams and costs.

Halves always round up (70.5 -> 71), unlike the built-in round().
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves up."""
    return math.floor(value + 0.5)


def round_cents(value: float) -> float:
    """Round a currency amount to cents, halves up."""
    return math.floor(value * 100 + 0.5) / 100
