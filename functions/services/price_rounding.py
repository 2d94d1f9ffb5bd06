"""Psychological price rounding and minimum enforcement.

Every customer-facing price ends in the digit 9. Rounding is the last step
applied to a price: minimums go on before it, never after, and no further
arithmetic happens on a rounded figure.
"""

import math
from typing import Optional


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def round_to_psychological(price: float) -> int:
    """Round a price to a whole number ending in 9.

    - Round to the nearest whole unit
    - Ends in 9: unchanged (149 -> 149)
    - Ends in 0: down by one (150 -> 149)
    - Otherwise: up to the next 9 (152 -> 159)

    Anything that would land below 9 is lifted to 9 so the result stays
    a positive price.
    """
    rounded = round_half_up(price)
    last_digit = rounded % 10

    if last_digit == 9:
        result = rounded
    elif last_digit == 0:
        result = rounded - 1
    else:
        result = rounded + (9 - last_digit)

    return max(result, 9)


def enforce_minimum_then_round(price: float, minimum: Optional[float] = None) -> int:
    """Apply a floor, then round; the result still ends in 9."""
    if minimum is not None:
        price = max(price, minimum)
    return round_to_psychological(price)
