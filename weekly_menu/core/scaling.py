"""Ingredient quantity scaling for a change in serving count.

Amounts are free text, so scaling only touches a leading decimal numeral
("2.5 шт" -> "5 шт") and leaves everything else verbatim.  Amounts that
contain a qualifier such as "по вкусу" / "to taste" never scale.
"""

import math
import re
from decimal import Decimal
from typing import Iterable, Optional

from weekly_menu.config import unscaled_qualifiers
from weekly_menu.db.models import Ingredient

DEFAULT_QUALIFIERS = ("по вкусу", "для жарки", "to taste", "for frying")

_LEADING_NUMERAL = re.compile(r"^(\d+\.?\d*)")
_LEADING_NUMBER = re.compile(r"^\s*[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def format_number(value: float) -> str:
    """Shortest round-trip decimal form, laid out like a JavaScript number.

    3.0 -> '3', 0.7 -> '0.7', 1e-7 -> '1e-7', 1e21 -> '1e+21'.  Plain
    notation is used from 1e-6 up to (but excluding) 1e21.
    """
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value == 0:
        return "0"

    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    k = len(digits)
    n = k + exponent  # position of the decimal point relative to the digits
    prefix = "-" if value < 0 else ""

    if k <= n <= 21:
        return prefix + digits + "0" * (n - k)
    if 0 < n <= 21:
        return prefix + digits[:n] + "." + digits[n:]
    if -6 < n <= 0:
        return prefix + "0." + "0" * -n + digits
    mantissa = digits[0] + ("." + digits[1:] if k > 1 else "")
    e = n - 1
    return f"{prefix}{mantissa}e{'+' if e > 0 else '-'}{abs(e)}"


def parse_amount(amount: Optional[str]) -> Optional[float]:
    """Parse the leading number of an amount ('2 шт' -> 2.0), or None."""
    if not amount:
        return None
    match = _LEADING_NUMBER.match(amount)
    if not match:
        return None
    return float(match.group(0))


def _round_one_decimal(value: float) -> float:
    # half-up on value * 10
    return math.floor(value * 10 + 0.5) / 10


def scale(amount: str, factor: float, qualifiers: Iterable[str] = None) -> str:
    """Scale the leading numeral of amount by factor, rounded to one decimal.

    Returns amount unchanged when it contains a qualifier or has no leading
    numeral.

    Examples:
        scale("2", 3)          -> "6"
        scale("0.33", 2)       -> "0.7"
        scale("300 г", 0.5)    -> "150 г"
        scale("по вкусу", 5)   -> "по вкусу"
    """
    if qualifiers is None:
        qualifiers = unscaled_qualifiers() or DEFAULT_QUALIFIERS
    if any(q in amount for q in qualifiers):
        return amount

    match = _LEADING_NUMERAL.match(amount)
    if not match:
        return amount

    numeral = match.group(1)
    scaled = _round_one_decimal(float(numeral) * factor)
    return format_number(scaled) + amount[match.end(1):]


def serving_factor(target_servings: int, base_servings: int) -> float:
    """Return target / base. A zero base raises ZeroDivisionError."""
    if base_servings == 0:
        raise ZeroDivisionError("base servings must not be zero")
    if base_servings < 0 or target_servings < 0:
        raise ValueError("serving counts must be positive")
    return target_servings / base_servings


def scale_ingredients(ingredients: list, target_servings: int, base_servings: int) -> list:
    """Return new Ingredient objects scaled from base to target servings."""
    factor = serving_factor(target_servings, base_servings)
    return [
        Ingredient(name=ing.name, amount=scale(ing.amount or "", factor), unit=ing.unit)
        for ing in ingredients
    ]
