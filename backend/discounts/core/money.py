"""Helpers for minor-unit money amounts.

Amounts travel through the engine as unrounded ``Decimal`` minor units
(pence for GBP). Rounding happens only here, when a value leaves for display.
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS_PER_UNIT = Decimal("100")
DISPLAY_EXPONENT = Decimal("0.01")

CURRENCY_SYMBOLS = {
    "GBP": "£",
    "EUR": "€",
    "USD": "$",
}


def to_cents(value: Decimal | int | float | str | None) -> Decimal | None:
    """Convert a major-unit amount (e.g. pounds) to Decimal minor units."""
    if value is None:
        return None
    return Decimal(str(value)) * CENTS_PER_UNIT


def to_display(amount_cents: Decimal) -> Decimal:
    """Round a minor-unit amount to a 2dp major-unit amount."""
    major = Decimal(amount_cents) / CENTS_PER_UNIT
    return major.quantize(DISPLAY_EXPONENT, rounding=ROUND_HALF_UP)


def format_amount(amount_cents: Decimal, currency: str = "GBP") -> str:
    """Format a minor-unit amount for user-facing messages, e.g. ``£20.00``."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper(), "")
    display = to_display(amount_cents)
    if symbol:
        return f"{symbol}{display}"
    return f"{display} {currency.upper()}"
