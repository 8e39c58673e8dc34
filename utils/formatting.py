"""
Formatting utilities.
"""

from decimal import Decimal
from typing import Union

Number = Union[int, float, Decimal]

SYMBOLS = {
    "GBP": "£",
    "USD": "$",
    "EUR": "€",
}


def format_currency(amount: Number, currency: str = "USD") -> str:
    """
    Format an amount as currency with two decimal places.

    Args:
        amount: The amount in whole units (e.g., dollars, not cents).
        currency: Currency code (default USD).

    Returns:
        Formatted currency string, e.g. "$5,000.00".
    """
    symbol = SYMBOLS.get(currency, currency + " ")
    return f"{symbol}{Decimal(str(amount)):,.2f}"


def format_millions(amount: Number, currency: str = "USD", decimals: int = 1) -> str:
    """
    Format an amount in millions, e.g. 1234567 -> "$1.2M".

    Args:
        amount: The amount in whole units.
        currency: Currency code (default USD).
        decimals: Number of decimal places.

    Returns:
        Formatted string.
    """
    symbol = SYMBOLS.get(currency, currency + " ")
    millions = Decimal(str(amount)) / Decimal(1_000_000)
    return f"{symbol}{millions:.{decimals}f}M"
