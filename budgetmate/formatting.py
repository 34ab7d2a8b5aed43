"""Formatting utilities for currency and percentage display."""

from __future__ import annotations

from typing import Union

Number = Union[float, int]


def _group(amount: float, decimals: int, thousands: str, decimal_point: str) -> str:
    text = f"{amount:,.{decimals}f}"
    return text.replace(',', '\0').replace('.', decimal_point).replace('\0', thousands)


def format_currency(
    amount: Number,
    currency: str = 'USD',
    locale: str = 'en-US',
    decimals: int = 0,
) -> str:
    """Format an amount for the user's locale.

    Args:
        amount: The amount to format
        currency: ISO currency code, shown for locales without a symbol style
        locale: 'en-US' or 'es-CO'; anything else uses the en-US grouping
        decimals: Digits after the decimal point

    Returns:
        Formatted currency string

    Example:
        >>> format_currency(1234)
        '$1,234'
        >>> format_currency(1234567, 'COP', 'es-CO')
        '$ 1.234.567'
        >>> format_currency(-50.5, decimals=2)
        '-$50.50'
    """
    sign = '-' if amount < 0 else ''
    value = abs(float(amount))
    if locale == 'es-CO':
        return f"{sign}$ {_group(value, decimals, '.', ',')}"
    if locale == 'en-US':
        return f"{sign}${value:,.{decimals}f}"
    return f"{sign}{currency} {value:,.{decimals}f}"


def format_percent(ratio: Number, decimals: int = 1) -> str:
    """Format a ratio as a percentage.

    Example:
        >>> format_percent(0.4857)
        '48.6%'
    """
    return f"{ratio * 100:.{decimals}f}%"


def escape_dollar_for_markdown(text: str) -> str:
    """Escape dollar signs so Streamlit markdown doesn't read them as LaTeX.

    Example:
        >>> escape_dollar_for_markdown('$1,234')
        '\\\\$1,234'
    """
    return text.replace("$", "\\$")
