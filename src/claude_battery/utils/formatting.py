"""Formatting utilities for Claude Battery.

This module provides formatting functions for currency, tokens and the
time left until the 5-hour window resets.
"""

from datetime import datetime, timezone
from typing import Optional

UNKNOWN_RESET = "—"
RESETTING_SOON = "Resetting soon"


def format_currency(amount: float, currency: str = "USD") -> str:
    """
    Format a numeric amount as a currency string.

    For USD, prepends a dollar sign and places the minus sign before the dollar sign for negative values. For other currencies, appends the currency code after the formatted amount.
    """
    amount = round(amount, 2)

    if currency == "USD":
        if amount >= 0:
            return f"${amount:,.2f}"
        else:
            return f"$-{abs(amount):,.2f}"
    else:
        return f"{amount:,.2f} {currency}"


def format_tokens(tokens: int) -> str:
    """Token count with thousands separators, e.g. ``12,345``."""
    return f"{tokens:,}"


def format_time_until_reset(
    reset_at: Optional[datetime], now: Optional[datetime] = None
) -> str:
    """
    Describe the time left until ``reset_at``.

    Returns ``"Xh Ym"`` (or ``"Ym"`` under an hour), ``"Resetting soon"`` once the
    instant has passed, and an em dash when the reset time is unknown.
    """
    if reset_at is None:
        return UNKNOWN_RESET

    now = now or datetime.now(timezone.utc)
    remaining = (reset_at - now).total_seconds()
    if remaining <= 0:
        return RESETTING_SOON

    remaining = int(remaining)
    hours = remaining // 3600
    minutes = (remaining % 3600) // 60
    return f"{hours}h {minutes}m" if hours > 0 else f"{minutes}m"
