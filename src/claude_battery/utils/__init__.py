"""Utilities package for Claude Battery."""

from typing import List

# Minimal imports - users should import what they need explicitly
# Examples:
#   from claude_battery.utils.formatting import format_currency, format_time_until_reset
#   from claude_battery.utils.time_utils import TimezoneHandler

__all__: List[str] = []
