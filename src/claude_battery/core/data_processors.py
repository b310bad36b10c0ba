"""Centralized data processing utilities for Claude Battery.

Timestamp parsing and token-count extraction shared by the local log reader
and the remote usage parser.
"""

import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from claude_battery.utils.time_utils import TimezoneHandler

logger = logging.getLogger(__name__)

FRACTIONAL_FORMATS = ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S.%f")
SECOND_FORMATS = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S")

# strptime's %f accepts at most six digits
_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


class TimestampProcessor:
    """ISO-8601 timestamp parsing with fractional and whole-second precision."""

    def __init__(self, timezone_handler: Optional[TimezoneHandler] = None):
        """
        Initialize a TimestampProcessor with an optional TimezoneHandler.

        Naive timestamps are interpreted in the handler's default timezone (UTC unless configured).
        """
        self.timezone_handler = timezone_handler or TimezoneHandler()

    def parse_timestamp(self, timestamp_value: Any) -> Optional[datetime]:
        """
        Parse an ISO-8601 string into a UTC-aware datetime.

        Fractional-second formats are attempted first, then second precision. A trailing
        ``Z`` and numeric offsets are both accepted. Returns None for anything unparseable,
        including non-string input.
        """
        if not isinstance(timestamp_value, str) or not timestamp_value:
            return None

        value = timestamp_value.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        value = _LONG_FRACTION.sub(r"\1", value)

        for fmt in FRACTIONAL_FORMATS + SECOND_FORMATS:
            try:
                dt = datetime.strptime(value, fmt)
            except ValueError:
                continue
            return self.timezone_handler.ensure_utc(dt)

        logger.debug(f"Unparseable timestamp: {timestamp_value!r}")
        return None


class TokenExtractor:
    """Token-count extraction from a Claude ``usage`` structure."""

    @staticmethod
    def _count(source: Dict[str, Any], key: str, default: int = 0) -> int:
        """
        Read one token count, treating a missing or null field as `default`.

        Raises:
            ValueError: If the value is not a non-negative whole number.
        """
        value = source.get(key)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Token count '{key}' is not a number: {value!r}")
        if value < 0 or value != int(value):
            raise ValueError(f"Token count '{key}' is invalid: {value!r}")
        return int(value)

    @staticmethod
    def extract_tokens(usage: Dict[str, Any]) -> Dict[str, int]:
        """
        Extract normalized token counts from a ``message.usage`` dictionary.

        When the ``cache_creation`` breakdown is present its 5-minute and 1-hour counts are
        used. A missing 5-minute count falls back to the whole
        ``cache_creation_input_tokens`` total and a missing 1-hour count to zero, so cache
        writes without a breakdown are billed entirely at the short-lived rate.

        Returns:
            Dict[str, int]: ``input_tokens``, ``output_tokens``, ``cache_creation_tokens``,
            ``cache_write_5m_tokens``, ``cache_write_1h_tokens`` and ``cache_read_tokens``.

        Raises:
            ValueError: If any present count is malformed.
        """
        count = TokenExtractor._count
        cache_total = count(usage, "cache_creation_input_tokens")

        breakdown = usage.get("cache_creation")
        if not isinstance(breakdown, dict):
            breakdown = {}

        return {
            "input_tokens": count(usage, "input_tokens"),
            "output_tokens": count(usage, "output_tokens"),
            "cache_creation_tokens": cache_total,
            "cache_write_5m_tokens": count(
                breakdown, "ephemeral_5m_input_tokens", cache_total
            ),
            "cache_write_1h_tokens": count(breakdown, "ephemeral_1h_input_tokens"),
            "cache_read_tokens": count(usage, "cache_read_input_tokens"),
        }
