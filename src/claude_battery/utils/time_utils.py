"""Timezone normalisation and clock formatting."""

import logging
from datetime import datetime
from typing import Optional, cast

import pytz
from pytz import BaseTzInfo

logger = logging.getLogger(__name__)

LOCAL_TIMEZONE_NAMES = ("auto", "local")


class TimezoneHandler:
    """Reads timestamps into UTC and converts them back for display.

    Naive datetimes are interpreted in `default_tz`. Log and API timestamps
    carry an offset, so in practice this only matters for hand-written input.
    """

    def __init__(self, default_tz: str = "UTC") -> None:
        self.default_tz: BaseTzInfo = self._validate_and_get_tz(default_tz)

    def _validate_and_get_tz(self, tz_name: str) -> BaseTzInfo:
        try:
            return pytz.timezone(tz_name)
        except pytz.exceptions.UnknownTimeZoneError:
            logger.warning(f"Unknown timezone '{tz_name}', using UTC")
            return pytz.UTC

    @staticmethod
    def is_known_timezone(tz_name: str) -> bool:
        """True for the local aliases and for any zone name pytz knows."""
        if tz_name in LOCAL_TIMEZONE_NAMES:
            return True
        try:
            pytz.timezone(tz_name)
        except pytz.exceptions.UnknownTimeZoneError:
            return False
        return True

    def ensure_timezone(self, dt: datetime) -> datetime:
        if dt.tzinfo is None:
            return cast(datetime, self.default_tz.localize(dt))
        return dt

    def ensure_utc(self, dt: datetime) -> datetime:
        return self.ensure_timezone(dt).astimezone(pytz.UTC)

    def to_display(self, dt: datetime, tz_name: Optional[str] = None) -> datetime:
        """Convert `dt` into the display zone; None, "auto" and "local" mean the OS zone."""
        dt = self.ensure_timezone(dt)
        if tz_name is None or tz_name in LOCAL_TIMEZONE_NAMES:
            return dt.astimezone()
        return dt.astimezone(self._validate_and_get_tz(tz_name))


def format_display_time(
    dt_obj: datetime,
    use_12h_format: bool = False,
    include_seconds: bool = False,
) -> str:
    """Clock part of `dt_obj`, e.g. ``15:04`` or ``3:04 PM``."""
    if use_12h_format:
        fmt = "%I:%M:%S %p" if include_seconds else "%I:%M %p"
        return dt_obj.strftime(fmt).lstrip("0")
    return dt_obj.strftime("%H:%M:%S" if include_seconds else "%H:%M")
