"""Remote usage report client.

Fetches the server-side 5-hour and 7-day utilization from the Claude OAuth
usage endpoint and normalizes it into a RemoteUsageSnapshot.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import requests

from claude_battery.core.data_processors import TimestampProcessor
from claude_battery.core.models import Credential, RemoteUsageSnapshot

logger = logging.getLogger(__name__)

USAGE_URL = "https://api.anthropic.com/api/oauth/usage"
OAUTH_BETA = "oauth-2025-04-20"


class RemoteUsageError(Exception):
    """Raised when the usage report cannot be obtained or understood."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _utilization(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    # NaN and Infinity decode from JSON but are not utilizations
    return number if math.isfinite(number) else None


def _parse_window(
    window: Any, timestamp_processor: TimestampProcessor
) -> Tuple[Optional[float], Optional[datetime]]:
    if not isinstance(window, dict):
        return None, None
    return (
        _utilization(window.get("utilization")),
        timestamp_processor.parse_timestamp(window.get("resets_at")),
    )


def parse_usage_response(
    payload: Any,
    plan: Optional[str] = None,
    timestamp_processor: Optional[TimestampProcessor] = None,
) -> RemoteUsageSnapshot:
    """
    Parse the usage report body.

    ``five_hour.utilization`` is required. The ``seven_day`` block and both ``resets_at``
    fields are optional; malformed optional values are ignored.

    Parameters:
        payload: Decoded JSON body.
        plan (str, optional): Subscription label passed through unchanged.

    Raises:
        RemoteUsageError: If the 5-hour utilization is missing or not a number.
    """
    timestamp_processor = timestamp_processor or TimestampProcessor()
    if not isinstance(payload, dict):
        raise RemoteUsageError("Usage response is not a JSON object")

    five_hour, five_hour_resets_at = _parse_window(
        payload.get("five_hour"), timestamp_processor
    )
    if five_hour is None:
        raise RemoteUsageError("Usage response has no five_hour.utilization")

    seven_day, seven_day_resets_at = _parse_window(
        payload.get("seven_day"), timestamp_processor
    )

    return RemoteUsageSnapshot(
        five_hour_utilization=five_hour,
        five_hour_resets_at=five_hour_resets_at,
        seven_day_utilization=seven_day,
        seven_day_resets_at=seven_day_resets_at,
        plan=plan,
    )


class RemoteUsageFetcher:
    """Performs one authenticated GET against the usage endpoint per call.

    The access token only ever appears in the Authorization header of that
    request; it is not logged and not kept on the fetcher.
    """

    def __init__(
        self,
        url: str = USAGE_URL,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.url = url
        self.session = session
        self.timeout = timeout
        self.timestamp_processor = TimestampProcessor()

    def _headers(self, credential: Credential) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {credential.access_token}",
            "anthropic-beta": OAUTH_BETA,
            "Accept": "application/json",
        }

    def fetch(
        self, credential: Credential, now: Optional[datetime] = None
    ) -> RemoteUsageSnapshot:
        """
        Fetch and parse the current usage report.

        Raises:
            RemoteUsageError: If the credential is expired beyond the grace period, the
                endpoint is unreachable, the status is not 2xx, or the body is unusable.
        """
        now = now or datetime.now(timezone.utc)
        if not credential.is_usable(now):
            raise RemoteUsageError("Credential expired")

        try:
            http = self.session if self.session is not None else requests
            response = http.get(
                self.url, headers=self._headers(credential), timeout=self.timeout
            )
        except (requests.RequestException, ValueError) as e:
            raise RemoteUsageError(f"Usage endpoint unreachable: {type(e).__name__}") from e

        if not 200 <= response.status_code < 300:
            raise RemoteUsageError(
                f"Usage endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteUsageError(
                "Usage response is not valid JSON", status_code=response.status_code
            ) from e

        snapshot = parse_usage_response(
            payload, plan=credential.plan, timestamp_processor=self.timestamp_processor
        )
        logger.debug(
            f"Remote usage: five_hour={snapshot.five_hour_utilization}, "
            f"seven_day={snapshot.seven_day_utilization}"
        )
        return snapshot
