"""Tests for the remote usage report client."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock, patch

import pytest
import requests

from claude_battery.core.models import Credential
from claude_battery.data.remote import (
    OAUTH_BETA,
    USAGE_URL,
    RemoteUsageError,
    RemoteUsageFetcher,
    parse_usage_response,
)


class TestParseUsageResponse:
    """Test decoding of the usage report body."""

    def test_parse_full_payload(self, usage_payload) -> None:
        snapshot = parse_usage_response(usage_payload, plan="max")

        assert snapshot.five_hour_utilization == 8.0
        assert snapshot.seven_day_utilization == 59.0
        assert snapshot.five_hour_resets_at == datetime(
            2024, 1, 1, 15, 0, 0, 123456, tzinfo=timezone.utc
        )
        assert snapshot.seven_day_resets_at == datetime(
            2024, 1, 3, 12, 0, 0, tzinfo=timezone.utc
        )
        assert snapshot.plan == "max"

    def test_seven_day_block_is_optional(self) -> None:
        snapshot = parse_usage_response({"five_hour": {"utilization": 42.5}})

        assert snapshot.five_hour_utilization == 42.5
        assert snapshot.five_hour_resets_at is None
        assert snapshot.seven_day_utilization is None
        assert snapshot.seven_day_resets_at is None

    def test_null_seven_day_and_bad_reset_are_ignored(self) -> None:
        snapshot = parse_usage_response(
            {
                "five_hour": {"utilization": 10, "resets_at": "soon"},
                "seven_day": None,
            }
        )
        assert snapshot.five_hour_resets_at is None
        assert snapshot.seven_day_utilization is None

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"five_hour": None},
            {"five_hour": {}},
            {"five_hour": {"utilization": "8"}},
            {"five_hour": {"utilization": True}},
            {"seven_day": {"utilization": 59}},
            [],
            None,
        ],
    )
    def test_missing_five_hour_utilization_raises(self, payload) -> None:
        with pytest.raises(RemoteUsageError):
            parse_usage_response(payload)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_five_hour_utilization_raises(self, value) -> None:
        with pytest.raises(RemoteUsageError):
            parse_usage_response({"five_hour": {"utilization": value}})

    def test_non_finite_seven_day_utilization_is_ignored(self) -> None:
        snapshot = parse_usage_response(
            {
                "five_hour": {"utilization": 12},
                "seven_day": {"utilization": float("nan")},
            }
        )

        assert snapshot.five_hour_utilization == 12.0
        assert snapshot.seven_day_utilization is None

    def test_oversized_integer_utilization_raises(self) -> None:
        with pytest.raises(RemoteUsageError):
            parse_usage_response({"five_hour": {"utilization": 10**400}})


class TestRemoteUsageFetcher:
    """Test the HTTP client against a mocked session."""

    @pytest.fixture
    def now(self, base_time) -> datetime:
        return base_time

    @pytest.fixture
    def session(self) -> Mock:
        return Mock(spec=requests.Session)

    def test_fetch_success(
        self, session, mock_response, usage_payload, credential, now
    ) -> None:
        session.get.return_value = mock_response(200, usage_payload)
        fetcher = RemoteUsageFetcher(session=session, timeout=10)

        snapshot = fetcher.fetch(credential, now)

        assert snapshot.five_hour_utilization == 8.0
        assert snapshot.seven_day_utilization == 59.0
        assert snapshot.plan == "max"
        session.get.assert_called_once()
        args, kwargs = session.get.call_args
        assert args == (USAGE_URL,)
        assert kwargs["timeout"] == 10

    def test_request_headers(
        self, session, mock_response, usage_payload, credential, now
    ) -> None:
        session.get.return_value = mock_response(200, usage_payload)
        RemoteUsageFetcher(session=session).fetch(credential, now)

        headers = session.get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer sk-ant-oat-secret"
        assert headers["anthropic-beta"] == OAUTH_BETA
        assert headers["Accept"] == "application/json"

    @pytest.mark.parametrize("status_code", [401, 403, 429, 500, 503])
    def test_non_success_status_raises(
        self, session, mock_response, credential, now, status_code
    ) -> None:
        session.get.return_value = mock_response(status_code, {"error": "x"})

        with pytest.raises(RemoteUsageError) as exc_info:
            RemoteUsageFetcher(session=session).fetch(credential, now)

        assert exc_info.value.status_code == status_code
        assert "sk-ant-oat-secret" not in str(exc_info.value)

    def test_network_error_raises(self, session, credential, now) -> None:
        session.get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(RemoteUsageError) as exc_info:
            RemoteUsageFetcher(session=session).fetch(credential, now)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)

    def test_timeout_raises(self, session, credential, now) -> None:
        session.get.side_effect = requests.Timeout()

        with pytest.raises(RemoteUsageError):
            RemoteUsageFetcher(session=session).fetch(credential, now)

    def test_unencodable_header_raises(self, session, credential, now) -> None:
        session.get.side_effect = UnicodeEncodeError(
            "latin-1", "Bearer tök€n", 10, 11, "ordinal not in range(256)"
        )

        with pytest.raises(RemoteUsageError) as exc_info:
            RemoteUsageFetcher(session=session).fetch(credential, now)

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, UnicodeEncodeError)

    def test_nan_body_raises(self, session, mock_response, credential, now) -> None:
        session.get.return_value = mock_response(
            200, {"five_hour": {"utilization": float("nan")}}
        )

        with pytest.raises(RemoteUsageError):
            RemoteUsageFetcher(session=session).fetch(credential, now)

    def test_invalid_json_raises(self, session, mock_response, credential, now) -> None:
        session.get.return_value = mock_response(200, json_error=True)

        with pytest.raises(RemoteUsageError, match="not valid JSON"):
            RemoteUsageFetcher(session=session).fetch(credential, now)

    def test_unexpected_body_raises(
        self, session, mock_response, credential, now
    ) -> None:
        session.get.return_value = mock_response(200, {"unexpected": True})

        with pytest.raises(RemoteUsageError):
            RemoteUsageFetcher(session=session).fetch(credential, now)

    def test_expired_credential_is_not_sent(self, session, now) -> None:
        expired = Credential(
            access_token="old-token", expires_at=now - timedelta(minutes=5)
        )

        with pytest.raises(RemoteUsageError, match="expired"):
            RemoteUsageFetcher(session=session).fetch(expired, now)

        session.get.assert_not_called()

    def test_recently_expired_credential_is_still_sent(
        self, session, mock_response, usage_payload, now
    ) -> None:
        credential = Credential(
            access_token="fresh-enough", expires_at=now - timedelta(seconds=30)
        )
        session.get.return_value = mock_response(200, usage_payload)

        RemoteUsageFetcher(session=session).fetch(credential, now)

        session.get.assert_called_once()

    def test_without_session_uses_requests(
        self, mock_response, usage_payload, credential, now
    ) -> None:
        with patch("claude_battery.data.remote.requests.get") as mock_get:
            mock_get.return_value = mock_response(200, usage_payload)
            snapshot = RemoteUsageFetcher().fetch(credential, now)

        mock_get.assert_called_once()
        assert snapshot.five_hour_utilization == 8.0
