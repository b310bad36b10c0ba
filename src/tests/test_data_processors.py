"""Tests for timestamp parsing and token extraction."""

from datetime import datetime, timezone

import pytest

from claude_battery.core.data_processors import TimestampProcessor, TokenExtractor
from claude_battery.utils.time_utils import TimezoneHandler


class TestTimestampProcessor:
    """Test the TimestampProcessor class."""

    @pytest.fixture
    def processor(self) -> TimestampProcessor:
        return TimestampProcessor()

    @pytest.mark.parametrize(
        "value,expected",
        [
            (
                "2024-01-01T12:00:00.123Z",
                datetime(2024, 1, 1, 12, 0, 0, 123000, tzinfo=timezone.utc),
            ),
            (
                "2024-01-01T12:00:00Z",
                datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            ),
            (
                "2024-01-01T14:30:00+02:00",
                datetime(2024, 1, 1, 12, 30, 0, tzinfo=timezone.utc),
            ),
            (
                "2024-01-01T12:00:00.123456+00:00",
                datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc),
            ),
            (
                "2024-01-01T12:00:00.123456789Z",
                datetime(2024, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc),
            ),
        ],
    )
    def test_parse_iso_strings(
        self, processor: TimestampProcessor, value: str, expected: datetime
    ) -> None:
        result = processor.parse_timestamp(value)
        assert result == expected
        assert result.utcoffset().total_seconds() == 0

    def test_naive_timestamp_is_utc_by_default(
        self, processor: TimestampProcessor
    ) -> None:
        result = processor.parse_timestamp("2024-01-01T12:00:00")
        assert result == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_naive_timestamp_uses_handler_timezone(self) -> None:
        processor = TimestampProcessor(TimezoneHandler("Europe/Warsaw"))
        result = processor.parse_timestamp("2024-01-01T12:00:00")
        assert result == datetime(2024, 1, 1, 11, 0, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "value", [None, "", "not-a-date", "2024-13-45T99:00:00Z", 1704110400, {}]
    )
    def test_invalid_values_return_none(
        self, processor: TimestampProcessor, value
    ) -> None:
        assert processor.parse_timestamp(value) is None


class TestTokenExtractor:
    """Test the TokenExtractor class."""

    def test_extract_full_usage(self) -> None:
        usage = {
            "input_tokens": 100,
            "output_tokens": 50,
            "cache_creation_input_tokens": 30,
            "cache_read_input_tokens": 20,
            "cache_creation": {
                "ephemeral_5m_input_tokens": 10,
                "ephemeral_1h_input_tokens": 20,
            },
        }
        assert TokenExtractor.extract_tokens(usage) == {
            "input_tokens": 100,
            "output_tokens": 50,
            "cache_creation_tokens": 30,
            "cache_write_5m_tokens": 10,
            "cache_write_1h_tokens": 20,
            "cache_read_tokens": 20,
        }

    def test_cache_writes_without_breakdown_are_short_lived(self) -> None:
        usage = {"input_tokens": 1, "cache_creation_input_tokens": 500}
        tokens = TokenExtractor.extract_tokens(usage)
        assert tokens["cache_write_5m_tokens"] == 500
        assert tokens["cache_write_1h_tokens"] == 0

    def test_partial_breakdown_falls_back_to_total(self) -> None:
        usage = {
            "cache_creation_input_tokens": 500,
            "cache_creation": {"ephemeral_1h_input_tokens": 200},
        }
        tokens = TokenExtractor.extract_tokens(usage)
        assert tokens["cache_write_5m_tokens"] == 500
        assert tokens["cache_write_1h_tokens"] == 200

    def test_missing_and_null_fields_count_as_zero(self) -> None:
        tokens = TokenExtractor.extract_tokens(
            {"input_tokens": None, "output_tokens": 7}
        )
        assert tokens["input_tokens"] == 0
        assert tokens["output_tokens"] == 7
        assert tokens["cache_read_tokens"] == 0

    def test_integral_floats_are_accepted(self) -> None:
        assert TokenExtractor.extract_tokens({"input_tokens": 12.0})["input_tokens"] == 12

    @pytest.mark.parametrize(
        "usage",
        [
            {"input_tokens": "100"},
            {"output_tokens": -1},
            {"input_tokens": 1.5},
            {"output_tokens": True},
            {"cache_creation": {"ephemeral_5m_input_tokens": "x"}},
        ],
    )
    def test_malformed_counts_raise(self, usage) -> None:
        with pytest.raises(ValueError):
            TokenExtractor.extract_tokens(usage)
