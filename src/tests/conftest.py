"""Shared pytest fixtures for Claude Battery tests."""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from unittest.mock import Mock

import pytest

from claude_battery.core.models import Credential, RemoteUsageSnapshot, UsageEntry
from claude_battery.core.settings import BudgetStore

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_record(
    timestamp: str = "2024-01-01T12:00:00.000Z",
    model: str = "claude-sonnet-4-20250514",
    input_tokens: int = 100,
    output_tokens: int = 50,
    cache_creation: int = 0,
    cache_read: int = 0,
    breakdown: Optional[Dict[str, int]] = None,
    record_type: str = "assistant",
) -> Dict[str, Any]:
    """Build a Claude Code transcript line in the shape the log reader expects."""
    usage: Dict[str, Any] = {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "cache_creation_input_tokens": cache_creation,
        "cache_read_input_tokens": cache_read,
    }
    if breakdown is not None:
        usage["cache_creation"] = breakdown
    return {
        "type": record_type,
        "timestamp": timestamp,
        "requestId": "req_1",
        "message": {"id": "msg_1", "model": model, "usage": usage},
    }


def write_jsonl(path: Path, lines: Iterable[Any]) -> Path:
    """Write records (dicts are JSON-encoded, strings written verbatim) one per line."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line if isinstance(line, str) else json.dumps(line))
            f.write("\n")
    return path



@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def entries_factory():
    """
    Returns a function that builds UsageEntry lists from (hours offset, tokens) pairs relative to BASE_TIME.
    """

    def build(points: List[tuple], cost_per_token: float = 0.001) -> List[UsageEntry]:
        return [
            UsageEntry(
                timestamp=BASE_TIME + timedelta(hours=hours),
                tokens=tokens,
                cost_usd=tokens * cost_per_token,
            )
            for hours, tokens in points
        ]

    return build


@pytest.fixture
def budget_store(tmp_path) -> BudgetStore:
    return BudgetStore(tmp_path / "config")


@pytest.fixture
def credential() -> Credential:
    return Credential(
        access_token="sk-ant-oat-secret",
        expires_at=BASE_TIME + timedelta(hours=1),
        plan="max",
    )


@pytest.fixture
def remote_snapshot() -> RemoteUsageSnapshot:
    return RemoteUsageSnapshot(
        five_hour_utilization=8.0,
        five_hour_resets_at=BASE_TIME + timedelta(hours=3),
        seven_day_utilization=59.0,
        seven_day_resets_at=BASE_TIME + timedelta(days=2),
        plan="max",
    )


@pytest.fixture
def usage_payload() -> Dict[str, Any]:
    """A usage report body as returned by the OAuth usage endpoint."""
    return {
        "five_hour": {"utilization": 8, "resets_at": "2024-01-01T15:00:00.123456+00:00"},
        "seven_day": {"utilization": 59, "resets_at": "2024-01-03T12:00:00+00:00"},
    }


@pytest.fixture
def mock_response():
    """Factory for a mocked requests.Response with a status code and JSON body."""

    def build(status_code: int = 200, payload: Any = None, json_error: bool = False):
        response = Mock()
        response.status_code = status_code
        if json_error:
            response.json.side_effect = ValueError("No JSON object could be decoded")
        else:
            response.json.return_value = payload
        return response

    return build


@pytest.fixture
def record_factory():
    """Factory for raw transcript records, see `make_record`."""
    return make_record


@pytest.fixture
def jsonl_writer():
    """Writes a list of records to a JSONL file, creating parent directories."""
    return write_jsonl
