"""Local Claude Code log reader.

Walks the JSONL transcript tree written by Claude Code, extracts one
UsageEntry per billable assistant response and returns them sorted by time.
The log is re-read from scratch on every call.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

from claude_battery.core.data_processors import TimestampProcessor, TokenExtractor
from claude_battery.core.models import UsageEntry
from claude_battery.core.pricing import PricingCalculator
from claude_battery.error_handling import report_file_error

DEFAULT_DATA_PATH = "~/.claude/projects"
ASSISTANT_TYPE = "assistant"

logger = logging.getLogger(__name__)


def load_usage_entries(
    data_path: Optional[Union[str, Path]] = None,
    pricing_calculator: Optional[PricingCalculator] = None,
    timestamp_processor: Optional[TimestampProcessor] = None,
) -> List[UsageEntry]:
    """
    Loads every usage entry under the Claude data directory, sorted by timestamp.

    Parameters:
        data_path (str, optional): Root of the JSONL tree. Defaults to `~/.claude/projects`.
        pricing_calculator (PricingCalculator, optional): Rate lookup used to price each entry.
        timestamp_processor (TimestampProcessor, optional): Timestamp parser.

    Returns:
        List[UsageEntry]: All valid entries in chronological order. A missing or unreadable
        root yields an empty list.
    """
    root = resolve_data_path(data_path)
    pricing_calculator = pricing_calculator or PricingCalculator()
    timestamp_processor = timestamp_processor or TimestampProcessor()

    entries: List[UsageEntry] = []
    records_read = 0
    for record in iter_records(root):
        records_read += 1
        entry = map_to_usage_entry(record, pricing_calculator, timestamp_processor)
        if entry is not None:
            entries.append(entry)

    entries.sort(key=lambda e: e.timestamp)
    logger.debug(f"Mapped {len(entries)} usage entries from {records_read} records")
    return entries


def resolve_data_path(data_path: Optional[Union[str, Path]] = None) -> Path:
    return Path(data_path if data_path else DEFAULT_DATA_PATH).expanduser()


def find_jsonl_files(data_path: Path) -> List[Path]:
    """
    Recursively finds `.jsonl` files under the data directory, skipping hidden files and directories.

    Returns:
        List of paths to `.jsonl` files found. Returns an empty list if the directory does not exist or cannot be listed.
    """
    if not data_path.is_dir():
        logger.warning(f"Data path does not exist: {data_path}")
        return []

    try:
        candidates = list(data_path.rglob("*.jsonl"))
    except OSError as e:
        report_file_error(exception=e, file_path=str(data_path), operation="list")
        return []

    return [
        path
        for path in candidates
        if path.is_file()
        and not any(part.startswith(".") for part in path.relative_to(data_path).parts)
    ]


def iter_records(data_path: Path) -> Iterator[Dict[str, Any]]:
    """
    Yield every JSON object found in the JSONL files under `data_path`.

    Blank lines, malformed JSON and non-object lines are skipped. A file that cannot be
    read is reported and skipped without affecting the remaining files.
    """
    for file_path in find_jsonl_files(data_path):
        try:
            with open(file_path, encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError as e:
            report_file_error(
                exception=e,
                file_path=str(file_path),
                operation="read",
                additional_context={"file_exists": file_path.exists()},
            )
            continue

        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                logger.debug(f"Failed to parse JSON line in {file_path}: {e}")
                continue
            if isinstance(record, dict):
                yield record


def map_to_usage_entry(
    data: Dict[str, Any],
    pricing_calculator: PricingCalculator,
    timestamp_processor: Optional[TimestampProcessor] = None,
) -> Optional[UsageEntry]:
    """
    Converts one raw log record into a UsageEntry, or None when it does not describe billable usage.

    The record must be an assistant message with a parseable timestamp and a
    `message.usage` structure. Entries whose input+output tokens and cost are both zero
    are dropped. Any malformed field causes the record to be skipped.

    Returns:
        UsageEntry if the record is valid; otherwise, None.
    """
    timestamp_processor = timestamp_processor or TimestampProcessor()
    try:
        if data.get("type") != ASSISTANT_TYPE:
            return None

        timestamp = timestamp_processor.parse_timestamp(data.get("timestamp"))
        if timestamp is None:
            return None

        message = data.get("message")
        if not isinstance(message, dict):
            return None
        usage = message.get("usage")
        if not isinstance(usage, dict):
            return None

        model = message.get("model")
        if not isinstance(model, str):
            model = ""

        token_data = TokenExtractor.extract_tokens(usage)
        tokens = token_data["input_tokens"] + token_data["output_tokens"]
        cost = pricing_calculator.calculate_cost(
            model,
            input_tokens=token_data["input_tokens"],
            output_tokens=token_data["output_tokens"],
            cache_write_5m_tokens=token_data["cache_write_5m_tokens"],
            cache_write_1h_tokens=token_data["cache_write_1h_tokens"],
            cache_read_tokens=token_data["cache_read_tokens"],
        )

        if tokens <= 0 and cost <= 0:
            return None

        return UsageEntry(timestamp=timestamp, tokens=tokens, cost_usd=cost)

    except (KeyError, ValueError, TypeError, AttributeError) as e:
        logger.debug(f"Failed to map entry: {type(e).__name__}: {e}")
        return None
