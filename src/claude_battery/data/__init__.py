"""Usage data sources: local JSONL logs and the remote OAuth usage report."""

from typing import List

__all__: List[str] = []
