"""Command-line interface for Claude Battery."""

from typing import List

__all__: List[str] = []
