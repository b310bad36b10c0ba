"""Read-only access to the Claude Code OAuth credential."""

from typing import List

__all__: List[str] = []
