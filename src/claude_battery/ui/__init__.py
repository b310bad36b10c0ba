"""Terminal rendering of the battery gauge."""

from typing import List

__all__: List[str] = []
