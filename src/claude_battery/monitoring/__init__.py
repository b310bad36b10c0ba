"""Monitoring package for Claude Battery.

Owns the refresh lifecycle and the published monitor state.
"""

from typing import List

__all__: List[str] = []
