"""Core package for Claude Battery.

Data models, pricing, budget presets and settings shared by the data
sources and the usage monitor.
"""

from typing import List

__all__: List[str] = []
