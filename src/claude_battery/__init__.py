"""Claude Battery - 5-hour quota gauge for Claude Code usage."""

from claude_battery._version import __version__

__all__ = ["__version__"]
