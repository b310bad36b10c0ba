"""Version lookup from installed package metadata."""

import importlib.metadata


def get_version() -> str:
    """
    Retrieve the installed package version, or "unknown" when running from a source checkout.
    """
    try:
        return importlib.metadata.version("claude-battery")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


__version__: str = get_version()
