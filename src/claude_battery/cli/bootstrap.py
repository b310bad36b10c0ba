"""Logging bootstrap for the command-line entry point."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

# Loggers of the HTTP stack that are chatty at DEBUG and INFO.
NOISY_LOGGERS = ("urllib3",)


def setup_logging(
    level: str = "INFO", log_file: Optional[Path] = None, disable_console: bool = False
) -> None:
    """
    Configure root logging once per process.

    Console output goes to stderr so a one-shot gauge printed on stdout stays clean. While the
    live gauge owns the terminal the console handler is left out and only `log_file` (if any)
    receives records.

    Parameters:
        level (str): Level name such as "DEBUG" or "WARNING"; unknown names mean INFO.
        log_file (Path, optional): Also append records to this file, creating its directory.
        disable_console (bool): Skip the stderr handler.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: List[logging.Handler] = []
    if not disable_console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))
    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
