"""Centralized error reporting for Claude Battery.

Every failure in the refresh pipeline is recoverable: a bad log file is
skipped, a failed remote call falls back to the local estimate, a failed
refresh keeps the previous state. This module gives those failures one
logging shape (component, context name, context data).
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional


class ErrorLevel(str, Enum):
    """Severity of a reported failure; the value names the logger method."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def report_error(
    exception: Exception,
    component: str,
    context_name: Optional[str] = None,
    context_data: Optional[Dict[str, Any]] = None,
    level: ErrorLevel = ErrorLevel.ERROR,
    exc_info: bool = True,
) -> None:
    """
    Log a recovered failure on the logger named after `component`.

    The context name and data travel in the record's ``extra`` as ``context`` and ``data``,
    so a handler or formatter can pick them up without parsing the message.

    Parameters:
        exception (Exception): The failure being reported.
        component (str): Logger name, e.g. "monitor" or "file_handler".
        context_name (str, optional): What was being attempted, e.g. "remote_fetch".
        context_data (dict, optional): Extra fields such as a path or HTTP status.
        level (ErrorLevel): Severity; ERROR unless the caller expects the failure.
        exc_info (bool): Attach the traceback. Expected failures pass False.
    """
    logger = logging.getLogger(component)
    log = getattr(logger, level.value, logger.error)
    log(
        f"Error in {component}: {exception}",
        exc_info=exc_info,
        extra={"context": context_name, "data": context_data},
    )


def report_file_error(
    exception: Exception,
    file_path: str,
    operation: str = "read",
    additional_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Report a file system failure at WARNING without a traceback.

    Unreadable logs are routine (permissions, files rotated mid-scan), so they never
    escalate beyond a warning.
    """
    context_data: Dict[str, Any] = {"file_path": str(file_path), "operation": operation}
    if additional_context:
        context_data.update(additional_context)

    report_error(
        exception=exception,
        component="file_handler",
        context_name="file_error",
        context_data=context_data,
        level=ErrorLevel.WARNING,
        exc_info=False,
    )
