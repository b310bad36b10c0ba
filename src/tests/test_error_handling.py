"""Tests for error handling module."""

from unittest.mock import Mock, patch

import pytest

from claude_battery.error_handling import ErrorLevel, report_error, report_file_error


class TestErrorLevel:
    """Test cases for ErrorLevel enum."""

    def test_error_level_values(self) -> None:
        assert ErrorLevel.DEBUG == "debug"
        assert ErrorLevel.INFO == "info"
        assert ErrorLevel.WARNING == "warning"
        assert ErrorLevel.ERROR == "error"


class TestReportError:
    """Test cases for report_error function."""

    @pytest.fixture
    def sample_exception(self) -> ValueError:
        try:
            raise ValueError("Test error message")
        except ValueError as e:
            return e

    @patch("claude_battery.error_handling.logging.getLogger")
    def test_logs_on_component_logger(self, mock_get_logger, sample_exception) -> None:
        mock_logger = Mock()
        mock_get_logger.return_value = mock_logger

        report_error(
            exception=sample_exception,
            component="monitor",
            context_name="refresh",
            context_data={"attempt": 1},
        )

        mock_get_logger.assert_called_once_with("monitor")
        mock_logger.error.assert_called_once()
        args, kwargs = mock_logger.error.call_args
        assert "Test error message" in args[0]
        assert kwargs["exc_info"] is True
        assert kwargs["extra"] == {"context": "refresh", "data": {"attempt": 1}}

    @pytest.mark.parametrize(
        "level", [ErrorLevel.DEBUG, ErrorLevel.INFO, ErrorLevel.WARNING]
    )
    @patch("claude_battery.error_handling.logging.getLogger")
    def test_level_selects_logger_method(
        self, mock_get_logger, level, sample_exception
    ) -> None:
        mock_logger = Mock()
        mock_get_logger.return_value = mock_logger

        report_error(exception=sample_exception, component="x", level=level)

        getattr(mock_logger, level.value).assert_called_once()
        mock_logger.error.assert_not_called()

    def test_real_logging(self, sample_exception, caplog) -> None:
        with caplog.at_level("WARNING", logger="remote"):
            report_error(
                exception=sample_exception,
                component="remote",
                level=ErrorLevel.WARNING,
                exc_info=False,
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.levelname == "WARNING"
        assert record.context is None
        assert "Test error message" in record.getMessage()


class TestReportFileError:
    """Test cases for report_file_error function."""

    @patch("claude_battery.error_handling.report_error")
    def test_file_error_context(self, mock_report) -> None:
        error = PermissionError("denied")

        report_file_error(
            exception=error,
            file_path="/tmp/session.jsonl",
            operation="read",
            additional_context={"file_exists": True},
        )

        mock_report.assert_called_once_with(
            exception=error,
            component="file_handler",
            context_name="file_error",
            context_data={
                "file_path": "/tmp/session.jsonl",
                "operation": "read",
                "file_exists": True,
            },
            level=ErrorLevel.WARNING,
            exc_info=False,
        )
