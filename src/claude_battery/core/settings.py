"""Settings management for Claude Battery.

`Settings` collects runtime configuration from command-line arguments and
``CLAUDE_BATTERY_*`` environment variables. `BudgetStore` persists the one
user preference the monitor keeps across restarts: the quota budget.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from claude_battery.core.plans import (
    DEFAULT_COST_LIMIT,
    DEFAULT_TOKEN_LIMIT,
    plan_names,
)
from claude_battery.utils.time_utils import TimezoneHandler

logger = logging.getLogger(__name__)

BUDGET_MODES = ("cost", "tokens")
TIME_FORMATS = ("12h", "24h")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class BudgetStore:
    """Persists the quota budget for each local mode."""

    COST_KEY = "cost_limit"
    TOKEN_KEY = "token_limit"

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        self.config_dir = config_dir or Path.home() / ".claude-battery"
        self.preferences_file = self.config_dir / "preferences.json"

    def load(self) -> Dict[str, Any]:
        """Load stored preferences; a missing or unreadable file gives an empty dict."""
        if not self.preferences_file.exists():
            return {}

        try:
            with open(self.preferences_file) as f:
                data = json.load(f)
        except Exception as e:
            logger.warning(f"Failed to load preferences: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning("Ignoring malformed preferences file")
            return {}
        data.pop("timestamp", None)
        return data

    def _positive(self, key: str, default: Union[int, float]) -> Union[int, float]:
        value = self.load().get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            return default
        return value

    def load_cost_limit(self, default: float = DEFAULT_COST_LIMIT) -> float:
        return float(self._positive(self.COST_KEY, default))

    def load_token_limit(self, default: int = DEFAULT_TOKEN_LIMIT) -> int:
        return int(self._positive(self.TOKEN_KEY, default))

    def save_cost_limit(self, value: float) -> None:
        self._save(self.COST_KEY, float(value))

    def save_token_limit(self, value: int) -> None:
        self._save(self.TOKEN_KEY, int(value))

    def _save(self, key: str, value: Union[int, float]) -> None:
        """Write one preference synchronously, keeping the others."""
        try:
            data = self.load()
            data[key] = value
            data["timestamp"] = datetime.now(timezone.utc).isoformat()

            self.config_dir.mkdir(parents=True, exist_ok=True)

            temp_file = self.preferences_file.with_suffix(".tmp")
            with open(temp_file, "w") as f:
                json.dump(data, f, indent=2)
            temp_file.replace(self.preferences_file)

            logger.debug(f"Saved {key} to {self.preferences_file}")
        except Exception as e:
            logger.warning(f"Failed to save preference {key}: {e}")

    def clear(self) -> None:
        """Remove stored preferences."""
        try:
            if self.preferences_file.exists():
                self.preferences_file.unlink()
                logger.debug("Cleared stored preferences")
        except Exception as e:
            logger.warning(f"Failed to clear preferences: {e}")


class Settings(BaseSettings):
    """Runtime configuration for the battery monitor."""

    model_config = SettingsConfigDict(
        env_prefix="CLAUDE_BATTERY_",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
        cli_prog_name="claude-battery",
        cli_kebab_case=True,
        cli_implicit_flags=True,
    )

    data_path: Optional[str] = Field(
        default=None,
        description="Root of the Claude Code JSONL logs (default: ~/.claude/projects)",
    )

    credentials_path: Optional[str] = Field(
        default=None,
        description="Claude Code credentials file (default: ~/.claude/.credentials.json)",
    )

    remote: bool = Field(
        default=True,
        description="Use the server-reported utilization when a credential is available",
    )

    budget_mode: str = Field(
        default="cost",
        description="Local estimate compared against a USD (cost) or token (tokens) budget",
    )

    plan: Optional[str] = Field(
        default=None,
        description="Token budget preset: pro (~8k), max5 (~40k), max20 (~88k)",
    )

    cost_limit: Optional[float] = Field(
        default=None, gt=0, description="USD budget per 5-hour window (persisted)"
    )

    token_limit: Optional[int] = Field(
        default=None, gt=0, description="Token budget per 5-hour window (persisted)"
    )

    refresh_interval: int = Field(
        default=60, ge=5, le=3600, description="Seconds between refreshes"
    )

    watch: bool = Field(default=False, description="Keep refreshing the gauge live")

    timezone: str = Field(
        default="auto", description="Timezone for displayed times (auto, UTC, ...)"
    )

    time_format: str = Field(default="24h", description="Clock format: 12h or 24h")

    log_level: str = Field(default="WARNING", description="Logging level")

    log_file: Optional[Path] = Field(default=None, description="Log file path")

    debug: bool = Field(default=False, description="Enable debug logging")

    version: bool = Field(default=False, description="Show version and exit")

    @field_validator("budget_mode", mode="before")
    @classmethod
    def validate_budget_mode(cls, v: Any) -> str:
        value = str(v).lower()
        if value not in BUDGET_MODES:
            raise ValueError(
                f"Invalid budget mode: {v}. Must be one of {', '.join(BUDGET_MODES)}"
            )
        return value

    @field_validator("plan", mode="before")
    @classmethod
    def validate_plan(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        value = str(v).lower()
        valid = plan_names()
        if value not in valid:
            raise ValueError(f"Invalid plan: {v}. Must be one of {', '.join(valid)}")
        return value

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if not TimezoneHandler.is_known_timezone(v):
            raise ValueError(f"Invalid timezone: {v}")
        return v

    @field_validator("time_format", mode="before")
    @classmethod
    def validate_time_format(cls, v: Any) -> str:
        value = str(v).lower()
        if value not in TIME_FORMATS:
            raise ValueError(
                f"Invalid time format: {v}. Must be one of {', '.join(TIME_FORMATS)}"
            )
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        value = str(v).upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return value

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level

    @classmethod
    def from_cli(cls, argv: Optional[List[str]] = None) -> "Settings":
        """Parse settings from `argv` (``sys.argv[1:]`` when None)."""
        return cls(_cli_parse_args=argv if argv is not None else True)
