"""Data models for Claude Battery.
Core data structures for pricing, usage entries, session blocks and monitor state.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from claude_battery.core.plans import DEFAULT_COST_LIMIT, DEFAULT_TOKEN_LIMIT
from claude_battery.utils.formatting import format_time_until_reset

TOKENS_PER_MILLION = 1_000_000


class QuotaMode(Enum):
    """Source of the percentage shown on the gauge."""

    TOKEN_BUDGET = "tokens"
    COST_BUDGET = "cost"
    REMOTE_UTILIZATION = "remote"

    @property
    def is_local(self) -> bool:
        return self is not QuotaMode.REMOTE_UTILIZATION


@dataclass(frozen=True)
class PricingRate:
    """Per-million-token USD rates for one model family."""

    input: float
    output: float
    cache_write_5m: float
    cache_write_1h: float
    cache_read: float

    def cost(
        self,
        input_tokens: int = 0,
        output_tokens: int = 0,
        cache_write_5m_tokens: int = 0,
        cache_write_1h_tokens: int = 0,
        cache_read_tokens: int = 0,
    ) -> float:
        """
        Cost in USD of one request's token counts at these rates.

        The weighted sum is divided by one million exactly once; no rounding is applied.
        """
        return (
            input_tokens * self.input
            + output_tokens * self.output
            + cache_write_5m_tokens * self.cache_write_5m
            + cache_write_1h_tokens * self.cache_write_1h
            + cache_read_tokens * self.cache_read
        ) / TOKENS_PER_MILLION


@dataclass(frozen=True)
class UsageEntry:
    """One assistant response extracted from the local log."""

    timestamp: datetime
    tokens: int
    cost_usd: float


@dataclass
class SessionBlock:
    """A maximal run of entries with no gap longer than the session window."""

    entries: List[UsageEntry]
    duration: timedelta = field(default=timedelta(hours=5))

    @property
    def start_time(self) -> datetime:
        return self.entries[0].timestamp

    @property
    def end_time(self) -> datetime:
        """Instant the block's window expires: first entry + window length."""
        return self.start_time + self.duration

    @property
    def total_tokens(self) -> int:
        return sum(entry.tokens for entry in self.entries)

    @property
    def total_cost(self) -> float:
        return sum(entry.cost_usd for entry in self.entries)


@dataclass(frozen=True)
class BlockTotals:
    """Aggregated usage of the active block, or zeros when the window has reset."""

    tokens: int = 0
    cost_usd: float = 0.0
    reset_at: Optional[datetime] = None


@dataclass(frozen=True)
class Credential:
    """OAuth access token read from the Claude Code secret store."""

    access_token: str = field(repr=False)
    expires_at: Optional[datetime] = None
    plan: Optional[str] = None

    def is_usable(
        self, now: Optional[datetime] = None, grace: timedelta = timedelta(seconds=60)
    ) -> bool:
        """
        Return True when the token may still be sent.

        A token is accepted up to ``grace`` past its nominal expiry to tolerate clock skew.
        Tokens without a known expiry are always considered usable.
        """
        if not self.access_token:
            return False
        if self.expires_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        return now <= self.expires_at + grace


@dataclass(frozen=True)
class RemoteUsageSnapshot:
    """Server-reported utilization for the 5-hour and 7-day windows."""

    five_hour_utilization: float
    five_hour_resets_at: Optional[datetime] = None
    seven_day_utilization: Optional[float] = None
    seven_day_resets_at: Optional[datetime] = None
    plan: Optional[str] = None


@dataclass(frozen=True)
class MonitorState:
    """Immutable view of the monitor published after each refresh.

    A new instance replaces the previous one as a whole, so readers never
    observe a mix of old and new fields.
    """

    mode: QuotaMode = QuotaMode.COST_BUDGET
    tokens_used: int = 0
    cost_used: float = 0.0
    token_limit: int = DEFAULT_TOKEN_LIMIT
    cost_limit: float = DEFAULT_COST_LIMIT
    reset_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    snapshot: Optional[RemoteUsageSnapshot] = None

    @property
    def percentage_remaining(self) -> float:
        """Fraction of the 5-hour quota left, clamped to 0.0-1.0."""
        if self.mode is QuotaMode.REMOTE_UTILIZATION and self.snapshot is not None:
            remaining = (100.0 - self.snapshot.five_hour_utilization) / 100.0
        elif self.mode is QuotaMode.TOKEN_BUDGET:
            limit = max(1, self.token_limit)
            remaining = (limit - self.tokens_used) / limit
        else:
            limit = max(0.000001, self.cost_limit)
            remaining = (limit - self.cost_used) / limit
        return max(0.0, min(1.0, remaining))

    @property
    def percentage_used(self) -> float:
        return 1.0 - self.percentage_remaining

    @property
    def seven_day_utilization(self) -> Optional[float]:
        return self.snapshot.seven_day_utilization if self.snapshot else None

    @property
    def plan(self) -> Optional[str]:
        return self.snapshot.plan if self.snapshot else None

    def time_until_reset(self, now: Optional[datetime] = None) -> str:
        return format_time_until_reset(self.reset_at, now)

    def with_limits(
        self, cost_limit: Optional[float] = None, token_limit: Optional[int] = None
    ) -> "MonitorState":
        """Copy of this state with a new budget; usage fields are kept."""
        return replace(
            self,
            cost_limit=self.cost_limit if cost_limit is None else cost_limit,
            token_limit=self.token_limit if token_limit is None else token_limit,
        )
