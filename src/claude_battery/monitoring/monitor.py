"""Usage monitor: refresh lifecycle and published state."""

import logging
import math
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, Union

from claude_battery.auth.credentials import CredentialProvider
from claude_battery.core.models import (
    BlockTotals,
    MonitorState,
    QuotaMode,
    RemoteUsageSnapshot,
)
from claude_battery.core.pricing import PricingCalculator
from claude_battery.core.settings import BudgetStore
from claude_battery.data.analyzer import SessionAnalyzer
from claude_battery.data.reader import load_usage_entries
from claude_battery.data.remote import RemoteUsageError, RemoteUsageFetcher
from claude_battery.error_handling import ErrorLevel, report_error

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_INTERVAL = 60

StateCallback = Callable[[MonitorState], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class UsageMonitor:
    """Owns the single MonitorState and the pipeline that replaces it.

    Each refresh tries the server-reported utilization first and falls back
    to a full rescan of the local logs. The resulting state is built
    completely before it is published, so readers of `state` always see one
    consistent snapshot. A refresh that fails outright leaves the previous
    state in place until the next tick.
    """

    def __init__(
        self,
        credential_provider: Optional[CredentialProvider] = None,
        fetcher: Optional[RemoteUsageFetcher] = None,
        data_path: Optional[Union[str, Path]] = None,
        budget_store: Optional[BudgetStore] = None,
        budget_mode: QuotaMode = QuotaMode.COST_BUDGET,
        update_interval: int = DEFAULT_UPDATE_INTERVAL,
        use_remote: bool = True,
        pricing_calculator: Optional[PricingCalculator] = None,
        analyzer: Optional[SessionAnalyzer] = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        """
        Initialize the monitor and load the persisted budget.

        Parameters:
            credential_provider: Secret store lookup; None disables the remote source.
            fetcher (RemoteUsageFetcher, optional): Client for the usage endpoint.
            data_path (str, optional): Root of the local JSONL logs.
            budget_store (BudgetStore, optional): Persistence for the budget preference.
            budget_mode (QuotaMode): Local comparison, COST_BUDGET or TOKEN_BUDGET.
            update_interval (int): Seconds between timer-driven refreshes.
            use_remote (bool): Whether to try the remote source at all.
            clock (callable): Source of the current UTC time.
        """
        if budget_mode is QuotaMode.REMOTE_UTILIZATION:
            raise ValueError("budget_mode must be a local mode")

        self.credential_provider = credential_provider
        self.fetcher = fetcher or RemoteUsageFetcher()
        self.data_path = data_path
        self.budget_store = budget_store or BudgetStore()
        self.budget_mode = budget_mode
        self.update_interval = update_interval
        self.use_remote = use_remote and credential_provider is not None
        self.pricing_calculator = pricing_calculator or PricingCalculator()
        self.analyzer = analyzer or SessionAnalyzer()
        self.clock = clock

        self._cost_limit = self.budget_store.load_cost_limit()
        self._token_limit = self.budget_store.load_token_limit()
        self._state = MonitorState(
            mode=budget_mode,
            cost_limit=self._cost_limit,
            token_limit=self._token_limit,
        )
        self._publish_lock = threading.Lock()

        self._monitoring = False
        self._timer_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._first_data_event = threading.Event()
        self._update_callbacks: List[StateCallback] = []

    @property
    def state(self) -> MonitorState:
        """The most recently published state."""
        return self._state

    @property
    def is_running(self) -> bool:
        return self._monitoring

    def register_update_callback(self, callback: StateCallback) -> None:
        """
        Registers a callback invoked with every newly published state. Duplicate callbacks are ignored.
        """
        if callback not in self._update_callbacks:
            self._update_callbacks.append(callback)
            logger.debug("Registered update callback")

    # Refresh pipeline

    def refresh(self) -> Optional[MonitorState]:
        """
        Run one refresh synchronously and publish its result.

        Returns:
            MonitorState or None: The new state, or None when the refresh failed and the
            previous state was kept.
        """
        start_time = time.time()
        now = self.clock()
        try:
            snapshot = self._fetch_remote(now)
            if snapshot is not None:
                state = self._publish(
                    mode=QuotaMode.REMOTE_UTILIZATION,
                    reset_at=snapshot.five_hour_resets_at,
                    last_updated=now,
                    snapshot=snapshot,
                )
            else:
                totals = self._scan_local(now)
                state = self._publish(
                    mode=self.budget_mode,
                    tokens_used=totals.tokens,
                    cost_used=totals.cost_usd,
                    reset_at=totals.reset_at,
                    last_updated=now,
                )
        except Exception as e:
            report_error(exception=e, component="monitor", context_name="refresh")
            return None

        elapsed = time.time() - start_time
        logger.debug(
            f"Refresh completed in {elapsed:.3f}s ({state.mode.value}, "
            f"{state.percentage_remaining:.0%} remaining)"
        )
        return state

    def refresh_async(self) -> threading.Thread:
        """
        Start a refresh on its own daemon thread and return that thread.

        Overlapping refreshes are not deduplicated; whichever finishes last is published last.
        """
        thread = threading.Thread(target=self.refresh, name="UsageRefresh", daemon=True)
        thread.start()
        return thread

    def _fetch_remote(self, now: datetime) -> Optional[RemoteUsageSnapshot]:
        if not self.use_remote or self.credential_provider is None:
            return None

        try:
            credential = self.credential_provider.fetch_credential()
        except Exception as e:
            report_error(
                exception=e,
                component="monitor",
                context_name="credential_lookup",
                level=ErrorLevel.WARNING,
            )
            return None

        if credential is None:
            logger.debug("No credential found, using local logs")
            return None

        if not credential.is_usable(now):
            logger.info("Credential expired, using local logs")
            return None

        try:
            return self.fetcher.fetch(credential, now)
        except RemoteUsageError as e:
            report_error(
                exception=e,
                component="monitor",
                context_name="remote_fetch",
                context_data={"status_code": e.status_code},
                level=ErrorLevel.INFO,
                exc_info=False,
            )
            return None
        except Exception as e:
            report_error(
                exception=e,
                component="monitor",
                context_name="remote_fetch",
                level=ErrorLevel.WARNING,
            )
            return None

    def _scan_local(self, now: datetime) -> BlockTotals:
        entries = load_usage_entries(self.data_path, self.pricing_calculator)
        return self.analyzer.current_block(entries, now)

    def _publish(self, **fields) -> MonitorState:
        with self._publish_lock:
            state = MonitorState(
                cost_limit=self._cost_limit, token_limit=self._token_limit, **fields
            )
            self._state = state
        self._first_data_event.set()
        self._notify(state)
        return state

    def _notify(self, state: MonitorState) -> None:
        for callback in self._update_callbacks:
            try:
                callback(state)
            except Exception as e:
                report_error(
                    exception=e, component="monitor", context_name="callback_error"
                )

    # Budget preference

    def set_cost_limit(self, value: float) -> MonitorState:
        """Persist a new USD budget and republish the state with it."""
        if not (math.isfinite(value) and value > 0):
            raise ValueError(f"Cost limit must be positive: {value}")
        self.budget_store.save_cost_limit(value)
        with self._publish_lock:
            self._cost_limit = float(value)
            self._state = self._state.with_limits(cost_limit=self._cost_limit)
            state = self._state
        self._notify(state)
        return state

    def set_token_limit(self, value: int) -> MonitorState:
        """Persist a new token budget and republish the state with it."""
        if not (math.isfinite(value) and value > 0):
            raise ValueError(f"Token limit must be positive: {value}")
        self.budget_store.save_token_limit(value)
        with self._publish_lock:
            self._token_limit = int(value)
            self._state = self._state.with_limits(token_limit=self._token_limit)
            state = self._state
        self._notify(state)
        return state

    # Timer

    def start(self) -> None:
        """
        Starts the timer thread if it is not already running.

        The timer refreshes immediately and then every `update_interval` seconds; each tick
        runs its refresh on a separate thread so a slow network call never delays the next tick.
        """
        if self._monitoring:
            logger.warning("Monitoring already running")
            return

        logger.info(f"Starting monitoring with {self.update_interval}s interval")
        self._monitoring = True
        self._stop_event.clear()

        self._timer_thread = threading.Thread(
            target=self._timer_loop, name="UsageTimer", daemon=True
        )
        self._timer_thread.start()

    def stop(self) -> None:
        """Stops the timer thread. Refreshes already in flight are not cancelled."""
        if not self._monitoring:
            return

        logger.info("Stopping monitoring")
        self._monitoring = False
        self._stop_event.set()

        if self._timer_thread and self._timer_thread.is_alive():
            self._timer_thread.join(timeout=5)

        self._timer_thread = None

    def wait_for_initial_data(self, timeout: float = 10.0) -> bool:
        """
        Block until the first state has been published or the timeout expires.

        Returns:
            bool: True if a refresh has published a state within the timeout.
        """
        return self._first_data_event.wait(timeout=timeout)

    def _timer_loop(self) -> None:
        logger.debug("Timer loop started")

        self.refresh_async()
        while self._monitoring:
            if self._stop_event.wait(timeout=self.update_interval):
                break
            self.refresh_async()

        logger.debug("Timer loop ended")
