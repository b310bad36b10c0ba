"""Command-line entry point: one-shot or live battery gauge."""

import logging
import signal
import sys
import time
import traceback
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError
from rich.console import Console
from rich.live import Live

from claude_battery._version import __version__
from claude_battery.auth.credentials import default_credential_provider
from claude_battery.cli.bootstrap import setup_logging
from claude_battery.core.models import QuotaMode
from claude_battery.core.plans import get_token_limit
from claude_battery.core.settings import BudgetStore, Settings
from claude_battery.monitoring.monitor import UsageMonitor
from claude_battery.ui.gauge import render_panel
from claude_battery.utils.time_utils import TimezoneHandler

logger = logging.getLogger(__name__)

LIVE_REDRAW_SECONDS = 1.0


def build_monitor(
    settings: Settings, budget_store: Optional[BudgetStore] = None
) -> UsageMonitor:
    """Create a UsageMonitor from settings and apply budget overrides from the command line."""
    credential_provider = None
    if settings.remote:
        credentials_path = (
            Path(settings.credentials_path).expanduser()
            if settings.credentials_path
            else None
        )
        credential_provider = default_credential_provider(credentials_path)

    budget_mode = (
        QuotaMode.TOKEN_BUDGET
        if settings.budget_mode == "tokens"
        else QuotaMode.COST_BUDGET
    )

    monitor = UsageMonitor(
        credential_provider=credential_provider,
        data_path=settings.data_path,
        budget_store=budget_store or BudgetStore(),
        budget_mode=budget_mode,
        update_interval=settings.refresh_interval,
        use_remote=settings.remote,
    )

    if settings.plan:
        monitor.set_token_limit(get_token_limit(settings.plan))
    if settings.token_limit:
        monitor.set_token_limit(settings.token_limit)
    if settings.cost_limit:
        monitor.set_cost_limit(settings.cost_limit)

    return monitor


def _render(monitor: UsageMonitor, settings: Settings, tz_handler: TimezoneHandler):
    return render_panel(
        monitor.state,
        timezone_handler=tz_handler,
        timezone_name=settings.timezone,
        use_12h_format=settings.time_format == "12h",
    )


def run_live(
    monitor: UsageMonitor, settings: Settings, console: Console
) -> None:
    """Keep the gauge on screen until interrupted; SIGUSR1 forces a refresh."""
    tz_handler = TimezoneHandler()

    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, lambda *_: monitor.refresh_async())

    monitor.start()
    monitor.wait_for_initial_data(timeout=10.0)
    try:
        with Live(
            _render(monitor, settings, tz_handler),
            console=console,
            refresh_per_second=1,
            transient=False,
        ) as live:
            while True:
                time.sleep(LIVE_REDRAW_SECONDS)
                live.update(_render(monitor, settings, tz_handler))
    except KeyboardInterrupt:
        pass
    finally:
        monitor.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``claude-battery`` command."""
    try:
        settings = Settings.from_cli(argv)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if settings.version:
        print(f"claude-battery {__version__}")
        return 0

    try:
        setup_logging(
            settings.effective_log_level,
            settings.log_file,
            disable_console=settings.watch,
        )

        console = Console()
        monitor = build_monitor(settings)

        if settings.watch:
            run_live(monitor, settings, console)
            return 0

        if monitor.refresh() is None:
            logger.warning("Refresh failed, showing last known state")
        console.print(_render(monitor, settings, TimezoneHandler()))
        return 0
    except KeyboardInterrupt:
        print("\n\nMonitoring stopped by user.")
        return 0
    except Exception as e:
        logger.error(f"Monitor failed: {e}", exc_info=True)
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
