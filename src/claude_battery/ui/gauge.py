"""Battery gauge rendering with Rich.

Turns a MonitorState into the compact label and the detail panel shown by
the CLI. Nothing here reads usage data; it only formats published state.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from claude_battery.core.models import MonitorState, QuotaMode
from claude_battery.utils.formatting import format_currency, format_tokens
from claude_battery.utils.time_utils import TimezoneHandler, format_display_time

BAR_WIDTH = 30
UNKNOWN = "—"

# (lower bound of percentage remaining, filled cells out of 4)
BATTERY_LEVELS: Tuple[Tuple[float, int], ...] = (
    (0.75, 4),
    (0.50, 3),
    (0.25, 2),
    (0.10, 1),
)

MODE_LABELS = {
    QuotaMode.REMOTE_UTILIZATION: "server utilization",
    QuotaMode.COST_BUDGET: "local estimate (USD)",
    QuotaMode.TOKEN_BUDGET: "local estimate (tokens)",
}


def battery_level(percentage: float) -> int:
    """Number of filled battery cells (0-4) for a remaining fraction."""
    for threshold, cells in BATTERY_LEVELS:
        if percentage >= threshold:
            return cells
    return 0


def battery_style(percentage: float) -> str:
    if percentage >= 0.25:
        return "green"
    if percentage >= 0.10:
        return "dark_orange"
    return "red"


def battery_icon(percentage: float) -> str:
    cells = battery_level(percentage)
    return "[" + "█" * cells + " " * (4 - cells) + "]"


def render_label(state: MonitorState) -> Text:
    """Compact one-line gauge, e.g. ``[███ ] 62%``."""
    percentage = state.percentage_remaining
    label = Text(battery_icon(percentage), style=battery_style(percentage))
    label.append(f" {int(percentage * 100)}%", style="bold")
    return label


def render_bar(percentage: float, width: int = BAR_WIDTH) -> Text:
    filled = int(width * max(0.0, min(1.0, percentage)))
    bar = Text("█" * filled, style=battery_style(percentage))
    bar.append("░" * (width - filled), style="dim")
    return bar


def _usage_rows(state: MonitorState) -> List[Tuple[str, str]]:
    if state.mode is QuotaMode.REMOTE_UTILIZATION and state.snapshot is not None:
        rows = [("5-hour usage", f"{state.snapshot.five_hour_utilization:g}%")]
        if state.seven_day_utilization is not None:
            rows.append(("7-day usage", f"{state.seven_day_utilization:g}%"))
        if state.plan:
            rows.append(("Plan", state.plan))
        return rows

    if state.mode is QuotaMode.TOKEN_BUDGET:
        return [
            (
                "Tokens used",
                f"{format_tokens(state.tokens_used)} / {format_tokens(state.token_limit)}",
            ),
            ("Cost equivalent", format_currency(state.cost_used)),
        ]

    return [
        (
            "Cost used",
            f"{format_currency(state.cost_used)} / {format_currency(state.cost_limit)}",
        ),
        ("Tokens used", format_tokens(state.tokens_used)),
    ]


def render_panel(
    state: MonitorState,
    now: Optional[datetime] = None,
    timezone_handler: Optional[TimezoneHandler] = None,
    timezone_name: Optional[str] = None,
    use_12h_format: bool = False,
) -> RenderableType:
    """
    Detail view: header with battery, progress bar and stat rows.

    Parameters:
        state (MonitorState): State to render.
        now (datetime, optional): Reference time for the reset countdown.
        timezone_handler (TimezoneHandler, optional): Converts the "Updated" stamp for display.
        timezone_name (str, optional): Display timezone; "auto" uses the local zone.
        use_12h_format (bool): Clock style for the "Updated" stamp.
    """
    timezone_handler = timezone_handler or TimezoneHandler()

    header = render_label(state)
    header.append("  remaining", style="dim")

    stats = Table.grid(padding=(0, 2))
    stats.add_column(style="dim")
    stats.add_column(justify="right", style="bold")
    for label, value in _usage_rows(state):
        stats.add_row(label, value)
    stats.add_row("Resets in", state.time_until_reset(now))

    updated = UNKNOWN
    if state.last_updated is not None:
        local_time = timezone_handler.to_display(state.last_updated, timezone_name)
        updated = format_display_time(local_time, use_12h_format)
    stats.add_row("Updated", updated)
    stats.add_row("Source", MODE_LABELS[state.mode])

    return Panel(
        Group(header, render_bar(state.percentage_remaining), stats),
        title="Claude Battery",
        expand=False,
    )
