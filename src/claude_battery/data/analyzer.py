"""Session analyzer for Claude Battery.

Partitions chronological usage entries into session blocks and reports the
totals of the block that is still inside its 5-hour window.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from claude_battery.core.models import BlockTotals, SessionBlock, UsageEntry

logger = logging.getLogger(__name__)


class SessionAnalyzer:
    """Creates session blocks and selects the active one."""

    def __init__(self, session_duration_hours: float = 5):
        """
        Initialize the SessionAnalyzer with a window length in hours.

        The same length is used both as the maximum gap inside a block and as the
        lifetime of a block measured from its first entry.
        """
        self.session_duration_hours = session_duration_hours
        self.session_duration = timedelta(hours=session_duration_hours)

    def transform_to_blocks(self, entries: Sequence[UsageEntry]) -> List[SessionBlock]:
        """
        Groups chronologically sorted entries into session blocks.

        A new block starts whenever the gap to the previous entry is strictly greater than
        the session duration. Concatenating the returned blocks reproduces `entries`.

        Parameters:
            entries (Sequence[UsageEntry]): Usage entries sorted by timestamp.

        Returns:
            List[SessionBlock]: Blocks in chronological order; empty for empty input.
        """
        blocks: List[SessionBlock] = []
        current: List[UsageEntry] = []

        for entry in entries:
            if current and entry.timestamp - current[-1].timestamp > self.session_duration:
                blocks.append(SessionBlock(current, self.session_duration))
                current = []
            current.append(entry)

        if current:
            blocks.append(SessionBlock(current, self.session_duration))

        return blocks

    def current_block(
        self, entries: Sequence[UsageEntry], now: Optional[datetime] = None
    ) -> BlockTotals:
        """
        Totals of the last block, or zeros once that block's window has elapsed.

        The last block expires at its first entry's timestamp plus the session duration.
        An expired block reports `(0, 0.0, None)` however large its history was, since the
        quota has already reset even though no new message has opened a fresh block.

        Returns:
            BlockTotals: Tokens, cost and reset instant of the active block.
        """
        blocks = self.transform_to_blocks(entries)
        if not blocks:
            return BlockTotals()

        last_block = blocks[-1]
        expiry = last_block.end_time
        now = now or datetime.now(timezone.utc)

        if expiry < now:
            logger.debug(f"Last block expired at {expiry.isoformat()}, window reset")
            return BlockTotals()

        return BlockTotals(
            tokens=last_block.total_tokens,
            cost_usd=last_block.total_cost,
            reset_at=expiry,
        )
