"""Pricing calculations for Claude models.

This module provides the PricingCalculator class, which maps a model
identifier to its per-million-token rates by ordered prefix matching and
computes the USD cost of one request's token counts.
"""

import logging
from typing import Optional, Sequence, Tuple

from claude_battery.core.models import PricingRate

logger = logging.getLogger(__name__)

PricingTable = Sequence[Tuple[str, PricingRate]]

# Ordered from most to least specific prefix. Rates in USD per million tokens.
DEFAULT_PRICING_TABLE: Tuple[Tuple[str, PricingRate], ...] = (
    ("claude-opus-4-6", PricingRate(5.0, 25.0, 6.25, 10.0, 0.50)),
    ("claude-opus-4-5", PricingRate(5.0, 25.0, 6.25, 10.0, 0.50)),
    ("claude-opus-4", PricingRate(15.0, 75.0, 18.75, 30.0, 1.50)),
    ("claude-sonnet-4", PricingRate(3.0, 15.0, 3.75, 6.0, 0.30)),
    ("claude-haiku-4", PricingRate(1.0, 5.0, 1.25, 2.0, 0.10)),
    ("claude-3-5-sonnet", PricingRate(3.0, 15.0, 3.75, 3.75, 0.30)),
    ("claude-3-5-haiku", PricingRate(0.80, 4.0, 1.00, 1.00, 0.08)),
    ("claude-3-opus", PricingRate(15.0, 75.0, 18.75, 18.75, 1.50)),
    ("claude-3-haiku", PricingRate(0.25, 1.25, 0.30, 0.30, 0.03)),
)

# Unknown models are billed as mid-tier (Sonnet 4).
DEFAULT_RATE = PricingRate(3.0, 15.0, 3.75, 6.0, 0.30)


class PricingCalculator:
    """Looks up model rates and computes per-request costs.

    Lookup walks the table top to bottom and returns the first entry whose
    prefix matches the model identifier. The table is checked on construction
    so that no prefix is shadowed by a shorter prefix declared before it,
    which makes the first match also the longest match.
    """

    def __init__(
        self,
        table: Optional[PricingTable] = None,
        default_rate: PricingRate = DEFAULT_RATE,
    ) -> None:
        self.table: Tuple[Tuple[str, PricingRate], ...] = tuple(
            DEFAULT_PRICING_TABLE if table is None else table
        )
        self.default_rate = default_rate
        self._check_order()

    def _check_order(self) -> None:
        for index, (prefix, _) in enumerate(self.table):
            for earlier, _ in self.table[:index]:
                if prefix.startswith(earlier) and len(prefix) > len(earlier):
                    raise ValueError(
                        f"Pricing prefix '{prefix}' is shadowed by '{earlier}'"
                    )

    def rate_for(self, model: Optional[str]) -> PricingRate:
        """
        Return the rate of the first table prefix that `model` starts with.

        Never fails: an empty, missing or unrecognised model gets the default rate.
        """
        if model:
            for prefix, rate in self.table:
                if model.startswith(prefix):
                    return rate
            logger.debug(f"No pricing for model '{model}', using default rate")
        return self.default_rate

    def calculate_cost(
        self,
        model: Optional[str],
        input_tokens: int = 0,
        output_tokens: int = 0,
        cache_write_5m_tokens: int = 0,
        cache_write_1h_tokens: int = 0,
        cache_read_tokens: int = 0,
    ) -> float:
        """
        Calculates the USD cost of one request on the given model.

        Parameters:
            model (str): Model identifier from the log record.
            input_tokens (int): Fresh input tokens.
            output_tokens (int): Output tokens.
            cache_write_5m_tokens (int): Tokens written to the 5-minute cache.
            cache_write_1h_tokens (int): Tokens written to the 1-hour cache.
            cache_read_tokens (int): Tokens read from the cache.

        Returns:
            float: Cost in USD, unrounded.
        """
        return self.rate_for(model).cost(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_write_5m_tokens=cache_write_5m_tokens,
            cache_write_1h_tokens=cache_write_1h_tokens,
            cache_read_tokens=cache_read_tokens,
        )
