"""Budget presets for the local quota estimate.

The server-reported utilization needs no budget; the local fallback compares
the active block against a user-chosen ceiling, either in USD or in tokens.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

DEFAULT_COST_LIMIT: float = 5.0
DEFAULT_TOKEN_LIMIT: int = 8_000


class PlanType(Enum):
    """Subscription plans offered as token budget presets."""

    PRO = "pro"
    MAX5 = "max5"
    MAX20 = "max20"

    @classmethod
    def from_string(cls, value: str) -> "PlanType":
        """Case-insensitive creation of PlanType from a string."""
        try:
            return cls(value.lower())
        except ValueError:
            raise ValueError(f"Unknown plan type: {value}")


@dataclass(frozen=True)
class PlanConfig:
    """Immutable token budget preset for a subscription plan."""

    name: str
    token_limit: int
    display_name: str

    @property
    def formatted_token_limit(self) -> str:
        """Human-readable token limit (e.g., '~40k' instead of '40000')."""
        if self.token_limit >= 1_000:
            return f"~{self.token_limit // 1_000}k"
        return str(self.token_limit)


PLAN_LIMITS: Dict[PlanType, PlanConfig] = {
    PlanType.PRO: PlanConfig("pro", 8_000, "Pro"),
    PlanType.MAX5: PlanConfig("max5", 40_000, "Max 5×"),
    PlanType.MAX20: PlanConfig("max20", 88_000, "Max 20×"),
}


def get_plan(plan: str) -> PlanConfig:
    return PLAN_LIMITS[PlanType.from_string(plan)]


def get_token_limit(plan: str) -> int:
    """Token budget of a named plan preset."""
    return get_plan(plan).token_limit


def plan_names() -> List[str]:
    return [plan_type.value for plan_type in PlanType]
