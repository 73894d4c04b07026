"""Token cost accounting."""

from dataclasses import dataclass, field
from decimal import ROUND_CEILING, Decimal

_TOKENS_PER_UNIT = Decimal(1_000_000)
_CENTS_PER_DOLLAR = Decimal(100)


@dataclass
class CostAccountant:
    """Convert token counts into billable cents per provider."""

    rates_per_million: dict[str, float] = field(default_factory=dict)
    default_rate_per_million: float = 0.25

    def cost_cents(self, tokens: int, provider: str) -> int:
        """Return the cost in cents, rounded up to the next whole cent."""
        if tokens <= 0:
            return 0
        rate = Decimal(
            str(self.rates_per_million.get(provider, self.default_rate_per_million))
        )
        cents = Decimal(tokens) / _TOKENS_PER_UNIT * rate * _CENTS_PER_DOLLAR
        return int(cents.to_integral_value(rounding=ROUND_CEILING))
