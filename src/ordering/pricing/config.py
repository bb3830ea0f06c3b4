"""Pricing configuration.

Static pricing knobs come from the environment, read when a config is built
rather than at import time. The tax rate is data, not configuration: it lives
in the ``TaxSetting`` aggregate and is captured once per calculation as a
``TaxConfig`` snapshot so one logical operation never mixes two rates.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal

from ordering.pricing.money import ZERO, percent_to_rate, round2, to_decimal


@dataclass(frozen=True)
class PricingConfig:
    currency: str = "USD"
    shipping_amount: Decimal = ZERO

    @classmethod
    def from_env(cls) -> "PricingConfig":
        return cls(
            currency=os.getenv("ORDERING_CURRENCY", "USD").upper(),
            shipping_amount=round2(os.getenv("ORDERING_FLAT_SHIPPING", "0.00")),
        )


@dataclass(frozen=True)
class TaxConfig:
    """Snapshot of the store-wide tax setting for one calculation."""

    enabled: bool = False
    rate_percent: Decimal = field(default=ZERO)
    label: str | None = None

    @property
    def rate(self) -> Decimal:
        """Effective tax rate as a fraction. Zero unless explicitly enabled."""
        if not self.enabled:
            return Decimal("0")
        return percent_to_rate(to_decimal(self.rate_percent))

    @classmethod
    def disabled(cls) -> "TaxConfig":
        return cls(enabled=False, rate_percent=ZERO)
