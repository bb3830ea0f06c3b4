"""Read ports for promo codes and the tax setting.

The engine sees promo codes as ``PromoCodeRecord`` values with ``Decimal``
amounts and timezone-aware datetimes, however the owning aggregate stores
them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from ordering.pricing.config import TaxConfig


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


@dataclass(frozen=True)
class PromoCodeRecord:
    id: str
    code: str
    discount_type: str
    discount_value: Decimal
    minimum_order_amount: Decimal | None = None
    maximum_discount_amount: Decimal | None = None
    usage_limit: int | None = None
    usage_count: int = 0
    usage_limit_per_customer: int = 1
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    is_active: bool = True
    applies_to_products: tuple[str, ...] = ()
    applies_to_categories: tuple[str, ...] = ()
    description: str | None = None

    @property
    def is_restricted(self) -> bool:
        return bool(self.applies_to_products or self.applies_to_categories)


class PromoCodeReader(ABC):
    @abstractmethod
    def get_by_code(self, code: str) -> PromoCodeRecord | None:
        """Look up a promo code. ``code`` is already normalised to upper case."""
        ...

    @abstractmethod
    def increment_usage(self, promo_code_id: str, order_id: str | None = None) -> None:
        """Count one redemption. Only order placement calls this."""
        ...


class TaxSettingReader(ABC):
    @abstractmethod
    def get_tax_setting(self) -> TaxConfig | None:
        """Current store-wide tax setting, or None when never configured."""
        ...
