"""Promo code validation and discount eligibility.

``PromoCodeValidator`` decides whether a code may be used at all, in a fixed
order where the first failing check wins. ``DiscountEligibilityFilter`` then
scopes the discount to the items the code applies to. Neither mutates
anything; redemption is counted by order placement only.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from ordering.pricing.errors import PricingConfigurationError
from ordering.pricing.money import HUNDRED, ZERO, money_str, round2
from ordering.pricing.ports import DiscountType, PromoCodeReader, PromoCodeRecord


class PromoRejection(Enum):
    INVALID_CODE = "INVALID_CODE"
    INACTIVE = "INACTIVE"
    NOT_STARTED = "NOT_STARTED"
    EXPIRED = "EXPIRED"
    USAGE_LIMIT = "USAGE_LIMIT"
    MINIMUM_NOT_MET = "MINIMUM_NOT_MET"
    NOT_APPLICABLE = "NOT_APPLICABLE"


NOT_APPLICABLE_MESSAGE = (
    "This promo code does not apply to any items in your cart. "
    "It may only be valid for specific products or categories."
)


class PromoOutcome(Enum):
    APPLIED = "APPLIED"
    IGNORED = "IGNORED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class PromoCheck:
    """Result of validating a code: either the promo or a rejection."""

    promo: PromoCodeRecord | None = None
    reason: PromoRejection | None = None
    message: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.promo is not None and self.reason is None

    @classmethod
    def valid(cls, promo: PromoCodeRecord) -> "PromoCheck":
        return cls(promo=promo)

    @classmethod
    def rejected(cls, reason: PromoRejection, message: str, promo: PromoCodeRecord | None = None) -> "PromoCheck":
        return cls(promo=promo, reason=reason, message=message)


@dataclass(frozen=True)
class PromoResolution:
    """What happened to the promo code a calculation was asked to apply."""

    outcome: PromoOutcome | None = None
    code: str | None = None
    reason: PromoRejection | None = None
    message: str | None = None

    @classmethod
    def none(cls) -> "PromoResolution":
        return cls()

    @classmethod
    def applied(cls, code: str) -> "PromoResolution":
        return cls(outcome=PromoOutcome.APPLIED, code=code)

    @classmethod
    def ignored(cls, code: str, reason: PromoRejection | None, message: str | None) -> "PromoResolution":
        return cls(outcome=PromoOutcome.IGNORED, code=code, reason=reason, message=message)

    @classmethod
    def rejected(cls, code: str, reason: PromoRejection, message: str) -> "PromoResolution":
        return cls(outcome=PromoOutcome.REJECTED, code=code, reason=reason, message=message)

    def to_dict(self) -> dict | None:
        if self.outcome is None:
            return None
        return {
            "outcome": self.outcome.value,
            "code": self.code,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class DiscountResult:
    discount_amount: Decimal
    eligible_item_ids: tuple[str, ...]
    eligible_subtotal: Decimal

    @property
    def has_eligible_items(self) -> bool:
        return bool(self.eligible_item_ids)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


class PromoCodeValidator:
    def __init__(self, reader: PromoCodeReader):
        self.reader = reader

    def validate(self, code: str, subtotal: Decimal, now: datetime | None = None) -> PromoCheck:
        now = now or datetime.now(UTC)
        normalized = normalize_code(code)

        promo = self.reader.get_by_code(normalized) if normalized else None
        if promo is None:
            return PromoCheck.rejected(PromoRejection.INVALID_CODE, "Invalid promo code")

        if not promo.is_active:
            return PromoCheck.rejected(PromoRejection.INACTIVE, "Promo code is not active", promo)

        if promo.starts_at and now < promo.starts_at:
            return PromoCheck.rejected(PromoRejection.NOT_STARTED, "Promo code is not yet valid", promo)

        if promo.expires_at and now > promo.expires_at:
            return PromoCheck.rejected(PromoRejection.EXPIRED, "Promo code has expired", promo)

        if promo.usage_limit is not None and promo.usage_count >= promo.usage_limit:
            return PromoCheck.rejected(PromoRejection.USAGE_LIMIT, "Promo code usage limit reached", promo)

        if promo.minimum_order_amount is not None and subtotal < promo.minimum_order_amount:
            return PromoCheck.rejected(
                PromoRejection.MINIMUM_NOT_MET,
                f"Minimum order amount of ${money_str(promo.minimum_order_amount)} required",
                promo,
            )

        return PromoCheck.valid(promo)


def discount_for_amount(promo: PromoCodeRecord, amount: Decimal) -> Decimal:
    """Discount a promo grants on ``amount``: capped, clamped and rounded."""
    if promo.discount_type == DiscountType.PERCENTAGE.value:
        discount = amount * promo.discount_value / HUNDRED
    elif promo.discount_type == DiscountType.FIXED_AMOUNT.value:
        discount = min(promo.discount_value, amount)
    else:
        raise PricingConfigurationError(f"Unknown discount type {promo.discount_type!r} on promo code {promo.code}")

    if promo.maximum_discount_amount is not None:
        discount = min(discount, promo.maximum_discount_amount)

    discount = max(min(discount, amount), ZERO)
    return round2(discount)


class DiscountEligibilityFilter:
    def apply(self, promo: PromoCodeRecord, items) -> DiscountResult:
        if promo.is_restricted:
            products = {str(p) for p in promo.applies_to_products}
            categories = {str(c) for c in promo.applies_to_categories}
            eligible = [
                item
                for item in items
                if item.product_id in products or (item.category_id is not None and item.category_id in categories)
            ]
        else:
            eligible = list(items)

        if not eligible:
            return DiscountResult(discount_amount=ZERO, eligible_item_ids=(), eligible_subtotal=ZERO)

        # Summed unrounded and rounded once, like the cart subtotal.
        eligible_subtotal = round2(sum((item.unit_price * item.quantity for item in eligible), Decimal("0")))

        return DiscountResult(
            discount_amount=discount_for_amount(promo, eligible_subtotal),
            eligible_item_ids=tuple(item.product_id for item in eligible),
            eligible_subtotal=eligible_subtotal,
        )
