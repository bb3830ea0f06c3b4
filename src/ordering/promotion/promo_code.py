"""PromoCode aggregate: a discount code customers enter at the cart.

Codes are stored upper-case so lookups are case-insensitive. Product and
category restrictions are JSON arrays of ids; an empty or missing array means
"no restriction". The aggregate only changes through administration and
through ``record_usage``, which order placement calls once per placed order.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Integer, String, Text

from ordering.domain import ordering
from ordering.pricing.ports import DiscountType
from ordering.promotion.events import PromoCodeCreated, PromoCodeUsed


def _dump_ids(ids):
    return json.dumps([str(i) for i in ids]) if ids else None


@ordering.aggregate
class PromoCode:
    code = String(required=True, max_length=50)
    description = Text()
    discount_type = String(required=True, choices=DiscountType)
    discount_value = Float(required=True, min_value=0.0)
    minimum_order_amount = Float(min_value=0.0)
    maximum_discount_amount = Float(min_value=0.0)
    usage_limit = Integer(min_value=0)
    usage_count = Integer(default=0, min_value=0)
    usage_limit_per_customer = Integer(default=1, min_value=1)
    starts_at = DateTime()
    expires_at = DateTime()
    is_active = Boolean(default=True)
    applies_to_products = Text()  # JSON array of product ids
    applies_to_categories = Text()  # JSON array of category ids
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def percentage_cannot_exceed_one_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def expiry_must_follow_start(self):
        if self.starts_at and self.expires_at and self.expires_at < self.starts_at:
            raise ValidationError({"expires_at": ["Expiry must be after the start date"]})

    @invariant.post
    def code_must_be_upper_case(self):
        if self.code and self.code != self.code.upper():
            raise ValidationError({"code": ["Promo codes are stored in upper case"]})

    @classmethod
    def create(
        cls,
        code,
        discount_type,
        discount_value,
        description=None,
        minimum_order_amount=None,
        maximum_discount_amount=None,
        usage_limit=None,
        usage_limit_per_customer=1,
        starts_at=None,
        expires_at=None,
        is_active=True,
        applies_to_products=None,
        applies_to_categories=None,
    ):
        now = datetime.now(UTC)
        promo = cls(
            code=code.strip().upper(),
            description=description,
            discount_type=discount_type,
            discount_value=discount_value,
            minimum_order_amount=minimum_order_amount,
            maximum_discount_amount=maximum_discount_amount,
            usage_limit=usage_limit,
            usage_count=0,
            usage_limit_per_customer=usage_limit_per_customer,
            starts_at=starts_at,
            expires_at=expires_at,
            is_active=is_active,
            applies_to_products=_dump_ids(applies_to_products),
            applies_to_categories=_dump_ids(applies_to_categories),
            created_at=now,
            updated_at=now,
        )
        promo.raise_(
            PromoCodeCreated(
                promo_code_id=str(promo.id),
                code=promo.code,
                discount_type=promo.discount_type,
                discount_value=promo.discount_value,
            )
        )
        return promo

    @property
    def product_ids(self):
        return json.loads(self.applies_to_products) if self.applies_to_products else []

    @property
    def category_ids(self):
        return json.loads(self.applies_to_categories) if self.applies_to_categories else []

    def record_usage(self, order_id=None):
        """Count one redemption of this code."""
        self.usage_count = (self.usage_count or 0) + 1
        self.updated_at = datetime.now(UTC)

        self.raise_(
            PromoCodeUsed(
                promo_code_id=str(self.id),
                code=self.code,
                order_id=str(order_id) if order_id else None,
                usage_count=self.usage_count,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Promo code is already inactive"]})
        self.is_active = False
        self.updated_at = datetime.now(UTC)
