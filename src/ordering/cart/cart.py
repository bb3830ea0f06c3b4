"""Shopping Cart aggregate (CQRS): the customer's working set of lines.

The cart stores only what the customer chose: product, optional variant,
quantity, and at most one promo code. It never stores prices. Every figure
shown for a cart is recomputed by the pricing engine from these lines, and
checkout turns them into an order with frozen totals.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.cart.events import (
    CartConverted,
    CartItemAdded,
    CartItemRemoved,
    CartPromoCodeApplied,
    CartPromoCodeRemoved,
    CartQuantityUpdated,
)
from ordering.domain import ordering
from ordering.pricing.line_items import CartLineInput


class CartStatus(Enum):
    ACTIVE = "Active"
    CONVERTED = "Converted"


@ordering.entity(part_of="ShoppingCart")
class CartItem:
    product_id = Identifier(required=True)
    variant_id = Identifier()  # None when the product has no variants
    quantity = Integer(required=True, min_value=1)
    added_at = DateTime()


def _same_line(item, product_id, variant_id):
    return str(item.product_id) == str(product_id) and (str(item.variant_id) if item.variant_id else None) == (
        str(variant_id) if variant_id else None
    )


@ordering.aggregate
class ShoppingCart:
    customer_id = Identifier()  # Nullable for guest carts
    session_id = String(max_length=255)  # For guest cart identification
    items = HasMany(CartItem)
    promo_code = String(max_length=50)
    status = String(choices=CartStatus, default=CartStatus.ACTIVE.value)
    order_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def cart_must_have_items_to_convert(self):
        if self.status == CartStatus.CONVERTED.value and not self.items:
            raise ValidationError({"cart": ["Cannot convert an empty cart to an order"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, customer_id=None, session_id=None):
        now = datetime.now(UTC)
        return cls(
            customer_id=customer_id,
            session_id=session_id,
            status=CartStatus.ACTIVE.value,
            created_at=now,
            updated_at=now,
        )

    def ensure_active(self, message):
        if CartStatus(self.status) != CartStatus.ACTIVE:
            raise ValidationError({"status": [message]})

    def find_item(self, product_id, variant_id=None):
        return next((i for i in self.items if _same_line(i, product_id, variant_id)), None)

    def lines(self):
        """Cart contents as pricing input, one line per item."""
        return [
            CartLineInput(
                line_id=str(item.id),
                product_id=str(item.product_id),
                variant_id=str(item.variant_id) if item.variant_id else None,
                quantity=item.quantity,
            )
            for item in self.items
        ]

    # -------------------------------------------------------------------
    # Item management
    # -------------------------------------------------------------------
    def add_item(self, product_id, quantity, variant_id=None):
        """Add an item to the cart (or increase quantity if already present)."""
        self.ensure_active("Items can only be added to an active cart")

        existing = self.find_item(product_id, variant_id)
        now = datetime.now(UTC)

        if existing:
            existing.quantity += quantity
            item_id = str(existing.id)
        else:
            item = CartItem(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                added_at=now,
            )
            self.add_items(item)
            item_id = str(item.id)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=item_id,
                product_id=str(product_id),
                variant_id=str(variant_id) if variant_id else None,
                quantity=quantity,
            )
        )
        return item_id

    def update_item_quantity(self, item_id, new_quantity):
        self.ensure_active("Item quantities can only be updated in an active cart")

        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        previous_quantity = item.quantity
        item.quantity = new_quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartQuantityUpdated(
                cart_id=str(self.id),
                item_id=str(item_id),
                previous_quantity=previous_quantity,
                new_quantity=new_quantity,
            )
        )

    def remove_item(self, item_id):
        self.ensure_active("Items can only be removed from an active cart")

        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise ValidationError({"item_id": ["Item not found in cart"]})

        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemRemoved(
                cart_id=str(self.id),
                item_id=str(item_id),
            )
        )

    # -------------------------------------------------------------------
    # Promo code
    # -------------------------------------------------------------------
    def apply_promo_code(self, code):
        """Attach a promo code that has already passed the strict pricing check.

        A cart holds one code; applying another replaces it.
        """
        self.ensure_active("Promo codes can only be applied to an active cart")

        normalized = (code or "").strip().upper()
        if not normalized:
            raise ValidationError({"promo_code": ["Invalid promo code"]})

        replaced = self.promo_code
        self.promo_code = normalized
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartPromoCodeApplied(
                cart_id=str(self.id),
                promo_code=self.promo_code,
                replaced_code=replaced if replaced != self.promo_code else None,
            )
        )

    def remove_promo_code(self):
        self.ensure_active("Promo codes can only be removed from an active cart")
        if not self.promo_code:
            raise ValidationError({"promo_code": ["No promo code applied"]})

        removed = self.promo_code
        self.promo_code = None
        self.updated_at = datetime.now(UTC)

        self.raise_(CartPromoCodeRemoved(cart_id=str(self.id), promo_code=removed))

    # -------------------------------------------------------------------
    # Cart lifecycle
    # -------------------------------------------------------------------
    def convert_to_order(self, order_id):
        """Mark cart as converted into the given order."""
        self.ensure_active("Only active carts can be converted")
        if not self.items:
            raise ValidationError({"cart": ["Cannot convert an empty cart"]})

        items_snapshot = [
            {
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "quantity": item.quantity,
            }
            for item in self.items
        ]

        self.status = CartStatus.CONVERTED.value
        self.order_id = order_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartConverted(
                cart_id=str(self.id),
                order_id=str(order_id),
                customer_id=str(self.customer_id) if self.customer_id else None,
                items=json.dumps(items_snapshot),
            )
        )
