"""Order aggregate (CQRS): a placed order with frozen totals.

Totals are calculated once by the pricing engine when the order is created
and stored as fixed-point strings in the ``OrderTotals`` value object. No
method on the order recalculates them: later catalogue, promo or tax changes
never alter a placed order.

State Machine:
    PENDING → CONFIRMED → PROCESSING → SHIPPED → DELIVERED
    CANCELLED (from PENDING, CONFIRMED, PROCESSING)
"""

import json
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, Text, ValueObject

from ordering.domain import ordering
from ordering.order.events import OrderCancelled, OrderPlaced, OrderStatusChanged
from ordering.pricing.money import money_str
from ordering.pricing.snapshot import OrderTotalsSnapshot


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class OrderSource(Enum):
    CHECKOUT = "checkout"
    ADMIN = "admin"


class CancellationActor(Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    SYSTEM = "system"


_VALID_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@ordering.value_object(part_of="Order")
class OrderTotals:
    """Money figures of an order, frozen at creation.

    Amounts are two-place decimal strings and the tax rate is an exact
    fraction with at least four places (``"0.1000"`` for 10%), so they survive
    storage without float drift.
    """

    subtotal = String(required=True, max_length=20)
    tax_rate = String(required=True, max_length=20)
    tax_amount = String(required=True, max_length=20)
    shipping_amount = String(required=True, max_length=20)
    discount_amount = String(required=True, max_length=20)
    manual_discount_amount = String(default="0.00", max_length=20)
    total = String(required=True, max_length=20)
    currency = String(max_length=3, default="USD")
    promo_code_id = Identifier()
    promo_code_snapshot = String(max_length=50)

    def to_snapshot(self):
        return OrderTotalsSnapshot(
            subtotal=Decimal(self.subtotal),
            tax_rate=Decimal(self.tax_rate),
            tax_amount=Decimal(self.tax_amount),
            shipping_amount=Decimal(self.shipping_amount),
            discount_amount=Decimal(self.discount_amount),
            manual_discount_amount=Decimal(self.manual_discount_amount or "0.00"),
            total=Decimal(self.total),
            currency=self.currency,
            promo_code_id=str(self.promo_code_id) if self.promo_code_id else None,
            promo_code_snapshot=self.promo_code_snapshot,
        )


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ordering.entity(part_of="Order")
class OrderItem:
    """A priced line of an order, as resolved from the catalogue at creation."""

    product_id = Identifier(required=True)
    variant_id = Identifier()
    sku = String(required=True, max_length=50)
    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = String(required=True, max_length=20)
    line_total = String(required=True, max_length=20)


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ordering.aggregate
class Order:
    customer_id = Identifier()
    cart_id = Identifier()
    source = String(choices=OrderSource, default=OrderSource.CHECKOUT.value)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    items = HasMany(OrderItem)
    totals = ValueObject(OrderTotals)
    notes = Text()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=50)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def order_must_have_items(self):
        if not self.items:
            raise ValidationError({"items": ["An order must have at least one item"]})

    @invariant.post
    def totals_must_balance(self):
        if self.totals is None:
            return
        t = self.totals.to_snapshot()
        if not 0 <= t.discount_amount <= t.subtotal:
            raise ValidationError({"totals": [f"Discount {t.discount_amount} is outside 0..{t.subtotal}"]})
        expected = t.subtotal - t.discount_amount + t.tax_amount + t.shipping_amount
        if t.total != expected:
            raise ValidationError({"totals": [f"Order total {t.total} does not balance (expected {expected})"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, items, snapshot, customer_id=None, source=OrderSource.CHECKOUT.value, cart_id=None, notes=None):
        """Create an order from resolved line items and a totals snapshot.

        Args:
            items: ``ResolvedLineItem`` values from the pricing engine.
            snapshot: ``OrderTotalsSnapshot`` computed for those items.
        """
        now = datetime.now(UTC)
        order = cls(
            customer_id=customer_id,
            cart_id=cart_id,
            source=source,
            status=OrderStatus.PENDING.value,
            items=[
                OrderItem(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    sku=item.sku,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=money_str(item.unit_price),
                    line_total=money_str(item.line_total),
                )
                for item in items
            ],
            totals=OrderTotals(**snapshot.as_strings()),
            notes=notes,
            created_at=now,
            updated_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                customer_id=str(customer_id) if customer_id else None,
                source=source,
                cart_id=str(cart_id) if cart_id else None,
                items=json.dumps(order.item_lines(with_prices=True)),
                subtotal=order.totals.subtotal,
                discount_amount=order.totals.discount_amount,
                manual_discount_amount=order.totals.manual_discount_amount,
                tax_amount=order.totals.tax_amount,
                total=order.totals.total,
                currency=order.totals.currency,
                promo_code=order.totals.promo_code_snapshot,
                placed_at=now,
            )
        )
        return order

    def item_lines(self, with_prices=False):
        lines = []
        for item in self.items:
            line = {
                "product_id": str(item.product_id),
                "variant_id": str(item.variant_id) if item.variant_id else None,
                "quantity": item.quantity,
            }
            if with_prices:
                line["unit_price"] = item.unit_price
                line["line_total"] = item.line_total
            lines.append(line)
        return lines

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status):
        current = OrderStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def change_status(self, new_status):
        """Move the order forward. Cancellation goes through ``cancel``."""
        target = OrderStatus(new_status)
        if target == OrderStatus.CANCELLED:
            raise ValidationError({"status": ["Use cancel to cancel an order"]})
        self._assert_can_transition(target)

        previous = self.status
        now = datetime.now(UTC)
        self.status = target.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=previous,
                new_status=target.value,
                changed_at=now,
            )
        )

    def confirm(self):
        self.change_status(OrderStatus.CONFIRMED.value)

    def mark_processing(self):
        self.change_status(OrderStatus.PROCESSING.value)

    def mark_shipped(self):
        self.change_status(OrderStatus.SHIPPED.value)

    def mark_delivered(self):
        self.change_status(OrderStatus.DELIVERED.value)

    def cancel(self, reason=None, cancelled_by=CancellationActor.CUSTOMER.value):
        """Cancel the order. Totals stay as they were."""
        self._assert_can_transition(OrderStatus.CANCELLED)

        previous = self.status
        now = datetime.now(UTC)
        self.status = OrderStatus.CANCELLED.value
        self.cancellation_reason = reason
        self.cancelled_by = cancelled_by
        self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_by=cancelled_by,
                items=json.dumps(self.item_lines()),
                cancelled_at=now,
            )
        )
