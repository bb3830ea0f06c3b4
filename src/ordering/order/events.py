"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Order")
class OrderPlaced:
    """An order was created with its totals frozen."""

    __version__ = 1

    order_id = Identifier(required=True)
    customer_id = Identifier()
    source = String(required=True)
    cart_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity, unit_price, line_total}
    subtotal = String(required=True)
    discount_amount = String(required=True)
    manual_discount_amount = String()
    tax_amount = String(required=True)
    total = String(required=True)
    currency = String(required=True)
    promo_code = String()
    placed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@ordering.event(part_of="Order")
class OrderCancelled:
    """An order was cancelled; its lines go back into stock."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_by = String(required=True)
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
    cancelled_at = DateTime(required=True)
