"""Order placement: command, handler and the shared placement routine.

Checkout, direct order placement and admin order creation all end in
``place_order``. It prices the lines once, stores the order with those
totals, counts the promo code redemption and takes the ordered quantities
out of stock. It always runs inside a command handler, so the order and the
promo usage are committed or rolled back together by the unit of work. Stock
lives in the external catalogue: quantities already taken out before a
failure are not put back.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.catalogue import get_catalogue
from ordering.domain import ordering
from ordering.order.order import Order, OrderSource
from ordering.pricing.engine import get_pricing_engine
from ordering.pricing.line_items import CartLineInput

logger = structlog.get_logger(__name__)


def parse_lines(items):
    """Order lines from a command payload (JSON text or a list of dicts)."""
    data = json.loads(items) if isinstance(items, str) else items
    if not data:
        raise ValidationError({"items": ["An order must have at least one item"]})
    return [line if isinstance(line, CartLineInput) else CartLineInput.from_dict(line) for line in data]


def place_order(
    lines,
    customer_id=None,
    promo_code=None,
    *,
    source=OrderSource.CHECKOUT.value,
    manual_discount=None,
    cart_id=None,
    notes=None,
):
    engine = get_pricing_engine()
    priced = engine.price_order(lines, promo_code, manual_discount)
    if not priced.calculation.items:
        raise ValidationError({"items": ["An order must have at least one item"]})

    order = Order.create(
        items=priced.calculation.items,
        snapshot=priced.snapshot,
        customer_id=customer_id,
        source=source,
        cart_id=cart_id,
        notes=notes,
    )
    current_domain.repository_for(Order).add(order)

    if priced.snapshot.promo_code_id:
        engine.promo_reader.increment_usage(priced.snapshot.promo_code_id, order_id=str(order.id))

    catalogue = get_catalogue()
    for item in priced.calculation.items:
        catalogue.decrement_stock(item.product_id, item.variant_id, item.quantity)

    logger.info(
        "Order placed",
        order_id=str(order.id),
        source=source,
        total=order.totals.total,
        promo_code=order.totals.promo_code_snapshot,
    )
    return order


@ordering.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
    promo_code = String(max_length=50)


@ordering.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        order = place_order(
            parse_lines(command.items),
            customer_id=command.customer_id,
            promo_code=command.promo_code,
        )
        return str(order.id)
