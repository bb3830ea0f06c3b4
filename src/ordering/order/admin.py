"""Admin order creation: command and handler.

Administrators can create an order on a customer's behalf and grant a manual
discount on top of any promo code. The manual discount is applied before tax.
"""

from protean import handle
from protean.fields import Float, Identifier, String, Text

from ordering.domain import ordering
from ordering.order.order import Order, OrderSource
from ordering.order.placement import parse_lines, place_order
from ordering.pricing.snapshot import ManualDiscount


@ordering.command(part_of="Order")
class CreateAdminOrder:
    customer_id = Identifier(required=True)
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
    promo_code = String(max_length=50)
    manual_discount_type = String(max_length=20)  # percentage | fixed_amount
    manual_discount_value = Float(min_value=0.0)
    notes = Text()


@ordering.command_handler(part_of=Order)
class CreateAdminOrderHandler:
    @handle(CreateAdminOrder)
    def create_admin_order(self, command):
        manual = None
        if command.manual_discount_type and command.manual_discount_value:
            manual = ManualDiscount(
                discount_type=command.manual_discount_type,
                value=command.manual_discount_value,
            )

        order = place_order(
            parse_lines(command.items),
            customer_id=command.customer_id,
            promo_code=command.promo_code,
            source=OrderSource.ADMIN.value,
            manual_discount=manual,
            notes=command.notes,
        )
        return str(order.id)
