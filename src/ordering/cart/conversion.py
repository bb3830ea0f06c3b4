"""Cart checkout: command and handler.

Checkout places an order from the cart's lines and its applied promo code,
then marks the cart converted. Cart, order, promo usage and stock all change
inside this one handler.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.order.placement import place_order


@ordering.command(part_of="ShoppingCart")
class CheckoutCart:
    cart_id = Identifier(required=True)
    customer_id = Identifier()  # Overrides the cart's customer for guest checkout


@ordering.command_handler(part_of=ShoppingCart)
class CheckoutCartHandler:
    @handle(CheckoutCart)
    def checkout(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.ensure_active("Only active carts can be checked out")

        order = place_order(
            cart.lines(),
            customer_id=command.customer_id or cart.customer_id,
            promo_code=cart.promo_code,
            cart_id=str(cart.id),
        )

        cart.convert_to_order(order_id=str(order.id))
        repo.add(cart)
        return str(order.id)
