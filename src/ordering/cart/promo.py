"""Cart promo code: commands and handler.

Applying a code is the one cart action that reports promo problems to the
customer. The cart is priced with the code in strict mode first, and the code
is only stored when that succeeds.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.cart.cart import ShoppingCart
from ordering.domain import ordering
from ordering.pricing.engine import get_pricing_engine


@ordering.command(part_of="ShoppingCart")
class ApplyPromoCodeToCart:
    cart_id = Identifier(required=True)
    promo_code = String(required=True, max_length=50)


@ordering.command(part_of="ShoppingCart")
class RemovePromoCodeFromCart:
    cart_id = Identifier(required=True)


@ordering.command_handler(part_of=ShoppingCart)
class CartPromoCodeHandler:
    @handle(ApplyPromoCodeToCart)
    def apply_promo_code(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)

        calculation = get_pricing_engine().calculate_cart(cart.lines(), command.promo_code, strict=True)

        cart.apply_promo_code(calculation.promo_code or command.promo_code)
        repo.add(cart)
        return calculation

    @handle(RemovePromoCodeFromCart)
    def remove_promo_code(self, command):
        repo = current_domain.repository_for(ShoppingCart)
        cart = repo.get(command.cart_id)
        cart.remove_promo_code()
        repo.add(cart)
