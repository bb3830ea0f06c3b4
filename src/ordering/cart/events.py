"""Domain events for the ShoppingCart aggregate."""

from protean.fields import Identifier, Integer, String, Text

from ordering.domain import ordering


@ordering.event(part_of="ShoppingCart")
class CartItemAdded:
    """A product (or one of its variants) was added to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    variant_id = Identifier()
    quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartQuantityUpdated:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="ShoppingCart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@ordering.event(part_of="ShoppingCart")
class CartPromoCodeApplied:
    """A promo code passed the strict check and was attached to the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    promo_code = String(required=True)
    replaced_code = String()


@ordering.event(part_of="ShoppingCart")
class CartPromoCodeRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    promo_code = String(required=True)


@ordering.event(part_of="ShoppingCart")
class CartConverted:
    """A shopping cart was checked out into an order."""

    __version__ = 1

    cart_id = Identifier(required=True)
    order_id = Identifier(required=True)
    customer_id = Identifier()
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
