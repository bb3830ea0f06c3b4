"""Domain events for the PromoCode aggregate."""

from protean.fields import Float, Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="PromoCode")
class PromoCodeCreated:
    """A promo code was set up by an administrator."""

    __version__ = 1

    promo_code_id = Identifier(required=True)
    code = String(required=True)
    discount_type = String(required=True)
    discount_value = Float(required=True)


@ordering.event(part_of="PromoCode")
class PromoCodeUsed:
    """A promo code was redeemed by a placed order."""

    __version__ = 1

    promo_code_id = Identifier(required=True)
    code = String(required=True)
    order_id = Identifier()
    usage_count = Integer(required=True)
