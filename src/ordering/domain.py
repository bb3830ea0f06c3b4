"""Ordering bounded context: shopping cart, pricing engine and orders.

Turns cart lines into server-priced carts, applies promo codes under their
eligibility rules, computes tax, and freezes the result onto orders at
checkout or admin order creation.
"""

from protean.domain import Domain

from ordering.utils.logging import configure_logging, get_logger

configure_logging()

logger = get_logger(__name__)

ordering = Domain(name="ordering")
