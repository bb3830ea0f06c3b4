"""Pricing errors.

Everything a customer can cause (an unavailable product, too little stock, a
promo code that does not apply) is a ``ValidationError``, so the platform's
FastAPI exception handlers answer with a 400 and the specific message.
"""

from protean.exceptions import ValidationError


class PricingError(ValidationError):
    """Base class for pricing failures caused by the request."""

    field_name = "items"

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__({self.field_name: [message]}, **kwargs)


class NotAvailable(PricingError):
    """Product or variant is missing or inactive."""


class OutOfStock(PricingError):
    """Effective stock is zero and backorders are not allowed."""


class InsufficientStock(OutOfStock):
    """Requested quantity exceeds effective stock without backorder."""

    def __init__(self, message: str, available: int, **kwargs):
        self.available = available
        super().__init__(message, **kwargs)


class PromoInvalid(PricingError):
    """Promo code rejected at a call site that surfaces promo errors."""

    field_name = "promo_code"

    def __init__(self, message: str, reason: str, **kwargs):
        self.reason = reason
        super().__init__(message, **kwargs)


class PricingConfigurationError(RuntimeError):
    """Stored pricing data does not match the model (e.g. unknown discount type)."""
