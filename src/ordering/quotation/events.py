"""Domain events for the Quotation aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Quotation")
class QuotationCreated:
    """A quotation was drawn up with its totals frozen."""

    __version__ = 1

    quotation_id = Identifier(required=True)
    quotation_number = String(required=True)
    customer_id = Identifier()
    customer_email = String(required=True)
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity, unit_price, line_total}
    subtotal = String(required=True)
    discount_amount = String(required=True)
    tax_amount = String(required=True)
    total = String(required=True)
    currency = String(required=True)
    valid_until = DateTime(required=True)
    created_at = DateTime(required=True)
