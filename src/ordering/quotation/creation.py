"""Quotation creation: command and handler."""

import structlog
from protean import handle
from protean.fields import Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.placement import parse_lines
from ordering.pricing.engine import get_pricing_engine
from ordering.pricing.snapshot import ManualDiscount
from ordering.quotation.quotation import DEFAULT_VALID_DAYS, Quotation, quotation_number

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Quotation")
class CreateQuotation:
    customer_id = Identifier()
    customer_name = String(required=True, max_length=200)
    customer_email = String(required=True, max_length=255)
    customer_company = String(max_length=255)
    items = Text(required=True)  # JSON: list of {product_id, variant_id, quantity}
    discount_type = String(max_length=20)  # percentage | fixed_amount
    discount_value = Float(min_value=0.0)
    notes = Text()
    valid_days = Integer(min_value=1, max_value=365, default=DEFAULT_VALID_DAYS)


@ordering.command_handler(part_of=Quotation)
class CreateQuotationHandler:
    @handle(CreateQuotation)
    def create_quotation(self, command):
        manual = None
        if command.discount_type and command.discount_value:
            manual = ManualDiscount(discount_type=command.discount_type, value=command.discount_value)

        priced = get_pricing_engine().price_quotation(parse_lines(command.items), manual)

        repo = current_domain.repository_for(Quotation)
        sequence = repo._dao.query.all().total + 1

        quotation = Quotation.create(
            quotation_number(sequence),
            priced.calculation.items,
            priced.snapshot,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            customer_id=command.customer_id,
            customer_company=command.customer_company,
            notes=command.notes,
            valid_days=command.valid_days or DEFAULT_VALID_DAYS,
        )
        repo.add(quotation)

        logger.info(
            "Quotation created",
            quotation_id=str(quotation.id),
            quotation_number=quotation.quotation_number,
            total=quotation.totals.total,
        )
        return str(quotation.id)
