"""Order cancellation: command and handler.

Cancelling puts every ordered line back into stock. Totals and the promo
redemption stay as they were.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.catalogue import get_catalogue
from ordering.domain import ordering
from ordering.order.order import CancellationActor, Order

logger = structlog.get_logger(__name__)


def cancel_order(order, reason=None, cancelled_by=CancellationActor.CUSTOMER.value):
    order.cancel(reason=reason, cancelled_by=cancelled_by)

    catalogue = get_catalogue()
    for line in order.item_lines():
        catalogue.restore_stock(line["product_id"], line["variant_id"], line["quantity"])

    logger.info("Order cancelled", order_id=str(order.id), cancelled_by=cancelled_by, lines=len(order.items))


@ordering.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    cancelled_by = String(max_length=50, default=CancellationActor.CUSTOMER.value)


@ordering.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        cancel_order(order, reason=command.reason, cancelled_by=command.cancelled_by)
        repo.add(order)
