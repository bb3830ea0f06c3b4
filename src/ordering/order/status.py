"""Order status updates: command and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.order.cancellation import cancel_order
from ordering.order.order import CancellationActor, Order, OrderStatus


@ordering.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    status = String(required=True, choices=OrderStatus)
    reason = String(max_length=500)


@ordering.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        # Setting the status to cancelled is a cancellation by the admin.
        if command.status == OrderStatus.CANCELLED.value:
            cancel_order(order, reason=command.reason, cancelled_by=CancellationActor.ADMIN.value)
        else:
            order.change_status(command.status)

        repo.add(order)
        return order.status
