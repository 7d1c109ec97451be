"""Order status updates: command and handler."""

from protean import handle
from protean.fields import Identifier, Text

from biologics.domain import biologics
from biologics.order.exceptions import MalformedInput
from biologics.order.ledger import OrderLedger, parse_payload
from biologics.order.order import Order
from biologics.utils.logging import order_log_context


@biologics.command(part_of="Order")
class UpdateOrderStatus:
    order_id = Identifier(required=True)
    update_data = Text(required=True, sanitize=False)  # JSON: {orderId, status, updatedBy, timestamp, ...}


@biologics.command_handler(part_of=Order)
class UpdateOrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_order_status(self, command):
        update = parse_payload(command.update_data, "update order status")
        if str(update.get("orderId")) != str(command.order_id):
            raise MalformedInput({"orderId": [f"Payload orderId does not match command order_id {command.order_id}"]})

        with order_log_context("update_order_status", command.order_id):
            return OrderLedger.from_config().update_order_status(update)
