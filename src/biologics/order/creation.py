"""Order creation: command and handler."""

from protean import handle
from protean.fields import Identifier, Text

from biologics.domain import biologics
from biologics.order.exceptions import MalformedInput
from biologics.order.ledger import OrderLedger, parse_payload
from biologics.order.order import Order
from biologics.utils.logging import order_log_context


@biologics.command(part_of="Order")
class CreateOrder:
    order_id = Identifier(required=True)
    order_data = Text(required=True, sanitize=False)  # JSON: full creation payload, extra keys included


@biologics.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        payload = parse_payload(command.order_data, "create order")
        if str(payload.get("orderId")) != str(command.order_id):
            raise MalformedInput({"orderId": [f"Payload orderId does not match command order_id {command.order_id}"]})

        with order_log_context("create_order", command.order_id):
            return OrderLedger.from_config().create_order(payload)
