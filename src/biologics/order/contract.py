"""OrderContract: the textual operation surface for a transaction layer.

Callers such as a smart-contract runtime exchange JSON text, not Python
objects. Writes are dispatched as domain commands; reads go straight to the
ledger.
"""

import json

from protean.utils.globals import current_domain

from biologics.order.creation import CreateOrder
from biologics.order.ledger import OrderLedger, parse_payload, require_fields
from biologics.order.status import UpdateOrderStatus


class OrderContract:
    def create_order(self, input_data: str) -> str:
        payload = parse_payload(input_data, "create order")
        require_fields(payload, ["orderId", "status"], "create order")

        command = CreateOrder(order_id=str(payload["orderId"]), order_data=json.dumps(payload))
        record = current_domain.process(command, asynchronous=False)
        return json.dumps(record)

    def update_order_status(self, status_update_data: str) -> str:
        update = parse_payload(status_update_data, "update order status")
        require_fields(update, ["orderId"], "update order status")

        command = UpdateOrderStatus(order_id=str(update["orderId"]), update_data=json.dumps(update))
        record = current_domain.process(command, asynchronous=False)
        return json.dumps(record)

    def get_order(self, order_id: str) -> str:
        return json.dumps(OrderLedger.from_config().get_order(order_id))

    def order_exists(self, order_id: str) -> bool:
        return OrderLedger.from_config().order_exists(order_id)

    def get_order_history(self, order_id: str) -> str:
        return json.dumps(OrderLedger.from_config().get_order_history(order_id))

    def get_all_orders_with_pagination(
        self,
        page_size: str,
        bookmark: str = "",
        sort_field: str = "",
        sort_order: str = "",
    ) -> str:
        page = OrderLedger.from_config().get_all_orders_with_pagination(
            page_size,
            bookmark,
            sort_field=sort_field or None,
            sort_order=sort_order or None,
        )
        return json.dumps(page)

    def get_all_orders(self) -> str:
        return json.dumps(OrderLedger.from_config().get_all_orders())
