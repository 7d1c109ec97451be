"""OrderLedger: reads and writes therapy orders through the ledger store.

All persistent state lives in the store; the ledger only shapes requests and
responses around it. Every operation is a single read, a single write, a
read followed by a write, or a single query. Store cursors are closed on every
exit path.
"""

import json
import os

from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from biologics.ledger import get_ledger_store
from biologics.ledger.port import StoreReadError
from biologics.order.exceptions import MalformedInput, OrderAlreadyExists, OrderNotFound
from biologics.order.order import Order, StatusEvent, ensure_valid_status
from biologics.utils.logging import get_logger

logger = get_logger(__name__)

CREATE_POLICIES = ("overwrite", "reject")
SORT_ORDERS = ("asc", "desc")
DEFAULT_SORT_FIELD = "createdAt"
DEFAULT_SORT_ORDER = "desc"


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------
def serialize_order(record):
    """Encode an order document for the ledger."""
    return json.dumps(record).encode("utf-8")


def deserialize_order(value, key=None):
    """Decode a ledger value into an order document."""
    try:
        record = json.loads(value.decode("utf-8") if isinstance(value, (bytes, bytearray)) else value)
    except (UnicodeDecodeError, ValueError) as exc:
        raise StoreReadError(f"Stored value for {key} is not valid JSON: {exc}") from exc
    if not isinstance(record, dict):
        raise StoreReadError(f"Stored value for {key} is not an order document")
    return record


def parse_payload(data, operation):
    """Accept a mapping or JSON text and return a dict, or raise MalformedInput."""
    if isinstance(data, (str, bytes, bytearray)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise MalformedInput({"payload": [f"Failed to {operation}: payload is not valid JSON ({exc})"]}) from exc
    if not isinstance(data, dict):
        raise MalformedInput({"payload": [f"Failed to {operation}: payload must be a JSON object"]})
    return data


def require_fields(payload, fields, operation):
    missing = [field for field in fields if payload.get(field) in (None, "")]
    if missing:
        raise MalformedInput(
            {field: [f"Failed to {operation}: {field} is required"] for field in missing}
        )


def parse_page_size(page_size):
    """Parse a page size given as an int or as decimal text."""
    if isinstance(page_size, bool):
        raise MalformedInput({"pageSize": [f"pageSize must be a valid integer, got {page_size!r}"]})
    if isinstance(page_size, int):
        size = page_size
    else:
        try:
            size = int(str(page_size).strip(), 10)
        except ValueError as exc:
            raise MalformedInput({"pageSize": [f"pageSize must be a valid integer, got {page_size!r}"]}) from exc
    if size <= 0:
        raise MalformedInput({"pageSize": [f"pageSize must be positive, got {size}"]})
    return size


def _configured_create_policy():
    custom = current_domain.config.get("custom", {}) if current_domain else {}
    return os.environ.get("ORDER_CREATE_POLICY") or custom.get("ORDER_CREATE_POLICY") or "overwrite"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------
class OrderLedger:
    """Order operations over a ledger store.

    Args:
        store: A LedgerStorePort adapter.
        create_policy: "overwrite" replaces any order already stored under the
            same id; "reject" raises OrderAlreadyExists instead.
        transitions: Optional mapping of OrderStatus to the set of statuses
            allowed to follow it. When omitted any valid status may follow any
            other.
    """

    def __init__(self, store, create_policy="overwrite", transitions=None):
        if create_policy not in CREATE_POLICIES:
            raise ValueError(f"Unknown create policy: {create_policy}")
        self.store = store
        self.create_policy = create_policy
        self.transitions = transitions

    @classmethod
    def from_config(cls, transitions=None):
        """Build a ledger on the configured store and create policy."""
        return cls(get_ledger_store(), create_policy=_configured_create_policy(), transitions=transitions)

    def _read(self, order_id):
        value = self.store.get(order_id)
        if not value:
            return None
        return deserialize_order(value, key=order_id)

    def _write(self, order):
        record = order.to_record()
        self.store.put(order.order_id, serialize_order(record))
        return record

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def create_order(self, payload):
        """Create an order and persist it under its orderId.

        Returns:
            The stored order document.
        """
        payload = parse_payload(payload, "create order")
        require_fields(payload, ["orderId", "status"], "create order")
        order_id = str(payload["orderId"])
        ensure_valid_status(payload["status"])

        if self.create_policy == "reject" and self.order_exists(order_id):
            logger.warning("Rejected duplicate order", order_id=order_id)
            raise OrderAlreadyExists({"orderId": [f"Order with ID {order_id} already exists"]})

        try:
            order = Order.create(payload)
        except ValidationError as exc:
            raise MalformedInput(exc.messages) from exc

        record = self._write(order)
        logger.info("Order created", order_id=order_id, status=order.current_status)
        return record

    def update_order_status(self, update):
        """Append a status event to an existing order and make it current.

        Returns:
            The updated order document.
        """
        update = parse_payload(update, "update order status")
        require_fields(update, ["orderId"], "update order status")
        order_id = str(update["orderId"])
        status = ensure_valid_status(update.get("status"))

        record = self._read(order_id)
        if record is None:
            logger.warning("Status update for unknown order", order_id=order_id, status=status)
            raise OrderNotFound({"orderId": [f"Order with ID {order_id} does not exist"]})

        try:
            event = StatusEvent.from_update(update)
        except ValidationError as exc:
            raise MalformedInput(exc.messages) from exc

        order = Order.from_record(record)
        previous_status = order.current_status
        order.record_status(event, transitions=self.transitions)

        updated = self._write(order)
        logger.info(
            "Order status updated",
            order_id=order_id,
            previous_status=previous_status,
            status=status,
            updated_by=update.get("updatedBy"),
        )
        return updated

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_order(self, order_id):
        record = self._read(order_id)
        if record is None:
            raise OrderNotFound({"orderId": [f"Order with ID {order_id} does not exist"]})
        return record

    def order_exists(self, order_id):
        return bool(self.store.get(order_id))

    def get_order_history(self, order_id):
        """Return every stored version of the order, in the store's order.

        Versions without a value (deletions) carry no snapshot and are left
        out. An unknown order id yields an empty list.
        """
        entries = []
        with self.store.get_history(order_id) as history:
            for modification in history:
                if not modification.value:
                    continue
                entries.append(
                    {
                        "transactionId": modification.tx_id,
                        "timestamp": modification.timestamp,
                        "isDeleted": modification.is_delete,
                        "value": deserialize_order(modification.value, key=order_id),
                    }
                )
        return entries

    def get_all_orders_with_pagination(self, page_size, bookmark="", sort_field=None, sort_order=None):
        """Return one page of orders sorted by `sort_field`.

        Returns:
            {"data": [{"key", "record"}], "metadata": {"fetchedRecordsCount", "bookmark"}}
        """
        size = parse_page_size(page_size)
        sort_field = sort_field or DEFAULT_SORT_FIELD
        sort_order = (sort_order or DEFAULT_SORT_ORDER).lower()
        if sort_order not in SORT_ORDERS:
            raise MalformedInput({"sortOrder": [f"sortOrder must be one of: {', '.join(SORT_ORDERS)}"]})

        query = json.dumps(
            {
                "selector": {"orderId": {"$exists": True}},
                "sort": [{sort_field: sort_order}],
            }
        )
        results, metadata = self.store.query_with_pagination(query, size, bookmark or "")

        with results:
            data = [
                {"key": row.key, "record": deserialize_order(row.value, key=row.key)} for row in results if row.value
            ]

        logger.debug(
            "Fetched order page",
            page_size=size,
            sort_field=sort_field,
            sort_order=sort_order,
            fetched=metadata.fetched_records_count,
        )
        return {
            "data": data,
            "metadata": {
                "fetchedRecordsCount": metadata.fetched_records_count,
                "bookmark": metadata.bookmark,
            },
        }

    def get_all_orders(self):
        """Return every order in the ledger, in key order."""
        with self.store.get_state_by_range("", "") as results:
            records = [deserialize_order(row.value, key=row.key) for row in results if row.value]
        return [record for record in records if "orderId" in record]
