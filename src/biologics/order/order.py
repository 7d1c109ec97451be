"""Order aggregate: a therapy order and its append-only status history.

An Order is persisted as a single JSON document on the ledger, keyed by its
caller-supplied order id. The document is a superset of the creation payload:
the canonical fields below are normalized, everything else the caller sent is
kept verbatim alongside them.

Status changes never rewrite history. Each one appends a StatusEvent record to
`statusHistory` and moves `currentStatus`, so the last history entry always
carries the current status.

Statuses (13):
    draft, therapy_requested, therapy_confirmed, material_ready_for_pickup,
    shipped_to_manufacturer, delivered_to_manufacturer, processing_started,
    ready_for_dispatch, shipped_to_hospital, delivered_to_hospital,
    therapy_cancelled, completed, entered-in-error

Only membership is checked by default. A transition graph can be supplied to
`record_status` to restrict which status may follow which.
"""

from enum import Enum

from protean.fields import Dict, Identifier, List, String, Text

from biologics.domain import biologics
from biologics.order.exceptions import InvalidStatus, InvalidTransition


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    DRAFT = "draft"
    THERAPY_REQUESTED = "therapy_requested"
    THERAPY_CONFIRMED = "therapy_confirmed"
    MATERIAL_READY_FOR_PICKUP = "material_ready_for_pickup"
    SHIPPED_TO_MANUFACTURER = "shipped_to_manufacturer"
    DELIVERED_TO_MANUFACTURER = "delivered_to_manufacturer"
    PROCESSING_STARTED = "processing_started"
    READY_FOR_DISPATCH = "ready_for_dispatch"
    SHIPPED_TO_HOSPITAL = "shipped_to_hospital"
    DELIVERED_TO_HOSPITAL = "delivered_to_hospital"
    THERAPY_CANCELLED = "therapy_cancelled"
    COMPLETED = "completed"
    ENTERED_IN_ERROR = "entered-in-error"

    @classmethod
    def values(cls):
        return [status.value for status in cls]


def is_valid_status(status) -> bool:
    return isinstance(status, str) and status in OrderStatus.values()


def ensure_valid_status(status):
    """Return the status unchanged, or raise InvalidStatus listing the valid values."""
    if not is_valid_status(status):
        raise InvalidStatus(
            {"status": [f"Invalid status '{status}'. Must be one of: {', '.join(OrderStatus.values())}"]}
        )
    return status


# Wire name -> attribute name for the descriptive fields of an order record
DESCRIPTIVE_FIELDS = {
    "therapyType": "therapy_type",
    "manufacturerId": "manufacturer_id",
    "hospitalId": "hospital_id",
    "logisticsId": "logistics_id",
    "slotId": "slot_id",
    "createdAt": "created_at",
    "ccnCode": "ccn_code",
    "cmsCertNumber": "cms_cert_number",
}

CANONICAL_KEYS = {"orderId", "currentStatus", "statusHistory", *DESCRIPTIVE_FIELDS}

_EVENT_CORE_KEYS = {"status", "updatedBy", "timestamp"}


def _text(value):
    return None if value is None else str(value)


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@biologics.value_object(part_of="Order")
class StatusEvent:
    """One entry of an order's status history.

    The core shape is fixed (status, who, when). Anything else the caller
    attached to the status change travels in `details` and is written back
    verbatim next to the core keys.
    """

    status = String(required=True, max_length=50)
    updated_by = Text(sanitize=False)
    timestamp = Text(sanitize=False)
    details = Dict()

    @classmethod
    def from_update(cls, payload):
        """Build an event from a full status-update payload, keeping its extra keys."""
        return cls(
            status=payload.get("status"),
            updated_by=_text(payload.get("updatedBy")),
            timestamp=_text(payload.get("timestamp")),
            details={key: value for key, value in payload.items() if key not in _EVENT_CORE_KEYS},
        )

    def to_record(self):
        return {
            **(self.details or {}),
            "status": self.status,
            "updatedBy": self.updated_by,
            "timestamp": self.timestamp,
        }


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@biologics.aggregate
class Order:
    order_id = Identifier(identifier=True)
    therapy_type = Text(sanitize=False)
    manufacturer_id = Text(sanitize=False)
    hospital_id = Text(sanitize=False)
    logistics_id = Text(sanitize=False)
    slot_id = Text(sanitize=False)
    current_status = String(required=True, max_length=50)
    status_history = List(content_type=Dict)
    created_at = Text(sanitize=False)
    ccn_code = Text(sanitize=False)
    cms_cert_number = Text(sanitize=False)
    extra_fields = Dict()

    # -------------------------------------------------------------------
    # Factory methods
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, payload):
        """Create a new order from a creation payload.

        The initial status event is seeded from `status`, `createdBy` and
        `statusTimestamp`. Keys outside the canonical set, those three
        included, are kept on the record as they were sent.

        Args:
            payload: Dict with orderId, status, createdBy, statusTimestamp and
                     the descriptive fields (therapyType, hospitalId, ...).
        """
        status = ensure_valid_status(payload.get("status"))
        initial = StatusEvent(
            status=status,
            updated_by=_text(payload.get("createdBy")),
            timestamp=_text(payload.get("statusTimestamp")),
        )

        return cls(
            order_id=_text(payload.get("orderId")),
            current_status=status,
            status_history=[initial.to_record()],
            extra_fields={key: value for key, value in payload.items() if key not in CANONICAL_KEYS},
            **{attr: _text(payload.get(key)) for key, attr in DESCRIPTIVE_FIELDS.items()},
        )

    @classmethod
    def from_record(cls, record):
        """Rebuild an order from its stored ledger document."""
        return cls(
            order_id=_text(record.get("orderId")),
            current_status=record.get("currentStatus"),
            status_history=list(record.get("statusHistory") or []),
            extra_fields={key: value for key, value in record.items() if key not in CANONICAL_KEYS},
            **{attr: _text(record.get(key)) for key, attr in DESCRIPTIVE_FIELDS.items()},
        )

    def to_record(self):
        """Return the ledger document for this order."""
        record = dict(self.extra_fields or {})
        record["orderId"] = self.order_id
        record.update({key: getattr(self, attr) for key, attr in DESCRIPTIVE_FIELDS.items()})
        record["currentStatus"] = self.current_status
        record["statusHistory"] = [dict(entry) for entry in self.status_history or []]
        return record

    # -------------------------------------------------------------------
    # Status transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status, transitions):
        """Validate the move against a transition graph, when one is configured."""
        if transitions is None:
            return

        try:
            current = OrderStatus(self.current_status)
        except ValueError:
            current = None

        target = OrderStatus(target_status)
        if target not in transitions.get(current, set()):
            raise InvalidTransition(
                {"status": [f"Cannot transition order {self.order_id} from {self.current_status} to {target.value}"]}
            )

    def record_status(self, event, transitions=None):
        """Append a status event and make its status current.

        Args:
            event: StatusEvent carrying the new status.
            transitions: Optional mapping of OrderStatus to the set of
                         OrderStatus values allowed to follow it.
        """
        ensure_valid_status(event.status)
        self._assert_can_transition(event.status, transitions)

        self.status_history = [*(self.status_history or []), event.to_record()]
        self.current_status = event.status
