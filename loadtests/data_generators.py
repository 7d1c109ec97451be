"""Faker-based data generators for Locust load test scenarios.

Each generator produces payloads that pass the order ledger's validation rules
(orderId present, status a member of OrderStatus) and use the exact camelCase
field names the API's Pydantic request schemas expect.
"""

import random
import uuid
from datetime import UTC, datetime

from faker import Faker

fake = Faker()

THERAPY_TYPES = ["CAR-T", "TCR-T", "TIL", "NK-cell", "Gene therapy"]

# The happy path a therapy order follows from request to completion
LIFECYCLE_STATUSES = [
    "therapy_requested",
    "therapy_confirmed",
    "material_ready_for_pickup",
    "shipped_to_manufacturer",
    "delivered_to_manufacturer",
    "processing_started",
    "ready_for_dispatch",
    "shipped_to_hospital",
    "delivered_to_hospital",
    "completed",
]


def unique_order_id() -> str:
    """Generate unique order IDs like 'ORD-LT-a1b2c3d4'."""
    return f"ORD-LT-{uuid.uuid4().hex[:8]}"


def now_iso() -> str:
    return datetime.now(UTC).isoformat()


def party_id(prefix: str) -> str:
    """Generate participant identifiers like 'HSP-4821'."""
    return f"{prefix}-{random.randint(1000, 9999)}"


def cms_cert_number() -> str:
    """CMS certification numbers: two-digit state code, hyphen, four digits."""
    return f"{random.randint(1, 99):02d}-{random.randint(0, 9999):04d}"


def order_data(order_id: str | None = None) -> dict:
    """Generate a CreateOrderRequest payload for a fresh draft order."""
    timestamp = now_iso()
    return {
        "orderId": order_id or unique_order_id(),
        "status": "draft",
        "createdBy": fake.user_name()[:50],
        "statusTimestamp": timestamp,
        "therapyType": random.choice(THERAPY_TYPES),
        "manufacturerId": party_id("MFR"),
        "hospitalId": party_id("HSP"),
        "logisticsId": party_id("LOG"),
        "slotId": f"SLOT-{fake.date_this_year().isoformat()}",
        "createdAt": timestamp,
        "ccnCode": f"CCN-{random.randint(100, 999)}",
        "cmsCertNumber": cms_cert_number(),
        "patientInitials": f"{fake.random_uppercase_letter()}.{fake.random_uppercase_letter()}.",
    }


def status_update_data(status: str) -> dict:
    """Generate an UpdateOrderStatusRequest payload.

    Shipping statuses carry a tracking number, which ends up on the status
    history entry.
    """
    payload = {
        "status": status,
        "updatedBy": fake.user_name()[:50],
        "timestamp": now_iso(),
    }
    if status.startswith("shipped_"):
        payload["trackingNumber"] = f"TRK-{uuid.uuid4().hex[:10].upper()}"
    return payload


def cancellation_point() -> int:
    """Pick how far along the lifecycle an order gets before cancellation."""
    return random.randint(1, 4)
