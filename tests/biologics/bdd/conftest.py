"""Shared BDD fixtures and step definitions for the Biologics domain."""

import pytest
from biologics.order.ledger import OrderLedger
from protean.exceptions import ObjectNotFoundError, ValidationError
from pytest_bdd import given, parsers, then

_ERROR_CLASSES = {
    "validation": ValidationError,
    "not found": ObjectNotFoundError,
}


@pytest.fixture()
def error():
    """Container for captured domain errors."""
    return {"exc": None}


@pytest.fixture()
def ledger():
    return OrderLedger.from_config()


@pytest.fixture()
def creation_payload():
    """Builder for complete creation payloads."""
    return _creation_payload


def _creation_payload(order_id, status="draft", created_at="2024-05-01T09:30:00Z"):
    return {
        "orderId": order_id,
        "status": status,
        "createdBy": "hospital-admin-bdd",
        "statusTimestamp": created_at,
        "therapyType": "CAR-T",
        "manufacturerId": "MFR-BDD",
        "hospitalId": "HSP-BDD",
        "logisticsId": "LOG-BDD",
        "slotId": "SLOT-BDD",
        "createdAt": created_at,
        "ccnCode": "CCN-BDD",
        "cmsCertNumber": "CMS-BDD",
    }


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a draft order "{order_id}"'), target_fixture="order_id")
def draft_order(ledger, order_id):
    ledger.create_order(_creation_payload(order_id))
    return order_id


@given(parsers.cfparse('the order has moved to "{status}"'))
def order_has_moved(ledger, order_id, status):
    ledger.update_order_status({"orderId": order_id, "status": status, "updatedBy": "bdd", "timestamp": "t0"})


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the current status is "{status}"'))
def current_status_is(ledger, order_id, status):
    assert ledger.get_order(order_id)["currentStatus"] == status


@then(parsers.cfparse("the status history has {count:d} entries"))
def history_has_entries(ledger, order_id, count):
    assert len(ledger.get_order(order_id)["statusHistory"]) == count


@then(parsers.cfparse("the action fails with a {kind} error"))
def action_fails(error, kind):
    assert error["exc"] is not None, f"Expected a {kind} error but none was raised"
    assert isinstance(error["exc"], _ERROR_CLASSES[kind])
