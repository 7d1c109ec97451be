"""Application tests for CreateOrder / UpdateOrderStatus command handling."""

import json

import pytest
from biologics.order.creation import CreateOrder
from biologics.order.exceptions import InvalidStatus, MalformedInput, OrderAlreadyExists, OrderNotFound
from biologics.order.ledger import OrderLedger
from biologics.order.status import UpdateOrderStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError


def _create(order_id="ORD-5001", **overrides):
    payload = {
        "orderId": order_id,
        "status": "draft",
        "createdBy": "hospital-admin-2",
        "statusTimestamp": "2024-07-01T08:00:00Z",
        "therapyType": "CAR-T",
        "hospitalId": "HSP-10",
        "createdAt": "2024-07-01T08:00:00Z",
    }
    payload.update(overrides)
    return current_domain.process(
        CreateOrder(order_id=order_id, order_data=json.dumps(payload)),
        asynchronous=False,
    )


def _update(order_id="ORD-5001", status="therapy_requested", **extra):
    payload = {"orderId": order_id, "status": status, "updatedBy": "coordinator-4", "timestamp": "t1", **extra}
    return current_domain.process(
        UpdateOrderStatus(order_id=order_id, update_data=json.dumps(payload)),
        asynchronous=False,
    )


class TestCreateOrderCommand:
    def test_command_payload_carries_order_data(self):
        order_data = json.dumps({"orderId": "ORD-5001", "status": "draft"})
        command = CreateOrder(order_id="ORD-5001", order_data=order_data)
        assert command.payload["order_data"] == order_data

    def test_create_returns_record(self):
        record = _create()
        assert record["orderId"] == "ORD-5001"
        assert record["currentStatus"] == "draft"

    def test_create_persists_to_ledger(self, store):
        _create()
        assert OrderLedger(store).get_order("ORD-5001")["therapyType"] == "CAR-T"

    def test_invalid_status_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            _create(status="unknown")

    def test_mismatched_order_id(self, store):
        payload = json.dumps({"orderId": "ORD-OTHER", "status": "draft"})
        with pytest.raises(MalformedInput):
            current_domain.process(CreateOrder(order_id="ORD-5001", order_data=payload), asynchronous=False)
        assert store.get("ORD-5001") is None
        assert store.get("ORD-OTHER") is None

    def test_payload_must_be_json(self):
        with pytest.raises(MalformedInput):
            current_domain.process(CreateOrder(order_id="ORD-5001", order_data="<order/>"), asynchronous=False)

    def test_reject_policy_from_environment(self, monkeypatch):
        monkeypatch.setenv("ORDER_CREATE_POLICY", "reject")
        _create()
        with pytest.raises(OrderAlreadyExists):
            _create()


class TestUpdateOrderStatusCommand:
    def test_command_payload_carries_update_data(self):
        update_data = json.dumps({"orderId": "ORD-5001", "status": "completed"})
        command = UpdateOrderStatus(order_id="ORD-5001", update_data=update_data)
        assert command.payload["update_data"] == update_data

    def test_update_returns_record(self):
        _create()
        record = _update(status="therapy_confirmed")
        assert record["currentStatus"] == "therapy_confirmed"
        assert len(record["statusHistory"]) == 2

    def test_successive_updates(self, store):
        _create()
        for status in ["therapy_requested", "therapy_confirmed", "therapy_cancelled"]:
            _update(status=status)

        order = OrderLedger(store).get_order("ORD-5001")
        assert order["currentStatus"] == "therapy_cancelled"
        assert len(order["statusHistory"]) == 4

    def test_unknown_order(self):
        with pytest.raises(OrderNotFound):
            _update(order_id="ORD-MISSING")

    def test_unknown_order_is_object_not_found(self):
        with pytest.raises(ObjectNotFoundError):
            _update(order_id="ORD-MISSING")

    def test_invalid_status(self):
        _create()
        with pytest.raises(InvalidStatus):
            _update(status="bogus")

    def test_mismatched_order_id(self):
        _create()
        payload = json.dumps({"orderId": "ORD-OTHER", "status": "completed"})
        with pytest.raises(MalformedInput):
            current_domain.process(UpdateOrderStatus(order_id="ORD-5001", update_data=payload), asynchronous=False)
