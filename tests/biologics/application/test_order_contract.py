"""Application tests for the textual OrderContract surface."""

import json

import pytest
from biologics.order.contract import OrderContract
from biologics.order.exceptions import InvalidStatus, MalformedInput, OrderNotFound


@pytest.fixture()
def contract():
    return OrderContract()


def _creation_text(order_id="ORD-7001", created_at="2024-08-01T10:00:00Z", **extra):
    return json.dumps(
        {
            "orderId": order_id,
            "status": "draft",
            "createdBy": "hospital-admin-1",
            "statusTimestamp": created_at,
            "therapyType": "CAR-T",
            "manufacturerId": "MFR-02",
            "hospitalId": "HSP-05",
            "logisticsId": "LOG-01",
            "slotId": "SLOT-88",
            "createdAt": created_at,
            "ccnCode": "CCN-100",
            "cmsCertNumber": "CMS-10-0001",
            **extra,
        }
    )


def _update_text(order_id="ORD-7001", status="therapy_requested", **extra):
    return json.dumps({"orderId": order_id, "status": status, "updatedBy": "user-1", "timestamp": "t1", **extra})


class TestContractWrites:
    def test_create_returns_json_text(self, contract):
        result = contract.create_order(_creation_text())
        record = json.loads(result)
        assert record["orderId"] == "ORD-7001"
        assert record["statusHistory"][0]["updatedBy"] == "hospital-admin-1"

    def test_create_rejects_non_json(self, contract):
        with pytest.raises(MalformedInput):
            contract.create_order("orderId=ORD-7001")

    def test_create_requires_order_id(self, contract):
        with pytest.raises(MalformedInput) as exc:
            contract.create_order(json.dumps({"status": "draft"}))
        assert "orderId" in exc.value.messages

    def test_update_returns_json_text(self, contract):
        contract.create_order(_creation_text())
        record = json.loads(contract.update_order_status(_update_text(status="therapy_confirmed")))
        assert record["currentStatus"] == "therapy_confirmed"

    def test_update_invalid_status(self, contract):
        contract.create_order(_creation_text())
        with pytest.raises(InvalidStatus):
            contract.update_order_status(_update_text(status="nope"))

    def test_update_unknown_order(self, contract):
        with pytest.raises(OrderNotFound):
            contract.update_order_status(_update_text(order_id="ORD-NONE"))


class TestContractReads:
    def test_get_order(self, contract):
        contract.create_order(_creation_text())
        record = json.loads(contract.get_order("ORD-7001"))
        assert record["cmsCertNumber"] == "CMS-10-0001"

    def test_get_unknown_order(self, contract):
        with pytest.raises(OrderNotFound):
            contract.get_order("ORD-NONE")

    def test_order_exists_is_boolean(self, contract):
        assert contract.order_exists("ORD-7001") is False
        contract.create_order(_creation_text())
        assert contract.order_exists("ORD-7001") is True

    def test_history_after_two_updates(self, contract):
        contract.create_order(_creation_text())
        contract.update_order_status(_update_text(status="therapy_requested"))
        contract.update_order_status(_update_text(status="therapy_confirmed"))

        history = json.loads(contract.get_order_history("ORD-7001"))
        assert [entry["value"]["currentStatus"] for entry in history] == [
            "draft",
            "therapy_requested",
            "therapy_confirmed",
        ]

    def test_history_of_unknown_order(self, contract):
        assert json.loads(contract.get_order_history("ORD-NONE")) == []

    def test_paginated_listing(self, contract):
        for day in range(1, 6):
            contract.create_order(_creation_text(order_id=f"ORD-{day}", created_at=f"2024-08-0{day}T10:00:00Z"))

        first = json.loads(contract.get_all_orders_with_pagination("2", "", "createdAt", "asc"))
        assert [row["key"] for row in first["data"]] == ["ORD-1", "ORD-2"]
        assert first["metadata"]["bookmark"]

        second = json.loads(contract.get_all_orders_with_pagination("2", first["metadata"]["bookmark"], "createdAt", "asc"))
        assert [row["key"] for row in second["data"]] == ["ORD-3", "ORD-4"]

    def test_paginated_listing_defaults(self, contract):
        contract.create_order(_creation_text(order_id="ORD-1", created_at="2024-08-01T10:00:00Z"))
        contract.create_order(_creation_text(order_id="ORD-2", created_at="2024-08-02T10:00:00Z"))

        page = json.loads(contract.get_all_orders_with_pagination("10"))
        assert [row["key"] for row in page["data"]] == ["ORD-2", "ORD-1"]

    def test_paginated_listing_bad_page_size(self, contract):
        with pytest.raises(MalformedInput):
            contract.get_all_orders_with_pagination("ten")

    def test_all_orders(self, contract):
        contract.create_order(_creation_text(order_id="ORD-B"))
        contract.create_order(_creation_text(order_id="ORD-A"))
        orders = json.loads(contract.get_all_orders())
        assert [order["orderId"] for order in orders] == ["ORD-A", "ORD-B"]
