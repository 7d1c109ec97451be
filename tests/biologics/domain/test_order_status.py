"""Tests for order status membership and the optional transition graph."""

import pytest
from biologics.order.exceptions import InvalidStatus, InvalidTransition
from biologics.order.order import Order, OrderStatus, StatusEvent, ensure_valid_status, is_valid_status

_GRAPH = {
    OrderStatus.DRAFT: {OrderStatus.THERAPY_REQUESTED, OrderStatus.THERAPY_CANCELLED},
    OrderStatus.THERAPY_REQUESTED: {OrderStatus.THERAPY_CONFIRMED, OrderStatus.THERAPY_CANCELLED},
}


def _order(status="draft"):
    return Order.create({"orderId": "ORD-2001", "status": status})


class TestStatusMembership:
    def test_thirteen_statuses(self):
        assert len(OrderStatus.values()) == 13

    @pytest.mark.parametrize("status", OrderStatus.values())
    def test_every_member_is_valid(self, status):
        assert is_valid_status(status)
        assert ensure_valid_status(status) == status

    def test_entered_in_error_uses_hyphens(self):
        assert OrderStatus.ENTERED_IN_ERROR.value == "entered-in-error"
        assert not is_valid_status("entered_in_error")

    @pytest.mark.parametrize("status", ["", "DRAFT", "Draft ", "shipped", None, 3])
    def test_non_members_are_invalid(self, status):
        assert not is_valid_status(status)

    def test_error_lists_valid_statuses(self):
        with pytest.raises(InvalidStatus) as exc:
            ensure_valid_status("lost")
        message = exc.value.messages["status"][0]
        assert "'lost'" in message
        for status in OrderStatus.values():
            assert status in message

    def test_record_status_rejects_unknown_status(self):
        order = _order()
        with pytest.raises(InvalidStatus):
            order.record_status(StatusEvent(status="lost"))
        assert order.current_status == "draft"
        assert len(order.status_history) == 1


class TestTransitionGraph:
    def test_allowed_transition(self):
        order = _order()
        order.record_status(StatusEvent(status="therapy_requested"), transitions=_GRAPH)
        assert order.current_status == "therapy_requested"

    def test_disallowed_transition(self):
        order = _order()
        with pytest.raises(InvalidTransition) as exc:
            order.record_status(StatusEvent(status="completed"), transitions=_GRAPH)
        assert "ORD-2001" in exc.value.messages["status"][0]
        assert order.current_status == "draft"
        assert len(order.status_history) == 1

    def test_status_without_outgoing_edges_is_terminal(self):
        order = _order(status="completed")
        with pytest.raises(InvalidTransition):
            order.record_status(StatusEvent(status="draft"), transitions=_GRAPH)

    def test_walk_through_graph(self):
        order = _order()
        for status in ["therapy_requested", "therapy_confirmed"]:
            order.record_status(StatusEvent(status=status), transitions=_GRAPH)
        assert [entry["status"] for entry in order.status_history] == [
            "draft",
            "therapy_requested",
            "therapy_confirmed",
        ]
