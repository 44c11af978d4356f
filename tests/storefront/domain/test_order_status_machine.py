"""Tests for the order status machine — allowed transitions, terminal states and overrides."""

import pytest
from storefront.order.status import (
    CANONICAL_PATH,
    InvalidTransition,
    OrderStatus,
    allowed_transitions,
    assert_can_override,
    assert_can_transition,
    can_transition,
    is_terminal,
    parse_status,
    status_message,
)
from protean.exceptions import ValidationError


class TestParseStatus:
    def test_parses_wire_value(self):
        assert parse_status("out_for_delivery") == OrderStatus.OUT_FOR_DELIVERY

    def test_passes_enum_through(self):
        assert parse_status(OrderStatus.CONFIRMED) is OrderStatus.CONFIRMED

    def test_unknown_status_is_rejected(self):
        with pytest.raises(InvalidTransition):
            parse_status("ready")

    def test_invalid_transition_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            parse_status("shipped")


class TestAllowedTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("pending", "confirmed"),
            ("pending", "cancelled"),
            ("confirmed", "preparing"),
            ("preparing", "out_for_delivery"),
            ("out_for_delivery", "delivered"),
        ],
    )
    def test_valid_transitions(self, current, target):
        assert can_transition(current, target)
        assert assert_can_transition(current, target) == OrderStatus(target)

    def test_skipping_a_step_is_rejected(self):
        assert not can_transition("pending", "preparing")
        with pytest.raises(InvalidTransition):
            assert_can_transition("pending", "preparing")

    def test_going_backwards_is_rejected(self):
        with pytest.raises(InvalidTransition):
            assert_can_transition("preparing", "confirmed")

    @pytest.mark.parametrize("status", ["confirmed", "preparing", "out_for_delivery"])
    def test_only_pending_orders_can_be_cancelled(self, status):
        assert OrderStatus.CANCELLED not in allowed_transitions(status)

    def test_canonical_path_order(self):
        assert CANONICAL_PATH == (
            OrderStatus.PENDING,
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.OUT_FOR_DELIVERY,
            OrderStatus.DELIVERED,
        )


class TestTerminalStates:
    @pytest.mark.parametrize("terminal", ["delivered", "cancelled"])
    def test_terminal_states_accept_nothing(self, terminal):
        assert is_terminal(terminal)
        assert allowed_transitions(terminal) == set()
        for target in OrderStatus:
            with pytest.raises(InvalidTransition):
                assert_can_transition(terminal, target)

    @pytest.mark.parametrize("terminal", ["delivered", "cancelled"])
    def test_override_cannot_leave_terminal_state(self, terminal):
        with pytest.raises(InvalidTransition):
            assert_can_override(terminal, "pending")

    def test_in_flight_states_are_not_terminal(self):
        assert not is_terminal("out_for_delivery")


class TestOverride:
    def test_override_may_skip_steps(self):
        assert assert_can_override("pending", "preparing") == OrderStatus.PREPARING

    def test_override_may_move_backwards(self):
        assert assert_can_override("preparing", "confirmed") == OrderStatus.CONFIRMED

    def test_override_to_same_status_is_rejected(self):
        with pytest.raises(InvalidTransition):
            assert_can_override("confirmed", "confirmed")


class TestStatusMessages:
    def test_known_status_messages(self):
        assert status_message("confirmed") == "Your order has been confirmed!"
        assert status_message("preparing") == "Your order is being prepared"
        assert status_message("out_for_delivery") == "Your order is out for delivery"
        assert status_message("delivered") == "Your order has been delivered!"

    def test_unknown_status_falls_back_to_generic_message(self):
        assert status_message("teleported") == "Order status updated"
