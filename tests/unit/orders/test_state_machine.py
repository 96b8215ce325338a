"""Unit tests for the order transition validator."""

from __future__ import annotations

import pytest

from modules.accounts.constants import Role
from modules.orders.constants import (
    TERMINAL_STATES,
    TRANSITION_ROLES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.exceptions import (
    InvalidTransition,
    OrderValidationError,
    UnauthorizedTransition,
)
from modules.orders.state_machine import (
    allowed_targets,
    can_reach,
    is_terminal,
    parse_role,
    parse_status,
    validate_transition,
)

pytestmark = pytest.mark.unit


class TestParsing:
    def test_parse_status_accepts_known_value(self):
        assert parse_status("ready_for_review") is OrderStatus.READY_FOR_REVIEW

    @pytest.mark.parametrize("value", ["Pending", "In Production", "ready", "", None, 3])
    def test_parse_status_rejects_unknown_values(self, value):
        with pytest.raises(OrderValidationError):
            parse_status(value)

    def test_parse_role_accepts_system(self):
        assert parse_role("system") is Role.SYSTEM

    def test_parse_role_rejects_unknown(self):
        with pytest.raises(OrderValidationError):
            parse_role("owner")


class TestTransitionTable:
    def test_terminal_states_have_no_outgoing_edges(self):
        for status in TERMINAL_STATES:
            assert allowed_targets(status) == frozenset()
            assert is_terminal(status)

    def test_every_non_terminal_state_can_be_cancelled(self):
        for status in OrderStatus.values:
            if status in TERMINAL_STATES:
                continue
            assert OrderStatus.CANCELLED in VALID_TRANSITIONS[status]
            assert TRANSITION_ROLES[(status, OrderStatus.CANCELLED)] == frozenset(
                {Role.MANAGER, Role.ADMIN}
            )

    def test_customer_reaches_nothing(self):
        assert not any(can_reach(Role.CUSTOMER, status) for status in OrderStatus.values)

    def test_system_only_reaches_auto_progression_targets(self):
        reachable = {s for s in OrderStatus.values if can_reach(Role.SYSTEM, s)}
        assert reachable == {
            OrderStatus.COMPLETED,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        }


class TestValidateTransition:
    @pytest.mark.parametrize(
        "current,target,role",
        [
            (OrderStatus.PENDING, OrderStatus.ASSIGNED, Role.MANAGER),
            (OrderStatus.PENDING, OrderStatus.ASSIGNED, Role.ADMIN),
            (OrderStatus.ASSIGNED, OrderStatus.IN_PRODUCTION, Role.DESIGNER),
            (OrderStatus.IN_PRODUCTION, OrderStatus.READY_FOR_REVIEW, Role.DESIGNER),
            (OrderStatus.IN_PRODUCTION, OrderStatus.COMPLETED, Role.SYSTEM),
            (OrderStatus.READY_FOR_REVIEW, OrderStatus.COMPLETED, Role.MANAGER),
            (OrderStatus.COMPLETED, OrderStatus.SHIPPED, Role.DESIGNER),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED, Role.SYSTEM),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED, Role.MANAGER),
        ],
    )
    def test_allowed_edges(self, current, target, role):
        validate_transition(current, target, role)

    def test_missing_edge_raises_invalid_transition(self):
        with pytest.raises(InvalidTransition) as exc_info:
            validate_transition(OrderStatus.PENDING, OrderStatus.SHIPPED, Role.MANAGER)
        assert exc_info.value.current == "pending"
        assert exc_info.value.requested == "shipped"
        assert "completed" in str(exc_info.value)

    def test_replay_of_delivered_is_invalid(self):
        with pytest.raises(InvalidTransition, match="already delivered"):
            validate_transition(OrderStatus.DELIVERED, OrderStatus.DELIVERED, Role.MANAGER)

    def test_cancelled_order_cannot_move(self):
        with pytest.raises(InvalidTransition):
            validate_transition(OrderStatus.CANCELLED, OrderStatus.ASSIGNED, Role.ADMIN)

    def test_wrong_role_on_existing_edge_is_unauthorized(self):
        with pytest.raises(UnauthorizedTransition):
            validate_transition(OrderStatus.ASSIGNED, OrderStatus.IN_PRODUCTION, Role.MANAGER)

    def test_designer_cannot_cancel(self):
        with pytest.raises(UnauthorizedTransition):
            validate_transition(OrderStatus.IN_PRODUCTION, OrderStatus.CANCELLED, Role.DESIGNER)

    def test_system_cannot_skip_review_queue_for_custom_orders(self):
        with pytest.raises(UnauthorizedTransition):
            validate_transition(
                OrderStatus.READY_FOR_REVIEW, OrderStatus.COMPLETED, Role.SYSTEM
            )
