"""Transition validator for the order workflow.

Pure functions over the transition table in ``constants``: no I/O, no
side effects.  Every status string arriving from outside goes through
``parse_status`` before it is compared with anything.
"""

from __future__ import annotations

from typing import Any

from modules.accounts.constants import Role
from modules.orders.constants import (
    ROLES_BY_TARGET,
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


def parse_status(value: Any) -> OrderStatus:
    """Return the ``OrderStatus`` for *value* or raise ``OrderValidationError``.

    Matching is exact: ``"Pending"`` or ``"in production"`` are rejected, not
    coerced.
    """
    if isinstance(value, OrderStatus):
        return value
    if isinstance(value, str) and value in OrderStatus.values:
        return OrderStatus(value)
    raise OrderValidationError(f"Unknown order status: {value!r}.")


def parse_role(value: Any) -> Role:
    if isinstance(value, Role):
        return value
    if isinstance(value, str) and value in Role.values:
        return Role(value)
    raise OrderValidationError(f"Unknown actor role: {value!r}.")


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATES


def allowed_targets(current: str) -> frozenset[str]:
    return VALID_TRANSITIONS.get(current, frozenset())


def can_reach(role: str, target: str) -> bool:
    """``True`` if *role* may move an order to *target* from some state."""
    return role in ROLES_BY_TARGET.get(target, frozenset())


def _describe_requirement(current: str, target: str) -> str:
    if is_terminal(current):
        return f"Order is already {current} and cannot change; requested: {target}"
    predecessors = sorted(
        source for (source, to) in TRANSITION_ROLES if to == target
    )
    if target == current:
        return f"Order is already {current}; requested: {target}"
    if not predecessors:
        return f"Order cannot move to {target}; current status: {current}"
    return (
        f"Order must be {' or '.join(predecessors)} before moving to {target}; "
        f"current status: {current}"
    )


def validate_transition(current: str, target: str, role: str) -> None:
    """Raise unless *role* may move an order from *current* to *target*.

    Raises:
        InvalidTransition: the edge does not exist (includes replays of an
            already-applied transition and any move out of a terminal state).
        UnauthorizedTransition: the edge exists but *role* may not take it.
    """
    roles = TRANSITION_ROLES.get((current, target))
    if roles is None:
        raise InvalidTransition(
            current, target, _describe_requirement(current, target)
        )
    if role not in roles:
        raise UnauthorizedTransition()
