"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.
The API layer (Views) catches these and translates them into
appropriate HTTP responses.
"""

from __future__ import annotations


class OrderNotFound(Exception):
    """The requested order does not exist."""


class DesignerNotFound(Exception):
    """The designer named in an assignment does not exist or is inactive."""


class CustomizationNotFound(Exception):
    """A checkout line references an unknown customization."""


class OrderValidationError(Exception):
    """Malformed input, rejected before any persistence attempt."""


class UnauthorizedTransition(Exception):
    """The actor may not perform this transition on this order.

    The message is deliberately generic: it never says which check failed.
    """

    def __init__(
        self,
        message: str = "You are not permitted to perform this action on this order.",
    ) -> None:
        super().__init__(message)


class InvalidTransition(Exception):
    """The requested status is not reachable from the current status."""

    def __init__(
        self, current: str, requested: str, message: str | None = None
    ) -> None:
        self.current = str(current)
        self.requested = str(requested)
        super().__init__(message or f"Cannot transition from {current} to {requested}.")


class PaymentAlreadyConfirmed(Exception):
    """The order has already been paid."""
