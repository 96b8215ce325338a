"""Order service layer (Use Cases).

``FulfillmentService`` executes workflow transitions; ``CheckoutService``
turns a cart into an order and classifies it as a shop or custom order.

Every transition follows the same unit of work:
1. Re-read the order (never trust a status held in memory).
2. Authorize the actor against the order (role + assigned designer).
3. Validate the edge against the state machine.
4. Compare-and-swap the status, set the milestone timestamp if still null,
   flip payment on delivery and append the timeline entry, all in one
   transaction.
5. Emit notifications after the transaction; delivery is best-effort.

A lost compare-and-swap means another transition won the race: the request
is re-validated against the new status, which normally rejects it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.utils import timezone

from modules.accounts.constants import MANAGER_ROLES, Role
from modules.orders.constants import (
    AUTO_NOTES,
    CUSTOMER_MESSAGES,
    DEFAULT_NOTES,
    MILESTONE_FIELDS,
    OrderStatus,
    PaymentStatus,
)
from modules.orders.dtos import DashboardSummaryDTO
from modules.orders.exceptions import (
    CustomizationNotFound,
    DesignerNotFound,
    InvalidTransition,
    OrderNotFound,
    OrderValidationError,
    PaymentAlreadyConfirmed,
    UnauthorizedTransition,
)
from modules.orders.state_machine import (
    can_reach,
    parse_role,
    parse_status,
    validate_transition,
)

if TYPE_CHECKING:
    from datetime import datetime

    from modules.accounts.models import Profile
    from modules.accounts.services import Actor, DesignerDirectory
    from modules.cart.repositories.interfaces import ICartRepository
    from modules.cart.services import CartService
    from modules.notifications.services import NotificationService
    from modules.orders.dtos import CheckoutDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.orders.scheduler import AutoProgressionScheduler

logger = structlog.get_logger(__name__)

CAS_MAX_ATTEMPTS = 3


class FulfillmentService:
    """Application service for order workflow transitions.

    Receives repositories and collaborators via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        notification_service: NotificationService,
        designer_directory: DesignerDirectory,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._order_repo = order_repository
        self._notifications = notification_service
        self._directory = designer_directory
        self._clock = clock

    # ------------------------------------------------------------------
    # Core transition
    # ------------------------------------------------------------------

    def apply_transition(
        self,
        order_id: UUID | str,
        target_status: str,
        actor_role: str,
        actor_id: Optional[int],
        note: Optional[str] = None,
        designer_id: Optional[int] = None,
    ) -> Order:
        """Move an order to *target_status* on behalf of an actor.

        Raises:
            OrderValidationError: unknown status/role, or assignment
                without ``designer_id``.
            OrderNotFound: the order does not exist.
            UnauthorizedTransition: the actor may not act on this order.
            InvalidTransition: *target_status* is not reachable from the
                current status (including replays).
            DesignerNotFound: assignment names an unknown designer.
        """
        target = parse_status(target_status)
        role = parse_role(actor_role)
        log = logger.bind(
            order_id=str(order_id),
            target_status=str(target),
            actor_role=str(role),
            actor_id=actor_id,
        )

        designer: Optional[Profile] = None
        for _ in range(CAS_MAX_ATTEMPTS):
            order = self._order_repo.get_by_id(str(order_id))
            if order is None:
                raise OrderNotFound(f"Order {order_id} not found.")

            self._authorize(order, target, role, actor_id, log)
            try:
                validate_transition(order.status, target, role)
            except InvalidTransition:
                log.warning("order.invalid_transition", current_status=order.status)
                raise

            if target == OrderStatus.ASSIGNED and designer is None:
                designer = self._resolve_designer(designer_id)

            previous = order.status
            now = self._clock()
            with transaction.atomic():
                applied = self._order_repo.compare_and_set_status(
                    str(order.id),
                    expected_status=previous,
                    new_status=target,
                    at=now,
                    milestone_field=MILESTONE_FIELDS.get(target),
                    extra_fields={"designer_id": designer.user_id} if designer else None,
                )
                if not applied:
                    continue
                if target == OrderStatus.DELIVERED:
                    self._order_repo.mark_paid(str(order.id), now)
                self._order_repo.add_timeline_entry(
                    str(order.id),
                    status=target,
                    note=note or self._default_note(target, role, designer),
                    actor_role=role,
                    at=now,
                )
            break
        else:
            # Every attempt lost the race; report against the latest status.
            order = self._order_repo.get_by_id(str(order_id))
            current = order.status if order else "unknown"
            log.warning("order.transition_contended", current_status=current)
            raise InvalidTransition(current, target)

        updated = self._order_repo.get_by_id(str(order.id))
        log.info("order.transition_applied", from_status=previous)
        self._emit_notifications(updated, target, role, designer)
        return updated

    # ------------------------------------------------------------------
    # Commands (one per HTTP action)
    # ------------------------------------------------------------------

    def assign(
        self, order_id: UUID | str, designer_id: Optional[int], actor: Actor
    ) -> Order:
        return self.apply_transition(
            order_id,
            OrderStatus.ASSIGNED,
            actor.role,
            actor.user_id,
            designer_id=designer_id,
        )

    def accept(self, order_id: UUID | str, actor: Actor) -> Order:
        return self.apply_transition(
            order_id, OrderStatus.IN_PRODUCTION, actor.role, actor.user_id
        )

    def submit_to_manager(
        self, order_id: UUID | str, actor: Actor, completion_note: str = ""
    ) -> Order:
        return self.apply_transition(
            order_id,
            OrderStatus.READY_FOR_REVIEW,
            actor.role,
            actor.user_id,
            note=completion_note or None,
        )

    def mark_completed(self, order_id: UUID | str, actor: Actor) -> Order:
        return self.apply_transition(
            order_id, OrderStatus.COMPLETED, actor.role, actor.user_id
        )

    def mark_shipped(self, order_id: UUID | str, actor: Actor) -> Order:
        return self.apply_transition(
            order_id, OrderStatus.SHIPPED, actor.role, actor.user_id
        )

    def mark_delivered(self, order_id: UUID | str, actor: Actor) -> Order:
        return self.apply_transition(
            order_id, OrderStatus.DELIVERED, actor.role, actor.user_id
        )

    def reject(self, order_id: UUID | str, actor: Actor, reason: str = "") -> Order:
        return self.apply_transition(
            order_id,
            OrderStatus.CANCELLED,
            actor.role,
            actor.user_id,
            note=reason or None,
        )

    def confirm_payment(self, order_id: UUID | str, actor: Actor) -> Order:
        """Record an explicit payment for a pre-paid order.

        Raises:
            UnauthorizedTransition: the actor is not a manager.
            OrderNotFound: the order does not exist.
            OrderValidationError: the order is cancelled.
            PaymentAlreadyConfirmed: the order is already paid.
        """
        if actor.role not in MANAGER_ROLES:
            raise UnauthorizedTransition()
        order = self._order_repo.get_by_id(str(order_id))
        if order is None:
            raise OrderNotFound(f"Order {order_id} not found.")
        if order.status == OrderStatus.CANCELLED:
            raise OrderValidationError("Cancelled orders cannot be paid.")
        if order.payment_status == PaymentStatus.PAID or not self._order_repo.mark_paid(
            str(order.id), self._clock()
        ):
            raise PaymentAlreadyConfirmed(f"Order {order_id} is already paid.")

        logger.info("order.payment_confirmed", order_id=str(order.id))
        self._notifications.notify(
            order.customer_id,
            "Payment Received",
            f"Payment for your order #{order.short_ref} has been confirmed.",
            {"order_id": str(order.id)},
        )
        return self._order_repo.get_by_id(str(order.id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def get_order_for(self, order_id: str, actor: Actor) -> Order:
        """Retrieve an order the actor is allowed to see.

        Orders outside the actor's scope are reported as not found.
        """
        order = self.get_order(order_id)
        if actor.role in MANAGER_ROLES:
            return order
        if actor.role == Role.DESIGNER and order.designer_id == actor.user_id:
            return order
        if actor.role == Role.CUSTOMER and order.customer_id == actor.user_id:
            return order
        raise OrderNotFound(f"Order {order_id} not found.")

    @staticmethod
    def visibility_filters(actor: Actor) -> Dict[str, Any]:
        """ORM filters restricting an order listing to the actor's scope."""
        if actor.role in MANAGER_ROLES:
            return {}
        if actor.role == Role.DESIGNER:
            return {"designer_id": actor.user_id}
        return {"customer_id": actor.user_id}

    def dashboard_summary(self) -> DashboardSummaryDTO:
        return DashboardSummaryDTO.from_counts(self._order_repo.status_counts())

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _authorize(
        self,
        order: Order,
        target: str,
        role: str,
        actor_id: Optional[int],
        log: Any,
    ) -> None:
        permitted = can_reach(role, target)
        if permitted and role == Role.DESIGNER:
            permitted = self._directory.is_assigned_to(str(order.id), actor_id)
        if not permitted:
            log.warning("order.unauthorized_transition", current_status=order.status)
            raise UnauthorizedTransition()

    def _resolve_designer(self, designer_id: Optional[int]) -> Profile:
        if designer_id in (None, ""):
            raise OrderValidationError("designer_id is required to assign an order.")
        designer = self._directory.get_designer(designer_id)
        if designer is None:
            raise DesignerNotFound(f"Designer {designer_id} not found.")
        return designer

    @staticmethod
    def _default_note(target: str, role: str, designer: Optional[Profile]) -> str:
        if role == Role.SYSTEM and target in AUTO_NOTES:
            return AUTO_NOTES[target]
        template = DEFAULT_NOTES.get(target, "")
        if designer is not None:
            return template.format(designer=designer.name)
        return template

    def _emit_notifications(
        self,
        order: Order,
        target: str,
        role: str,
        designer: Optional[Profile],
    ) -> None:
        ref = order.short_ref
        meta = {"order_id": str(order.id), "status": str(target)}

        title, message = CUSTOMER_MESSAGES[target]
        self._notifications.notify(
            order.customer_id, title, message.format(ref=ref), meta
        )

        if role == Role.DESIGNER:
            self._notifications.notify_many(
                self._directory.manager_ids(),
                "Designer Update",
                f"Order #{ref} moved to {OrderStatus(target).label} by the designer.",
                meta,
            )

        if target == OrderStatus.ASSIGNED and designer is not None:
            self._notifications.notify(
                designer.user_id,
                "New Order Assigned",
                f"You have been assigned order #{ref}.",
                meta,
            )


class CheckoutService:
    """Creates orders from cart lines and classifies them.

    An order whose every line references a catalog product is a shop order:
    it starts ``in_production`` and is handed to the auto-progression
    scheduler.  Any line without a product makes it a custom-design order
    that waits in ``pending`` for a manager.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        cart_repository: ICartRepository,
        cart_service: CartService,
        notification_service: NotificationService,
        designer_directory: DesignerDirectory,
        scheduler: AutoProgressionScheduler,
        clock: Callable[[], datetime] = timezone.now,
    ) -> None:
        self._order_repo = order_repository
        self._cart_repo = cart_repository
        self._cart = cart_service
        self._notifications = notification_service
        self._directory = designer_directory
        self._scheduler = scheduler
        self._clock = clock

    def create_order_from_cart(self, dto: CheckoutDTO) -> Order:
        """Create one order from the DTO's lines.

        Raises:
            CustomizationNotFound: a line references a customization that
                does not exist or belongs to someone else.
        """
        log = logger.bind(customer_id=dto.customer_id)
        log.info("checkout.started", line_count=len(dto.items))

        lines: List[Dict[str, Any]] = []
        is_shop_order = True
        for line in dto.items:
            customization = self._cart_repo.get_customization(str(line.customization_id))
            if customization is None or customization.owner_id != dto.customer_id:
                log.warning(
                    "checkout.customization_not_found",
                    customization_id=str(line.customization_id),
                )
                raise CustomizationNotFound(
                    f"Customization {line.customization_id} not found."
                )
            if customization.product_id is None:
                is_shop_order = False
            lines.append(
                {
                    "customization_id": customization.id,
                    "quantity": line.quantity,
                    "unit_price": customization.unit_price,
                }
            )

        now = self._clock()
        with transaction.atomic():
            data: Dict[str, Any] = {
                "customer_id": dto.customer_id,
                "delivery_address": dto.delivery_address,
                "items": lines,
                "order_date": now,
                "is_shop_order": is_shop_order,
            }
            if is_shop_order:
                data["status"] = OrderStatus.IN_PRODUCTION
                data["production_started_at"] = now
            else:
                data["status"] = OrderStatus.PENDING
            order = self._order_repo.create(data)

            if is_shop_order:
                self._order_repo.add_timeline_entry(
                    str(order.id),
                    status=OrderStatus.IN_PRODUCTION,
                    note=AUTO_NOTES[OrderStatus.IN_PRODUCTION],
                    actor_role=Role.SYSTEM,
                    at=now,
                )
                self._scheduler.schedule(order, start=now)

            self._cart.clear_ordered_lines(
                dto.customer_id, [line["customization_id"] for line in lines]
            )

        log.info(
            "checkout.order_created",
            order_id=str(order.id),
            is_shop_order=is_shop_order,
            total_price=str(order.total_price),
        )
        self._notify_created(order)
        return self._order_repo.get_by_id(str(order.id)) or order

    def _notify_created(self, order: Order) -> None:
        ref = order.short_ref
        meta = {"order_id": str(order.id), "status": str(order.status)}
        if order.is_shop_order:
            self._notifications.notify(
                order.customer_id,
                "Order Confirmed",
                f"Your order #{ref} has been approved and moved to production.",
                meta,
            )
            return

        title, message = CUSTOMER_MESSAGES[OrderStatus.PENDING]
        self._notifications.notify(
            order.customer_id, title, message.format(ref=ref), meta
        )
        self._notifications.notify_many(
            self._directory.manager_ids(),
            "New Custom Order",
            f"Order #{ref} is waiting for designer assignment.",
            meta,
        )
