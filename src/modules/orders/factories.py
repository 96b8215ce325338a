"""Wiring of the order services to their Django repositories.

Views and Celery tasks build their service graph here so both entry points
share the same collaborators.
"""

from __future__ import annotations

from modules.accounts.repositories.django_repository import ProfileDjangoRepository
from modules.accounts.services import DesignerDirectory
from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.services import CartService
from modules.notifications.repositories.django_repository import (
    NotificationDjangoRepository,
)
from modules.notifications.services import NotificationService
from modules.orders.repositories import (
    OrderDjangoRepository,
    ScheduledTransitionDjangoRepository,
)
from modules.orders.scheduler import AutoProgressionScheduler
from modules.orders.services import CheckoutService, FulfillmentService


def build_fulfillment_service() -> FulfillmentService:
    order_repository = OrderDjangoRepository()
    return FulfillmentService(
        order_repository=order_repository,
        notification_service=NotificationService(NotificationDjangoRepository()),
        designer_directory=DesignerDirectory(
            ProfileDjangoRepository(), order_repository
        ),
    )


def build_scheduler() -> AutoProgressionScheduler:
    return AutoProgressionScheduler(
        job_repository=ScheduledTransitionDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        fulfillment_service=build_fulfillment_service(),
    )


def build_checkout_service() -> CheckoutService:
    order_repository = OrderDjangoRepository()
    cart_repository = CartDjangoRepository()
    return CheckoutService(
        order_repository=order_repository,
        cart_repository=cart_repository,
        cart_service=CartService(cart_repository),
        notification_service=NotificationService(NotificationDjangoRepository()),
        designer_directory=DesignerDirectory(
            ProfileDjangoRepository(), order_repository
        ),
        scheduler=build_scheduler(),
    )
