"""Order repositories package."""

from modules.orders.repositories.django_repository import (
    OrderDjangoRepository,
    ScheduledTransitionDjangoRepository,
)
from modules.orders.repositories.interfaces import (
    IOrderRepository,
    IScheduledTransitionRepository,
)

__all__ = [
    "IOrderRepository",
    "IScheduledTransitionRepository",
    "OrderDjangoRepository",
    "ScheduledTransitionDjangoRepository",
]
