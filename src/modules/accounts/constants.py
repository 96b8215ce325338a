"""Actor roles.

``SYSTEM`` is never stored on a profile: it identifies unattended work
(shop-order auto-progression) when it reaches the order workflow.
"""

from django.db import models


class Role(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    DESIGNER = "designer", "Designer"
    MANAGER = "manager", "Manager"
    ADMIN = "admin", "Admin"
    SYSTEM = "system", "System"


PROFILE_ROLE_CHOICES = [
    (value, label) for value, label in Role.choices if value != Role.SYSTEM
]

# Roles that act with manager rights on the order workflow.
MANAGER_ROLES: frozenset[str] = frozenset({Role.MANAGER, Role.ADMIN})
