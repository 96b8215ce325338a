"""User profile carrying the actor role.

Authentication is delegated to ``django.contrib.auth``; the profile only adds
what the order workflow needs: the role gating transitions and the contact
details shown to managers when assigning work.
"""

from __future__ import annotations

import structlog
from django.conf import settings
from django.db import models

from modules.accounts.constants import PROFILE_ROLE_CHOICES, Role
from modules.core.models import BaseModel

logger = structlog.get_logger(__name__)


class Profile(BaseModel):
    """One profile per auth user, created automatically on user creation."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(
        max_length=20,
        choices=PROFILE_ROLE_CHOICES,
        default=Role.CUSTOMER,
    )
    display_name = models.CharField(max_length=255, blank=True, default="")
    phone = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "profiles"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role"], name="profiles_role_idx"),
        ]

    @property
    def name(self) -> str:
        return self.display_name or self.user.get_username()

    def __str__(self) -> str:
        return f"{self.name} ({self.role})"
