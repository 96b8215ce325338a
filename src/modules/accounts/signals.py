"""Create a profile for every new auth user."""

from __future__ import annotations

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

from modules.accounts.constants import Role
from modules.accounts.models import Profile


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def _create_profile(sender, instance, created: bool, **kwargs) -> None:
    if not created:
        return
    role = Role.ADMIN if instance.is_superuser else Role.CUSTOMER
    Profile.objects.get_or_create(user=instance, defaults={"role": role})
