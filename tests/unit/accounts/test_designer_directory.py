"""Unit tests for actor resolution, profile creation and the designer directory."""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model

from modules.accounts.constants import Role
from modules.accounts.models import Profile
from modules.accounts.repositories.django_repository import ProfileDjangoRepository
from modules.accounts.services import SYSTEM_ACTOR, DesignerDirectory, resolve_actor
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository

pytestmark = pytest.mark.unit

User = get_user_model()


@pytest.fixture()
def directory():
    return DesignerDirectory(ProfileDjangoRepository(), OrderDjangoRepository())


class TestProfileCreation:
    def test_new_user_gets_customer_profile(self):
        user = User.objects.create_user(username="newbie", password="x")
        assert Profile.objects.get(user=user).role == Role.CUSTOMER

    def test_superuser_gets_admin_profile(self):
        user = User.objects.create_superuser(username="root", password="x")
        assert user.profile.role == Role.ADMIN


class TestResolveActor:
    def test_role_comes_from_profile(self, designer):
        actor = resolve_actor(designer)
        assert actor.role == Role.DESIGNER
        assert actor.user_id == designer.pk

    def test_superuser_acts_as_admin(self):
        user = User.objects.create_superuser(username="boss", password="x")
        assert resolve_actor(user).role == Role.ADMIN

    def test_system_actor(self):
        assert SYSTEM_ACTOR.role == Role.SYSTEM
        assert SYSTEM_ACTOR.user_id is None


class TestDesignerDirectory:
    def test_lists_designers_only(self, directory, designer, other_designer, manager):
        ids = {p.user_id for p in directory.list_by_role(Role.DESIGNER)}
        assert ids == {designer.pk, other_designer.pk}

    def test_get_designer_ignores_non_designers(self, directory, designer, manager):
        assert directory.get_designer(designer.pk).user_id == designer.pk
        assert directory.get_designer(manager.pk) is None
        assert directory.get_designer(987654) is None

    def test_inactive_designer_not_returned(self, directory, designer):
        designer.profile.is_active = False
        designer.profile.save(update_fields=["is_active"])
        assert directory.get_designer(designer.pk) is None

    def test_manager_pool_includes_admins(self, directory, manager):
        admin = User.objects.create_superuser(username="admin", password="x")
        assert set(directory.manager_ids()) == {manager.pk, admin.pk}

    def test_is_assigned_to(self, directory, customer, designer, other_designer):
        order = Order.objects.create(
            customer=customer, designer=designer, delivery_address="12 MG Road"
        )
        assert directory.is_assigned_to(str(order.id), designer.pk)
        assert not directory.is_assigned_to(str(order.id), other_designer.pk)
        assert not directory.is_assigned_to(str(order.id), None)
