from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.accounts.constants import Role
from modules.cart.models import CartItem, Customization
from modules.products.models import Product

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Users by role
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    def _make(username: str, role: str = Role.CUSTOMER, display_name: str = ""):
        user = User.objects.create_user(username=username, password="testpass123")
        user.profile.role = role
        user.profile.display_name = display_name
        user.profile.save(update_fields=["role", "display_name"])
        return user

    return _make


@pytest.fixture()
def customer(make_user):
    return make_user("customer", Role.CUSTOMER, "Kavya")


@pytest.fixture()
def designer(make_user):
    return make_user("designer", Role.DESIGNER, "Dev")


@pytest.fixture()
def other_designer(make_user):
    return make_user("designer2", Role.DESIGNER, "Diya")


@pytest.fixture()
def manager(make_user):
    return make_user("manager", Role.MANAGER, "Meera")


@pytest.fixture()
def client_for():
    """APIClient force-authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Catalog, customizations and cart
# ---------------------------------------------------------------------------


@pytest.fixture()
def product():
    return Product.objects.create(sku="shirt-001", name="Linen Shirt", price=Decimal("500.00"))


@pytest.fixture()
def shop_customization(customer, product):
    return Customization.objects.create(
        owner=customer,
        product=product,
        name="Linen Shirt",
        unit_price=Decimal("500.00"),
    )


@pytest.fixture()
def custom_customization(customer):
    return Customization.objects.create(
        owner=customer,
        product=None,
        name="Custom Sherwani",
        fabric="silk",
        unit_price=Decimal("800.00"),
    )


@pytest.fixture()
def add_to_cart():
    def _add(customization, quantity: int = 1):
        return CartItem.objects.create(
            owner=customization.owner,
            customization=customization,
            quantity=quantity,
        )

    return _add
