"""Integration tests for the notification listing endpoint."""

import pytest

from modules.notifications.models import Notification

pytestmark = pytest.mark.integration


class TestNotificationListing:
    def test_lists_only_callers_notifications(self, client_for, customer, manager):
        Notification.objects.create(user=customer, title="Mine", message="m")
        Notification.objects.create(user=manager, title="Theirs", message="m")

        response = client_for(customer).get("/api/v1/notifications/")

        assert response.status_code == 200
        assert [n["title"] for n in response.json()["results"]] == ["Mine"]

    def test_order_events_arrive_with_order_meta(
        self, client_for, customer, custom_customization, add_to_cart
    ):
        add_to_cart(custom_customization)
        order_id = client_for(customer).post(
            "/api/v1/checkout/", {"delivery_address": "12 MG Road"}, format="json"
        ).json()["id"]

        response = client_for(customer).get("/api/v1/notifications/")

        [notification] = response.json()["results"]
        assert notification["title"] == "Order Received"
        assert notification["meta"]["order_id"] == order_id

    def test_requires_authentication(self, api_client):
        assert api_client.get("/api/v1/notifications/").status_code == 401
