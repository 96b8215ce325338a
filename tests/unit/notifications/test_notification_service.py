"""Unit tests for NotificationService (best-effort delivery)."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from modules.notifications.services import NotificationService

pytestmark = pytest.mark.unit


@pytest.fixture()
def repo():
    return MagicMock()


class TestNotify:
    def test_persists_notification(self, repo):
        service = NotificationService(repo)

        result = service.notify(7, "Order Shipped!", "On its way", {"order_id": "x"})

        repo.create.assert_called_once_with(
            {
                "user_id": 7,
                "title": "Order Shipped!",
                "message": "On its way",
                "meta": {"order_id": "x"},
            }
        )
        assert result is repo.create.return_value

    def test_failure_is_swallowed_and_logged(self, repo, caplog):
        repo.create.side_effect = RuntimeError("disk full")
        service = NotificationService(repo)

        assert service.notify(7, "t", "m") is None
        assert any(
            "notification.delivery_failed" in record.getMessage()
            for record in caplog.records
        )


class TestNotifyMany:
    def test_each_recipient_once(self, repo):
        service = NotificationService(repo)

        service.notify_many([1, 2, 1, 3], "t", "m")

        recipients = [c.args[0]["user_id"] for c in repo.create.call_args_list]
        assert recipients == [1, 2, 3]

    def test_one_failure_does_not_stop_the_rest(self, repo):
        repo.create.side_effect = [RuntimeError("boom"), MagicMock(id="n2")]
        service = NotificationService(repo)

        delivered = service.notify_many([1, 2], "t", "m")

        assert len(delivered) == 1
        assert repo.create.call_count == 2
