"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    """Celery loads its configuration from Django settings."""

    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "atelier"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "atelier"

    def test_celery_broker_url_configured(self, settings):
        assert settings.CELERY_BROKER_URL is not None
        assert "redis" in settings.CELERY_BROKER_URL

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_tests_run_tasks_eagerly(self, settings):
        assert settings.CELERY_TASK_ALWAYS_EAGER is True


class TestAutoProgressionTasks:
    def test_tasks_registered_under_stable_names(self):
        from config.celery import app

        app.loader.import_default_modules()
        assert "orders.run_scheduled_transition" in app.tasks
        assert "orders.dispatch_due_transitions" in app.tasks

    def test_dispatcher_scheduled_on_beat(self, settings):
        entry = settings.CELERY_BEAT_SCHEDULE["orders-dispatch-due-transitions"]
        assert entry["task"] == "orders.dispatch_due_transitions"
        assert entry["schedule"] == settings.AUTO_PROGRESSION_DISPATCH_INTERVAL

    def test_dispatch_with_nothing_due(self):
        from modules.orders.tasks import dispatch_due_transitions

        result = dispatch_due_transitions.delay()

        assert result.successful()
        assert result.result == {"done": 0, "skipped": 0, "failed": 0, "ignored": 0}

    def test_unknown_step_is_ignored(self):
        from modules.orders.tasks import run_scheduled_transition

        output = run_scheduled_transition("018f2a4e-0000-7000-8000-000000000000")

        assert output["outcome"] == "ignored"
