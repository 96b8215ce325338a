import pytest

pytestmark = pytest.mark.unit


class TestSensitiveDataMasking:
    def test_email_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "recipient": "kavya@example.com"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "kavya@example.com" not in result["recipient"]
        assert "***MASKED***" in result["recipient"]

    def test_email_inside_sentence_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "error": "duplicate key for dev@atelier.in"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "dev@atelier.in" not in result["error"]
        assert result["error"].startswith("duplicate key for ")

    def test_password_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "data": "password='s3cret123'"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "s3cret123" not in result["data"]
        assert "***MASKED***" in result["data"]

    def test_token_masked(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "header": "token=abc123xyz"}
        result = mask_sensitive_data(None, None, event_dict)
        assert "abc123xyz" not in result["header"]
        assert "***MASKED***" in result["header"]

    def test_non_string_values_untouched(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "test", "user_id": 42, "meta": {"k": "v"}}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["user_id"] == 42
        assert result["meta"] == {"k": "v"}

    def test_non_sensitive_data_unchanged(self):
        from config.settings import mask_sensitive_data

        event_dict = {"event": "order.transition_applied", "order_id": "ORD-20260301-ABC123"}
        result = mask_sensitive_data(None, None, event_dict)
        assert result["order_id"] == "ORD-20260301-ABC123"
        assert result["event"] == "order.transition_applied"
