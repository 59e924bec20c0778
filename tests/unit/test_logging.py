"""
Unit tests for the structlog processor that keeps credentials out of logs.
"""

from docportal.core.logging import REDACTED, redact_secrets


def test_credential_values_are_masked():
    event = redact_secrets(
        None,
        "info",
        {"event": "Login rejected", "password": "silva-pass", "Password_Hash": "$2b$10$abc"},
    )
    assert event["password"] == REDACTED
    assert event["Password_Hash"] == REDACTED
    assert event["event"] == "Login rejected"


def test_other_context_is_untouched():
    event = redact_secrets(
        None, "info", {"event": "File uploaded", "company_id": 7, "storage_key": "123/a.pdf"}
    )
    assert event == {"event": "File uploaded", "company_id": 7, "storage_key": "123/a.pdf"}
