"""Summary: Tests for notification field contracts and message text.

Importance: Operators read these messages on their phones.
Alternatives: Inspect messages manually in the sandbox.
"""

from __future__ import annotations

from datetime import datetime

import pytest

from breedops.messages import (
    NEW_CLIENT_REQUEST,
    PAYMENT_RECEIVED,
    PROJECT_MILESTONE,
    QUOTE_STATUS_UPDATE,
    apply_defaults,
    build_message,
    build_template_components,
    missing_fields,
)


NOW = datetime(2026, 5, 4, 14, 30)


def test_missing_fields_reports_blank_values() -> None:
    data = {"name": "Sipho", "email": " ", "service": "Website"}
    assert missing_fields(NEW_CLIENT_REQUEST, data) == ["email", "phone"]


def test_payment_defaults_are_applied() -> None:
    filled = apply_defaults(PAYMENT_RECEIVED, {"clientName": "Sipho", "amount": 5000}, NOW)
    assert filled["paymentMethod"] == "Bank Transfer"
    assert filled["date"] == "2026-05-04"


def test_milestone_defaults_keep_given_values() -> None:
    filled = apply_defaults(
        PROJECT_MILESTONE,
        {"clientName": "Sipho", "projectName": "Site", "milestone": "Design", "nextSteps": "Build"},
        NOW,
    )
    assert filled["nextSteps"] == "Build"
    assert filled["completionDate"] == "2026-05-04"


def test_new_client_message_format() -> None:
    """Summary: Verify the new client message layout.

    Importance: Operators rely on the header and the timestamp line.
    Alternatives: Snapshot the full message.
    """

    message = build_message(
        NEW_CLIENT_REQUEST,
        {"name": "Sipho", "email": "sipho@example.com", "phone": "0821234567", "service": "Logo"},
        NOW,
    )
    lines = message.splitlines()
    assert lines[0] == "🆕 New Client Request"
    assert "Name: Sipho" in lines
    assert "Service: Logo" in lines
    assert not any(line.startswith("Message:") for line in lines)
    assert lines[-1] == "Time: 2026-05-04 14:30"


def test_quote_update_message_includes_amount() -> None:
    message = build_message(
        QUOTE_STATUS_UPDATE,
        {"quoteId": "Q-2026-1234", "clientName": "Sipho", "status": "accepted", "amount": 1800},
        NOW,
    )
    assert "Quote: Q-2026-1234" in message
    assert "Amount: R1800" in message


def test_unknown_type_has_no_builder() -> None:
    with pytest.raises(RuntimeError):
        build_message("birthday", {"name": "Sipho"}, NOW)


def test_template_components_follow_required_fields() -> None:
    components = build_template_components(
        QUOTE_STATUS_UPDATE, {"quoteId": "Q-2026-1234", "clientName": "", "status": "sent"}
    )
    texts = [parameter["text"] for parameter in components[0]["parameters"]]
    assert texts == ["Q-2026-1234", "N/A", "sent"]
