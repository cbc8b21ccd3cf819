# tests/services/test_notifications.py
import json
import logging
from datetime import datetime

import httpx
import pytest

from catalogue.models import AdminSetting, RECIPIENT_EMAIL_KEY
from catalogue.pipeline import NotificationFailure
from catalogue.services import notifications
from catalogue.services.notifications import (
    NotificationSender,
    dispatch_order_notification,
    get_recipient_email,
    order_payload,
    render_order_email,
)


@pytest.fixture
def payload():
    return {
        "order_id": 42,
        "catalogue_name": "Spring <Collection>",
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
        "customer_phone": "",
        "selected_pages": [2, 5, 9],
        "created_at": datetime(2024, 3, 1, 14, 30, 0),
    }


def test_render_order_email(payload):
    body = render_order_email(payload)

    assert "<strong>Order ID:</strong> 42" in body
    assert "<strong>Selected Pages:</strong> 2, 5, 9" in body
    assert "<strong>Total Items:</strong> 3" in body
    assert "Not provided" in body
    assert "2024-03-01 14:30:00" in body
    assert "Spring &lt;Collection&gt;" in body


def test_order_payload_is_detached(sample_order):
    payload = order_payload(sample_order)

    assert payload["order_id"] == sample_order.id
    assert payload["selected_pages"] == [2, 5, 9]
    assert payload["selected_pages"] is not sample_order.selected_pages


def test_recipient_email_falls_back_to_default(db_session, monkeypatch):
    monkeypatch.setattr(notifications.settings, "DEFAULT_RECIPIENT_EMAIL", "fallback@example.com")
    assert get_recipient_email(db_session) == "fallback@example.com"

    db_session.add(AdminSetting(setting_key=RECIPIENT_EMAIL_KEY, setting_value="admin@example.com"))
    db_session.commit()
    assert get_recipient_email(db_session) == "admin@example.com"


@pytest.mark.asyncio
async def test_send_skipped_without_api_key(payload):
    sender = NotificationSender("http://mail.test/emails", None, "shop@example.com")
    assert await sender.send(payload, "admin@example.com") is False


@pytest.mark.asyncio
async def test_send_posts_message(payload):
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "msg_1"})

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    sender = NotificationSender("http://mail.test/emails", "secret", "shop@example.com", client=client)

    assert await sender.send(payload, "admin@example.com") is True

    request = requests[0]
    body = json.loads(request.content)
    assert request.headers["Authorization"] == "Bearer secret"
    assert body["to"] == ["admin@example.com"]
    assert body["from"] == "shop@example.com"
    assert body["subject"] == "New Order from Ada Lovelace"


@pytest.mark.asyncio
async def test_send_failure_raises(payload):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    sender = NotificationSender("http://mail.test/emails", "secret", "shop@example.com", client=client)

    with pytest.raises(NotificationFailure):
        await sender.send(payload, "admin@example.com")


@pytest.mark.asyncio
async def test_dispatch_swallows_failures(payload, monkeypatch, caplog):
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(503)))
    failing = NotificationSender("http://mail.test/emails", "secret", "shop@example.com", client=client)
    monkeypatch.setattr(notifications, "notification_sender", failing)

    with caplog.at_level(logging.ERROR):
        await dispatch_order_notification(payload, "admin@example.com")

    assert "Order notification failed" in caplog.text
