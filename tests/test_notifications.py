# tests/test_notifications.py
from datetime import datetime

import pytest
import requests

from app.core import telegram_client
from app.core.config import get_settings
from app.schemas.order import OrderNotice, OrderNoticeLine
from app.services.notification_service import OrderNotifier


@pytest.fixture
def notice() -> OrderNotice:
    return OrderNotice(
        order_id=17,
        created_at=datetime(2024, 5, 3, 14, 30),
        total_amount=45.0,
        customer="@vaper",
        phone="+375291112233",
        delivery_address="Main st. 1 <b>",
        lines=[
            OrderNoticeLine(name="Mango Ice", flavor_name="Mango", quantity=2, unit_price=15.0),
            OrderNoticeLine(name="Coil & Co", quantity=3, unit_price=5.0),
        ],
    )


@pytest.fixture
def configured(monkeypatch):
    settings = get_settings()
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setattr(settings, "TELEGRAM_GROUP_CHAT_ID", "-100500")
    return settings


class FakeResponse:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_message_contains_order_details(notice):
    text = OrderNotifier().format_order_message(notice)

    assert "New order #17" in text
    assert "03.05.2024 14:30" in text
    assert "Items: 5" in text
    assert "Customer: @vaper" in text
    assert "Phone: +375291112233" in text
    assert "Flavor: Mango" in text
    assert "15.00 BYN × 2 = 30.00 BYN" in text
    assert "Total due: 45.00 BYN" in text
    assert "Notes" not in text


def test_user_text_is_escaped(notice):
    text = OrderNotifier().format_order_message(notice)

    assert "Main st. 1 &lt;b&gt;" in text
    assert "Coil &amp; Co" in text


def test_missing_customer_handle(notice):
    notice.customer = None

    assert "Customer: Not specified" in OrderNotifier().format_order_message(notice)


def test_unconfigured_bot_sends_nothing(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("should not be called")

    monkeypatch.setattr(telegram_client.requests, "post", fail)

    assert telegram_client.send_message("hi") is False


def test_send_message_posts_to_bot_api(configured, monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json, timeout))
        return FakeResponse()

    monkeypatch.setattr(telegram_client.requests, "post", fake_post)

    assert telegram_client.send_message("hello") is True
    url, body, timeout = calls[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert body == {"chat_id": "-100500", "text": "hello", "parse_mode": "HTML"}
    assert timeout == configured.TELEGRAM_TIMEOUT_SECONDS


def test_admin_chat_used_without_group(configured, monkeypatch):
    monkeypatch.setattr(configured, "TELEGRAM_GROUP_CHAT_ID", None)
    monkeypatch.setattr(configured, "TELEGRAM_ADMIN_CHAT_ID", "42")

    assert configured.telegram_chat_id == "42"


def test_notifier_swallows_http_errors(configured, monkeypatch, notice):
    monkeypatch.setattr(telegram_client.requests, "post", lambda *a, **kw: FakeResponse(502))

    OrderNotifier().notify_order_created(notice)


def test_notifier_swallows_transport_errors(configured, monkeypatch, notice):
    def timeout(*args, **kwargs):
        raise requests.Timeout("slow")

    monkeypatch.setattr(telegram_client.requests, "post", timeout)

    OrderNotifier().notify_order_created(notice)


def test_order_triggers_one_notification(client, make_product, telegram_user, monkeypatch):
    sent = []
    monkeypatch.setattr(telegram_client, "send_message", lambda text: sent.append(text) or True)
    product_id = make_product(name="Mesh coil")

    resp = client.post(
        "/api/orders",
        json={"items": [{"product_id": product_id, "quantity": 1, "price": 10}], "telegram_user": telegram_user},
    )

    assert resp.status_code == 201
    assert len(sent) == 1
    assert f"New order #{resp.json()['id']}" in sent[0]
    assert "Mesh coil" in sent[0]
