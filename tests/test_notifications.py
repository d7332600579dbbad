import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from app.core import whatsapp_client
from app.schemas.order import OrderLineRead, OrderWithLinesRead
from app.services import notification_service
from app.services.notification_service import OrderNotifier, order_summary_text, render_label

from conftest import PICKUP_DATE


def _order(**overrides) -> OrderWithLinesRead:
    fields = dict(
        id=uuid.uuid4(),
        customer_name="Dana",
        email="dana@example.com",
        phone="050-1234567",
        note=None,
        delivery_date=PICKUP_DATE,
        delivery_time="09:00-10:00",
        subtotal=160.0,
        extras_total=0.0,
        discount_amount=16.0,
        total_price=144.0,
        coupon_code="FISH10",
        status="pending",
        stock_shortfall=False,
        created_at=datetime(2029, 12, 30, tzinfo=timezone.utc),
        lines=[
            OrderLineRead(
                id=uuid.uuid4(),
                position=0,
                good_id=uuid.uuid4(),
                cut_id=uuid.uuid4(),
                good_name="Sea bream",
                cut_name="Whole",
                size="L",
                quantity=2,
                unit="units",
                weight_kg=2.0,
                unit_price=80.0,
                line_total=160.0,
            )
        ],
        extras=[],
    )
    fields.update(overrides)
    return OrderWithLinesRead(**fields)


@pytest.fixture
def channels(monkeypatch):
    """
    Every channel "configured", with calls recorded instead of sent.
    """
    calls = []
    monkeypatch.setattr(notification_service.email_client, "is_configured", lambda: True)
    monkeypatch.setattr(
        notification_service.email_client,
        "send_email",
        lambda to_email, subject, text_body, html_body=None: calls.append(("email", to_email)),
    )
    monkeypatch.setattr(notification_service.whatsapp_client, "is_configured", lambda: True)
    monkeypatch.setattr(
        notification_service.whatsapp_client,
        "send_message",
        lambda phone, message: calls.append(("whatsapp", phone)),
    )
    monkeypatch.setattr(notification_service, "is_admin_configured", lambda: True)
    monkeypatch.setattr(
        notification_service,
        "upload_label",
        lambda order_id, content: calls.append(("label", order_id)) or "https://labels/x",
    )
    monkeypatch.setattr(notification_service.settings, "PRINTER_HOST", None)
    monkeypatch.setattr(notification_service.settings, "STORE_ADMIN_EMAIL", None)
    monkeypatch.setattr(notification_service.settings, "STORE_ADMIN_PHONE", None)
    return calls


def test_summary_mentions_lines_and_discount():
    text = order_summary_text(_order())
    assert "Sea bream [L] - Whole: 2 units (~2 kg) = 160.00" in text
    assert "Discount (FISH10): -16.00" in text
    assert "144.00" in text


def test_immediate_pickup_summary():
    text = order_summary_text(_order(delivery_time="immediate"))
    assert "immediate pickup" in text


def test_label_flags_stock_shortfall():
    assert "CHECK STOCK" not in render_label(_order())
    assert "CHECK STOCK" in render_label(_order(stock_shortfall=True))


def test_all_channels_fire(channels):
    order = _order()
    OrderNotifier(executor=ThreadPoolExecutor(max_workers=1)).deliver(order)
    assert channels == [("email", "dana@example.com"), ("whatsapp", "050-1234567"), ("label", order.id)]


def test_store_contacts_get_copies(channels, monkeypatch):
    monkeypatch.setattr(notification_service.settings, "STORE_ADMIN_EMAIL", "shop@example.com")
    monkeypatch.setattr(notification_service.settings, "STORE_ADMIN_PHONE", "0529999999")

    OrderNotifier(executor=ThreadPoolExecutor(max_workers=1)).deliver(_order())

    assert ("email", "shop@example.com") in channels
    assert ("whatsapp", "0529999999") in channels


def test_failing_channel_does_not_stop_the_others(channels, monkeypatch):
    def broken(**kwargs):
        raise OSError("smtp down")

    monkeypatch.setattr(notification_service.email_client, "send_email", broken)
    notifier = OrderNotifier(executor=ThreadPoolExecutor(max_workers=1))

    future = notifier.enqueue(_order())
    assert future.result(timeout=5) is None
    notifier.shutdown()

    assert [kind for kind, _ in channels] == ["whatsapp", "label"]


def test_unreachable_printer_falls_back_to_storage(channels, monkeypatch):
    def refuse(content):
        raise ConnectionRefusedError("printer offline")

    monkeypatch.setattr(notification_service.settings, "PRINTER_HOST", "10.0.0.50")
    monkeypatch.setattr(notification_service, "send_to_printer", refuse)

    order = _order()
    OrderNotifier(executor=ThreadPoolExecutor(max_workers=1)).print_label(order)

    assert channels == [("label", order.id)]


def test_enqueue_after_shutdown_returns_none():
    notifier = OrderNotifier(executor=ThreadPoolExecutor(max_workers=1))
    notifier.shutdown()
    assert notifier.enqueue(_order()) is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("050-123 4567", "972501234567"),
        ("+972 50 123 4567", "972501234567"),
        ("972501234567", "972501234567"),
    ],
)
def test_normalize_phone(raw, expected):
    assert whatsapp_client.normalize_phone(raw) == expected
