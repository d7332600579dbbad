import json
import time
import uuid
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.exc import OperationalError

from app.core.config import get_settings
from app.database import get_session
from app.main import app
from app.models.user import StaffUser
from app.repositories.order_repo import OrderRepository
from app.routers import orders as orders_router

from conftest import PICKUP_DATE, RecordingNotifier

API = get_settings().API_V1_STR


class FailingOrderRepository(OrderRepository):
    def create_order(self, session, order):
        raise OperationalError("INSERT INTO orders", {}, Exception("database is locked"))


@pytest.fixture
def client(session, monkeypatch):
    def _session_override():
        yield session

    app.dependency_overrides[get_session] = _session_override
    monkeypatch.setattr(orders_router.reservations, "notifier", RecordingNotifier())
    yield TestClient(app)
    app.dependency_overrides.clear()


def _token(staff_id: uuid.UUID, email: str) -> str:
    settings = get_settings()
    claims = {"sub": str(staff_id), "email": email, "exp": int(time.time()) + 3600}
    return jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG)


@pytest.fixture
def admin_headers(session):
    admin = StaffUser(id=uuid.uuid4(), email="boss@example.com", role="admin")
    session.add(admin)
    session.commit()
    return {"Authorization": f"Bearer {_token(admin.id, admin.email)}"}


def _body(good, cut, quantity=1.0, **overrides):
    body = {
        "customer_name": "Dana",
        "email": "dana@example.com",
        "phone": "050-1234567",
        "delivery_date": PICKUP_DATE.isoformat(),
        "delivery_time": "09:00-10:00",
        "lines": [{"good_id": str(good.id), "cut_id": str(cut.id), "quantity": quantity}],
    }
    body.update(overrides)
    return body


def test_health(client):
    assert client.get("/").json()["status"] == "ok"


def test_submit_order_created(client, store):
    salmon = store.good()
    fillet = store.cut(salmon)
    store.slot()

    res = client.post(f"{API}/orders", json=_body(salmon, fillet))

    assert res.status_code == 201
    data = res.json()
    assert data["status"] == "pending"
    assert data["lines"][0]["good_name"] == "Salmon"
    assert orders_router.reservations.notifier.orders[0].id == uuid.UUID(data["id"])


def test_invalid_line_is_400(client, store):
    salmon = store.good()
    fillet = store.cut(salmon)
    store.slot()

    res = client.post(f"{API}/orders", json=_body(salmon, fillet, quantity=0.1))

    assert res.status_code == 400
    assert res.json()["detail"]["reason"] == "invalid_line"
    assert res.json()["detail"]["items"][0]["line"] == "0"


def test_full_slot_is_409(client, store):
    salmon = store.good()
    fillet = store.cut(salmon)
    store.slot(max_orders=1)

    assert client.post(f"{API}/orders", json=_body(salmon, fillet)).status_code == 201
    res = client.post(f"{API}/orders", json=_body(salmon, fillet))

    assert res.status_code == 409
    assert res.json()["detail"]["reason"] == "slot_full"


def test_unknown_slot_is_409(client, store):
    salmon = store.good()
    fillet = store.cut(salmon)

    res = client.post(f"{API}/orders", json=_body(salmon, fillet, delivery_time="06:00-07:00"))

    assert res.status_code == 409
    assert res.json()["detail"]["reason"] == "slot_inactive_or_unknown"


def test_bad_coupon_is_422(client, store):
    salmon = store.good()
    fillet = store.cut(salmon)
    store.slot()

    res = client.post(f"{API}/orders", json=_body(salmon, fillet, coupon_code="NOPE"))

    assert res.status_code == 422
    assert res.json()["detail"]["reason"] == "coupon_invalid_code"


def test_storage_failure_is_503(client, store, monkeypatch):
    monkeypatch.setattr(orders_router.reservations, "order_repo", FailingOrderRepository())
    salmon = store.good()
    fillet = store.cut(salmon)
    store.slot()

    res = client.post(f"{API}/orders", json=_body(salmon, fillet))

    assert res.status_code == 503


@pytest.mark.parametrize("literal", ["Infinity", "NaN"])
def test_non_finite_quantity_fails_validation(client, store, literal):
    salmon = store.good(available_kg=5.0)
    fillet = store.cut(salmon)
    store.slot()
    raw = json.dumps(_body(salmon, fillet, quantity="__QTY__")).replace('"__QTY__"', literal)

    res = client.post(
        f"{API}/orders", content=raw, headers={"Content-Type": "application/json"}
    )

    assert res.status_code == 422
    session = store.session
    session.refresh(salmon)
    assert salmon.available_kg == 5.0


def test_empty_order_fails_validation(client, store):
    salmon = store.good()
    fillet = store.cut(salmon)

    res = client.post(f"{API}/orders", json=_body(salmon, fillet, lines=[]))

    assert res.status_code == 422


def test_coupon_preview(client, store):
    # The preview runs against the wall clock
    store.coupon(
        code="FISH10",
        discount_value=10,
        valid_from=datetime(2020, 1, 1, tzinfo=timezone.utc),
    )

    res = client.post(f"{API}/coupons/validate", json={"code": "fish10", "subtotal": 80})

    assert res.status_code == 200
    assert res.json()["discount_amount"] == pytest.approx(8.0)
    assert res.json()["total"] == pytest.approx(72.0)


def test_availability_lists_windows(client, store):
    store.slot("09:00", "10:00", max_orders=4)

    res = client.get(f"{API}/availability", params={"delivery_date": PICKUP_DATE.isoformat()})

    assert res.status_code == 200
    assert res.json()[0]["delivery_time"] == "09:00-10:00"
    assert res.json()[0]["remaining"] == 4


def test_good_limits_for_unit_good(client, store):
    bream = store.good(pricing_mode="by_unit", available_kg=2.0, average_weight_kg=0.5)

    res = client.get(f"{API}/goods/{bream.id}/limits")

    assert res.status_code == 200
    assert res.json()["max_units"] == 4


def test_admin_routes_need_a_token(client):
    assert client.get(f"{API}/orders").status_code == 401


def test_staff_without_admin_role_is_forbidden(client):
    headers = {"Authorization": f"Bearer {_token(uuid.uuid4(), 'clerk@example.com')}"}
    assert client.get(f"{API}/orders", headers=headers).status_code == 403


def test_admin_moves_order_through_kitchen_flow(client, store, admin_headers):
    salmon = store.good()
    fillet = store.cut(salmon)
    store.slot()
    order_id = client.post(f"{API}/orders", json=_body(salmon, fillet)).json()["id"]

    listed = client.get(
        f"{API}/orders", headers=admin_headers, params={"delivery_date": PICKUP_DATE.isoformat()}
    )
    assert [o["id"] for o in listed.json()] == [order_id]

    skip = client.patch(
        f"{API}/orders/{order_id}/status", headers=admin_headers, json={"status": "ready"}
    )
    assert skip.status_code == 400

    for step in ("weighing", "ready", "completed"):
        res = client.patch(
            f"{API}/orders/{order_id}/status", headers=admin_headers, json={"status": step}
        )
        assert res.status_code == 200
        assert res.json()["status"] == step

    detail = client.get(f"{API}/orders/{order_id}", headers=admin_headers)
    assert detail.json()["status"] == "completed"
    assert len(detail.json()["lines"]) == 1


def test_unknown_order_is_404(client, admin_headers):
    res = client.get(f"{API}/orders/{uuid.uuid4()}", headers=admin_headers)
    assert res.status_code == 404
