# tests/conftest.py
import os

# Settings are read at import time; give them test values first.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret")

from datetime import date, datetime, time, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402
from sqlmodel import Session  # noqa: E402

from app.database import build_engine, create_db_and_tables  # noqa: E402
from app.models.availability import AvailabilitySlot  # noqa: E402
from app.models.catalog import AdditionalProduct, Cut, Good, GoodCut, SizeVariant  # noqa: E402
from app.models.coupon import Coupon  # noqa: E402
from app.models import order as _order_models  # noqa: E402,F401
from app.models import user as _user_models  # noqa: E402,F401
from app.repositories.availability_repo import AvailabilityRepository  # noqa: E402
from app.repositories.catalog_repo import CatalogRepository  # noqa: E402
from app.repositories.coupon_repo import CouponRepository  # noqa: E402
from app.repositories.order_repo import OrderRepository  # noqa: E402
from app.schemas.order import OrderCreate  # noqa: E402
from app.services.reservation_service import OrderReservationService  # noqa: E402
from app.services.slot_ledger import weekday_of  # noqa: E402

# A Sunday, far enough ahead to never be "in the past"
PICKUP_DATE = date(2030, 1, 6)
NOW = datetime(2029, 12, 30, 8, 0, tzinfo=timezone.utc)


class RecordingNotifier:
    def __init__(self):
        self.orders = []

    def enqueue(self, order):
        self.orders.append(order)


class StoreFactory:
    """
    Seeds catalog/config rows and commits them.
    """

    def __init__(self, session: Session):
        self.session = session

    def _save(self, row):
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    def good(self, name="Salmon", pricing_mode="by_weight", price_per_kg=100.0,
             available_kg=10.0, average_weight_kg=None, has_sizes=False, is_active=True):
        return self._save(
            Good(
                name=name,
                pricing_mode=pricing_mode,
                price_per_kg=price_per_kg,
                available_kg=available_kg,
                average_weight_kg=average_weight_kg,
                has_sizes=has_sizes,
                is_active=is_active,
            )
        )

    def size(self, good, size, average_weight_kg):
        return self._save(SizeVariant(good_id=good.id, size=size, average_weight_kg=average_weight_kg))

    def cut(self, good, name="Fillet", price_addition=0.0, is_active=True, is_enabled=True):
        cut = self._save(Cut(name=name, price_addition=price_addition, is_active=is_active))
        self._save(GoodCut(good_id=good.id, cut_id=cut.id, is_enabled=is_enabled))
        return cut

    def slot(self, start="09:00", end="10:00", max_orders=5, day=PICKUP_DATE, is_active=True):
        h1, m1 = map(int, start.split(":"))
        h2, m2 = map(int, end.split(":"))
        return self._save(
            AvailabilitySlot(
                day_of_week=weekday_of(day),
                start_time=time(h1, m1),
                end_time=time(h2, m2),
                max_orders=max_orders,
                is_active=is_active,
            )
        )

    def coupon(self, code="FISH10", discount_type="percentage", discount_value=10.0,
               min_order_amount=0.0, max_uses=None, current_uses=0, is_active=True,
               valid_from=None, valid_until=None):
        return self._save(
            Coupon(
                code=code,
                discount_type=discount_type,
                discount_value=discount_value,
                min_order_amount=min_order_amount,
                max_uses=max_uses,
                current_uses=current_uses,
                is_active=is_active,
                valid_from=valid_from or NOW - timedelta(days=30),
                valid_until=valid_until,
            )
        )

    def extra(self, name="Lemon", price=3.0, available_units=10, unit="unit", is_active=True):
        return self._save(
            AdditionalProduct(
                name=name, price=price, available_units=available_units, unit=unit, is_active=is_active
            )
        )


def make_payload(lines, delivery_time="09:00-10:00", delivery_date=PICKUP_DATE,
                 coupon_code=None, extras=None, email="dana@example.com"):
    return OrderCreate(
        customer_name="Dana",
        email=email,
        phone="050-1234567",
        delivery_date=delivery_date,
        delivery_time=delivery_time,
        lines=lines,
        extras=extras or [],
        coupon_code=coupon_code,
    )


def line(good, cut, quantity, size=None):
    return {"good_id": good.id, "cut_id": cut.id, "quantity": quantity, "size": size}


def make_service(notifier=None, order_repo=None):
    return OrderReservationService(
        CatalogRepository(),
        AvailabilityRepository(),
        CouponRepository(),
        order_repo or OrderRepository(),
        notifier=notifier,
    )


@pytest.fixture
def engine():
    eng = build_engine("sqlite://")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """
    File-backed SQLite so several threads can hold their own connections.
    """
    eng = build_engine(f"sqlite:///{tmp_path / 'orders.db'}")
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def store(session):
    return StoreFactory(session)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(notifier):
    return make_service(notifier)
