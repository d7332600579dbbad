# app/routers/orders.py
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.core.errors import rejection_to_http
from app.database import get_session
from app.repositories.availability_repo import AvailabilityRepository
from app.repositories.catalog_repo import CatalogRepository
from app.repositories.coupon_repo import CouponRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.order import (
    OrderCreate,
    OrderRead,
    OrderStatusUpdate,
    OrderWithLinesRead,
)
from app.schemas.reservation import CommitFailed, Rejected
from app.services.notification_service import OrderNotifier
from app.services.order_service import OrderService
from app.services.reservation_service import OrderReservationService

router = APIRouter(prefix="/orders", tags=["Orders"])

order_repo = OrderRepository()
notifier = OrderNotifier()
reservations = OrderReservationService(
    CatalogRepository(),
    AvailabilityRepository(),
    CouponRepository(),
    order_repo,
    notifier=notifier,
)
service = OrderService(order_repo)


# -------- Customer endpoint --------


@router.post(
    "",
    response_model=OrderWithLinesRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
):
    """
    Reserve a pickup slot and commit the order.

    Errors:
      - 400 invalid_line / delivery_date_in_past
      - 409 slot_full / slot_inactive_or_unknown
      - 422 coupon_* (retry without the coupon)
      - 503 the order could not be stored
    """
    try:
        outcome = reservations.submit(session, payload)
    except CommitFailed as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(exc),
        )

    if isinstance(outcome, Rejected):
        raise rejection_to_http(outcome)
    return outcome.order


# -------- Admin endpoints --------


@router.get(
    "",
    response_model=list[OrderRead],
    dependencies=[Depends(require_admin)],
)
def list_orders(
    session: Session = Depends(get_session),
    delivery_date: date | None = None,
    skip: int = 0,
    limit: int = 50,
):
    """
    List orders, optionally for one pickup date (admin only).
    """
    return service.list_orders(session, delivery_date, skip, limit)


@router.get(
    "/{order_id}",
    response_model=OrderWithLinesRead,
    dependencies=[Depends(require_admin)],
)
def get_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Get any order with lines and extras (admin only).
    """
    return service.get_order(session, order_id)


@router.patch(
    "/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
):
    """
    Move an order along the kitchen flow (admin only).

      pending -> weighing -> ready -> completed
    """
    return service.update_status(session, order_id, payload)
