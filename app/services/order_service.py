# app/services/order_service.py
import uuid
from datetime import date

from fastapi import HTTPException, status
from sqlmodel import Session

from app.models.order import Order, OrderExtra, OrderLine
from app.repositories.order_repo import OrderRepository
from app.schemas.order import (
    OrderExtraRead,
    OrderLineRead,
    OrderRead,
    OrderStatusUpdate,
    OrderWithLinesRead,
)

# Kitchen flow: each status may only move to the next one
NEXT_STATUS: dict[str, str | None] = {
    "pending": "weighing",
    "weighing": "ready",
    "ready": "completed",
    "completed": None,
}


def build_order_dto(
    order: Order,
    lines: list[OrderLine],
    extras: list[OrderExtra],
) -> OrderWithLinesRead:
    """
    Compose OrderWithLinesRead from ORM rows.
    """
    return OrderWithLinesRead(
        id=order.id,
        customer_name=order.customer_name,
        email=order.email,
        phone=order.phone,
        note=order.note,
        delivery_date=order.delivery_date,
        delivery_time=order.delivery_time,
        subtotal=order.subtotal,
        extras_total=order.extras_total,
        discount_amount=order.discount_amount,
        total_price=order.total_price,
        coupon_code=order.coupon_code,
        status=order.status,  # Literal
        stock_shortfall=order.stock_shortfall,
        created_at=order.created_at,
        lines=[
            OrderLineRead(
                id=ln.id,
                position=ln.position,
                good_id=ln.good_id,
                cut_id=ln.cut_id,
                good_name=ln.good_name,
                cut_name=ln.cut_name,
                size=ln.size,
                quantity=ln.quantity,
                unit=ln.unit,
                weight_kg=ln.weight_kg,
                unit_price=ln.unit_price,
                line_total=ln.line_total,
                actual_weight_kg=ln.actual_weight_kg,
            )
            for ln in lines
        ],
        extras=[
            OrderExtraRead(
                id=ex.id,
                product_id=ex.product_id,
                name=ex.name,
                unit=ex.unit,
                quantity=ex.quantity,
                unit_price=ex.unit_price,
                line_total=ex.line_total,
            )
            for ex in extras
        ],
    )


class OrderService:
    """
    Read side of committed orders plus the kitchen status flow.

    Order creation lives in OrderReservationService.
    """

    def __init__(self, order_repo: OrderRepository):
        self.order_repo = order_repo

    def list_orders(
        self,
        session: Session,
        delivery_date: date | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[OrderRead]:
        orders = self.order_repo.list_all(session, delivery_date, skip, limit)
        return orders  # type: ignore[return-value]

    def get_order(self, session: Session, order_id: uuid.UUID) -> OrderWithLinesRead:
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )
        return build_order_dto(
            order,
            self.order_repo.list_lines_for_order(session, order.id),
            self.order_repo.list_extras_for_order(session, order.id),
        )

    def update_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
    ) -> OrderRead:
        """
        Move an order forward one step:

          pending -> weighing -> ready -> completed

        Setting the current status again is a no-op; anything else is 400.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Order not found",
            )

        current = order.status
        new = payload.status

        if current == new:
            return order  # type: ignore[return-value]

        if NEXT_STATUS.get(current) != new:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid status transition: {current} -> {new}",
            )

        order.status = new
        self.order_repo.update_order(session, order)
        session.commit()
        session.refresh(order)
        return order  # type: ignore[return-value]
