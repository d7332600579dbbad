# app/repositories/order_repo.py
import uuid
from datetime import date

from sqlmodel import Session, col, select

from app.models.order import Order, OrderExtra, OrderLine


class OrderRepository:
    """
    Data access layer for orders, order_lines and order_extras.

    NOTE:
      - No commits here; order creation is a multi-step transaction.
        The service is responsible for calling session.commit().
    """

    # ---- Orders ----

    def list_all(
        self,
        session: Session,
        delivery_date: date | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = select(Order)
        if delivery_date is not None:
            stmt = stmt.where(Order.delivery_date == delivery_date)
        stmt = stmt.order_by(col(Order.created_at).desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        return order

    # ---- Lines / extras ----

    def list_lines_for_order(self, session: Session, order_id: uuid.UUID) -> list[OrderLine]:
        stmt = (
            select(OrderLine)
            .where(OrderLine.order_id == order_id)
            .order_by(col(OrderLine.position))
        )
        return list(session.exec(stmt).all())

    def list_extras_for_order(self, session: Session, order_id: uuid.UUID) -> list[OrderExtra]:
        stmt = select(OrderExtra).where(OrderExtra.order_id == order_id)
        return list(session.exec(stmt).all())

    def create_lines(self, session: Session, lines: list[OrderLine]) -> list[OrderLine]:
        session.add_all(lines)
        session.flush()
        return lines

    def create_extras(self, session: Session, extras: list[OrderExtra]) -> list[OrderExtra]:
        session.add_all(extras)
        session.flush()
        return extras
