# app/repositories/availability_repo.py
from datetime import date, time

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, select

from app.models.availability import AvailabilitySlot, SlotBooking
from app.models.order import Order


class AvailabilityRepository:
    """
    Data access layer for pickup slots and their per-date booking counters.

    NOTE:
      - No commits here; bookings are part of the order transaction.
    """

    # ---- Slot templates ----

    def find_slot(
        self,
        session: Session,
        day_of_week: int,
        start_time: time,
        end_time: time,
    ) -> AvailabilitySlot | None:
        # An active row wins over a disabled duplicate of the same window
        stmt = (
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.day_of_week == day_of_week,
                AvailabilitySlot.start_time == start_time,
                AvailabilitySlot.end_time == end_time,
            )
            .order_by(col(AvailabilitySlot.is_active).desc())
        )
        return session.exec(stmt).first()

    def list_active_for_weekday(
        self,
        session: Session,
        day_of_week: int,
    ) -> list[AvailabilitySlot]:
        stmt = (
            select(AvailabilitySlot)
            .where(
                AvailabilitySlot.day_of_week == day_of_week,
                AvailabilitySlot.is_active == True,  # noqa: E712
            )
            .order_by(col(AvailabilitySlot.start_time))
        )
        return list(session.exec(stmt).all())

    # ---- Booking counters ----

    def count_orders(self, session: Session, delivery_date: date, delivery_time: str) -> int:
        stmt = (
            select(func.count())
            .select_from(Order)
            .where(
                Order.delivery_date == delivery_date,
                Order.delivery_time == delivery_time,
            )
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def get_booking(
        self,
        session: Session,
        delivery_date: date,
        delivery_time: str,
    ) -> SlotBooking | None:
        stmt = select(SlotBooking).where(
            SlotBooking.delivery_date == delivery_date,
            SlotBooking.delivery_time == delivery_time,
        )
        return session.exec(stmt).first()

    def bookings_for_date(self, session: Session, delivery_date: date) -> dict[str, int]:
        stmt = select(SlotBooking).where(SlotBooking.delivery_date == delivery_date)
        return {b.delivery_time: b.booked_count for b in session.exec(stmt).all()}

    def ensure_booking(
        self,
        session: Session,
        delivery_date: date,
        delivery_time: str,
    ) -> None:
        """
        Create the counter row for a bucket if missing, seeded with the
        number of orders already stored for that date and time.

        Runs in a savepoint: if a concurrent submission inserted the same
        bucket first, the unique constraint fires and we keep theirs.
        """
        if self.get_booking(session, delivery_date, delivery_time) is not None:
            return

        seed = self.count_orders(session, delivery_date, delivery_time)
        try:
            with session.begin_nested():
                session.add(
                    SlotBooking(
                        delivery_date=delivery_date,
                        delivery_time=delivery_time,
                        booked_count=seed,
                    )
                )
        except IntegrityError:
            # Bucket already exists; the conditional increment decides.
            return

    def increment_booking(
        self,
        session: Session,
        delivery_date: date,
        delivery_time: str,
        max_orders: int,
    ) -> bool:
        """
        booked_count += 1 only while booked_count < max_orders.

        Returns True if a seat was taken.
        """
        stmt = (
            update(SlotBooking)
            .where(
                col(SlotBooking.delivery_date) == delivery_date,
                col(SlotBooking.delivery_time) == delivery_time,
                col(SlotBooking.booked_count) < max_orders,
            )
            .values(booked_count=SlotBooking.booked_count + 1)
        )
        return session.connection().execute(stmt).rowcount == 1
