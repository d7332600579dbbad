# app/models/availability.py
import uuid
from datetime import date, time

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class AvailabilitySlot(SQLModel, table=True):
    """
    Recurring weekly pickup window.

    day_of_week follows the storefront convention: 0=Sunday ... 6=Saturday.
    """

    __tablename__ = "availability_slots"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    day_of_week: int = Field(ge=0, le=6, index=True)

    start_time: time

    end_time: time

    max_orders: int = Field(
        ge=0,
        description="How many orders may pick up in this window per date",
    )

    is_active: bool = Field(default=True)


class SlotBooking(SQLModel, table=True):
    """
    Booked-orders counter for one (delivery_date, delivery_time) bucket.

    Rows are created lazily on the first reservation for a bucket and are
    only ever changed by a conditional increment.
    """

    __tablename__ = "slot_bookings"
    __table_args__ = (UniqueConstraint("delivery_date", "delivery_time"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    delivery_date: date = Field(index=True)

    # rendered "HH:MM-HH:MM"
    delivery_time: str = Field(max_length=20)

    booked_count: int = Field(default=0, ge=0)
