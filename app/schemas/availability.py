# app/schemas/availability.py
import uuid
from datetime import date

from sqlmodel import SQLModel


class SlotAvailabilityRead(SQLModel):
    """
    One pickup window for a concrete date, with live booking counts.
    """

    slot_id: uuid.UUID
    delivery_date: date
    delivery_time: str
    max_orders: int
    booked: int
    remaining: int
    is_full: bool
