# app/schemas/catalog.py
import uuid

from sqlmodel import SQLModel


class SizeLimitRead(SQLModel):
    size: str
    average_weight_kg: float
    max_units: int


class GoodLimitsRead(SQLModel):
    """
    What the customer may currently order for a good.

    For by_unit goods, `max_units` is the ceiling for the default piece
    weight and `sizes` lists the ceiling per size; by_weight goods have no
    unit ceiling (`max_units` is None).
    """

    good_id: uuid.UUID
    name: str
    pricing_mode: str
    available_kg: float
    min_weight_kg: float | None = None
    average_weight_kg: float | None = None
    max_units: int | None = None
    sizes: list[SizeLimitRead] = []
