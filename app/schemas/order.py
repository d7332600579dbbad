# app/schemas/order.py
import math
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, EmailStr, field_validator
from sqlmodel import SQLModel, Field

OrderStatus = Literal["pending", "weighing", "ready", "completed"]
FishSize = Literal["S", "M", "L"]


class OrderLineCreate(SQLModel):
    """
    One requested fish line.

    `quantity` is kilograms for by-weight goods and a piece count for
    by-unit goods; the pipeline decides which.
    """

    model_config = ConfigDict(extra="forbid")

    good_id: uuid.UUID
    cut_id: uuid.UUID
    quantity: float = Field(gt=0)
    size: FishSize | None = None

    @field_validator("quantity")
    @classmethod
    def finite(cls, v: float) -> float:
        # JSON bodies may carry Infinity / NaN
        if not math.isfinite(v):
            raise ValueError("quantity must be a finite number")
        return v


class OrderExtraCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    product_id: uuid.UUID
    quantity: int = Field(gt=0)


class OrderCreate(SQLModel):
    """
    Payload for submitting a pickup order.

    Customer provides:
      - contact details
      - delivery_date + delivery_time ("HH:MM-HH:MM" or "immediate")
      - fish lines, optional extras, optional coupon code

    Backend derives:
      - prices, weights, subtotal, discount, total
      - status = 'pending'
    """

    model_config = ConfigDict(extra="forbid")

    customer_name: str
    email: EmailStr
    phone: str
    note: str | None = None
    delivery_date: date
    delivery_time: str
    lines: list[OrderLineCreate] = Field(min_length=1)
    extras: list[OrderExtraCreate] = []
    coupon_code: str | None = None

    @field_validator("customer_name", "phone", "delivery_time")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v

    @field_validator("note", "coupon_code")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        return v or None


class OrderLineRead(SQLModel):
    id: uuid.UUID
    position: int
    good_id: uuid.UUID
    cut_id: uuid.UUID
    good_name: str
    cut_name: str
    size: str | None
    quantity: float
    unit: str
    weight_kg: float
    unit_price: float
    line_total: float
    actual_weight_kg: float | None = None


class OrderExtraRead(SQLModel):
    id: uuid.UUID
    product_id: uuid.UUID
    name: str
    unit: str
    quantity: int
    unit_price: float
    line_total: float


class OrderRead(SQLModel):
    """
    Lightweight representation of an order (without lines).
    """

    id: uuid.UUID
    customer_name: str
    email: str
    phone: str
    note: str | None
    delivery_date: date
    delivery_time: str
    subtotal: float
    extras_total: float
    discount_amount: float
    total_price: float
    coupon_code: str | None
    status: OrderStatus
    stock_shortfall: bool
    created_at: datetime


class OrderWithLinesRead(OrderRead):
    """
    Full order view including fish lines and extras.
    """

    lines: list[OrderLineRead]
    extras: list[OrderExtraRead]


class OrderStatusUpdate(SQLModel):
    """
    Kitchen/admin payload to move an order along.
    """

    model_config = ConfigDict(extra="forbid")

    status: OrderStatus
