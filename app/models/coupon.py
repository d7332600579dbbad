# app/models/coupon.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Coupon(SQLModel, table=True):
    """
    Discount code.

    - code is stored upper-case and matched case-insensitively
    - max_uses = None means unlimited
    - current_uses only grows when an order using the coupon commits
    """

    __tablename__ = "coupons"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    code: str = Field(
        max_length=64,
        unique=True,
        index=True,
    )

    description: str | None = None

    # percentage | fixed
    discount_type: str = Field(default="percentage")

    discount_value: float = Field(ge=0)

    min_order_amount: float = Field(default=0.0, ge=0)

    max_uses: int | None = Field(default=None, ge=0)

    current_uses: int = Field(default=0, ge=0)

    valid_from: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    valid_until: datetime | None = None

    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
