# app/models/order.py
import uuid
from datetime import datetime, date, timezone

from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Committed pickup order.

    Written once by the reservation pipeline; afterwards only `status`
    changes (kitchen workflow).
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    customer_name: str = Field(
        description="Name for the pickup",
    )
    email: str = Field(
        description="Customer email for the confirmation",
    )
    phone: str = Field(
        description="Contact phone number",
    )
    note: str | None = Field(
        default=None,
        description="Optional note / special instructions",
    )

    delivery_date: date = Field(
        index=True,
        description="Requested pickup date",
    )

    # "HH:MM-HH:MM" or the immediate-pickup sentinel
    delivery_time: str = Field(
        index=True,
        description="Pickup window",
    )

    subtotal: float = Field(
        description="Lines + extras before discount",
    )
    extras_total: float = Field(default=0.0)
    discount_amount: float = Field(default=0.0)
    total_price: float = Field(
        description="Amount due at pickup",
    )

    coupon_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="coupons.id",
    )
    coupon_code: str | None = None

    # pending | weighing | ready | completed
    status: str = Field(
        default="pending",
        index=True,
        description="Order status lifecycle",
    )

    # Set when at least one good was debited past zero
    stock_shortfall: bool = Field(default=False)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )


class OrderLine(SQLModel, table=True):
    """
    Fish line inside an order.

    `quantity` is in the good's display unit ("kg" or "units");
    `weight_kg` is what was debited from stock.
    """

    __tablename__ = "order_lines"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    position: int = Field(default=0)

    good_id: uuid.UUID = Field(foreign_key="goods.id")
    cut_id: uuid.UUID = Field(foreign_key="cuts.id")

    good_name: str
    cut_name: str
    size: str | None = None

    quantity: float
    unit: str = Field(default="kg")
    weight_kg: float

    # Filled in by the kitchen after weighing
    actual_weight_kg: float | None = Field(default=None)

    # per kg, cut surcharge included
    unit_price: float
    line_total: float


class OrderExtra(SQLModel, table=True):
    """
    Add-on product line inside an order.
    """

    __tablename__ = "order_extras"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(foreign_key="additional_products.id")

    name: str
    unit: str
    quantity: int = Field(gt=0)
    unit_price: float
    line_total: float
