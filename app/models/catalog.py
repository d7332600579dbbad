# app/models/catalog.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field


class Good(SQLModel, table=True):
    """
    A sellable fish or product.

    Stock is always kept in kilograms (`available_kg`), including goods that
    the customer orders by units. `pricing_mode` decides how a requested
    quantity is read:
      - by_weight: quantity is kilograms
      - by_unit  : quantity is a whole number of pieces
    """

    __tablename__ = "goods"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        index=True,
        description="Display name of the fish/product",
    )

    # by_weight | by_unit
    pricing_mode: str = Field(
        default="by_weight",
        description="How customers order this good",
    )

    price_per_kg: float = Field(
        gt=0,
        description="Base price per kilogram",
    )

    available_kg: float = Field(
        default=0.0,
        ge=0,
        description="Canonical stock in kilograms (never negative)",
    )

    average_weight_kg: float | None = Field(
        default=None,
        description="Expected weight of one piece for by_unit goods",
    )

    has_sizes: bool = Field(
        default=False,
        description="Whether the customer picks a size (S/M/L)",
    )

    is_active: bool = Field(
        default=True,
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class SizeVariant(SQLModel, table=True):
    """
    Size-specific average piece weight for a good (e.g. S=0.5, M=0.7, L=0.9).
    """

    __tablename__ = "size_variants"
    __table_args__ = (UniqueConstraint("good_id", "size"),)

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
    )

    good_id: uuid.UUID = Field(
        foreign_key="goods.id",
        index=True,
    )

    # S | M | L
    size: str = Field(max_length=4)

    average_weight_kg: float = Field(gt=0)


class Cut(SQLModel, table=True):
    """
    Preparation style (whole, fillet, steaks, ...) with a per-kg surcharge.
    """

    __tablename__ = "cuts"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=100)

    price_addition: float = Field(
        default=0.0,
        ge=0,
        description="Added to the good's price_per_kg",
    )

    is_active: bool = Field(default=True)


class GoodCut(SQLModel, table=True):
    """
    Which cuts are offered for which good.
    """

    __tablename__ = "good_cuts"

    good_id: uuid.UUID = Field(
        foreign_key="goods.id",
        primary_key=True,
    )

    cut_id: uuid.UUID = Field(
        foreign_key="cuts.id",
        primary_key=True,
    )

    is_enabled: bool = Field(default=True)


class AdditionalProduct(SQLModel, table=True):
    """
    Add-on products sold per unit next to the fish (spices, sauces, ...).
    """

    __tablename__ = "additional_products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(max_length=100)

    price: float = Field(gt=0)

    unit: str = Field(default="unit", max_length=20)

    available_units: int = Field(default=0, ge=0)

    is_active: bool = Field(default=True)
