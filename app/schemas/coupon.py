# app/schemas/coupon.py
from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field


class CouponValidateRequest(SQLModel):
    """
    Checkout-time coupon preview. Nothing is redeemed.
    """

    model_config = ConfigDict(extra="forbid")

    code: str
    subtotal: float = Field(ge=0)

    @field_validator("code")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("code cannot be empty")
        return v
