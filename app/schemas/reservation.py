# app/schemas/reservation.py
import uuid
from enum import Enum

from sqlmodel import SQLModel

from app.schemas.order import OrderWithLinesRead


class RejectionReason(str, Enum):
    INVALID_LINE = "invalid_line"
    DELIVERY_DATE_IN_PAST = "delivery_date_in_past"
    COUPON_INVALID_CODE = "coupon_invalid_code"
    COUPON_INACTIVE = "coupon_inactive"
    COUPON_EXPIRED = "coupon_expired"
    COUPON_BELOW_MINIMUM = "coupon_below_minimum"
    COUPON_USES_EXHAUSTED = "coupon_uses_exhausted"
    SLOT_FULL = "slot_full"
    SLOT_INACTIVE_OR_UNKNOWN = "slot_inactive_or_unknown"


COUPON_REASONS = frozenset(
    {
        RejectionReason.COUPON_INVALID_CODE,
        RejectionReason.COUPON_INACTIVE,
        RejectionReason.COUPON_EXPIRED,
        RejectionReason.COUPON_BELOW_MINIMUM,
        RejectionReason.COUPON_USES_EXHAUSTED,
    }
)

SLOT_REASONS = frozenset(
    {
        RejectionReason.SLOT_FULL,
        RejectionReason.SLOT_INACTIVE_OR_UNKNOWN,
    }
)


class Rejected(SQLModel):
    """
    Why a submission (or a coupon preview) was turned down.

    `items` carries per-line details for invalid_line.
    """

    reason: RejectionReason
    message: str
    items: list[dict[str, str]] = []


class StockShortfall(SQLModel):
    """
    A good was debited past zero; the stored value was clamped to 0.
    """

    good_id: uuid.UUID
    good_name: str
    available_kg: float
    requested_kg: float

    @property
    def missing_kg(self) -> float:
        return round(self.requested_kg - self.available_kg, 3)


class CouponQuote(SQLModel):
    """
    Result of a successful coupon check.
    """

    coupon_id: uuid.UUID
    code: str
    discount_type: str
    subtotal: float
    discount_amount: float
    total: float


class Committed(SQLModel):
    order: OrderWithLinesRead
    stock_shortfalls: list[StockShortfall] = []


class CommitFailed(Exception):
    """
    The persistence layer failed inside the commit transaction.

    The transaction was rolled back; no counters advanced.
    """
