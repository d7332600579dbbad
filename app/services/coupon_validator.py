# app/services/coupon_validator.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.models.coupon import Coupon
from app.repositories.coupon_repo import CouponRepository
from app.schemas.reservation import CouponQuote, Rejected, RejectionReason


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compute_discount(coupon: Coupon, subtotal: float) -> float:
    """
    percentage -> subtotal * value / 100
    fixed      -> value, capped at the subtotal
    """
    if coupon.discount_type == "percentage":
        return subtotal * coupon.discount_value / 100
    return min(coupon.discount_value, subtotal)


class CouponValidator:
    """
    Checks a coupon against an order subtotal and prices the discount.

    Validation never mutates anything; the use count is only advanced by
    `redeem`, which the reservation pipeline calls inside its commit.
    """

    def __init__(self, repo: CouponRepository):
        self.repo = repo

    def validate(
        self,
        session: Session,
        code: str,
        subtotal: float,
        now: datetime | None = None,
    ) -> CouponQuote | Rejected:
        now = now or datetime.now(timezone.utc)

        coupon = self.repo.get_by_code(session, code)
        if coupon is None:
            return Rejected(
                reason=RejectionReason.COUPON_INVALID_CODE,
                message=f"Coupon {code.strip().upper()} does not exist",
            )

        if not coupon.is_active or (
            coupon.valid_from is not None and _as_utc(coupon.valid_from) > now
        ):
            return Rejected(
                reason=RejectionReason.COUPON_INACTIVE,
                message=f"Coupon {coupon.code} is not active",
            )

        if coupon.valid_until is not None and _as_utc(coupon.valid_until) < now:
            return Rejected(
                reason=RejectionReason.COUPON_EXPIRED,
                message=f"Coupon {coupon.code} has expired",
            )

        if subtotal < coupon.min_order_amount:
            return Rejected(
                reason=RejectionReason.COUPON_BELOW_MINIMUM,
                message=(
                    f"Coupon {coupon.code} requires a minimum order of "
                    f"{coupon.min_order_amount:.2f}"
                ),
            )

        if coupon.max_uses is not None and coupon.current_uses >= coupon.max_uses:
            return Rejected(
                reason=RejectionReason.COUPON_USES_EXHAUSTED,
                message=f"Coupon {coupon.code} has been fully used",
            )

        discount = compute_discount(coupon, subtotal)
        return CouponQuote(
            coupon_id=coupon.id,
            code=coupon.code,
            discount_type=coupon.discount_type,
            subtotal=subtotal,
            discount_amount=discount,
            total=max(0.0, subtotal - discount),
        )

    def redeem(self, session: Session, coupon_id: uuid.UUID) -> bool:
        return self.repo.redeem(session, coupon_id)
