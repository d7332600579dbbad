# app/repositories/coupon_repo.py
import uuid

from sqlalchemy import func, or_, update
from sqlmodel import Session, col, select

from app.models.coupon import Coupon


class CouponRepository:
    """
    Data access layer for coupons.
    """

    def get_by_code(self, session: Session, code: str) -> Coupon | None:
        stmt = select(Coupon).where(func.upper(Coupon.code) == code.strip().upper())
        return session.exec(stmt).first()

    def redeem(self, session: Session, coupon_id: uuid.UUID) -> bool:
        """
        current_uses += 1 unless the quota is already used up.

        Returns True if the use was recorded. No commit.
        """
        stmt = (
            update(Coupon)
            .where(
                col(Coupon.id) == coupon_id,
                or_(
                    col(Coupon.max_uses).is_(None),
                    col(Coupon.current_uses) < col(Coupon.max_uses),
                ),
            )
            .values(current_uses=Coupon.current_uses + 1)
        )
        return session.connection().execute(stmt).rowcount == 1
