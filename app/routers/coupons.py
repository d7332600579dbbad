# app/routers/coupons.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.errors import rejection_to_http
from app.database import get_session
from app.repositories.coupon_repo import CouponRepository
from app.schemas.coupon import CouponValidateRequest
from app.schemas.reservation import CouponQuote, Rejected
from app.services.coupon_validator import CouponValidator

router = APIRouter(prefix="/coupons", tags=["Coupons"])

validator = CouponValidator(CouponRepository())


@router.post("/validate", response_model=CouponQuote)
def validate_coupon(
    payload: CouponValidateRequest,
    session: Session = Depends(get_session),
):
    """
    Preview a coupon against a cart subtotal.

    Nothing is redeemed; the use is only counted when an order commits.
    """
    result = validator.validate(session, payload.code, payload.subtotal)
    if isinstance(result, Rejected):
        raise rejection_to_http(result)
    return result
