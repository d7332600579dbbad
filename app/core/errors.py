# app/core/errors.py
from fastapi import HTTPException, status

from app.schemas.reservation import (
    COUPON_REASONS,
    SLOT_REASONS,
    Rejected,
)


def rejection_status(rejected: Rejected) -> int:
    """
    HTTP status for a typed rejection:

      slot_full / slot_inactive_or_unknown -> 409 (pick another time)
      coupon_*                             -> 422 (retry without coupon)
      everything else                      -> 400
    """
    if rejected.reason in SLOT_REASONS:
        return status.HTTP_409_CONFLICT
    if rejected.reason in COUPON_REASONS:
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    return status.HTTP_400_BAD_REQUEST


def rejection_to_http(rejected: Rejected) -> HTTPException:
    return HTTPException(
        status_code=rejection_status(rejected),
        detail={
            "reason": rejected.reason.value,
            "message": rejected.message,
            "items": rejected.items,
        },
    )
