# app/routers/availability.py
from datetime import date

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.repositories.availability_repo import AvailabilityRepository
from app.schemas.availability import SlotAvailabilityRead
from app.services.slot_ledger import SlotCapacityLedger

router = APIRouter(prefix="/availability", tags=["Availability"])

ledger = SlotCapacityLedger(AvailabilityRepository())


@router.get("", response_model=list[SlotAvailabilityRead])
def list_pickup_times(
    delivery_date: date,
    include_full: bool = False,
    session: Session = Depends(get_session),
):
    """
    Pickup windows for a date.

    - Public endpoint.
    - Full windows are hidden unless `include_full=true`.
    """
    return ledger.list_availability(session, delivery_date, include_full)
