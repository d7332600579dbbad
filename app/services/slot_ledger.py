# app/services/slot_ledger.py
import logging
from datetime import date, datetime, time

from sqlmodel import Session

from app.core.config import get_settings
from app.models.availability import AvailabilitySlot
from app.repositories.availability_repo import AvailabilityRepository
from app.schemas.availability import SlotAvailabilityRead
from app.schemas.reservation import Rejected, RejectionReason

logger = logging.getLogger(__name__)
settings = get_settings()

TIME_FORMAT = "%H:%M"


def weekday_of(day: date) -> int:
    """0=Sunday ... 6=Saturday, the way slots are configured."""
    return day.isoweekday() % 7


def render_range(slot: AvailabilitySlot) -> str:
    return f"{slot.start_time.strftime(TIME_FORMAT)}-{slot.end_time.strftime(TIME_FORMAT)}"


def parse_range(text: str) -> tuple[time, time] | None:
    """
    "09:00-10:30" -> (time(9, 0), time(10, 30)); None if malformed.
    """
    parts = text.strip().split("-")
    if len(parts) != 2:
        return None
    try:
        start = datetime.strptime(parts[0].strip(), TIME_FORMAT).time()
        end = datetime.strptime(parts[1].strip(), TIME_FORMAT).time()
    except ValueError:
        return None
    return start, end


def is_immediate(delivery_time: str) -> bool:
    return delivery_time.strip().lower() == settings.IMMEDIATE_PICKUP.lower()


class SlotCapacityLedger:
    """
    Admission control over pickup windows.

    Each (delivery_date, "HH:MM-HH:MM") bucket has a counter row. A
    reservation is a single conditional increment inside the caller's
    transaction, so:
      - two submissions racing for the last seat cannot both win
      - a seat is only kept if the order itself commits
    """

    def __init__(self, repo: AvailabilityRepository):
        self.repo = repo

    def check_and_reserve(
        self,
        session: Session,
        delivery_date: date,
        delivery_time: str,
    ) -> Rejected | None:
        """
        Take one seat in the bucket. Returns None when admitted.

        Immediate pickup never touches slot capacity.
        """
        if is_immediate(delivery_time):
            return None

        bounds = parse_range(delivery_time)
        slot = None
        if bounds is not None:
            slot = self.repo.find_slot(
                session, weekday_of(delivery_date), bounds[0], bounds[1]
            )

        if slot is None or not slot.is_active:
            return Rejected(
                reason=RejectionReason.SLOT_INACTIVE_OR_UNKNOWN,
                message="The selected pickup time is no longer available",
            )

        rendered = render_range(slot)
        self.repo.ensure_booking(session, delivery_date, rendered)
        if not self.repo.increment_booking(
            session, delivery_date, rendered, slot.max_orders
        ):
            logger.info(
                "Slot %s %s is full (max %s)", delivery_date, rendered, slot.max_orders
            )
            return Rejected(
                reason=RejectionReason.SLOT_FULL,
                message=f"The pickup time {rendered} on {delivery_date} is full",
            )
        return None

    def list_availability(
        self,
        session: Session,
        delivery_date: date,
        include_full: bool = False,
    ) -> list[SlotAvailabilityRead]:
        """
        Active windows for the date's weekday, with how many seats are
        taken. Buckets without a counter yet fall back to counting orders.
        """
        slots = self.repo.list_active_for_weekday(session, weekday_of(delivery_date))
        counters = self.repo.bookings_for_date(session, delivery_date)

        result: list[SlotAvailabilityRead] = []
        for slot in slots:
            rendered = render_range(slot)
            booked = counters.get(rendered)
            if booked is None:
                booked = self.repo.count_orders(session, delivery_date, rendered)
            remaining = max(0, slot.max_orders - booked)
            if remaining == 0 and not include_full:
                continue
            result.append(
                SlotAvailabilityRead(
                    slot_id=slot.id,
                    delivery_date=delivery_date,
                    delivery_time=rendered,
                    max_orders=slot.max_orders,
                    booked=booked,
                    remaining=remaining,
                    is_full=remaining == 0,
                )
            )
        return result
