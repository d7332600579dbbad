# app/services/reservation_service.py
import logging
import uuid
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.config import get_settings
from app.models.order import Order, OrderExtra, OrderLine
from app.repositories.availability_repo import AvailabilityRepository
from app.repositories.catalog_repo import CatalogRepository
from app.repositories.coupon_repo import CouponRepository
from app.repositories.order_repo import OrderRepository
from app.schemas.order import OrderCreate
from app.schemas.reservation import (
    CommitFailed,
    Committed,
    CouponQuote,
    Rejected,
    RejectionReason,
)
from app.services import quantity
from app.services.coupon_validator import CouponValidator
from app.services.notification_service import OrderNotifier
from app.services.order_service import build_order_dto
from app.services.slot_ledger import (
    TIME_FORMAT,
    SlotCapacityLedger,
    is_immediate,
    parse_range,
)
from app.services.stock_ledger import StockLedger, group_debits

logger = logging.getLogger(__name__)
settings = get_settings()


class OrderReservationService:
    """
    Turns a proposed order into a committed one.

    Steps:
      1. Normalise and price every line (quantity model).
      2. Subtotal = fish lines + extras.
      3. Coupon check (no mutation).
      4. Take a seat in the pickup slot.
      5. Debit stock per good (never blocks; shortfalls are flagged).
      6. Insert order + lines + extras, redeem the coupon, commit.
      7. Hand the committed order to the notifier.

    Steps 1-4 end in a typed Rejected and a rollback; nothing is left
    behind. Database errors roll back and surface as CommitFailed.
    """

    def __init__(
        self,
        catalog_repo: CatalogRepository,
        availability_repo: AvailabilityRepository,
        coupon_repo: CouponRepository,
        order_repo: OrderRepository,
        notifier: OrderNotifier | None = None,
    ):
        self.catalog_repo = catalog_repo
        self.order_repo = order_repo
        self.slots = SlotCapacityLedger(availability_repo)
        self.stock = StockLedger(catalog_repo)
        self.coupons = CouponValidator(coupon_repo)
        self.notifier = notifier

    def submit(
        self,
        session: Session,
        payload: OrderCreate,
        now: datetime | None = None,
    ) -> Committed | Rejected:
        now = now or datetime.now(ZoneInfo(settings.STORE_TIMEZONE))

        try:
            outcome = self._reserve(session, payload, now)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Order commit failed for %s", payload.email)
            raise CommitFailed("Could not store the order, please try again") from exc

        if isinstance(outcome, Rejected):
            session.rollback()
            logger.info("Order rejected (%s): %s", outcome.reason.value, outcome.message)
            return outcome

        if outcome.stock_shortfalls:
            logger.warning(
                "Order %s committed with stock shortfall on: %s",
                outcome.order.id,
                ", ".join(s.good_name for s in outcome.stock_shortfalls),
            )
        if self.notifier is not None:
            self.notifier.enqueue(outcome.order)
        return outcome

    # ----- Pipeline -----

    def _reserve(
        self,
        session: Session,
        payload: OrderCreate,
        now: datetime,
    ) -> Committed | Rejected:
        # 0) Pickup date sanity
        if payload.delivery_date < _store_today(now):
            return Rejected(
                reason=RejectionReason.DELIVERY_DATE_IN_PAST,
                message="Pickup date cannot be in the past",
            )

        # 1) Normalise lines
        priced = self._price_lines(session, payload)
        if isinstance(priced, Rejected):
            return priced
        lines, extras = priced

        # 2) Subtotal
        extras_total = round(sum(ex.line_total for ex in extras), 2)
        subtotal = round(sum(ln.line_total for ln in lines) + extras_total, 2)

        # 3) Coupon
        quote: CouponQuote | None = None
        if payload.coupon_code:
            checked = self.coupons.validate(session, payload.coupon_code, subtotal, now)
            if isinstance(checked, Rejected):
                return checked
            quote = checked

        # 4) Slot
        rejection = self.slots.check_and_reserve(
            session, payload.delivery_date, payload.delivery_time
        )
        if rejection is not None:
            return rejection

        # 5) Stock
        shortfalls = self.stock.check_and_debit(
            session, group_debits((ln.good_id, ln.weight_kg) for ln in lines)
        )
        self.stock.debit_extras(session, _group_units(extras))

        # 6) Persist
        discount = round(quote.discount_amount, 2) if quote else 0.0
        order = Order(
            customer_name=payload.customer_name,
            email=str(payload.email),
            phone=payload.phone,
            note=payload.note,
            delivery_date=payload.delivery_date,
            delivery_time=_stored_time(payload.delivery_time),
            subtotal=subtotal,
            extras_total=extras_total,
            discount_amount=discount,
            total_price=round(max(0.0, subtotal - discount), 2),
            coupon_id=quote.coupon_id if quote else None,
            coupon_code=quote.code if quote else None,
            status="pending",
            stock_shortfall=bool(shortfalls),
        )
        order = self.order_repo.create_order(session, order)

        for ln in lines:
            ln.order_id = order.id
        for ex in extras:
            ex.order_id = order.id
        self.order_repo.create_lines(session, lines)
        self.order_repo.create_extras(session, extras)

        if quote is not None and not self.coupons.redeem(session, quote.coupon_id):
            # Someone else took the last use after our check
            return Rejected(
                reason=RejectionReason.COUPON_USES_EXHAUSTED,
                message=f"Coupon {quote.code} has been fully used",
            )

        # Everything is flushed, so the view can be built before commit
        # expires the rows.
        dto = build_order_dto(order, lines, extras)
        session.commit()

        # 7) Result
        return Committed(order=dto, stock_shortfalls=shortfalls)

    def _price_lines(
        self,
        session: Session,
        payload: OrderCreate,
    ) -> tuple[list[OrderLine], list[OrderExtra]] | Rejected:
        """
        Validate every line and extra; report all problems at once.
        """
        errors: list[dict[str, str]] = []
        lines: list[OrderLine] = []
        size_cache: dict[uuid.UUID, dict[str, float]] = {}

        for position, item in enumerate(payload.lines):
            good = self.catalog_repo.get_good(session, item.good_id)
            if not good or not good.is_active:
                errors.append(_line_error(position, item.good_id, "Product is not available"))
                continue

            cut = self.catalog_repo.get_cut(session, item.cut_id)
            link = self.catalog_repo.get_good_cut(session, item.good_id, item.cut_id)
            if not cut or not cut.is_active or not link or not link.is_enabled:
                errors.append(
                    _line_error(position, item.good_id, f"Cut is not offered for {good.name}")
                )
                continue

            if good.id not in size_cache:
                size_cache[good.id] = self.catalog_repo.size_weights(session, good.id)
            sizes = size_cache[good.id]

            reason = quantity.validate_quantity(good, item.quantity, item.size, sizes)
            if reason:
                errors.append(_line_error(position, item.good_id, reason))
                continue

            weight = quantity.weight_debit(good, item.quantity, item.size, sizes)
            price = quantity.unit_price(good, cut.price_addition)
            lines.append(
                OrderLine(
                    position=position,
                    good_id=good.id,
                    cut_id=cut.id,
                    good_name=good.name,
                    cut_name=cut.name,
                    size=item.size if good.has_sizes else None,
                    quantity=item.quantity,
                    unit=quantity.display_unit(good),
                    weight_kg=weight,
                    unit_price=price,
                    line_total=quantity.line_total(price, weight),
                )
            )

        extras: list[OrderExtra] = []
        for item in payload.extras:
            product = self.catalog_repo.get_extra(session, item.product_id)
            if not product or not product.is_active:
                errors.append(
                    {"product_id": str(item.product_id), "reason": "Product is not available"}
                )
                continue
            if item.quantity > product.available_units:
                errors.append(
                    {
                        "product_id": str(item.product_id),
                        "reason": (
                            f"Only {product.available_units} {product.unit} of "
                            f"{product.name} available"
                        ),
                    }
                )
                continue
            extras.append(
                OrderExtra(
                    product_id=product.id,
                    name=product.name,
                    unit=product.unit,
                    quantity=item.quantity,
                    unit_price=product.price,
                    line_total=round(product.price * item.quantity, 2),
                )
            )

        if errors:
            return Rejected(
                reason=RejectionReason.INVALID_LINE,
                message="Some items cannot be ordered",
                items=errors,
            )
        return lines, extras


def _store_today(now: datetime) -> date:
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(ZoneInfo(settings.STORE_TIMEZONE)).date()


def _stored_time(delivery_time: str) -> str:
    """
    Canonical text for delivery_time: the sentinel, or "HH:MM-HH:MM".
    """
    if is_immediate(delivery_time):
        return settings.IMMEDIATE_PICKUP
    start, end = parse_range(delivery_time)
    return f"{start.strftime(TIME_FORMAT)}-{end.strftime(TIME_FORMAT)}"


def _group_units(extras: list[OrderExtra]) -> dict[uuid.UUID, int]:
    totals: dict[uuid.UUID, int] = {}
    for ex in extras:
        totals[ex.product_id] = totals.get(ex.product_id, 0) + ex.quantity
    return totals


def _line_error(position: int, good_id: uuid.UUID, reason: str) -> dict[str, str]:
    return {"line": str(position), "good_id": str(good_id), "reason": reason}
