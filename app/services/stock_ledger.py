# app/services/stock_ledger.py
import logging
import uuid
from collections import defaultdict
from typing import Iterable

from sqlmodel import Session

from app.repositories.catalog_repo import CatalogRepository
from app.schemas.reservation import StockShortfall

logger = logging.getLogger(__name__)


def group_debits(debits: Iterable[tuple[uuid.UUID, float]]) -> dict[uuid.UUID, float]:
    """
    Sum kilograms per good. An order may hold the same fish twice
    (two cuts), and stock must be checked against the combined weight.
    """
    totals: dict[uuid.UUID, float] = defaultdict(float)
    for good_id, weight_kg in debits:
        totals[good_id] += weight_kg
    return {good_id: round(kg, 3) for good_id, kg in totals.items()}


class StockLedger:
    """
    Debits canonical weight from goods at order commit.

    Policy: running short never blocks an order. The stored value is
    floored at 0 and the shortfall is reported so staff can sort it out
    before weighing.
    """

    def __init__(self, repo: CatalogRepository):
        self.repo = repo

    def check_and_debit(
        self,
        session: Session,
        debits: dict[uuid.UUID, float],
    ) -> list[StockShortfall]:
        if not debits:
            return []

        shortfalls: list[StockShortfall] = []
        goods = self.repo.lock_goods(session, list(debits))

        for good in goods:
            requested = debits[good.id]
            if requested > good.available_kg:
                shortfall = StockShortfall(
                    good_id=good.id,
                    good_name=good.name,
                    available_kg=good.available_kg,
                    requested_kg=requested,
                )
                shortfalls.append(shortfall)
                logger.warning(
                    "Stock shortfall for %s (%s): available %.3f kg, ordered %.3f kg",
                    good.name,
                    good.id,
                    good.available_kg,
                    requested,
                )
            self.repo.debit_good(session, good.id, requested)

        return shortfalls

    def debit_extras(self, session: Session, units: dict[uuid.UUID, int]) -> None:
        """
        Same floor-at-zero policy for add-on products.
        """
        for product_id, quantity in units.items():
            self.repo.debit_extra(session, product_id, quantity)
