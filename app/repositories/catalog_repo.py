# app/repositories/catalog_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import case, update
from sqlmodel import Session, col, select

from app.models.catalog import AdditionalProduct, Cut, Good, GoodCut, SizeVariant


class CatalogRepository:
    """
    Data access layer for goods, cuts, size variants and add-on products.

    - Reads for the reservation pipeline.
    - Atomic stock debits (no commits here; the pipeline owns the
      transaction).
    """

    # ----- Goods -----

    def get_good(self, session: Session, good_id: uuid.UUID) -> Good | None:
        return session.get(Good, good_id)

    def lock_goods(self, session: Session, good_ids: list[uuid.UUID]) -> list[Good]:
        """
        Re-read goods with a row lock, in id order so that two orders
        touching the same goods always lock them in the same sequence.

        SQLite has no FOR UPDATE; there the whole transaction is already
        exclusive.
        """
        stmt = (
            select(Good)
            .where(col(Good.id).in_(good_ids))
            .order_by(col(Good.id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(session.exec(stmt).all())

    def debit_good(self, session: Session, good_id: uuid.UUID, weight_kg: float) -> int:
        """
        Subtract weight_kg from available_kg, flooring the stored value at 0.

        Single UPDATE statement, so the floor holds even if another writer
        moved the value in between.
        """
        remaining = Good.available_kg - weight_kg
        stmt = (
            update(Good)
            .where(col(Good.id) == good_id)
            .values(
                available_kg=case((remaining < 0, 0.0), else_=remaining),
                updated_at=datetime.now(timezone.utc),
            )
        )
        return session.connection().execute(stmt).rowcount

    # ----- Size variants -----

    def size_weights(self, session: Session, good_id: uuid.UUID) -> dict[str, float]:
        stmt = select(SizeVariant).where(SizeVariant.good_id == good_id)
        return {v.size: v.average_weight_kg for v in session.exec(stmt).all()}

    # ----- Cuts -----

    def get_cut(self, session: Session, cut_id: uuid.UUID) -> Cut | None:
        return session.get(Cut, cut_id)

    def get_good_cut(
        self,
        session: Session,
        good_id: uuid.UUID,
        cut_id: uuid.UUID,
    ) -> GoodCut | None:
        return session.get(GoodCut, (good_id, cut_id))

    # ----- Add-on products -----

    def get_extra(
        self,
        session: Session,
        product_id: uuid.UUID,
    ) -> AdditionalProduct | None:
        return session.get(AdditionalProduct, product_id)

    def debit_extra(self, session: Session, product_id: uuid.UUID, units: int) -> int:
        remaining = AdditionalProduct.available_units - units
        stmt = (
            update(AdditionalProduct)
            .where(col(AdditionalProduct.id) == product_id)
            .values(available_units=case((remaining < 0, 0), else_=remaining))
        )
        return session.connection().execute(stmt).rowcount
