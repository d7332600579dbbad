# app/services/catalog_service.py
import uuid

from fastapi import HTTPException, status
from sqlmodel import Session

from app.core.config import get_settings
from app.repositories.catalog_repo import CatalogRepository
from app.schemas.catalog import GoodLimitsRead, SizeLimitRead
from app.services import quantity

settings = get_settings()


class CatalogService:
    """
    Customer-facing ordering limits for a good.
    """

    def __init__(self, repo: CatalogRepository):
        self.repo = repo

    def get_limits(self, session: Session, good_id: uuid.UUID) -> GoodLimitsRead:
        good = self.repo.get_good(session, good_id)
        if not good or not good.is_active:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Product not found",
            )

        if quantity.is_by_weight(good):
            return GoodLimitsRead(
                good_id=good.id,
                name=good.name,
                pricing_mode=good.pricing_mode,
                available_kg=good.available_kg,
                min_weight_kg=settings.MIN_WEIGHT_KG,
            )

        weights = self.repo.size_weights(session, good.id) if good.has_sizes else {}
        sizes = [
            SizeLimitRead(
                size=size,
                average_weight_kg=avg,
                max_units=quantity.max_orderable_units(good.available_kg, good, size, weights),
            )
            for size, avg in sorted(weights.items(), key=lambda kv: kv[1])
        ]
        return GoodLimitsRead(
            good_id=good.id,
            name=good.name,
            pricing_mode=good.pricing_mode,
            available_kg=good.available_kg,
            average_weight_kg=quantity.average_weight_kg(good),
            max_units=quantity.max_orderable_units(good.available_kg, good),
            sizes=sizes,
        )
