# app/routers/goods.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.database import get_session
from app.repositories.catalog_repo import CatalogRepository
from app.schemas.catalog import GoodLimitsRead
from app.services.catalog_service import CatalogService

router = APIRouter(prefix="/goods", tags=["Goods"])

service = CatalogService(CatalogRepository())


@router.get("/{good_id}/limits", response_model=GoodLimitsRead)
def get_good_limits(
    good_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    How much of a good can be ordered right now.

    - by_weight: minimum weight, no unit ceiling
    - by_unit  : max units overall and per size
    """
    return service.get_limits(session, good_id)
