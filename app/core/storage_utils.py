# app/core/storage_utils.py
import uuid

from app.core.config import get_settings
from app.core.supabase_client import supabase_admin

settings = get_settings()


def label_path(order_id: uuid.UUID) -> str:
    """
    Object path of an order label inside the labels bucket.

    Example:
        "orders/3f0c.../label.txt"
    """
    return f"orders/{order_id}/label.txt"


def upload_label(order_id: uuid.UUID, content: str) -> str:
    """
    Upload a printable label to Supabase Storage and return its URL.

    An existing label for the same order is overwritten ('upsert').

    Raises:
        Any exception raised by Supabase client if upload fails.
    """
    supabase = supabase_admin()
    bucket = supabase.storage.from_(settings.LABEL_BUCKET)
    path = label_path(order_id)
    bucket.upload(
        path,
        content.encode("utf-8"),
        {"content-type": "text/plain; charset=utf-8", "upsert": "true"},
    )
    return bucket.get_public_url(path)
