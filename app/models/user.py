# app/models/user.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class StaffUser(SQLModel, table=True):
    """
    Store staff profile mirrored from Supabase Auth.

    Customers order as guests and never get a row here. Staff sign in via
    Supabase; the first request with a valid token provisions a profile
    with role "staff". Promotion to "admin" is done by hand.
    """

    __tablename__ = "staff_users"

    id: uuid.UUID = Field(
        primary_key=True,
        index=True,
        description="Matches Supabase auth.users.id",
    )

    email: str = Field(
        unique=True,
        index=True,
    )

    # staff | admin
    role: str = Field(
        default="staff",
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
