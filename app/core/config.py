# app/core/config.py
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized application settings loaded from environment.

    Required env vars (.env):
      - DATABASE_URL (Supabase Postgres connection string, or sqlite:// locally)
      - SUPABASE_URL
      - SUPABASE_JWT_SECRET (JWT signing secret from Supabase project settings)

    Optional:
      - SUPABASE_SERVICE_ROLE_KEY (only used for label uploads to Storage)
      - SMTP_* / GREENAPI_* / PRINTER_* (notification channels; a channel
        without configuration is skipped)
    """

    PROJECT_NAME: str = "Fish Counter Pickup API"
    API_V1_STR: str = "/api/v1"

    # Supabase / DB config
    SUPABASE_URL: str
    DATABASE_URL: str

    # JWT verification (backend-side)
    SUPABASE_JWT_SECRET: str
    SUPABASE_JWT_ALG: str = "HS256"

    # Service role key bypasses RLS (backend only)
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    LABEL_BUCKET: str = "labels"

    # Store rules
    MIN_WEIGHT_KG: float = 0.5
    DEFAULT_AVERAGE_WEIGHT_KG: float = 1.0
    IMMEDIATE_PICKUP: str = "immediate"
    STORE_TIMEZONE: str = "Asia/Jerusalem"

    # Email (SMTP)
    SMTP_HOST: str | None = None
    SMTP_PORT: int = 587
    SMTP_USERNAME: str | None = None
    SMTP_PASSWORD: str | None = None
    SMTP_FROM_EMAIL: str | None = None
    SMTP_FROM_NAME: str = "Fish Counter"
    SMTP_USE_TLS: bool = True
    SMTP_USE_SSL: bool = False

    # Store contact points for operator notifications
    STORE_ADMIN_EMAIL: str | None = None
    STORE_ADMIN_PHONE: str | None = None

    # WhatsApp via GreenAPI
    GREENAPI_URL: str = "https://api.green-api.com"
    GREENAPI_INSTANCE_ID: str | None = None
    GREENAPI_TOKEN: str | None = None

    # Label printer (raw TCP, ESC/POS style)
    PRINTER_HOST: str | None = None
    PRINTER_PORT: int = 9100

    NOTIFY_WORKERS: int = 4

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings loader.
    Ensures we don't re-parse .env on every import / request.
    """
    return Settings()
