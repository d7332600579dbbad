# app/core/whatsapp_client.py
"""
WhatsApp messages through GreenAPI.

    GREENAPI_INSTANCE_ID=1101000001
    GREENAPI_TOKEN=<api token>

Phone numbers are sent as international digits (972501234567); a local
number starting with 0 gets the Israeli prefix.
"""
import re

import httpx

from app.core.config import get_settings

settings = get_settings()

DEFAULT_COUNTRY_CODE = "972"


def is_configured() -> bool:
    return bool(settings.GREENAPI_INSTANCE_ID and settings.GREENAPI_TOKEN)


def normalize_phone(phone: str) -> str:
    """
    "050-123 4567" -> "972501234567"; "+972 50..." -> "97250...".
    """
    digits = re.sub(r"\D", "", phone)
    if digits.startswith("0"):
        digits = DEFAULT_COUNTRY_CODE + digits[1:]
    return digits


def send_message(phone: str, message: str) -> str | None:
    """
    Send a text message and return GreenAPI's message id.

    Raises:
        RuntimeError: if GreenAPI is not configured.
        httpx.HTTPError: if the request fails or returns an error status.
    """
    if not is_configured():
        raise RuntimeError("GreenAPI is not configured (GREENAPI_INSTANCE_ID / GREENAPI_TOKEN)")

    url = (
        f"{settings.GREENAPI_URL}/waInstance{settings.GREENAPI_INSTANCE_ID}"
        f"/sendMessage/{settings.GREENAPI_TOKEN}"
    )
    payload = {"chatId": f"{normalize_phone(phone)}@c.us", "message": message}

    response = httpx.post(url, json=payload, timeout=15.0)
    response.raise_for_status()
    return response.json().get("idMessage")
