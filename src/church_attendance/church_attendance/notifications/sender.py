"""Notification senders.

The engine only decides whom to notify and hands over a pre-rendered message;
delivery lives behind ``NotificationSender``.

Providers (``SMS_PROVIDER`` setting):
- ``console``: log the message instead of sending it (development).
- ``http``: POST to an SMS gateway at ``SMS_API_URL``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import requests

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationOutcome:
    ok: bool
    detail: str = ""


class NotificationSender(Protocol):
    def send(self, contact: str, message: str) -> NotificationOutcome:
        """Deliver one message. May also raise ``NotificationError``."""

        raise NotImplementedError


def clean_phone(phone: Optional[str]) -> str:
    return (phone or "").replace(" ", "").replace("-", "")


class ConsoleSender(NotificationSender):
    def __init__(self, sender_id: str = "Church"):
        self._sender_id = sender_id

    def send(self, contact: str, message: str) -> NotificationOutcome:
        phone = clean_phone(contact)
        if not phone:
            return NotificationOutcome(ok=False, detail="No phone number provided")
        logger.info("SMS (console mode) from %s to %s: %s", self._sender_id, phone, message)
        return NotificationOutcome(ok=True, detail="SMS sent (console mode)")


class HttpSmsSender(NotificationSender):
    def __init__(self, *, api_url: str, api_key: str = "", sender_id: str = "Church", timeout: float = 10):
        if not api_url:
            raise ValidationError("SMS_API_URL is required for the http SMS provider")
        self._api_url = api_url
        self._api_key = api_key
        self._sender_id = sender_id
        self._timeout = float(timeout)

    def send(self, contact: str, message: str) -> NotificationOutcome:
        phone = clean_phone(contact)
        if not phone:
            return NotificationOutcome(ok=False, detail="No phone number provided")
        if not message:
            return NotificationOutcome(ok=False, detail="No message provided")

        payload = {
            "api_key": self._api_key,
            "phone": phone,
            "message": message,
            "sender": self._sender_id,
        }
        try:
            response = requests.post(self._api_url, json=payload, timeout=self._timeout)
        except requests.RequestException as e:
            logger.warning("SMS gateway error for %s: %s", phone, e)
            return NotificationOutcome(ok=False, detail=f"Failed to send SMS: {e}")

        if response.status_code != 200:
            logger.warning("SMS gateway HTTP %s for %s", response.status_code, phone)
            return NotificationOutcome(ok=False, detail=f"HTTP Error: {response.status_code}")

        logger.info("SMS sent via gateway to %s", phone)
        return NotificationOutcome(ok=True, detail="SMS sent successfully")


def build_sender(settings) -> NotificationSender:
    provider = str(getattr(settings, "SMS_PROVIDER", "console")).lower()
    sender_id = getattr(settings, "SMS_SENDER_ID", "Church")

    if provider == "http":
        return HttpSmsSender(
            api_url=getattr(settings, "SMS_API_URL", ""),
            api_key=getattr(settings, "SMS_API_KEY", ""),
            sender_id=sender_id,
            timeout=float(getattr(settings, "SMS_TIMEOUT_SECONDS", 10)),
        )
    if provider == "console":
        return ConsoleSender(sender_id=sender_id)
    raise ValidationError(f"Unknown SMS_PROVIDER: {provider!r}")
