"""Outbound message delivery to the candidate's channel."""
from __future__ import annotations

import logging
import threading
from typing import Any, List, Optional, Protocol, Tuple

from twilio.base.exceptions import TwilioRestException
from twilio.http.http_client import TwilioHttpClient
from twilio.rest import Client

from config.settings import Settings

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "whatsapp:"


class OutboxError(RuntimeError):
    pass


class Outbox(Protocol):
    def send(self, to: str, body: str) -> None: ...


def whatsapp_address(number: str) -> str:
    number = number.strip()
    return number if number.startswith(CHANNEL_PREFIX) else f"{CHANNEL_PREFIX}{number}"


class RecordingOutbox:
    """Keeps sent messages in memory; used in development and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sent: List[Tuple[str, str]] = []

    def send(self, to: str, body: str) -> None:
        with self._lock:
            self.sent.append((to, body))
        logger.info("Outbox recorded to=%s chars=%d", to, len(body))

    def bodies(self, to: Optional[str] = None) -> List[str]:
        with self._lock:
            return [body for dest, body in self.sent if to is None or dest == to]

    def clear(self) -> None:
        with self._lock:
            self.sent.clear()


class TwilioOutbox:
    """Sends WhatsApp messages through the Twilio SDK."""

    def __init__(
        self,
        *,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout_s: float = 10.0,
        client: Optional[Any] = None,
    ):
        self.from_number = whatsapp_address(from_number)
        self._client = client or Client(account_sid, auth_token, http_client=TwilioHttpClient(timeout=timeout_s))

    def send(self, to: str, body: str) -> None:
        try:
            message = self._client.messages.create(from_=self.from_number, to=whatsapp_address(to), body=body)
        except TwilioRestException as exc:
            raise OutboxError(f"Twilio rejected message: {exc.status} {exc.msg}") from exc
        logger.info("Outbox sent to=%s sid=%s", to, getattr(message, "sid", None))


def build_outbox(config: Settings) -> Outbox:
    if config.OUTBOX == "twilio":
        if not config.TWILIO_SID or not config.TWILIO_AUTH_TOKEN:
            raise OutboxError("TWILIO_SID and TWILIO_AUTH_TOKEN are required for the twilio outbox")
        return TwilioOutbox(
            account_sid=config.TWILIO_SID,
            auth_token=config.TWILIO_AUTH_TOKEN,
            from_number=config.TWILIO_WHATSAPP_FROM,
            timeout_s=config.TWILIO_TIMEOUT_S,
        )
    return RecordingOutbox()


__all__ = ["Outbox", "OutboxError", "RecordingOutbox", "TwilioOutbox", "build_outbox", "whatsapp_address"]
