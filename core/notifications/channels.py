"""Notification delivery channels.

Delivery transport (email, browser push) is external; a channel only hands
the payload over, either to the log or to an HTTP delivery endpoint.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from config.schema import NotificationConfig
from core.notifications.types import NotificationPayload

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    async def deliver(self, user_id: str, payload: NotificationPayload) -> None: ...


class LoggingNotificationChannel:
    """Default channel: record the notification in the application log."""

    async def deliver(self, user_id: str, payload: NotificationPayload) -> None:
        logger.info("Notification for %s: %s", user_id, payload.to_dict())


class HttpNotificationChannel:
    """POST each payload as JSON to an external delivery endpoint."""

    def __init__(self, endpoint: str, timeout: float = 5.0, transport: httpx.AsyncBaseTransport | None = None):
        self.endpoint = endpoint
        self.timeout = timeout
        self._transport = transport

    async def deliver(self, user_id: str, payload: NotificationPayload) -> None:
        body = {"user_id": user_id, **payload.to_dict()}
        # Env proxies are ignored; delivery endpoints are usually internal.
        async with httpx.AsyncClient(timeout=self.timeout, trust_env=False, transport=self._transport) as client:
            r = await client.post(self.endpoint, json=body)
            r.raise_for_status()


def build_channel(config: NotificationConfig) -> NotificationChannel:
    if config.channel == "http":
        return HttpNotificationChannel(config.endpoint, timeout=config.timeout_seconds)
    return LoggingNotificationChannel()
