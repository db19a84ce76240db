"""Decide when a turn is worth a notification.

- Proposal: once a proposal is assembled, before the user confirms.
- Insight: a plain reply that is long enough and reads like an observation.

Delivery failures are logged and never fail the turn.
"""

from __future__ import annotations

import logging
import re

from config.schema import NotificationConfig
from core.notifications.channels import LoggingNotificationChannel, NotificationChannel
from core.notifications.types import NotificationPayload
from core.operations.types import Proposal

logger = logging.getLogger(__name__)

INSIGHT_SUMMARY = "AI Insight"


class NotificationTrigger:
    def __init__(self, config: NotificationConfig | None = None, channel: NotificationChannel | None = None):
        self.config = config or NotificationConfig()
        self.channel = channel or LoggingNotificationChannel()
        alternatives = "|".join(re.escape(k) for k in self.config.insight_keywords)
        self._insight_re = re.compile(rf"\b(?:{alternatives})", re.IGNORECASE)

    def is_insight(self, text: str) -> bool:
        return len(text) > self.config.insight_min_length and bool(self._insight_re.search(text))

    async def on_proposal(self, user_id: str, proposal: Proposal) -> NotificationPayload | None:
        if not self.config.proposal_enabled:
            return None
        payload = NotificationPayload(kind="proposal", summary=proposal.summary, count=proposal.count)
        await self._deliver(user_id, payload)
        return payload

    async def on_reply(self, user_id: str, text: str) -> NotificationPayload | None:
        if not self.config.insight_enabled or not self.is_insight(text):
            return None
        body = text[: self.config.body_max_chars]
        payload = NotificationPayload(kind="insight", summary=INSIGHT_SUMMARY, body=body)
        await self._deliver(user_id, payload)
        return payload

    async def _deliver(self, user_id: str, payload: NotificationPayload) -> None:
        try:
            await self.channel.deliver(user_id, payload)
        except Exception:
            logger.exception("Failed to deliver %s notification to %s", payload.kind, user_id)
