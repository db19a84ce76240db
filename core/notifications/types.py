"""Notification payloads handed to a delivery channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal


@dataclass(frozen=True)
class NotificationPayload:
    kind: Literal["proposal", "insight"]
    summary: str
    count: int | None = None
    body: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind, "summary": self.summary}
        if self.count is not None:
            data["count"] = self.count
        if self.body is not None:
            data["body"] = self.body
        return data
