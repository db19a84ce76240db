"""Notifications - proposal and insight triggers with pluggable delivery."""

from .channels import HttpNotificationChannel, LoggingNotificationChannel, NotificationChannel, build_channel
from .trigger import NotificationTrigger
from .types import NotificationPayload

__all__ = [
    "HttpNotificationChannel",
    "LoggingNotificationChannel",
    "NotificationChannel",
    "NotificationPayload",
    "NotificationTrigger",
    "build_channel",
]
