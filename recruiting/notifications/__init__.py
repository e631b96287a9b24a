# Notifications
"""
Candidate email: interview invitations and outcome notices.
"""

from recruiting.notifications.config import NotificationConfig, get_notification_config
from recruiting.notifications.dispatcher import NotificationDispatcher
from recruiting.notifications.models import (
    DeliveryReceipt,
    EmailStatus,
    NotificationEvent,
    ResultKind,
    SenderInfo,
)

__all__ = [
    "DeliveryReceipt",
    "EmailStatus",
    "NotificationConfig",
    "NotificationDispatcher",
    "NotificationEvent",
    "ResultKind",
    "SenderInfo",
    "get_notification_config",
]
