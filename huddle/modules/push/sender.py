"""
Web push delivery.

One call sends one payload to one subscription and reports the push
service's status code; the fan-out decides what to do with failures.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import BaseModel
from pywebpush import webpush, WebPushException

from huddle.config.settings import settings
from huddle.modules.notifications.schemas import NotificationPayload, NotificationType

logger = logging.getLogger(__name__)

EXPIRED_STATUS_CODES = (404, 410)
DEFAULT_NOTIFICATION_URL = "/notifications"

NOTIFICATION_ICONS = {
    NotificationType.NEW_EVENT: "/icons/event-icon.png",
    NotificationType.REMINDER: "/icons/reminder-icon.png",
    NotificationType.ANNOUNCEMENT: "/icons/announcement-icon.png",
}
DEFAULT_ICON = "/icons/icon-192.png"


class PushSendResult(BaseModel):
    subscription_id: Optional[str] = None
    user_id: Optional[str] = None
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


def is_expired_subscription(status_code: Optional[int]) -> bool:
    return status_code in EXPIRED_STATUS_CODES


def get_notification_icon(notification_type) -> str:
    return NOTIFICATION_ICONS.get(notification_type, DEFAULT_ICON)


def get_notification_tag(notification_type, related_id: Optional[str] = None) -> str:
    value = notification_type.value if isinstance(notification_type, NotificationType) else str(notification_type)
    if related_id:
        return f"{value}-{related_id}"
    return value


def build_push_payload(notification: NotificationPayload) -> Dict[str, Any]:
    return {
        "title": notification.title,
        "body": notification.message,
        "icon": get_notification_icon(notification.type),
        "url": notification.url or DEFAULT_NOTIFICATION_URL,
        "tag": get_notification_tag(notification.type, notification.related_event_id),
        "data": {
            "type": notification.type.value,
            "relatedEventId": notification.related_event_id,
        },
    }


class WebPushSender:
    def __init__(self, vapid_private_key: Optional[str] = None, vapid_subject: Optional[str] = None):
        self.vapid_private_key = vapid_private_key or settings.vapid_private_key
        self.vapid_subject = vapid_subject or settings.vapid_subject

    @property
    def configured(self) -> bool:
        # pywebpush needs both the key and the "sub" claim
        return bool(self.vapid_private_key and self.vapid_subject)

    def send(self, subscription: Dict[str, Any], payload: Dict[str, Any]) -> PushSendResult:
        """Send one payload to one stored push_subscriptions row"""
        result = PushSendResult(
            subscription_id=subscription.get("id"),
            user_id=subscription.get("user_id"),
            success=False
        )
        if not self.configured:
            logger.warning("VAPID keys not configured, skipping web push")
            result.error = "VAPID keys not configured"
            return result

        try:
            response = webpush(
                subscription_info={
                    "endpoint": subscription["endpoint"],
                    "keys": {
                        "p256dh": subscription["p256dh"],
                        "auth": subscription["auth"],
                    }
                },
                data=json.dumps(payload),
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject}
            )
            result.success = True
            result.status_code = getattr(response, "status_code", None)
        except WebPushException as e:
            logger.error(f"Failed to send web push to user {result.user_id}: {e}")
            result.error = str(e)
            if e.response is not None:
                result.status_code = e.response.status_code
        return result


_sender: Optional[WebPushSender] = None


def get_push_sender() -> WebPushSender:
    global _sender
    if _sender is None:
        _sender = WebPushSender()
    return _sender
