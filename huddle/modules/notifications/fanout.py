"""
Notification fan-out.

A trigger resolves its recipients, drops the ones whose preference for the
category is off, then delivers one payload to every push subscription those
users have. Triggers run detached from the request that caused them: every
failure is logged and swallowed so the originating mutation never sees it.
"""

import functools
import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import BackgroundTasks, Depends
from supabase import Client

from huddle.core.errors import UpstreamFailure
from huddle.database.helpers import fetch_by_id, parse_timestamp
from huddle.database.supabase_client import get_service_supabase
from huddle.modules.notifications.schemas import DeliveryReport, NotificationPayload, NotificationType
from huddle.modules.push.sender import (
    PushSendResult, WebPushSender, build_push_payload, get_push_sender, is_expired_subscription
)

logger = logging.getLogger(__name__)

SETTING_COLUMNS = {
    NotificationType.NEW_EVENT: "new_event_enabled",
    NotificationType.REMINDER: "reminder_enabled",
    NotificationType.ANNOUNCEMENT: "announcement_enabled",
}

EVENT_DATE_FORMAT = "%b %d (%a)"
REMINDER_DATE_FORMAT = "%b %d (%a) %H:%M"


def spawn(background: Optional[BackgroundTasks], func: Callable, *args, **kwargs) -> None:
    """Run func after the response when a BackgroundTasks is available, else inline"""
    if background is None:
        func(*args, **kwargs)
    else:
        background.add_task(func, *args, **kwargs)


def _swallow_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception:
            logger.exception(f"Notification trigger {func.__name__} failed")
            return None
    return wrapper


def _format_date(value, fmt: str) -> str:
    parsed = parse_timestamp(value)
    return parsed.strftime(fmt) if parsed else ""


class NotificationFanout:
    def __init__(self, supabase: Client, sender):
        self.supabase = supabase
        self.sender = sender

    def filter_eligible(self, user_ids: List[str], notification_type: NotificationType) -> List[str]:
        """Keep users whose setting for this category is on; no settings row means on.
        If the settings lookup fails everyone is kept."""
        if not user_ids:
            return []

        column = SETTING_COLUMNS[notification_type]
        try:
            result = self.supabase.table("user_notification_settings")\
                .select(f"user_id, {column}")\
                .in_("user_id", user_ids)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading notification settings, notifying everyone: {e}")
            return list(user_ids)

        enabled = {row["user_id"]: row.get(column) for row in result.data or []}
        eligible = [uid for uid in user_ids if enabled.get(uid) is not False]
        logger.info(
            f"{notification_type.value} recipients: {len(eligible)}/{len(user_ids)} eligible"
        )
        return eligible

    def _send(self, subscription: Dict[str, Any], payload: Dict[str, Any]) -> PushSendResult:
        try:
            return self.sender.send(subscription, payload)
        except Exception as e:
            logger.error(f"Push to subscription {subscription.get('id')} failed: {e}")
            return PushSendResult(
                subscription_id=subscription.get("id"),
                user_id=subscription.get("user_id"),
                success=False,
                error=str(e)
            )

    def deliver(self, user_ids: List[str], notification: NotificationPayload) -> DeliveryReport:
        """Send to every subscription of the given users, drop expired subscriptions
        and log the notification once per user reached at least once"""
        report = DeliveryReport(target_users=len(user_ids))
        if not user_ids:
            return report

        try:
            subs_result = self.supabase.table("push_subscriptions")\
                .select("id, user_id, endpoint, p256dh, auth")\
                .in_("user_id", list(user_ids))\
                .execute()
        except Exception as e:
            logger.error(f"Error loading push subscriptions: {e}")
            raise UpstreamFailure("Failed to load push subscriptions")

        subscriptions = subs_result.data or []
        report.total_subscriptions = len(subscriptions)
        if not subscriptions:
            logger.info(f"No push subscriptions for {len(user_ids)} users")
            return report

        payload = build_push_payload(notification)
        results = [self._send(sub, payload) for sub in subscriptions]

        expired_ids = [
            r.subscription_id for r in results
            if not r.success and is_expired_subscription(r.status_code)
        ]
        if expired_ids:
            try:
                self.supabase.table("push_subscriptions")\
                    .delete()\
                    .in_("id", expired_ids)\
                    .execute()
                logger.info(f"Deleted {len(expired_ids)} expired push subscriptions")
            except Exception as e:
                logger.error(f"Error deleting expired subscriptions: {e}")

        # dict.fromkeys keeps first-success order while deduplicating
        reached = list(dict.fromkeys(r.user_id for r in results if r.success))
        if reached:
            try:
                self.supabase.table("notification_logs").insert([
                    {
                        "user_id": uid,
                        "type": notification.type.value,
                        "title": notification.title,
                        "message": notification.message,
                        "related_event_id": notification.related_event_id,
                    }
                    for uid in reached
                ]).execute()
                report.logged_users = len(reached)
            except Exception as e:
                logger.error(f"Error writing notification logs: {e}")

        report.sent = sum(1 for r in results if r.success)
        report.failed = len(results) - report.sent
        report.expired = len(expired_ids)
        logger.info(
            f"Push {notification.type.value}: sent={report.sent} failed={report.failed} "
            f"expired={report.expired} subscriptions={report.total_subscriptions}"
        )
        return report

    @_swallow_errors
    def notify_event_created(self, event_id: str, group_id: str, creator_id: str) -> Optional[DeliveryReport]:
        event = fetch_by_id(self.supabase, "events", event_id, "title, event_date")
        if not event:
            logger.error(f"Event {event_id} not found for new-event notification")
            return None

        members = self.supabase.table("group_members")\
            .select("user_id")\
            .eq("group_id", group_id)\
            .neq("user_id", creator_id)\
            .execute()
        user_ids = self.filter_eligible(
            [m["user_id"] for m in members.data or []], NotificationType.NEW_EVENT
        )
        if not user_ids:
            logger.info(f"No recipients for new event {event_id}")
            return None

        return self.deliver(user_ids, NotificationPayload(
            type=NotificationType.NEW_EVENT,
            title="New event",
            message=f"{event['title']} - {_format_date(event['event_date'], EVENT_DATE_FORMAT)}",
            related_event_id=event_id,
            url=f"/groups/{group_id}/events/{event_id}"
        ))

    @_swallow_errors
    def notify_announcement(self, announcement_id: str) -> Optional[DeliveryReport]:
        announcement = fetch_by_id(
            self.supabase, "announcements", announcement_id,
            "title, content, group_id, event_id, author_id"
        )
        if not announcement:
            logger.error(f"Announcement {announcement_id} not found for notification")
            return None

        user_ids: List[str] = []
        url = "/notifications"
        if announcement.get("group_id"):
            members = self.supabase.table("group_members")\
                .select("user_id")\
                .eq("group_id", announcement["group_id"])\
                .neq("user_id", announcement["author_id"])\
                .execute()
            user_ids = [m["user_id"] for m in members.data or []]
            url = f"/groups/{announcement['group_id']}"
        elif announcement.get("event_id"):
            participants = self.supabase.table("participants")\
                .select("user_id")\
                .eq("event_id", announcement["event_id"])\
                .neq("user_id", announcement["author_id"])\
                .execute()
            user_ids = [p["user_id"] for p in participants.data or []]
            event = fetch_by_id(self.supabase, "events", announcement["event_id"], "group_id")
            if event:
                url = f"/groups/{event['group_id']}/events/{announcement['event_id']}"

        user_ids = self.filter_eligible(user_ids, NotificationType.ANNOUNCEMENT)
        if not user_ids:
            logger.info(f"No recipients for announcement {announcement_id}")
            return None

        return self.deliver(user_ids, NotificationPayload(
            type=NotificationType.ANNOUNCEMENT,
            title="New announcement",
            message=announcement["title"],
            related_event_id=announcement.get("event_id"),
            url=url
        ))

    @_swallow_errors
    def notify_reminder(self, event_id: str) -> Optional[DeliveryReport]:
        event = fetch_by_id(self.supabase, "events", event_id, "title, event_date, group_id")
        if not event:
            logger.error(f"Event {event_id} not found for reminder")
            return None

        participants = self.supabase.table("participants")\
            .select("user_id")\
            .eq("event_id", event_id)\
            .eq("status", "attending")\
            .execute()
        user_ids = self.filter_eligible(
            [p["user_id"] for p in participants.data or []], NotificationType.REMINDER
        )
        if not user_ids:
            logger.info(f"No reminder recipients for event {event_id}")
            return None

        when = _format_date(event["event_date"], REMINDER_DATE_FORMAT)
        return self.deliver(user_ids, NotificationPayload(
            type=NotificationType.REMINDER,
            title="Event reminder",
            message=f"Tomorrow: {event['title']} ({when})",
            related_event_id=event_id,
            url=f"/groups/{event['group_id']}/events/{event_id}"
        ))


def get_notification_fanout(
    supabase: Client = Depends(get_service_supabase),
    sender: WebPushSender = Depends(get_push_sender)
) -> NotificationFanout:
    return NotificationFanout(supabase, sender)
