from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.errors import UpstreamFailure
from huddle.core.responses import ActionResult
from huddle.database.helpers import first_row, utc_now
from huddle.modules.notifications.schemas import NotificationLogResponse, NotificationSettings
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

INBOX_LIMIT = 20


class NotificationService:
    """The caller's notification inbox and per-category preferences"""

    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None):
        self.supabase = supabase
        self.cache = cache or ViewCache()

    def list_notifications(self, user_id: str, limit: int = INBOX_LIMIT) -> List[NotificationLogResponse]:
        try:
            result = self.supabase.table("notification_logs")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("sent_at", desc=True)\
                .limit(limit)\
                .execute()
        except Exception as e:
            logger.error(f"Error listing notifications: {e}")
            raise UpstreamFailure("Failed to load notifications")
        return [NotificationLogResponse(**row) for row in result.data or []]

    def unread_count(self, user_id: str) -> int:
        try:
            result = self.supabase.table("notification_logs")\
                .select("id", count="exact")\
                .eq("user_id", user_id)\
                .is_("read_at", "null")\
                .execute()
        except Exception as e:
            logger.error(f"Error counting unread notifications: {e}")
            raise UpstreamFailure("Failed to load notifications")
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def mark_read(self, notification_id: str, user_id: str) -> ActionResult[None]:
        """Only the caller's own notification is touched"""
        try:
            self.supabase.table("notification_logs")\
                .update({"read_at": utc_now().isoformat()})\
                .eq("id", notification_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error marking notification read: {e}")
            raise UpstreamFailure("Failed to mark notification as read")

        self.cache.invalidate("/notifications", "/dashboard")
        return ActionResult()

    def mark_all_read(self, user_id: str) -> ActionResult[None]:
        try:
            self.supabase.table("notification_logs")\
                .update({"read_at": utc_now().isoformat()})\
                .eq("user_id", user_id)\
                .is_("read_at", "null")\
                .execute()
        except Exception as e:
            logger.error(f"Error marking all notifications read: {e}")
            raise UpstreamFailure("Failed to mark notifications as read")

        self.cache.invalidate("/notifications", "/dashboard")
        return ActionResult()

    def get_settings(self, user_id: str) -> NotificationSettings:
        """Stored preferences, or all-enabled defaults when the user has none"""
        try:
            result = self.supabase.table("user_notification_settings")\
                .select("new_event_enabled, reminder_enabled, announcement_enabled")\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading notification settings: {e}")
            return NotificationSettings()
        row = first_row(result)
        return NotificationSettings(**row) if row else NotificationSettings()

    def update_settings(self, user_id: str, settings: NotificationSettings) -> ActionResult[NotificationSettings]:
        try:
            self.supabase.table("user_notification_settings").upsert({
                "user_id": user_id,
                **settings.model_dump(),
                "updated_at": utc_now().isoformat()
            }, on_conflict="user_id").execute()
        except Exception as e:
            logger.error(f"Error saving notification settings: {e}")
            raise UpstreamFailure("Failed to save notification settings")

        self.cache.invalidate("/settings")
        return ActionResult(data=settings)
