from fastapi import BackgroundTasks
from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.dependencies import require_member_role
from huddle.core.errors import ActionError, Forbidden, NotFound, UpstreamFailure, ValidationFailed
from huddle.core.permissions import can_create_announcement, can_manage_announcement
from huddle.core.responses import ActionResult
from huddle.database.helpers import fetch_by_id, fetch_profiles
from huddle.modules.announcements.schemas import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse
from huddle.modules.notifications.fanout import NotificationFanout, spawn
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

RECENT_LIMIT = 5


def announcement_paths(group_id: str, event_id: Optional[str] = None) -> List[str]:
    paths = [f"/groups/{group_id}", f"/groups/{group_id}/announcements", "/dashboard"]
    if event_id:
        paths.append(f"/groups/{group_id}/events/{event_id}")
    return paths


class AnnouncementService:
    def __init__(
        self,
        supabase: Client,
        cache: Optional[ViewCache] = None,
        notifier: Optional[NotificationFanout] = None,
        background: Optional[BackgroundTasks] = None
    ):
        self.supabase = supabase
        self.cache = cache or ViewCache()
        self.notifier = notifier
        self.background = background

    def _with_authors(self, rows: List[Dict[str, Any]]) -> List[AnnouncementResponse]:
        profiles = fetch_profiles(self.supabase, [r["author_id"] for r in rows])
        return [AnnouncementResponse(**r, author=profiles.get(r["author_id"])) for r in rows]

    def _load(self, announcement_id: str) -> Dict[str, Any]:
        try:
            announcement = fetch_by_id(self.supabase, "announcements", announcement_id)
        except Exception as e:
            logger.error(f"Error loading announcement {announcement_id}: {e}")
            raise UpstreamFailure("Failed to load announcement")
        if not announcement:
            raise NotFound("Announcement not found")
        return announcement

    def _authorize_manage(self, announcement_id: str, user_id: str) -> Dict[str, Any]:
        announcement = self._load(announcement_id)
        role = require_member_role(self.supabase, announcement["group_id"], user_id)
        if not can_manage_announcement(role, announcement["author_id"], user_id):
            raise Forbidden("Only the author, owners and admins can manage this announcement")
        return announcement

    def create_announcement(self, group_id: str, data: AnnouncementCreate, user_id: str) -> ActionResult[AnnouncementResponse]:
        role = require_member_role(self.supabase, group_id, user_id)
        if not can_create_announcement(role):
            raise Forbidden("Only owners and admins can post announcements")

        try:
            if data.event_id:
                event = fetch_by_id(self.supabase, "events", data.event_id, "id, group_id")
                if not event:
                    raise NotFound("Event not found")
                if event["group_id"] != group_id:
                    raise ValidationFailed("event_id: event belongs to another group")

            result = self.supabase.table("announcements").insert({
                "group_id": group_id,
                "event_id": data.event_id,
                "title": data.title,
                "content": data.content,
                "author_id": user_id
            }).execute()
            if not result.data:
                raise UpstreamFailure("Failed to create announcement")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error creating announcement: {e}")
            raise UpstreamFailure("Failed to create announcement")

        announcement = result.data[0]
        logger.info(f"Announcement {announcement['id']} posted in group {group_id} by {user_id}")

        if self.notifier is not None:
            spawn(self.background, self.notifier.notify_announcement, announcement["id"])

        self.cache.invalidate(*announcement_paths(group_id, data.event_id))
        redirect_to = (
            f"/groups/{group_id}/events/{data.event_id}" if data.event_id
            else f"/groups/{group_id}/announcements"
        )
        return ActionResult(data=AnnouncementResponse(**announcement), redirect_to=redirect_to)

    def list_for_group(self, group_id: str, user_id: str, limit: Optional[int] = None) -> List[AnnouncementResponse]:
        """Group-wide announcements only, newest first"""
        require_member_role(self.supabase, group_id, user_id)
        try:
            query = self.supabase.table("announcements")\
                .select("*")\
                .eq("group_id", group_id)\
                .is_("event_id", "null")\
                .order("created_at", desc=True)
            if limit:
                query = query.limit(limit)
            result = query.execute()
            return self._with_authors(result.data or [])
        except Exception as e:
            logger.error(f"Error listing announcements: {e}")
            raise UpstreamFailure("Failed to load announcements")

    def list_for_event(self, event_id: str, user_id: str) -> List[AnnouncementResponse]:
        event = fetch_by_id(self.supabase, "events", event_id, "id, group_id")
        if not event:
            raise NotFound("Event not found")
        require_member_role(self.supabase, event["group_id"], user_id)
        try:
            result = self.supabase.table("announcements")\
                .select("*")\
                .eq("event_id", event_id)\
                .order("created_at", desc=True)\
                .execute()
            return self._with_authors(result.data or [])
        except Exception as e:
            logger.error(f"Error listing event announcements: {e}")
            raise UpstreamFailure("Failed to load announcements")

    def get_announcement(self, announcement_id: str, user_id: str) -> AnnouncementResponse:
        announcement = self._load(announcement_id)
        require_member_role(self.supabase, announcement["group_id"], user_id)
        return self._with_authors([announcement])[0]

    def update_announcement(self, announcement_id: str, data: AnnouncementUpdate, user_id: str) -> ActionResult[AnnouncementResponse]:
        announcement = self._authorize_manage(announcement_id, user_id)

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationFailed("Nothing to update")

        try:
            result = self.supabase.table("announcements")\
                .update(update_data)\
                .eq("id", announcement_id)\
                .execute()
            if not result.data:
                raise NotFound("Announcement not found")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error updating announcement: {e}")
            raise UpstreamFailure("Failed to update announcement")

        group_id = announcement["group_id"]
        self.cache.invalidate(
            *announcement_paths(group_id, announcement.get("event_id")),
            f"/announcements/{announcement_id}"
        )
        return ActionResult(
            data=AnnouncementResponse(**result.data[0]),
            redirect_to=f"/groups/{group_id}/announcements"
        )

    def delete_announcement(self, announcement_id: str, user_id: str) -> ActionResult[None]:
        announcement = self._authorize_manage(announcement_id, user_id)

        try:
            self.supabase.table("announcements")\
                .delete()\
                .eq("id", announcement_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting announcement: {e}")
            raise UpstreamFailure("Failed to delete announcement")

        group_id = announcement["group_id"]
        self.cache.invalidate(*announcement_paths(group_id, announcement.get("event_id")))
        return ActionResult(redirect_to=f"/groups/{group_id}/announcements")

    def recent_announcements(self, user_id: str, limit: int = RECENT_LIMIT) -> List[AnnouncementResponse]:
        """Newest announcements across all of the user's groups, with the group name"""
        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = [m["group_id"] for m in members_result.data or []]
            if not group_ids:
                return []

            result = self.supabase.table("announcements")\
                .select("*")\
                .in_("group_id", group_ids)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
            rows = result.data or []
            groups_result = self.supabase.table("groups")\
                .select("id, name")\
                .in_("id", group_ids)\
                .execute()
            names = {g["id"]: g["name"] for g in groups_result.data or []}
        except Exception as e:
            logger.error(f"Error loading recent announcements: {e}")
            raise UpstreamFailure("Failed to load announcements")

        announcements = self._with_authors(rows)
        for a in announcements:
            a.group_name = names.get(a.group_id)
        return announcements
