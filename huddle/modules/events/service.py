from fastapi import BackgroundTasks
from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.dependencies import require_member_role
from huddle.core.errors import ActionError, Forbidden, NotFound, UpstreamFailure, ValidationFailed
from huddle.core.permissions import Role, can_create_event, can_manage_event
from huddle.core.responses import ActionResult, Page
from huddle.database.helpers import fetch_by_id, parse_timestamp, utc_now
from huddle.modules.events.attendance import (
    calculate_attendance_stats, format_attendance_rate, format_attendance_summary
)
from huddle.modules.events.schemas import (
    EventCreate, EventUpdate, EventStatus, EventResponse, EventGroupSummary, EventStatsResponse
)
from huddle.modules.notifications.fanout import NotificationFanout, spawn
from huddle.modules.participants.counts import count_participants_by_status
from typing import List, Optional, Dict, Any, Tuple
import logging

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
UPCOMING_LIMIT = 4


def event_paths(group_id: str, event_id: Optional[str] = None) -> List[str]:
    """Views that show an event: its page, its group's page, the events list, the dashboard"""
    paths = [f"/groups/{group_id}", "/events", "/dashboard"]
    if event_id:
        paths.insert(0, f"/groups/{group_id}/events/{event_id}")
    return paths


class EventService:
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

    def load_event(self, event_id: str) -> Dict[str, Any]:
        try:
            event = fetch_by_id(self.supabase, "events", event_id)
        except Exception as e:
            logger.error(f"Error loading event {event_id}: {e}")
            raise UpstreamFailure("Failed to load event")
        if not event:
            raise NotFound("Event not found")
        return event

    def authorize_manage(self, event_id: str, user_id: str) -> Tuple[Dict[str, Any], Role]:
        """Load the event and check the caller may edit it (owner/admin or its creator)"""
        event = self.load_event(event_id)
        role = require_member_role(self.supabase, event["group_id"], user_id)
        if not can_manage_event(role, event.get("created_by"), user_id):
            raise Forbidden("Only the event creator, owners and admins can manage this event")
        return event, role

    def create_event(self, group_id: str, event_data: EventCreate, user_id: str) -> ActionResult[EventResponse]:
        role = require_member_role(self.supabase, group_id, user_id)
        if not can_create_event(role):
            raise Forbidden("Only owners and admins can create events")

        row = event_data.model_dump(mode="json")
        row["description"] = row.get("description") or None
        row["location"] = row.get("location") or None
        row.update({
            "group_id": group_id,
            "created_by": user_id,
            "status": EventStatus.SCHEDULED.value
        })

        try:
            result = self.supabase.table("events").insert(row).execute()
            if not result.data:
                raise UpstreamFailure("Failed to create event")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error creating event: {e}")
            raise UpstreamFailure("Failed to create event")

        event = result.data[0]
        logger.info(f"Event {event['id']} created in group {group_id} by {user_id}")

        if self.notifier is not None:
            spawn(self.background, self.notifier.notify_event_created, event["id"], group_id, user_id)

        self.cache.invalidate(*event_paths(group_id))
        return ActionResult(
            data=EventResponse(**event),
            redirect_to=f"/groups/{group_id}/events/{event['id']}"
        )

    def list_events_for_group(self, group_id: str, user_id: str) -> List[EventResponse]:
        require_member_role(self.supabase, group_id, user_id)
        try:
            result = self.supabase.table("events")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("event_date")\
                .execute()
        except Exception as e:
            logger.error(f"Error listing events: {e}")
            raise UpstreamFailure("Failed to load events")
        return [EventResponse(**e) for e in result.data or []]

    def get_event(self, event_id: str, user_id: str) -> EventResponse:
        event = self.load_event(event_id)
        require_member_role(self.supabase, event["group_id"], user_id)
        group = fetch_by_id(self.supabase, "groups", event["group_id"], "id, name, image_url")
        return EventResponse(**event, group=group)

    def update_event(self, event_id: str, event_data: EventUpdate, user_id: str) -> ActionResult[EventResponse]:
        event, _ = self.authorize_manage(event_id, user_id)

        update_data = event_data.model_dump(exclude_unset=True, mode="json")
        if not update_data:
            raise ValidationFailed("Nothing to update")
        for key in ("description", "location"):
            if key in update_data:
                update_data[key] = update_data[key] or None

        try:
            result = self.supabase.table("events")\
                .update(update_data)\
                .eq("id", event_id)\
                .execute()
            if not result.data:
                raise NotFound("Event not found")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error updating event: {e}")
            raise UpstreamFailure("Failed to update event")

        group_id = event["group_id"]
        self.cache.invalidate(*event_paths(group_id, event_id))
        return ActionResult(
            data=EventResponse(**result.data[0]),
            redirect_to=f"/groups/{group_id}/events/{event_id}"
        )

    def delete_event(self, event_id: str, user_id: str) -> ActionResult[None]:
        event, _ = self.authorize_manage(event_id, user_id)

        try:
            self.supabase.table("events")\
                .delete()\
                .eq("id", event_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting event: {e}")
            raise UpstreamFailure("Failed to delete event")

        group_id = event["group_id"]
        logger.info(f"Event {event_id} deleted by {user_id}")
        self.cache.invalidate(*event_paths(group_id, event_id))
        return ActionResult(redirect_to=f"/groups/{group_id}")

    def update_event_status(self, event_id: str, status: EventStatus, user_id: str) -> ActionResult[EventResponse]:
        event, _ = self.authorize_manage(event_id, user_id)

        try:
            result = self.supabase.table("events")\
                .update({"status": status.value})\
                .eq("id", event_id)\
                .execute()
            if not result.data:
                raise NotFound("Event not found")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error updating event status: {e}")
            raise UpstreamFailure("Failed to update event status")

        self.cache.invalidate(*event_paths(event["group_id"], event_id))
        return ActionResult(data=EventResponse(**result.data[0]))

    def _events_for_user(self, user_id: str) -> List[EventResponse]:
        """All events across the user's groups, soonest first"""
        cached = self.cache.get("/events", user_id)
        if cached is not None:
            return cached

        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = [m["group_id"] for m in members_result.data or []]
            if not group_ids:
                events = []
            else:
                groups_result = self.supabase.table("groups")\
                    .select("id, name, image_url")\
                    .in_("id", group_ids)\
                    .execute()
                groups = {g["id"]: EventGroupSummary(**g) for g in groups_result.data or []}
                events_result = self.supabase.table("events")\
                    .select("*")\
                    .in_("group_id", group_ids)\
                    .order("event_date")\
                    .execute()
                events = [
                    EventResponse(**e, group=groups.get(e["group_id"]))
                    for e in events_result.data or []
                ]
                events.sort(key=lambda e: parse_timestamp(e.event_date))
        except Exception as e:
            logger.error(f"Error loading events for user: {e}")
            raise UpstreamFailure("Failed to load events")

        self.cache.set("/events", user_id, events)
        return events

    def list_events_for_user(self, user_id: str, cursor: Optional[str] = None, limit: int = DEFAULT_PAGE_SIZE) -> Page[EventResponse]:
        """Cursor pages over the user's events. The cursor is the id of the last
        event of the previous page; an unknown cursor starts from the beginning."""
        events = self._events_for_user(user_id)
        if cursor:
            ids = [e.id for e in events]
            if cursor in ids:
                events = events[ids.index(cursor) + 1:]

        page = events[:limit]
        next_cursor = page[-1].id if page and len(page) == limit else None
        return Page(data=page, next_cursor=next_cursor)

    def get_upcoming_events(self, user_id: str, limit: int = UPCOMING_LIMIT) -> List[EventResponse]:
        now = utc_now()
        upcoming = [
            e for e in self._events_for_user(user_id)
            if e.status == EventStatus.SCHEDULED and parse_timestamp(e.event_date) >= now
        ]
        return upcoming[:limit]

    def get_attendance_stats(self, event_id: str, user_id: str) -> EventStatsResponse:
        event = self.load_event(event_id)
        require_member_role(self.supabase, event["group_id"], user_id)
        try:
            counts = count_participants_by_status(self.supabase, event_id)
            members = self.supabase.table("group_members")\
                .select("id", count="exact")\
                .eq("group_id", event["group_id"])\
                .execute()
            total_members = members.count if members.count is not None else len(members.data or [])
        except Exception as e:
            logger.error(f"Error loading attendance stats: {e}")
            raise UpstreamFailure("Failed to load attendance")

        stats = calculate_attendance_stats(counts, total_members)
        return EventStatsResponse(
            **stats.model_dump(),
            event_id=event_id,
            total_members=total_members,
            summary=format_attendance_summary(stats),
            attendance_rate_label=(
                format_attendance_rate(stats.attendance_rate) if stats.attendance_rate is not None else None
            )
        )
