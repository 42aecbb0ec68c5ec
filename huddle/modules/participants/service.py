from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.dependencies import require_member_role
from huddle.core.errors import ActionError, RuleViolation, UpstreamFailure
from huddle.core.responses import ActionResult
from huddle.database.helpers import first_row, fetch_profiles, parse_timestamp, utc_now
from huddle.modules.events.service import EventService, event_paths
from huddle.modules.participants.counts import count_participants_by_status
from huddle.modules.participants.schemas import (
    AttendanceStatus, ParticipantResponse, MyParticipationResponse, ParticipantCounts
)
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class ParticipantService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None):
        self.supabase = supabase
        self.cache = cache or ViewCache()
        self.events = EventService(supabase, self.cache)

    def member_event(self, event_id: str, user_id: str) -> Dict[str, Any]:
        """Load the event, failing unless the caller belongs to its group"""
        event = self.events.load_event(event_id)
        require_member_role(self.supabase, event["group_id"], user_id)
        return event

    def _attending_others(self, event_id: str, user_id: str) -> int:
        result = self.supabase.table("participants")\
            .select("id", count="exact")\
            .eq("event_id", event_id)\
            .eq("status", AttendanceStatus.ATTENDING.value)\
            .neq("user_id", user_id)\
            .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def respond_to_event(self, event_id: str, status: AttendanceStatus, user_id: str) -> ActionResult[ParticipantResponse]:
        """Record the caller's attendance. The deadline applies to every role; the
        capacity check counts other attending rows and only runs for 'attending'.
        Check and write are separate round trips."""
        event = self.member_event(event_id, user_id)

        deadline = parse_timestamp(event.get("response_deadline"))
        if deadline is not None and deadline < utc_now():
            raise RuleViolation("The response deadline has passed", code="deadline")

        try:
            max_participants = event.get("max_participants")
            if status == AttendanceStatus.ATTENDING and max_participants:
                if self._attending_others(event_id, user_id) >= max_participants:
                    raise RuleViolation("This event is full", code="capacity")

            result = self.supabase.table("participants").upsert({
                "event_id": event_id,
                "user_id": user_id,
                "status": status.value,
                "responded_at": utc_now().isoformat()
            }, on_conflict="event_id,user_id").execute()
            if not result.data:
                raise UpstreamFailure("Failed to save response")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error responding to event: {e}")
            raise UpstreamFailure("Failed to save response")

        logger.info(f"User {user_id} responded {status.value} to event {event_id}")
        self.cache.invalidate(*event_paths(event["group_id"], event_id))
        return ActionResult(data=ParticipantResponse(**result.data[0]))

    def cancel_participation(self, event_id: str, user_id: str) -> ActionResult[None]:
        event = self.member_event(event_id, user_id)
        try:
            self.supabase.table("participants")\
                .delete()\
                .eq("event_id", event_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error cancelling participation: {e}")
            raise UpstreamFailure("Failed to cancel response")

        self.cache.invalidate(*event_paths(event["group_id"], event_id))
        return ActionResult()

    def list_participants(self, event_id: str, user_id: str) -> List[ParticipantResponse]:
        self.member_event(event_id, user_id)
        try:
            result = self.supabase.table("participants")\
                .select("*")\
                .eq("event_id", event_id)\
                .order("responded_at")\
                .execute()
            rows = result.data or []
            profiles = fetch_profiles(self.supabase, [r["user_id"] for r in rows])
        except Exception as e:
            logger.error(f"Error listing participants: {e}")
            raise UpstreamFailure("Failed to load participants")
        return [ParticipantResponse(**row, profile=profiles.get(row["user_id"])) for row in rows]

    def get_my_participation(self, event_id: str, user_id: str) -> MyParticipationResponse:
        self.member_event(event_id, user_id)
        try:
            result = self.supabase.table("participants")\
                .select("status")\
                .eq("event_id", event_id)\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading participation: {e}")
            raise UpstreamFailure("Failed to load response")
        row = first_row(result)
        return MyParticipationResponse(status=row["status"] if row else None)

    def get_participant_counts(self, event_id: str, user_id: str) -> ParticipantCounts:
        self.member_event(event_id, user_id)
        try:
            counts = count_participants_by_status(self.supabase, event_id)
        except Exception as e:
            logger.error(f"Error counting participants: {e}")
            raise UpstreamFailure("Failed to load participant counts")
        return ParticipantCounts(**counts)
