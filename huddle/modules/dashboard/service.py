from supabase import Client
from huddle.core.cache import ViewCache
from huddle.modules.announcements.service import AnnouncementService
from huddle.modules.dashboard.schemas import DashboardResponse
from huddle.modules.events.service import EventService
from huddle.modules.notifications.service import NotificationService
from typing import Optional


class DashboardService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None):
        self.supabase = supabase
        self.cache = cache or ViewCache()

    def get_dashboard(self, user_id: str) -> DashboardResponse:
        # fan-out writes notification rows without a cache; unread is always read live
        unread = NotificationService(self.supabase, self.cache).unread_count(user_id)

        cached = self.cache.get("/dashboard", user_id)
        if cached is None:
            cached = (
                EventService(self.supabase, self.cache).get_upcoming_events(user_id),
                AnnouncementService(self.supabase, self.cache).recent_announcements(user_id),
            )
            self.cache.set("/dashboard", user_id, cached)

        upcoming_events, recent_announcements = cached
        return DashboardResponse(
            upcoming_events=upcoming_events,
            recent_announcements=recent_announcements,
            unread_notifications=unread
        )
