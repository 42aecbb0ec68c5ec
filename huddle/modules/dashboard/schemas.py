from pydantic import BaseModel
from typing import List
from huddle.modules.announcements.schemas import AnnouncementResponse
from huddle.modules.events.schemas import EventResponse


class DashboardResponse(BaseModel):
    upcoming_events: List[EventResponse]
    recent_announcements: List[AnnouncementResponse]
    unread_notifications: int
