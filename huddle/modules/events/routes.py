from fastapi import APIRouter, BackgroundTasks, Depends, Query
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult, Page
from huddle.database.supabase_client import get_supabase
from huddle.modules.events.schemas import (
    EventCreate, EventUpdate, EventStatusUpdate, EventResponse, EventStatsResponse
)
from huddle.modules.events.service import EventService, DEFAULT_PAGE_SIZE, UPCOMING_LIMIT
from huddle.modules.notifications.fanout import NotificationFanout, get_notification_fanout
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(tags=["events"])


def get_event_service(
    background: BackgroundTasks,
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache),
    notifier: NotificationFanout = Depends(get_notification_fanout)
) -> EventService:
    return EventService(supabase, cache, notifier, background)


@router.post("/groups/{group_id}/events", response_model=ActionResult[EventResponse], status_code=201)
async def create_event(
    group_id: str,
    event_data: EventCreate,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Create an event (owner or admin); members are notified after the response"""
    return service.create_event(group_id, event_data, current_user["id"])


@router.get("/groups/{group_id}/events", response_model=List[EventResponse])
async def list_group_events(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.list_events_for_group(group_id, current_user["id"])


@router.get("/events", response_model=Page[EventResponse])
async def list_my_events(
    cursor: Optional[str] = None,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=50),
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Events across all of the caller's groups, by date. Pass next_cursor to get the next page."""
    return service.list_events_for_user(current_user["id"], cursor, limit)


@router.get("/events/upcoming", response_model=List[EventResponse])
async def list_upcoming_events(
    limit: int = Query(UPCOMING_LIMIT, ge=1, le=20),
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.get_upcoming_events(current_user["id"], limit)


@router.get("/events/{event_id}", response_model=EventResponse)
async def get_event(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.get_event(event_id, current_user["id"])


@router.put("/events/{event_id}", response_model=ActionResult[EventResponse])
async def update_event(
    event_id: str,
    event_data: EventUpdate,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Update an event (owner, admin or the event's creator)"""
    return service.update_event(event_id, event_data, current_user["id"])


@router.delete("/events/{event_id}", response_model=ActionResult[None])
async def delete_event(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.delete_event(event_id, current_user["id"])


@router.put("/events/{event_id}/status", response_model=ActionResult[EventResponse])
async def update_event_status(
    event_id: str,
    status_data: EventStatusUpdate,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    return service.update_event_status(event_id, status_data.status, current_user["id"])


@router.get("/events/{event_id}/stats", response_model=EventStatsResponse)
async def get_event_stats(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: EventService = Depends(get_event_service)
):
    """Attendance counts plus attendance and response rates against the group size"""
    return service.get_attendance_stats(event_id, current_user["id"])
