from fastapi import APIRouter, BackgroundTasks, Depends, Query
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.announcements.schemas import AnnouncementCreate, AnnouncementUpdate, AnnouncementResponse
from huddle.modules.announcements.service import AnnouncementService, RECENT_LIMIT
from huddle.modules.notifications.fanout import NotificationFanout, get_notification_fanout
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(tags=["announcements"])


def get_announcement_service(
    background: BackgroundTasks,
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache),
    notifier: NotificationFanout = Depends(get_notification_fanout)
) -> AnnouncementService:
    return AnnouncementService(supabase, cache, notifier, background)


@router.post("/groups/{group_id}/announcements", response_model=ActionResult[AnnouncementResponse], status_code=201)
async def create_announcement(
    group_id: str,
    data: AnnouncementCreate,
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    """Post an announcement to the group, or to one of its events when event_id is set"""
    return service.create_announcement(group_id, data, current_user["id"])


@router.get("/groups/{group_id}/announcements", response_model=List[AnnouncementResponse])
async def list_group_announcements(
    group_id: str,
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    return service.list_for_group(group_id, current_user["id"], limit)


@router.get("/events/{event_id}/announcements", response_model=List[AnnouncementResponse])
async def list_event_announcements(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    return service.list_for_event(event_id, current_user["id"])


@router.get("/announcements/recent", response_model=List[AnnouncementResponse])
async def list_recent_announcements(
    limit: int = Query(RECENT_LIMIT, ge=1, le=20),
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    return service.recent_announcements(current_user["id"], limit)


@router.get("/announcements/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: str,
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    return service.get_announcement(announcement_id, current_user["id"])


@router.put("/announcements/{announcement_id}", response_model=ActionResult[AnnouncementResponse])
async def update_announcement(
    announcement_id: str,
    data: AnnouncementUpdate,
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    return service.update_announcement(announcement_id, data, current_user["id"])


@router.delete("/announcements/{announcement_id}", response_model=ActionResult[None])
async def delete_announcement(
    announcement_id: str,
    current_user: Dict = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service)
):
    return service.delete_announcement(announcement_id, current_user["id"])
