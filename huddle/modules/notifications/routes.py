from fastapi import APIRouter, Depends, Query
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.notifications.schemas import (
    NotificationLogResponse, NotificationSettings, UnreadCountResponse
)
from huddle.modules.notifications.service import NotificationService, INBOX_LIMIT
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> NotificationService:
    return NotificationService(supabase, cache)


@router.get("", response_model=List[NotificationLogResponse])
async def list_notifications(
    limit: int = Query(INBOX_LIMIT, ge=1, le=100),
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.list_notifications(current_user["id"], limit)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return UnreadCountResponse(count=service.unread_count(current_user["id"]))


@router.post("/read-all", response_model=ActionResult[None])
async def mark_all_read(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_all_read(current_user["id"])


@router.get("/settings", response_model=NotificationSettings)
async def get_notification_settings(
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.get_settings(current_user["id"])


@router.put("/settings", response_model=ActionResult[NotificationSettings])
async def update_notification_settings(
    settings_data: NotificationSettings,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.update_settings(current_user["id"], settings_data)


@router.post("/{notification_id}/read", response_model=ActionResult[None])
async def mark_read(
    notification_id: str,
    current_user: Dict = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service)
):
    return service.mark_read(notification_id, current_user["id"])
