from fastapi import APIRouter, Depends, File, UploadFile
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.images.schemas import EventImageResponse, ImageReorder, ImageUrlResponse
from huddle.modules.images.service import EventImageService, GroupImageService
from supabase import Client
from typing import List, Dict

router = APIRouter(tags=["images"])


def get_event_image_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> EventImageService:
    return EventImageService(supabase, cache)


def get_group_image_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> GroupImageService:
    return GroupImageService(supabase, cache)


@router.post("/events/{event_id}/images", response_model=ActionResult[List[EventImageResponse]], status_code=201)
async def upload_event_images(
    event_id: str,
    images: List[UploadFile] = File(...),
    current_user: Dict = Depends(get_current_user),
    service: EventImageService = Depends(get_event_image_service)
):
    """Upload up to 5 images per event (JPG, PNG, WebP, GIF; 5MB each)"""
    return await service.upload_event_images(event_id, images, current_user["id"])


@router.get("/events/{event_id}/images", response_model=List[EventImageResponse])
async def list_event_images(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: EventImageService = Depends(get_event_image_service)
):
    return service.list_event_images(event_id, current_user["id"])


@router.put("/events/{event_id}/images/order", response_model=ActionResult[None])
async def reorder_event_images(
    event_id: str,
    reorder: ImageReorder,
    current_user: Dict = Depends(get_current_user),
    service: EventImageService = Depends(get_event_image_service)
):
    return service.reorder_event_images(event_id, reorder.image_ids, current_user["id"])


@router.delete("/event-images/{image_id}", response_model=ActionResult[None])
async def delete_event_image(
    image_id: str,
    current_user: Dict = Depends(get_current_user),
    service: EventImageService = Depends(get_event_image_service)
):
    return service.delete_event_image(image_id, current_user["id"])


@router.post("/groups/{group_id}/image", response_model=ActionResult[ImageUrlResponse])
async def upload_group_image(
    group_id: str,
    image: UploadFile = File(...),
    current_user: Dict = Depends(get_current_user),
    service: GroupImageService = Depends(get_group_image_service)
):
    """Replace the group image (owner or admin, 5MB max)"""
    return await service.upload_group_image(group_id, image, current_user["id"])


@router.delete("/groups/{group_id}/image", response_model=ActionResult[ImageUrlResponse])
async def delete_group_image(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: GroupImageService = Depends(get_group_image_service)
):
    return service.delete_group_image(group_id, current_user["id"])
