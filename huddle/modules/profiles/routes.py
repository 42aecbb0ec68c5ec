from fastapi import APIRouter, Depends, File, UploadFile
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from huddle.modules.profiles.service import ProfileService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profile", tags=["profile"])


def get_profile_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> ProfileService:
    return ProfileService(supabase, cache)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_my_profile(current_user["id"])


@router.put("/me", response_model=ActionResult[ProfileResponse])
async def update_my_profile(
    profile_data: ProfileUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.update_my_profile(current_user["id"], profile_data)


@router.post("/me/avatar", response_model=ActionResult[ProfileResponse])
async def upload_avatar(
    image: UploadFile = File(...),
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Upload a profile picture (2MB max); replaces a previously uploaded one"""
    return await service.upload_avatar(current_user["id"], image)


@router.delete("/me/avatar", response_model=ActionResult[ProfileResponse])
async def delete_avatar(
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    return service.delete_avatar(current_user["id"])
