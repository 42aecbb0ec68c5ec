from fastapi import APIRouter, Depends
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupJoin, GroupResponse, GroupDetailResponse, InvitePreviewResponse
)
from huddle.modules.groups.service import GroupService
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> GroupService:
    return GroupService(supabase, cache)


@router.post("", response_model=ActionResult[GroupResponse], status_code=201)
async def create_group(
    group_data: GroupCreate,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the caller becomes its owner"""
    return service.create_group(group_data, current_user["id"])


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """List groups the caller is a member of"""
    return service.list_groups_for_user(current_user["id"])


@router.post("/join", response_model=ActionResult[GroupResponse])
async def join_group(
    join_data: GroupJoin,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Join a group with an invite code"""
    return service.join_group_by_code(join_data.invite_code, current_user["id"])


@router.get("/invite/{invite_code}", response_model=InvitePreviewResponse)
async def get_invite_preview(
    invite_code: str,
    service: GroupService = Depends(get_group_service)
):
    """Public invite page data; no login needed"""
    return service.get_invite_preview(invite_code)


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def get_group(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.get_group(group_id, current_user["id"])


@router.put("/{group_id}", response_model=ActionResult[GroupResponse])
async def update_group(
    group_id: str,
    group_data: GroupUpdate,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Update group (owner or admin)"""
    return service.update_group(group_id, group_data, current_user["id"])


@router.delete("/{group_id}", response_model=ActionResult[None])
async def delete_group(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    """Delete group (owner only)"""
    return service.delete_group(group_id, current_user["id"])


@router.post("/{group_id}/leave", response_model=ActionResult[None])
async def leave_group(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: GroupService = Depends(get_group_service)
):
    return service.leave_group(group_id, current_user["id"])
