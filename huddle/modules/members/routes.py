from fastapi import APIRouter, Depends
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.members.schemas import MemberResponse, MemberRoleUpdate
from huddle.modules.members.service import MemberService
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups/{group_id}/members", tags=["members"])


def get_member_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> MemberService:
    return MemberService(supabase, cache)


@router.get("", response_model=List[MemberResponse])
async def list_members(
    group_id: str,
    current_user: Dict = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    return service.list_members(group_id, current_user["id"])


@router.put("/{member_id}/role", response_model=ActionResult[MemberResponse])
async def update_member_role(
    group_id: str,
    member_id: str,
    role_data: MemberRoleUpdate,
    current_user: Dict = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    """Change a member's role (owner: admin/member, admin: member)"""
    return service.update_member_role(group_id, member_id, role_data.role, current_user["id"])


@router.delete("/{member_id}", response_model=ActionResult[None])
async def remove_member(
    group_id: str,
    member_id: str,
    current_user: Dict = Depends(get_current_user),
    service: MemberService = Depends(get_member_service)
):
    return service.remove_member(group_id, member_id, current_user["id"])
