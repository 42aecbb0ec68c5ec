from supabase import Client
from huddle.config.permissions_config import ROLE_ORDER
from huddle.core.cache import ViewCache
from huddle.core.dependencies import require_member_role
from huddle.core.errors import ActionError, Forbidden, NotFound, UpstreamFailure
from huddle.core.permissions import Role, can_change_role_to, can_remove_member
from huddle.core.responses import ActionResult
from huddle.database.helpers import first_row, fetch_profiles
from huddle.modules.groups.service import group_paths
from huddle.modules.members.schemas import MemberResponse
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


class MemberService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None):
        self.supabase = supabase
        self.cache = cache or ViewCache()

    def list_members(self, group_id: str, user_id: str) -> List[MemberResponse]:
        """Members with profiles, owner first, then admins, then members"""
        require_member_role(self.supabase, group_id, user_id)
        try:
            result = self.supabase.table("group_members")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("joined_at")\
                .execute()
            rows = result.data or []
            profiles = fetch_profiles(self.supabase, [r["user_id"] for r in rows])
        except Exception as e:
            logger.error(f"Error listing members: {e}")
            raise UpstreamFailure("Failed to load members")

        rows = sorted(rows, key=lambda r: ROLE_ORDER.get(r["role"], len(ROLE_ORDER) + 1))
        return [MemberResponse(**row, profile=profiles.get(row["user_id"])) for row in rows]

    def _get_target(self, group_id: str, member_id: str) -> Dict[str, Any]:
        result = self.supabase.table("group_members")\
            .select("*")\
            .eq("id", member_id)\
            .eq("group_id", group_id)\
            .limit(1)\
            .execute()
        target = first_row(result)
        if not target:
            raise NotFound("Member not found")
        return target

    def update_member_role(self, group_id: str, member_id: str, new_role: Role, user_id: str) -> ActionResult[MemberResponse]:
        current_role = require_member_role(self.supabase, group_id, user_id)
        try:
            target = self._get_target(group_id, member_id)
            if target["user_id"] == user_id:
                raise Forbidden("You cannot change your own role")
            if not can_change_role_to(current_role, target["role"], new_role):
                raise Forbidden("You are not allowed to assign this role")

            result = self.supabase.table("group_members")\
                .update({"role": new_role.value})\
                .eq("id", member_id)\
                .execute()
            if not result.data:
                raise NotFound("Member not found")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error updating member role: {e}")
            raise UpstreamFailure("Failed to update role")

        logger.info(f"Member {member_id} in group {group_id} set to {new_role.value} by {user_id}")
        self.cache.invalidate(f"/groups/{group_id}/members")
        return ActionResult(data=MemberResponse(**result.data[0]))

    def remove_member(self, group_id: str, member_id: str, user_id: str) -> ActionResult[None]:
        current_role = require_member_role(self.supabase, group_id, user_id)
        try:
            target = self._get_target(group_id, member_id)
            if target["user_id"] == user_id:
                raise Forbidden("You cannot remove yourself")
            if not can_remove_member(current_role, target["role"]):
                raise Forbidden("You are not allowed to remove this member")

            self.supabase.table("group_members")\
                .delete()\
                .eq("id", member_id)\
                .execute()
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error removing member: {e}")
            raise UpstreamFailure("Failed to remove member")

        logger.info(f"Member {member_id} removed from group {group_id} by {user_id}")
        self.cache.invalidate(*group_paths(group_id, f"/groups/{group_id}/members"))
        return ActionResult()
