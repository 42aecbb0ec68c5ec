from supabase import Client
from huddle.core.cache import ViewCache
from huddle.core.errors import (
    ActionError, Forbidden, NotFound, RuleViolation, UpstreamFailure, ValidationFailed
)
from huddle.core.dependencies import require_member_role
from huddle.core.invite_codes import generate_invite_code, normalize_invite_code
from huddle.core.permissions import Role, can_manage_group, can_delete_group
from huddle.core.responses import ActionResult
from huddle.database.helpers import first_row, fetch_by_id, parse_timestamp, utc_now
from huddle.modules.groups.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupDetailResponse, InvitePreviewResponse
)
from typing import List, Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

INVITE_CODE_ATTEMPTS = 5


def group_paths(group_id: str, *extra: str) -> List[str]:
    """Views that change with a group or its membership; events and dashboard carry the group name"""
    return ["/groups", f"/groups/{group_id}", *extra, "/events", "/dashboard"]


class GroupService:
    def __init__(self, supabase: Client, cache: Optional[ViewCache] = None):
        self.supabase = supabase
        self.cache = cache or ViewCache()

    def _unique_invite_code(self) -> str:
        for _ in range(INVITE_CODE_ATTEMPTS):
            code = generate_invite_code()
            taken = self.supabase.table("groups")\
                .select("id")\
                .eq("invite_code", code)\
                .limit(1)\
                .execute()
            if not taken.data:
                return code
        raise UpstreamFailure("Failed to generate an invite code")

    def _get_group_row(self, group_id: str) -> Dict[str, Any]:
        group = fetch_by_id(self.supabase, "groups", group_id)
        if not group:
            raise NotFound("Group not found")
        return group

    def _member_count(self, group_id: str) -> int:
        result = self.supabase.table("group_members")\
            .select("id", count="exact")\
            .eq("group_id", group_id)\
            .execute()
        if result.count is not None:
            return result.count
        return len(result.data or [])

    def create_group(self, group_data: GroupCreate, user_id: str) -> ActionResult[GroupResponse]:
        """Create a group; the creator becomes its owner"""
        try:
            result = self.supabase.table("groups").insert({
                "name": group_data.name,
                "description": group_data.description,
                "invite_code": self._unique_invite_code(),
                "owner_id": user_id
            }).execute()

            if not result.data:
                raise UpstreamFailure("Failed to create group")
            group = result.data[0]

            self.supabase.table("group_members").insert({
                "group_id": group["id"],
                "user_id": user_id,
                "role": Role.OWNER.value
            }).execute()
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error creating group: {e}")
            raise UpstreamFailure("Failed to create group")

        logger.info(f"Group {group['id']} created by {user_id}")
        self.cache.invalidate("/groups")
        return ActionResult(data=GroupResponse(**group), redirect_to="/groups")

    def list_groups_for_user(self, user_id: str) -> List[GroupResponse]:
        """Groups the user belongs to, newest first"""
        cached = self.cache.get("/groups", user_id)
        if cached is not None:
            return cached

        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = [m["group_id"] for m in members_result.data or []]
            if not group_ids:
                groups = []
            else:
                result = self.supabase.table("groups")\
                    .select("*")\
                    .in_("id", group_ids)\
                    .order("created_at", desc=True)\
                    .execute()
                groups = [GroupResponse(**g) for g in result.data or []]
        except Exception as e:
            logger.error(f"Error listing groups: {e}")
            raise UpstreamFailure("Failed to load groups")

        self.cache.set("/groups", user_id, groups)
        return groups

    def get_group(self, group_id: str, user_id: str) -> GroupDetailResponse:
        """Group detail for a member, with the caller's role and the member count"""
        role = require_member_role(self.supabase, group_id, user_id)
        try:
            group = self._get_group_row(group_id)
            member_count = self._member_count(group_id)
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error getting group: {e}")
            raise UpstreamFailure("Failed to load group")
        return GroupDetailResponse(**group, my_role=role.value, member_count=member_count)

    def update_group(self, group_id: str, group_data: GroupUpdate, user_id: str) -> ActionResult[GroupResponse]:
        role = require_member_role(self.supabase, group_id, user_id)
        if not can_manage_group(role):
            raise Forbidden("Only owners and admins can edit the group")

        update_data = group_data.model_dump(exclude_unset=True)
        if not update_data:
            raise ValidationFailed("Nothing to update")

        try:
            result = self.supabase.table("groups")\
                .update(update_data)\
                .eq("id", group_id)\
                .execute()
            if not result.data:
                raise NotFound("Group not found")
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error updating group: {e}")
            raise UpstreamFailure("Failed to update group")

        self.cache.invalidate(*group_paths(group_id))
        return ActionResult(data=GroupResponse(**result.data[0]), redirect_to=f"/groups/{group_id}")

    def delete_group(self, group_id: str, user_id: str) -> ActionResult[None]:
        """Delete the group; members, events and announcements go with it (FK cascade)"""
        role = require_member_role(self.supabase, group_id, user_id)
        if not can_delete_group(role):
            raise Forbidden("Only the owner can delete the group")

        try:
            self.supabase.table("groups")\
                .delete()\
                .eq("id", group_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting group: {e}")
            raise UpstreamFailure("Failed to delete group")

        logger.info(f"Group {group_id} deleted by {user_id}")
        self.cache.invalidate(*group_paths(group_id))
        return ActionResult(redirect_to="/groups")

    def _find_by_invite_code(self, invite_code: str) -> Dict[str, Any]:
        code = normalize_invite_code(invite_code)
        if not code:
            raise ValidationFailed("Invite code is required")
        result = self.supabase.table("groups")\
            .select("*")\
            .eq("invite_code", code)\
            .limit(1)\
            .execute()
        group = first_row(result)
        if not group:
            raise NotFound("Invalid invite code")
        return group

    @staticmethod
    def _is_expired(group: Dict[str, Any]) -> bool:
        expires_at = parse_timestamp(group.get("invite_code_expires_at"))
        return expires_at is not None and expires_at < utc_now()

    def join_group_by_code(self, invite_code: str, user_id: str) -> ActionResult[GroupResponse]:
        try:
            group = self._find_by_invite_code(invite_code)
            if self._is_expired(group):
                raise ValidationFailed("This invite code has expired")

            existing = self.supabase.table("group_members")\
                .select("id")\
                .eq("group_id", group["id"])\
                .eq("user_id", user_id)\
                .limit(1)\
                .execute()
            if existing.data:
                raise RuleViolation("You are already a member of this group")

            self.supabase.table("group_members").insert({
                "group_id": group["id"],
                "user_id": user_id,
                "role": Role.MEMBER.value
            }).execute()
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error joining group: {e}")
            raise UpstreamFailure("Failed to join group")

        logger.info(f"User {user_id} joined group {group['id']}")
        self.cache.invalidate(*group_paths(group["id"], f"/groups/{group['id']}/members"))
        return ActionResult(data=GroupResponse(**group), redirect_to=f"/groups/{group['id']}")

    def get_invite_preview(self, invite_code: str) -> InvitePreviewResponse:
        """Public view of the group behind an invite code"""
        try:
            group = self._find_by_invite_code(invite_code)
            member_count = self._member_count(group["id"])
        except ActionError:
            raise
        except Exception as e:
            logger.error(f"Error loading invite preview: {e}")
            raise UpstreamFailure("Failed to load invite")
        return InvitePreviewResponse(
            id=group["id"],
            name=group["name"],
            description=group.get("description"),
            image_url=group.get("image_url"),
            member_count=member_count,
            expired=self._is_expired(group)
        )

    def leave_group(self, group_id: str, user_id: str) -> ActionResult[None]:
        role = require_member_role(self.supabase, group_id, user_id)
        if role == Role.OWNER:
            raise Forbidden("The owner cannot leave the group")

        try:
            self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error leaving group: {e}")
            raise UpstreamFailure("Failed to leave group")

        self.cache.invalidate(*group_paths(group_id, f"/groups/{group_id}/members"))
        return ActionResult(redirect_to="/groups")
