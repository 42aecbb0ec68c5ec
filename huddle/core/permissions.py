"""
Permission predicates for group roles.

Pure functions: no I/O, no exceptions. Callers combine them with the
"acting on self" checks (self role change / self removal are rejected by the
member service, not here).
"""

from enum import Enum
from typing import Optional

from huddle.config.permissions_config import ASSIGNABLE_ROLES, PROTECTED_ROLES, ROLE_ACTIONS


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


def _role_value(role) -> Optional[str]:
    if role is None:
        return None
    return role.value if isinstance(role, Role) else str(role)


def _allows(role, action: str) -> bool:
    value = _role_value(role)
    if value not in ROLE_ACTIONS:
        return False
    return action in ROLE_ACTIONS[value]["actions"]


def can_create_event(role) -> bool:
    return _allows(role, "events:create")


def can_create_announcement(role) -> bool:
    return _allows(role, "announcements:create")


def can_manage_event(role, creator_id: Optional[str], caller_id: Optional[str]) -> bool:
    """Owner/admin, or the member who created the event."""
    if _allows(role, "events:manage"):
        return True
    return caller_id is not None and caller_id == creator_id


def can_manage_announcement(role, author_id: Optional[str], caller_id: Optional[str]) -> bool:
    if _allows(role, "announcements:manage"):
        return True
    return caller_id is not None and caller_id == author_id


def can_manage_members(role) -> bool:
    return _allows(role, "members:manage")


def can_manage_group(role) -> bool:
    return _allows(role, "groups:update")


def can_delete_group(role) -> bool:
    return _allows(role, "groups:delete")


def can_manage_group_images(role) -> bool:
    return _allows(role, "groups:manage_images")


def can_change_role_to(current_role, target_role, new_role) -> bool:
    # owner role is immutable
    if _role_value(target_role) in PROTECTED_ROLES:
        return False
    allowed = ASSIGNABLE_ROLES.get(_role_value(current_role), [])
    return _role_value(new_role) in allowed


def can_remove_member(current_role, target_role) -> bool:
    if not can_manage_members(current_role):
        return False
    return _role_value(target_role) not in PROTECTED_ROLES
