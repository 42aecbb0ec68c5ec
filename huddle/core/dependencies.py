"""
Core dependencies for caller identity and group role lookup
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from huddle.core.errors import Unauthenticated, NotAMember
from huddle.core.permissions import Role
from huddle.database.supabase_client import get_supabase
from huddle.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Resolve the caller from the bearer token; fails with unauthenticated when absent"""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    return auth_service.get_current_user(credentials.credentials)


def get_member_role(supabase: Client, group_id: str, user_id: str) -> Optional[Role]:
    """Return the caller's role in the group, or None when not a member (or on lookup error)"""
    try:
        result = supabase.table("group_members")\
            .select("role")\
            .eq("group_id", group_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return Role(result.data[0]["role"])
    except Exception as e:
        logger.error(f"Error getting member role: {e}")
        return None


def require_member_role(supabase: Client, group_id: str, user_id: str) -> Role:
    """Like get_member_role but fails with not-a-member"""
    role = get_member_role(supabase, group_id, user_id)
    if role is None:
        raise NotAMember()
    return role
