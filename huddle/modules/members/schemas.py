from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from huddle.core.permissions import Role


class MemberProfile(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


class MemberResponse(BaseModel):
    id: str
    group_id: str
    user_id: str
    role: Role
    joined_at: Optional[datetime] = None
    profile: Optional[MemberProfile] = None


class MemberRoleUpdate(BaseModel):
    role: Role
