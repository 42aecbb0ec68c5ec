from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from huddle.modules.members.schemas import MemberProfile


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=100)
    content: str = Field(..., min_length=10, max_length=1000)
    event_id: Optional[str] = None


class AnnouncementUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    content: Optional[str] = Field(None, min_length=10, max_length=1000)


class AnnouncementResponse(BaseModel):
    id: str
    group_id: Optional[str] = None
    event_id: Optional[str] = None
    title: str
    content: str
    author_id: str
    created_at: Optional[datetime] = None
    author: Optional[MemberProfile] = None
    group_name: Optional[str] = None
