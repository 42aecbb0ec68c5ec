from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from huddle.modules.members.schemas import MemberProfile


class AttendanceStatus(str, Enum):
    ATTENDING = "attending"
    NOT_ATTENDING = "not_attending"
    MAYBE = "maybe"


class ParticipantRespond(BaseModel):
    status: AttendanceStatus


class ParticipantResponse(BaseModel):
    id: str
    event_id: str
    user_id: str
    status: AttendanceStatus
    responded_at: Optional[datetime] = None
    profile: Optional[MemberProfile] = None


class MyParticipationResponse(BaseModel):
    status: Optional[AttendanceStatus] = None


class ParticipantCounts(BaseModel):
    attending: int = 0
    not_attending: int = 0
    maybe: int = 0
