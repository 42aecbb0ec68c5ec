from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class EventStatus(str, Enum):
    SCHEDULED = "scheduled"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class EventCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    event_date: datetime
    location: Optional[str] = Field(None, max_length=200)
    response_deadline: Optional[datetime] = None
    max_participants: Optional[int] = Field(None, ge=1, le=1000)
    cost: int = Field(0, ge=0, le=10_000_000)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    event_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    response_deadline: Optional[datetime] = None
    max_participants: Optional[int] = Field(None, ge=1, le=1000)
    cost: Optional[int] = Field(None, ge=0, le=10_000_000)


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventGroupSummary(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None


class EventResponse(BaseModel):
    id: str
    group_id: str
    title: str
    description: Optional[str] = None
    event_date: datetime
    location: Optional[str] = None
    response_deadline: Optional[datetime] = None
    max_participants: Optional[int] = None
    cost: int = 0
    status: EventStatus
    created_by: str
    created_at: Optional[datetime] = None
    group: Optional[EventGroupSummary] = None


class AttendanceStats(BaseModel):
    attending: int
    not_attending: int
    maybe: int
    total: int
    attendance_rate: Optional[float] = None
    response_rate: Optional[float] = None


class EventStatsResponse(AttendanceStats):
    event_id: str
    total_members: int
    summary: str
    attendance_rate_label: Optional[str] = None
