from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class NotificationType(str, Enum):
    NEW_EVENT = "new_event"
    REMINDER = "reminder"
    ANNOUNCEMENT = "announcement"


class NotificationPayload(BaseModel):
    """What a fan-out sends: one of these per trigger, shared by all recipients"""
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=100)
    message: str = Field(..., min_length=1, max_length=500)
    related_event_id: Optional[str] = None
    url: Optional[str] = None


class DeliveryReport(BaseModel):
    sent: int = 0
    failed: int = 0
    expired: int = 0
    total_subscriptions: int = 0
    target_users: int = 0
    logged_users: int = 0


class NotificationLogResponse(BaseModel):
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    related_event_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class UnreadCountResponse(BaseModel):
    count: int


class NotificationSettings(BaseModel):
    new_event_enabled: bool = True
    reminder_enabled: bool = True
    announcement_enabled: bool = True
