from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from huddle.modules.notifications.schemas import NotificationPayload


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class SubscribeRequest(BaseModel):
    endpoint: str = Field(..., min_length=1, pattern=r"^https?://")
    keys: SubscriptionKeys


class UnsubscribeRequest(BaseModel):
    endpoint: str = Field(..., min_length=1, pattern=r"^https?://")


class SubscriptionResponse(BaseModel):
    id: str
    endpoint: str
    created_at: Optional[datetime] = None


class SubscriptionListResponse(BaseModel):
    subscriptions: List[SubscriptionResponse]
    count: int


class PushSendRequest(BaseModel):
    user_ids: List[str] = Field(..., min_length=1)
    notification: NotificationPayload
