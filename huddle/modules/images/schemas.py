from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class EventImageResponse(BaseModel):
    id: str
    event_id: str
    image_url: str
    display_order: int
    created_at: Optional[datetime] = None


class ImageReorder(BaseModel):
    image_ids: List[str] = Field(..., min_length=1)


class ImageUrlResponse(BaseModel):
    image_url: Optional[str] = None
