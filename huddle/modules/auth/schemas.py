from pydantic import BaseModel
from typing import Optional, List


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class CallbackResponse(BaseModel):
    session: SessionResponse
    redirect_to: str


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: dict = {}
    roles: List[dict] = []
    permissions: dict = {}
