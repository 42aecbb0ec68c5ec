from fastapi import APIRouter, Depends, Query, Security
from fastapi.security import HTTPAuthorizationCredentials
from huddle.config.permissions_config import PERMISSION_MATRIX
from huddle.config.settings import settings
from huddle.core.dependencies import get_auth_service, get_current_user, security
from huddle.core.errors import ValidationFailed
from huddle.database.supabase_client import get_supabase
from huddle.modules.auth.schemas import CallbackResponse, MeResponse
from huddle.modules.auth.service import AuthService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])

DEFAULT_NEXT = "/dashboard"


def _safe_next(next_path: Optional[str]) -> str:
    # only same-site relative paths
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return DEFAULT_NEXT
    return next_path


@router.get("/callback", response_model=CallbackResponse)
async def auth_callback(
    code: Optional[str] = None,
    next: Optional[str] = Query(None),
    code_verifier: Optional[str] = None,
    service: AuthService = Depends(get_auth_service)
):
    """Finish OAuth / email-link sign-in: exchange the code, make sure a profile exists"""
    if not code:
        raise ValidationFailed("Missing authorization code")
    session = service.exchange_code_for_session(code, code_verifier)
    return CallbackResponse(session=session, redirect_to=f"{settings.site_url.rstrip('/')}{_safe_next(next)}")


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
):
    """Current user, their role in each group and the role matrix (for frontend UI)"""
    result = supabase.table("group_members")\
        .select("group_id, role")\
        .eq("user_id", current_user["id"])\
        .execute()
    return MeResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        user_metadata=current_user.get("user_metadata") or {},
        roles=result.data or [],
        permissions=PERMISSION_MATRIX
    )


@router.post("/logout", status_code=200)
async def logout(
    current_user: Dict = Depends(get_current_user),
    credentials: HTTPAuthorizationCredentials = Security(security),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and drop the cached session"""
    service.logout(credentials.credentials)
    return {"message": "Logged out successfully", "redirect_to": "/"}
