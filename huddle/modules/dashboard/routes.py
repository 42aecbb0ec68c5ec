from fastapi import APIRouter, Depends
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user
from huddle.database.supabase_client import get_supabase
from huddle.modules.dashboard.schemas import DashboardResponse
from huddle.modules.dashboard.service import DashboardService
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> DashboardService:
    return DashboardService(supabase, cache)


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    current_user: Dict = Depends(get_current_user),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Upcoming events, recent announcements and the unread notification count"""
    return service.get_dashboard(current_user["id"])
