import logging
import secrets
from fastapi import APIRouter, Depends, Header
from huddle.config.settings import settings
from huddle.core.dependencies import get_current_user
from huddle.core.errors import Unauthenticated
from huddle.core.responses import ActionResult
from huddle.database.supabase_client import get_supabase
from huddle.modules.notifications.fanout import NotificationFanout, get_notification_fanout
from huddle.modules.notifications.schemas import DeliveryReport
from huddle.modules.push.schemas import (
    SubscribeRequest, UnsubscribeRequest, SubscriptionResponse, SubscriptionListResponse, PushSendRequest
)
from huddle.modules.push.service import PushSubscriptionService
from supabase import Client
from typing import Dict, Optional

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/push", tags=["push"])


def get_push_subscription_service(supabase: Client = Depends(get_supabase)) -> PushSubscriptionService:
    return PushSubscriptionService(supabase)


def require_push_api_key(x_push_api_key: Optional[str] = Header(None)) -> None:
    """Server-to-server endpoints; open when no key is configured"""
    if not settings.push_api_key:
        return
    if not x_push_api_key or not secrets.compare_digest(x_push_api_key, settings.push_api_key):
        raise Unauthenticated("Invalid push API key")


@router.get("/vapid-public-key")
async def get_vapid_public_key():
    """Public key the browser needs for PushManager.subscribe"""
    return {"public_key": settings.vapid_public_key}


@router.post("/subscribe", response_model=ActionResult[SubscriptionResponse])
async def subscribe(
    data: SubscribeRequest,
    current_user: Dict = Depends(get_current_user),
    service: PushSubscriptionService = Depends(get_push_subscription_service)
):
    return ActionResult(data=service.subscribe(current_user["id"], data))


@router.delete("/subscribe", response_model=ActionResult[None])
async def unsubscribe(
    data: UnsubscribeRequest,
    current_user: Dict = Depends(get_current_user),
    service: PushSubscriptionService = Depends(get_push_subscription_service)
):
    service.unsubscribe(current_user["id"], data.endpoint)
    return ActionResult()


@router.get("/subscribe", response_model=SubscriptionListResponse)
async def list_subscriptions(
    current_user: Dict = Depends(get_current_user),
    service: PushSubscriptionService = Depends(get_push_subscription_service)
):
    subscriptions = service.list_subscriptions(current_user["id"])
    return SubscriptionListResponse(subscriptions=subscriptions, count=len(subscriptions))


@router.post("/send", response_model=DeliveryReport, dependencies=[Depends(require_push_api_key)])
async def send_push(
    request: PushSendRequest,
    fanout: NotificationFanout = Depends(get_notification_fanout)
):
    """Deliver one notification to every subscription of the given users (internal)"""
    return fanout.deliver(request.user_ids, request.notification)


@router.post("/reminders/{event_id}", response_model=DeliveryReport, dependencies=[Depends(require_push_api_key)])
async def send_event_reminder(
    event_id: str,
    fanout: NotificationFanout = Depends(get_notification_fanout)
):
    """Remind attending participants of an event; called by an external scheduler"""
    report = fanout.notify_reminder(event_id)
    return report or DeliveryReport()
