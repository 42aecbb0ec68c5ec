import asyncio
import logging
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from huddle.core.cache import ViewCache, get_view_cache
from huddle.core.dependencies import get_current_user, get_auth_service
from huddle.core.errors import ActionError
from huddle.core.responses import ActionResult
from huddle.database.helpers import fetch_by_id
from huddle.database.supabase_client import get_supabase
from huddle.modules.auth.service import AuthService
from huddle.modules.participants import realtime
from huddle.modules.participants.realtime import ParticipantRoster, stream_roster
from huddle.modules.participants.schemas import (
    ParticipantRespond, ParticipantResponse, MyParticipationResponse, ParticipantCounts
)
from huddle.modules.participants.service import ParticipantService
from supabase import Client
from typing import List, Dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events/{event_id}/participants", tags=["participants"])


def get_participant_service(
    supabase: Client = Depends(get_supabase),
    cache: ViewCache = Depends(get_view_cache)
) -> ParticipantService:
    return ParticipantService(supabase, cache)


@router.post("", response_model=ActionResult[ParticipantResponse])
async def respond_to_event(
    event_id: str,
    response: ParticipantRespond,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service)
):
    """Set the caller's attendance (attending / not_attending / maybe)"""
    return service.respond_to_event(event_id, response.status, current_user["id"])


@router.delete("/me", response_model=ActionResult[None])
async def cancel_participation(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.cancel_participation(event_id, current_user["id"])


@router.get("", response_model=List[ParticipantResponse])
async def list_participants(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.list_participants(event_id, current_user["id"])


@router.get("/me", response_model=MyParticipationResponse)
async def get_my_participation(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.get_my_participation(event_id, current_user["id"])


@router.get("/counts", response_model=ParticipantCounts)
async def get_participant_counts(
    event_id: str,
    current_user: Dict = Depends(get_current_user),
    service: ParticipantService = Depends(get_participant_service)
):
    return service.get_participant_counts(event_id, current_user["id"])


@router.websocket("/live")
async def participants_live(
    websocket: WebSocket,
    event_id: str,
    token: str = Query(...),
    auth_service: AuthService = Depends(get_auth_service),
    service: ParticipantService = Depends(get_participant_service)
):
    """Stream the participant roster: one snapshot on connect, then one per change.
    Browsers cannot set headers on websockets, so the access token comes as ?token="""
    try:
        user = auth_service.get_current_user(token)
        service.member_event(event_id, user["id"])
    except ActionError as e:
        logger.info(f"Rejected live roster connection for event {event_id}: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.detail)
        return

    await websocket.accept()

    # subscribe before the snapshot; changes that arrive meanwhile wait in the
    # queue and are replayed on top of it
    loop = asyncio.get_running_loop()
    changes: asyncio.Queue = asyncio.Queue()
    unsubscribe = await realtime.subscribe_participant_changes(
        event_id, lambda change: loop.call_soon_threadsafe(changes.put_nowait, change)
    )
    try:
        try:
            initial = service.list_participants(event_id, user["id"])
        except ActionError as e:
            logger.error(f"Could not load roster for event {event_id}: {e.detail}")
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=e.detail)
            return

        roster = ParticipantRoster(
            [p.model_dump(mode="json") for p in initial],
            profile_loader=lambda user_id: fetch_by_id(
                service.supabase, "profiles", user_id, "id, email, full_name, avatar_url"
            )
        )
        await websocket.send_json(roster.snapshot())

        forward = asyncio.create_task(stream_roster(roster, changes, websocket.send_json))
        try:
            while True:
                # client messages are ignored; this only waits for the disconnect
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info(f"Live roster client for event {event_id} disconnected")
        finally:
            forward.cancel()
    finally:
        await unsubscribe()
