"""
Live participant roster.

The roster starts from a participant listing and is reconciled against
Supabase realtime change events for the event's participants rows:
INSERT appends, UPDATE merges into the row with the same id (keeping its
profile), DELETE drops the row with the old record's id. Changes are applied
in arrival order with no conflict resolution, so the last event seen for a
row wins even if the database committed them in a different order.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from huddle.database.supabase_client import create_realtime_client

logger = logging.getLogger(__name__)

ProfileLoader = Callable[[str], Optional[Dict[str, Any]]]


def _change_parts(change: Dict[str, Any]):
    data = change.get("data", change)
    kind = (data.get("type") or data.get("eventType") or "").upper()
    record = data.get("record") or data.get("new") or {}
    old_record = data.get("old_record") or data.get("old") or {}
    return kind, record, old_record


class ParticipantRoster:
    def __init__(self, participants: List[Dict[str, Any]], profile_loader: Optional[ProfileLoader] = None):
        self._rows: List[Dict[str, Any]] = [dict(p) for p in participants]
        self._profile_loader = profile_loader

    def snapshot(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._rows]

    def apply(self, change: Dict[str, Any]) -> List[Dict[str, Any]]:
        kind, record, old_record = _change_parts(change)

        if kind == "INSERT" and record:
            if any(r.get("id") == record.get("id") for r in self._rows):
                self._merge(record)
            else:
                profile = self._profile_loader(record["user_id"]) if self._profile_loader else None
                self._rows.append({**record, "profile": profile})
        elif kind == "UPDATE" and record:
            self._merge(record)
        elif kind == "DELETE":
            deleted_id = old_record.get("id")
            self._rows = [r for r in self._rows if r.get("id") != deleted_id]
        else:
            logger.debug(f"Ignoring realtime change of type {kind!r}")

        return self.snapshot()

    def _merge(self, record: Dict[str, Any]) -> None:
        for i, row in enumerate(self._rows):
            if row.get("id") == record.get("id"):
                self._rows[i] = {**row, **record, "profile": row.get("profile")}


async def subscribe_participant_changes(
    event_id: str,
    on_change: Callable[[Dict[str, Any]], None]
) -> Callable[[], Awaitable[None]]:
    """Subscribe to participants changes for one event; returns an async unsubscribe"""
    client = await create_realtime_client()
    channel = client.channel(f"participants:{event_id}")
    await channel.on_postgres_changes(
        "*",
        schema="public",
        table="participants",
        filter=f"event_id=eq.{event_id}",
        callback=on_change
    ).subscribe()
    logger.info(f"Realtime subscription opened for event {event_id}")

    async def unsubscribe() -> None:
        try:
            await client.remove_channel(channel)
        except Exception as e:
            logger.error(f"Error closing realtime channel for event {event_id}: {e}")
        logger.info(f"Realtime subscription closed for event {event_id}")

    return unsubscribe


async def stream_roster(
    roster: ParticipantRoster,
    changes: "asyncio.Queue[Dict[str, Any]]",
    send: Callable[[List[Dict[str, Any]]], Awaitable[None]]
) -> None:
    """Apply queued changes to the roster and push each new snapshot"""
    while True:
        change = await changes.get()
        await send(roster.apply(change))
