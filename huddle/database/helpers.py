from datetime import datetime, timezone
from supabase import Client
from typing import Any, Dict, List, Optional


def first_row(result) -> Optional[Dict[str, Any]]:
    """First row of a PostgREST response, or None"""
    if result is None or not result.data:
        return None
    return result.data[0]


def fetch_by_id(supabase: Client, table: str, row_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
    result = supabase.table(table)\
        .select(columns)\
        .eq("id", row_id)\
        .limit(1)\
        .execute()
    return first_row(result)


def fetch_profiles(supabase: Client, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
    """Map user_id -> profile row for the given ids"""
    if not user_ids:
        return {}
    result = supabase.table("profiles")\
        .select("id, email, full_name, avatar_url, created_at")\
        .in_("id", list(set(user_ids)))\
        .execute()
    return {p["id"]: p for p in result.data or []}


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a timestamptz value from PostgREST; naive values are taken as UTC"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
