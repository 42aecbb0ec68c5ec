from supabase import Client
from typing import Dict

STATUSES = ("attending", "not_attending", "maybe")


def count_participants_by_status(supabase: Client, event_id: str) -> Dict[str, int]:
    result = supabase.table("participants")\
        .select("status")\
        .eq("event_id", event_id)\
        .execute()
    counts = {status: 0 for status in STATUSES}
    for row in result.data or []:
        if row["status"] in counts:
            counts[row["status"]] += 1
    return counts
