"""
Send Event Reminders Script
Finds scheduled events taking place on a given UTC day (tomorrow by default)
and pushes a reminder to each event's attending participants.
Can be run manually or as part of a nightly job.
"""

import argparse
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from huddle.database.supabase_client import get_service_supabase
from huddle.modules.events.schemas import EventStatus
from huddle.modules.notifications.fanout import NotificationFanout
from huddle.modules.push.sender import get_push_sender
from supabase import Client
from typing import List, Dict, Any, Optional
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def find_events_on(supabase: Client, day: date) -> List[Dict[str, Any]]:
    """Scheduled events whose event_date falls on the given UTC day"""
    start = datetime.combine(day, time.min, tzinfo=timezone.utc)
    end = start + timedelta(days=1)
    result = supabase.table("events")\
        .select("id, title, event_date")\
        .eq("status", EventStatus.SCHEDULED.value)\
        .gte("event_date", start.isoformat())\
        .lt("event_date", end.isoformat())\
        .order("event_date")\
        .execute()
    return result.data or []


def send_reminders(fanout: NotificationFanout, day: date, dry_run: bool = False) -> int:
    """Run the reminder trigger for every event on the day; returns pushes sent"""
    events = find_events_on(fanout.supabase, day)
    logger.info(f"{len(events)} scheduled events on {day.isoformat()}")

    sent = 0
    for event in events:
        if dry_run:
            logger.info(f"[dry run] would remind attendees of {event['id']} ({event['title']})")
            continue
        report = fanout.notify_reminder(event["id"])
        if report is not None:
            sent += report.sent
    return sent


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Push reminders for upcoming events")
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="UTC day to remind for (YYYY-MM-DD); defaults to tomorrow")
    parser.add_argument("--dry-run", action="store_true", help="List events without sending")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None):
    """Main function to send reminders"""
    args = parse_args(argv)
    day = args.date or (datetime.now(timezone.utc).date() + timedelta(days=1))
    try:
        fanout = NotificationFanout(get_service_supabase(), get_push_sender())

        logger.info(f"Starting reminders for {day.isoformat()}...")
        sent = send_reminders(fanout, day, dry_run=args.dry_run)
        logger.info(f"Reminders completed: {sent} pushes sent")

    except Exception as e:
        logger.error(f"Error sending reminders: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
