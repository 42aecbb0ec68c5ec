"""
Attendance statistics for an event.

Rates are percentages of the group's member count, rounded half-up to one
decimal place (53.25 -> 53.3), and are only present when a non-zero member
count is given.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Optional

from huddle.modules.events.schemas import AttendanceStats

ONE_DECIMAL = Decimal("0.1")


def _rate(part: int, whole: int) -> float:
    value = Decimal(part) * 100 / Decimal(whole)
    return float(value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def calculate_attendance_stats(counts: Mapping[str, int], total_members: Optional[int] = None) -> AttendanceStats:
    attending = counts.get("attending", 0)
    not_attending = counts.get("not_attending", 0)
    maybe = counts.get("maybe", 0)
    total = attending + not_attending + maybe

    stats = AttendanceStats(attending=attending, not_attending=not_attending, maybe=maybe, total=total)
    if not total_members:
        return stats

    stats.attendance_rate = _rate(attending, total_members)
    stats.response_rate = _rate(total, total_members)
    return stats


def format_attendance_rate(rate: float) -> str:
    return f"{rate:.1f}%"


def format_attendance_summary(stats: AttendanceStats) -> str:
    parts = []
    if stats.attending:
        parts.append(f"{stats.attending} attending")
    if stats.not_attending:
        parts.append(f"{stats.not_attending} not attending")
    if stats.maybe:
        parts.append(f"{stats.maybe} maybe")
    return " • ".join(parts) if parts else "No responses"
