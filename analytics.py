"""
Derived views over fetched entity lists: dashboard stats, analytics
breakdowns, donation totals and map markers.

Everything here is a plain function over a list of report/donation dicts,
recomputed per request.
"""

import os
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

MAP_TILE_URL = os.getenv("MAP_TILE_URL", "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png")
MAP_ATTRIBUTION = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap</a> contributors'
DEFAULT_CENTER = (28.6139, 77.2090)  # Delhi
DEFAULT_ZOOM = 11

STATUS_COLORS = {
    "submitted": "#3b82f6",
    "acknowledged": "#eab308",
    "assigned": "#a855f7",
    "in_progress": "#f97316",
    "resolved": "#22c55e",
    "closed": "#6b7280",
}
CATEGORY_ICONS = {
    "pothole": "🕳️",
    "streetlight": "💡",
    "trash": "🗑️",
    "water_leak": "💧",
    "graffiti": "🎨",
    "traffic_signal": "🚦",
    "sidewalk": "🚶",
    "noise": "🔊",
    "other": "❓",
}
PENDING_STATUSES = ("submitted", "acknowledged")


def as_datetime(value) -> Optional[datetime]:
    """Coerce stored dates (datetime, date or ISO string) to aware UTC datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    else:
        try:
            dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _matches(value: Optional[str], wanted: Optional[str]) -> bool:
    return not wanted or wanted == "all" or value == wanted


def filter_reports(reports: Iterable[dict], search: str = "", status: str = "all", category: str = "all") -> List[dict]:
    """Case-insensitive search over title/description/address plus status/category filters."""
    term = (search or "").lower()
    out = []
    for r in reports:
        if term:
            haystack = [r.get("title") or "", r.get("description") or "", r.get("address") or ""]
            if not any(term in h.lower() for h in haystack):
                continue
        if _matches(r.get("status"), status) and _matches(r.get("category"), category):
            out.append(r)
    return out


def dashboard_stats(reports: List[dict]) -> dict:
    return {
        "total": len(reports),
        "pending": sum(1 for r in reports if r.get("status") in PENDING_STATUSES),
        "inProgress": sum(1 for r in reports if r.get("status") == "in_progress"),
        "resolved": sum(1 for r in reports if r.get("status") == "resolved"),
        "urgent": sum(1 for r in reports if r.get("priority") == "urgent"),
    }


def city_stats(reports: List[dict], now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    week_ago = now - timedelta(days=7)
    this_week = 0
    for r in reports:
        created = as_datetime(r.get("created_date"))
        if created and created > week_ago:
            this_week += 1
    return {
        "total": len(reports),
        "resolved": sum(1 for r in reports if r.get("status") == "resolved"),
        "inProgress": sum(1 for r in reports if r.get("status") == "in_progress"),
        "thisWeek": this_week,
    }


def average_resolution_days(reports: List[dict]) -> float:
    durations = []
    for r in reports:
        if r.get("status") != "resolved" or not r.get("resolved_date"):
            continue
        created = as_datetime(r.get("created_date"))
        resolved = as_datetime(r.get("resolved_date"))
        if created and resolved:
            durations.append((resolved - created).total_seconds() / 86400)
    if not durations:
        return 0
    return sum(durations) / len(durations)


def analytics_summary(reports: List[dict], now: Optional[datetime] = None) -> dict:
    now = now or datetime.now(timezone.utc)
    last_week = now - timedelta(days=7)
    last_month = now - timedelta(days=30)

    created = [as_datetime(r.get("created_date")) for r in reports]
    this_week = sum(1 for c in created if c and c >= last_week)
    this_month = sum(1 for c in created if c and c >= last_month)

    status_breakdown = dict(Counter(r.get("status") for r in reports))
    category_breakdown = dict(Counter(r.get("category") for r in reports))
    priority_breakdown = dict(Counter(r.get("priority") for r in reports))

    weekly = []
    for i in range(6, -1, -1):
        day = (now - timedelta(days=i)).date()
        weekly.append({
            "date": day.strftime("%b %d"),
            "reports": sum(1 for c in created if c and c.date() == day),
        })

    return {
        "thisWeek": this_week,
        "thisMonth": this_month,
        "statusBreakdown": status_breakdown,
        "categoryBreakdown": category_breakdown,
        "priorityBreakdown": priority_breakdown,
        "avgResolutionTime": average_resolution_days(reports),
        "weeklyData": weekly,
        "totalReports": len(reports),
        "resolvedCount": status_breakdown.get("resolved", 0),
        "pendingCount": status_breakdown.get("submitted", 0) + status_breakdown.get("acknowledged", 0),
        "inProgressCount": status_breakdown.get("in_progress", 0),
    }


def donation_stats(donations: List[dict]) -> dict:
    completed = [d for d in donations if d.get("status") == "completed"]
    return {
        "totalDonated": sum(d.get("amount") or 0 for d in completed),
        "donationCount": len(completed),
        "uniqueCauses": len({d.get("cause_id") for d in completed}),
    }


def filter_donations(donations: Iterable[dict], search: str = "") -> List[dict]:
    term = (search or "").lower()
    if not term:
        return list(donations)
    return [
        d for d in donations
        if term in (d.get("cause_name") or "").lower() or term in (d.get("transaction_id") or "").lower()
    ]


def cause_progress(cause: dict) -> float:
    goal = cause.get("goal_amount") or 0
    if goal <= 0:
        return 0
    return (cause.get("raised_amount") or 0) / goal * 100


def _has_coords(r: dict) -> bool:
    return r.get("latitude") is not None and r.get("longitude") is not None


def map_center(reports: List[dict]):
    located = [r for r in reports if _has_coords(r)]
    if not located:
        return list(DEFAULT_CENTER)
    lat = sum(r["latitude"] for r in located) / len(located)
    lng = sum(r["longitude"] for r in located) / len(located)
    return [lat, lng]


def map_view(reports: List[dict], status: str = "all", category: str = "all") -> dict:
    markers = []
    for r in reports:
        if not _has_coords(r):
            continue
        if not (_matches(r.get("status"), status) and _matches(r.get("category"), category)):
            continue
        markers.append({
            "id": r.get("id"),
            "title": r.get("title"),
            "latitude": r["latitude"],
            "longitude": r["longitude"],
            "status": r.get("status"),
            "category": r.get("category"),
            "priority": r.get("priority"),
            "upvotes": r.get("upvotes", 0),
            "icon": CATEGORY_ICONS.get(r.get("category"), CATEGORY_ICONS["other"]),
            "color": STATUS_COLORS.get(r.get("status"), "#6b7280"),
        })
    return {
        "center": map_center(reports),
        "zoom": DEFAULT_ZOOM,
        "tileUrl": MAP_TILE_URL,
        "attribution": MAP_ATTRIBUTION,
        "markers": markers,
    }
