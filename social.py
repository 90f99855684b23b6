"""EcoVoice feed helpers: author blocks, post presentation, story grouping."""

from datetime import datetime, timezone
from typing import List, Optional

from analytics import as_datetime

LEVELS = ["Seedling", "Sprout", "Gardener", "Eco-Warrior", "Eco-Guardian"]
CAPTION_PREVIEW_LENGTH = 125


def author_block(user: dict) -> dict:
    email = user["email"]
    return {
        "email": email,
        "username": email.split("@")[0],
        "fullName": user.get("full_name") or email,
        "avatar": user.get("avatar_url") or None,
        "isVerified": False,
        "level": LEVELS[0],
        "points": 0,
    }


def truncate_caption(caption: str, max_length: int = CAPTION_PREVIEW_LENGTH) -> str:
    if len(caption) <= max_length:
        return caption
    return caption[:max_length] + "..."


def time_ago(value, now: Optional[datetime] = None) -> str:
    created = as_datetime(value)
    if created is None:
        return ""
    now = now or datetime.now(timezone.utc)
    seconds = int((now - created).total_seconds())
    if seconds < 60:
        return "now"
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            n = seconds // size
            return f"{n} {unit}{'' if n == 1 else 's'} ago"
    return "now"


def present_post(post: dict, viewer: Optional[str], now: Optional[datetime] = None) -> dict:
    """Shape a stored post for a viewer; liked_by/bookmarked_by are not exposed."""
    out = {k: v for k, v in post.items() if k not in ("liked_by", "bookmarked_by")}
    caption = (post.get("content") or {}).get("caption", "")
    out["isLiked"] = viewer in (post.get("liked_by") or [])
    out["isBookmarked"] = viewer in (post.get("bookmarked_by") or [])
    out["captionPreview"] = truncate_caption(caption)
    out["timestamp"] = time_ago(post.get("created_date"), now)
    return out


def group_stories(stories: List[dict], viewer: Optional[str]) -> List[dict]:
    """Group stories per author, oldest story first, the viewer's own group leading."""
    groups = {}
    for s in sorted(stories, key=lambda s: as_datetime(s.get("created_date")) or datetime.min.replace(tzinfo=timezone.utc)):
        email = s["user"]["email"]
        group = groups.setdefault(email, {
            "id": email,
            "user": s["user"],
            "isOwnStory": email == viewer,
            "hasNewStory": True,
            "stories": [],
        })
        group["stories"].append({
            "storyId": s["id"],
            "type": s.get("type", "image"),
            "url": s["url"],
            "duration": s.get("duration", 5000),
        })
    ordered = list(groups.values())
    ordered.sort(key=lambda g: not g["isOwnStory"])
    return ordered
