"""Forum helpers: relative timestamps, like toggling and read views."""

from datetime import datetime
from typing import Optional

from careerpath.server.models.forum import ForumPost, ForumPostRead


def time_ago(when: datetime, now: Optional[datetime] = None) -> str:
    """Relative age in whole minutes, hours or days."""
    seconds = ((now or datetime.utcnow()) - when).total_seconds()
    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes} minutes ago"
    hours = int(seconds // 3600)
    if hours < 24:
        return f"{hours} hours ago"
    return f"{int(seconds // 86400)} days ago"


def toggle_like(post: ForumPost, user_id: int, now: Optional[datetime] = None) -> bool:
    """
    Like or unlike ``post`` for ``user_id``; returns whether it is now liked.

    ``likes`` is replaced rather than mutated so the JSON column is written.
    """
    remaining = [like for like in post.likes if like.get("user_id") != user_id]
    liked = len(remaining) == len(post.likes)
    if liked:
        remaining.append({"user_id": user_id, "liked_at": (now or datetime.utcnow()).isoformat()})
    post.likes = remaining
    post.like_count = len(remaining)
    return liked


def post_read(post: ForumPost, since: Optional[datetime] = None, now: Optional[datetime] = None) -> ForumPostRead:
    """Listing view; ``time_ago`` is measured from ``since`` (default ``last_activity``)."""
    return ForumPostRead.model_validate(post, update={"time_ago": time_ago(since or post.last_activity, now)})
