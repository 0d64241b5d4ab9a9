"""JSON-ready representations of stored records."""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Any

from rssagg.database import Feed, FeedFollow, Post, User

_FRACTION = re.compile(r"\.(\d*?)0+(?=$|[+-])")


def _format_time(value: datetime) -> str:
    """Format a time as RFC 3339, using ``Z`` for UTC and no trailing zero fractions."""
    text = value.isoformat()
    text = _FRACTION.sub(lambda m: "." + m.group(1) if m.group(1) else "", text)
    if value.utcoffset() == timedelta(0):
        text = text[: -len("+00:00")] + "Z"
    return text


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": str(user.id),
        "name": user.name,
        "created_at": _format_time(user.created_at),
        "updated_at": _format_time(user.updated_at),
        "api_key": user.api_key,
    }


def feed_to_dict(feed: Feed) -> dict[str, Any]:
    return {
        "id": str(feed.id),
        "name": feed.name,
        "created_at": _format_time(feed.created_at),
        "updated_at": _format_time(feed.updated_at),
        "url": feed.url,
        "user_id": str(feed.user_id),
    }


def feed_follow_to_dict(follow: FeedFollow) -> dict[str, Any]:
    return {
        "id": str(follow.id),
        "created_at": _format_time(follow.created_at),
        "updated_at": _format_time(follow.updated_at),
        "user_id": str(follow.user_id),
        "feed_id": str(follow.feed_id),
    }


def post_to_dict(post: Post) -> dict[str, Any]:
    return {
        "id": str(post.id),
        "created_at": _format_time(post.created_at),
        "updated_at": _format_time(post.updated_at),
        "title": post.title,
        "url": post.url,
        "feed_id": str(post.feed_id),
        "description": post.description,
        "published_at": _format_time(post.published_at),
    }