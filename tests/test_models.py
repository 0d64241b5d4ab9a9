import json
import uuid
from datetime import datetime, timezone

from rssagg.database import Feed, FeedFollow, Post, User
from rssagg.models import feed_follow_to_dict, feed_to_dict, post_to_dict, user_to_dict

T0 = datetime(2024, 1, 2, 3, 4, 5, 120000, tzinfo=timezone.utc)
T_WHOLE = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def _parse(text):
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def test_user_to_dict_fields():
    user = User(uuid.uuid4(), "alice", T0, T_WHOLE, "placeholder")
    data = user_to_dict(user)
    assert set(data) == {"id", "name", "created_at", "updated_at", "api_key"}
    assert uuid.UUID(data["id"]) == user.id
    assert data["name"] == "alice"
    assert data["api_key"] == "placeholder"
    assert _parse(data["created_at"]) == T0
    assert _parse(data["updated_at"]) == T_WHOLE


def test_utc_times_use_z_and_trim_fraction():
    user = User(uuid.uuid4(), "alice", T0, T_WHOLE, "placeholder")
    data = user_to_dict(user)
    assert data["created_at"] == "2024-01-02T03:04:05.12Z"
    assert data["updated_at"] == "2024-01-02T03:04:05Z"


def test_feed_to_dict_omits_last_fetched():
    feed = Feed(uuid.uuid4(), "news", T0, T0, "http://example.com/a.xml", uuid.uuid4(), T0)
    data = feed_to_dict(feed)
    assert set(data) == {"id", "name", "created_at", "updated_at", "url", "user_id"}
    assert uuid.UUID(data["user_id"]) == feed.user_id
    assert data["url"] == feed.url


def test_feed_follow_to_dict():
    follow = FeedFollow(uuid.uuid4(), T0, T0, uuid.uuid4(), uuid.uuid4())
    data = feed_follow_to_dict(follow)
    assert uuid.UUID(data["feed_id"]) == follow.feed_id
    assert uuid.UUID(data["user_id"]) == follow.user_id
    assert uuid.UUID(data["id"]) == follow.id


def test_post_to_dict_description_null_when_missing():
    post = Post(uuid.uuid4(), "t", None, T0, T0, T0, "http://example.com/p", uuid.uuid4())
    data = post_to_dict(post)
    assert data["description"] is None
    assert json.loads(json.dumps(data))["description"] is None


def test_post_to_dict_round_trip():
    post = Post(uuid.uuid4(), "t", "body", T_WHOLE, T0, T0, "http://example.com/p", uuid.uuid4())
    data = post_to_dict(post)
    assert data["description"] == "body"
    assert data["title"] == "t"
    assert _parse(data["published_at"]) == T_WHOLE
    assert uuid.UUID(data["feed_id"]) == post.feed_id