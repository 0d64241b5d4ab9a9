"""SQLite storage for users, feeds, feed follows and posts."""

from __future__ import annotations

import hashlib
import secrets
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    api_key TEXT NOT NULL UNIQUE
);
CREATE TABLE IF NOT EXISTS feeds (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    last_fetched_at TEXT
);
CREATE TABLE IF NOT EXISTS feed_follows (
    id TEXT PRIMARY KEY,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE,
    UNIQUE (user_id, feed_id)
);
CREATE TABLE IF NOT EXISTS posts (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    published_at TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    feed_id TEXT NOT NULL REFERENCES feeds(id) ON DELETE CASCADE
);
"""

_USER_COLUMNS = "id, name, created_at, updated_at, api_key"
_FEED_COLUMNS = "id, name, created_at, updated_at, url, user_id, last_fetched_at"
_FOLLOW_COLUMNS = "id, created_at, updated_at, user_id, feed_id"
_POST_COLUMNS = (
    "posts.id, posts.title, posts.description, posts.published_at, "
    "posts.created_at, posts.updated_at, posts.url, posts.feed_id"
)


class NotFoundError(LookupError):
    """Raised when a query that must return one row finds none."""


@dataclass(frozen=True)
class User:
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime
    api_key: str


@dataclass(frozen=True)
class Feed:
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime
    url: str
    user_id: UUID
    last_fetched_at: datetime | None = None


@dataclass(frozen=True)
class FeedFollow:
    id: UUID
    created_at: datetime
    updated_at: datetime
    user_id: UUID
    feed_id: UUID


@dataclass(frozen=True)
class Post:
    id: UUID
    title: str
    description: str | None
    published_at: datetime
    created_at: datetime
    updated_at: datetime
    url: str
    feed_id: UUID


def _store_time(value: datetime) -> str:
    """Serialise a time as fixed-width UTC text so that it sorts correctly."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f+00:00")


def _load_time(value: str | None) -> datetime | None:
    return None if value is None else datetime.fromisoformat(value)


def _user(row: sqlite3.Row) -> User:
    return User(
        id=UUID(row["id"]),
        name=row["name"],
        created_at=_load_time(row["created_at"]),
        updated_at=_load_time(row["updated_at"]),
        api_key=row["api_key"],
    )


def _feed(row: sqlite3.Row) -> Feed:
    return Feed(
        id=UUID(row["id"]),
        name=row["name"],
        created_at=_load_time(row["created_at"]),
        updated_at=_load_time(row["updated_at"]),
        url=row["url"],
        user_id=UUID(row["user_id"]),
        last_fetched_at=_load_time(row["last_fetched_at"]),
    )


def _follow(row: sqlite3.Row) -> FeedFollow:
    return FeedFollow(
        id=UUID(row["id"]),
        created_at=_load_time(row["created_at"]),
        updated_at=_load_time(row["updated_at"]),
        user_id=UUID(row["user_id"]),
        feed_id=UUID(row["feed_id"]),
    )


def _post(row: sqlite3.Row) -> Post:
    return Post(
        id=UUID(row["id"]),
        title=row["title"],
        description=row["description"],
        published_at=_load_time(row["published_at"]),
        created_at=_load_time(row["created_at"]),
        updated_at=_load_time(row["updated_at"]),
        url=row["url"],
        feed_id=UUID(row["feed_id"]),
    )


def create_schema(conn: sqlite3.Connection) -> None:
    """Create the tables if they do not exist yet."""
    conn.executescript(_SCHEMA)
    conn.commit()


def connect(path: str) -> sqlite3.Connection:
    """Open a database at ``path`` and make sure its schema exists."""
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    create_schema(conn)
    return conn


class Queries:
    """Typed queries over a database connection; safe to share between threads."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()

    def _rows(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    def _one(self, sql: str, params: tuple = ()) -> sqlite3.Row:
        rows = self._rows(sql, params)
        if not rows:
            raise NotFoundError("no rows in result set")
        return rows[0]

    def _write(self, sql: str, params: tuple) -> int:
        with self._lock, self._conn:
            return self._conn.execute(sql, params).rowcount

    # users

    def create_user(self, id: UUID, name: str, created_at: datetime, updated_at: datetime) -> User:
        api_key = hashlib.sha256(secrets.token_bytes(32)).hexdigest()
        self._write(
            f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
            (str(id), name, _store_time(created_at), _store_time(updated_at), api_key),
        )
        return _user(self._one(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (str(id),)))

    def get_user_by_api_key(self, api_key: str) -> User:
        return _user(
            self._one(f"SELECT {_USER_COLUMNS} FROM users WHERE api_key = ?", (api_key,))
        )

    # feeds

    def create_feed(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        name: str,
        url: str,
        user_id: UUID,
    ) -> Feed:
        self._write(
            "INSERT INTO feeds (id, created_at, updated_at, name, url, user_id) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (str(id), _store_time(created_at), _store_time(updated_at), name, url, str(user_id)),
        )
        return _feed(self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE id = ?", (str(id),)))

    def get_all_feeds(self) -> list[Feed]:
        return [_feed(row) for row in self._rows(f"SELECT {_FEED_COLUMNS} FROM feeds")]

    def get_next_feeds_to_fetch(self, limit: int) -> list[Feed]:
        """Return up to ``limit`` feeds, never-fetched first, then least recently fetched."""
        rows = self._rows(
            f"SELECT {_FEED_COLUMNS} FROM feeds "
            "ORDER BY last_fetched_at IS NOT NULL, last_fetched_at ASC LIMIT ?",
            (limit,),
        )
        return [_feed(row) for row in rows]

    def mark_feed_as_fetched(self, feed_id: UUID) -> Feed:
        now = _store_time(datetime.now(timezone.utc))
        changed = self._write(
            "UPDATE feeds SET last_fetched_at = ?, updated_at = ? WHERE id = ?",
            (now, now, str(feed_id)),
        )
        if not changed:
            raise NotFoundError("no rows in result set")
        return _feed(
            self._one(f"SELECT {_FEED_COLUMNS} FROM feeds WHERE id = ?", (str(feed_id),))
        )

    # feed follows

    def create_feed_follow(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        feed_id: UUID,
        user_id: UUID,
    ) -> FeedFollow:
        self._write(
            "INSERT INTO feed_follows (id, created_at, updated_at, feed_id, user_id) "
            "VALUES (?, ?, ?, ?, ?)",
            (str(id), _store_time(created_at), _store_time(updated_at), str(feed_id), str(user_id)),
        )
        return _follow(
            self._one(f"SELECT {_FOLLOW_COLUMNS} FROM feed_follows WHERE id = ?", (str(id),))
        )

    def get_feed_follows(self, user_id: UUID) -> list[FeedFollow]:
        rows = self._rows(
            f"SELECT {_FOLLOW_COLUMNS} FROM feed_follows WHERE user_id = ?", (str(user_id),)
        )
        return [_follow(row) for row in rows]

    def delete_feed_follow(self, id: UUID, user_id: UUID) -> None:
        self._write(
            "DELETE FROM feed_follows WHERE id = ? AND user_id = ?", (str(id), str(user_id))
        )

    # posts

    def create_post(
        self,
        id: UUID,
        created_at: datetime,
        updated_at: datetime,
        title: str,
        url: str,
        feed_id: UUID,
        description: str | None,
        published_at: datetime,
    ) -> Post:
        self._write(
            "INSERT INTO posts (id, created_at, updated_at, title, url, feed_id, "
            "description, published_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(id),
                _store_time(created_at),
                _store_time(updated_at),
                title,
                url,
                str(feed_id),
                description,
                _store_time(published_at),
            ),
        )
        return _post(self._one(f"SELECT {_POST_COLUMNS} FROM posts WHERE id = ?", (str(id),)))

    def get_posts_for_user(self, user_id: UUID, limit: int) -> list[Post]:
        """Return the newest posts from the feeds the user follows."""
        rows = self._rows(
            f"SELECT {_POST_COLUMNS} FROM posts "
            "JOIN feed_follows ON posts.feed_id = feed_follows.feed_id "
            "WHERE feed_follows.user_id = ? "
            "ORDER BY posts.published_at DESC LIMIT ?",
            (str(user_id), limit),
        )
        return [_post(row) for row in rows]