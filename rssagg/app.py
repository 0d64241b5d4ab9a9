"""HTTP API for users, feeds, feed follows and posts."""

from __future__ import annotations

import functools
import logging
import os
import sqlite3
import sys
import threading
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from dotenv import load_dotenv
from flask import Flask, Response, request

from rssagg.auth import AuthError, get_api_key
from rssagg.database import NotFoundError, Queries, connect
from rssagg.models import feed_follow_to_dict, feed_to_dict, post_to_dict, user_to_dict
from rssagg.responses import respond_with_error, respond_with_json
from rssagg.scraper import start_scraping

log = logging.getLogger(__name__)

_DB_ERRORS = (sqlite3.Error, NotFoundError)
_ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"


def _payload() -> dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValueError("request body is not a JSON object")
    return data


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_app(queries: Queries) -> Flask:
    """Build the application around ``queries``."""
    app = Flask(__name__)

    def authenticated(handler):
        @functools.wraps(handler)
        def wrapper(*args, **kwargs):
            try:
                key = get_api_key(request.headers)
            except AuthError as exc:
                return respond_with_error(403, f"Auth error: {exc}")
            try:
                user = queries.get_user_by_api_key(key)
            except _DB_ERRORS as exc:
                return respond_with_error(400, f"Couldn't get user: {exc}")
            return handler(user, *args, **kwargs)

        return wrapper

    @app.before_request
    def preflight():
        if request.method == "OPTIONS" and "Access-Control-Request-Method" in request.headers:
            resp = Response(status=200)
            resp.headers["Access-Control-Allow-Methods"] = _ALLOWED_METHODS
            requested = request.headers.get("Access-Control-Request-Headers")
            if requested:
                resp.headers["Access-Control-Allow-Headers"] = requested
            resp.headers["Access-Control-Max-Age"] = "300"
            return resp
        return None

    @app.after_request
    def cors(resp: Response) -> Response:
        resp.headers["Access-Control-Allow-Origin"] = "*"
        if request.method != "OPTIONS":
            resp.headers["Access-Control-Expose-Headers"] = "Link"
        resp.headers.add("Vary", "Origin")
        return resp

    @app.get("/v1/healthz")
    def readiness():
        return respond_with_json(200, {})

    @app.get("/v1/err")
    def errors():
        return respond_with_error(500, "Internal Server Error")

    @app.post("/v1/users")
    def create_user():
        try:
            params = _payload()
        except ValueError as exc:
            return respond_with_error(400, f"Invalid request payload : {exc}")
        now = _now()
        try:
            user = queries.create_user(uuid4(), str(params.get("name", "")), now, now)
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Failed to create user: {exc}")
        return respond_with_json(201, user_to_dict(user))

    @app.get("/v1/users")
    @authenticated
    def get_user(user):
        return respond_with_json(200, user_to_dict(user))

    @app.post("/v1/feeds")
    @authenticated
    def create_feed(user):
        try:
            params = _payload()
        except ValueError as exc:
            return respond_with_error(400, f"Invalid request payload : {exc}")
        now = _now()
        try:
            feed = queries.create_feed(
                uuid4(), now, now, str(params.get("name", "")), str(params.get("url", "")), user.id
            )
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Failed to create feed: {exc}")
        return respond_with_json(201, feed_to_dict(feed))

    @app.get("/v1/feeds")
    def get_all_feeds():
        try:
            feeds = queries.get_all_feeds()
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Failed to get all feeds: {exc}")
        return respond_with_json(201, [feed_to_dict(f) for f in feeds])

    @app.post("/v1/feed_follows")
    @authenticated
    def create_feed_follow(user):
        try:
            feed_id = UUID(str(_payload().get("feed_id", "")))
        except ValueError as exc:
            return respond_with_error(400, f"Invalid request payload : {exc}")
        now = _now()
        try:
            follow = queries.create_feed_follow(uuid4(), now, now, feed_id, user.id)
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Failed to create feed: {exc}")
        return respond_with_json(201, feed_follow_to_dict(follow))

    @app.get("/v1/feed_follows")
    @authenticated
    def get_feed_follows(user):
        try:
            follows = queries.get_feed_follows(user.id)
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Failed to Get Field: {exc}")
        return respond_with_json(200, [feed_follow_to_dict(f) for f in follows])

    @app.delete("/v1/feed_follows/<follow_id>")
    @authenticated
    def delete_feed_follow(user, follow_id):
        try:
            parsed = UUID(follow_id)
        except ValueError as exc:
            return respond_with_error(400, f"Couldn't parse uuid : {exc}")
        try:
            queries.delete_feed_follow(parsed, user.id)
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Failed to unfollow: {exc}")
        return respond_with_json(200, {})

    @app.get("/v1/posts")
    @authenticated
    def get_posts(user):
        try:
            posts = queries.get_posts_for_user(user.id, 10)
        except _DB_ERRORS as exc:
            return respond_with_error(400, f"Couldn't get posts: {exc}")
        return respond_with_json(200, [post_to_dict(p) for p in posts])

    return app


def main(argv: list[str] | None = None) -> None:
    """Start the scraper and serve the API on $PORT using the database at $DB_URL."""
    logging.basicConfig(level=logging.INFO)
    load_dotenv()
    port = os.environ.get("PORT", "")
    if not port:
        log.error("PORT is not found in the environment")
        sys.exit(1)
    db_url = os.environ.get("DB_URL", "")
    if not db_url:
        log.error("DB_URL is not found in the environment")
        sys.exit(1)
    try:
        queries = Queries(connect(db_url))
    except sqlite3.Error as exc:
        log.error("Error connecting to the database: %s", exc)
        sys.exit(1)
    threading.Thread(target=start_scraping, args=(queries, 10, 60.0), daemon=True).start()
    log.info("Server running on port %s", port)
    create_app(queries).run(host="0.0.0.0", port=int(port))


if __name__ == "__main__":
    main()