"""Background collection of posts from stored feeds."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from uuid import uuid4

from rssagg.database import Feed, Queries
from rssagg.rss import RSSFeed, url_to_feed

log = logging.getLogger(__name__)

Fetcher = Callable[[str], RSSFeed]


def _parse_rfc1123(text: str) -> datetime:
    """Parse ``Mon, 02 Jan 2006 15:04:05 MST``; zone names are taken as UTC offsets of zero
    unless the name is UTC or GMT, which are the same."""
    head, sep, zone = text.rpartition(" ")
    if not sep or not zone.isalpha() or not 3 <= len(zone) <= 5:
        raise ValueError(f"cannot parse {text!r} as RFC1123")
    parsed = datetime.strptime(head, "%a, %d %b %Y %H:%M:%S")
    return parsed.replace(tzinfo=timezone.utc)


def scrape_feed(queries: Queries, feed: Feed, fetch: Fetcher = url_to_feed) -> int:
    """Collect the posts of one feed; return how many items the feed held."""
    try:
        queries.mark_feed_as_fetched(feed.id)
    except Exception as exc:  # noqa: BLE001
        log.warning("error making feed as fetched: %s", exc)
    try:
        rss = fetch(feed.url)
    except Exception as exc:  # noqa: BLE001
        log.warning("Error fetching feed %s", exc)
        return 0
    for item in rss.items:
        try:
            published = _parse_rfc1123(item.pub_date)
        except ValueError as exc:
            log.warning("Error Parsing date %s with err %s", item.pub_date, exc)
            continue
        now = datetime.now(timezone.utc)
        try:
            queries.create_post(
                id=uuid4(),
                created_at=now,
                updated_at=now,
                title=item.title,
                url=item.link,
                feed_id=feed.id,
                description=item.description or None,
                published_at=published,
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" not in str(exc):
                log.warning("failed to create post: %s", exc)
        except sqlite3.Error as exc:
            log.warning("failed to create post: %s", exc)
    log.info("Feed %s collected, %d posts found", feed.name, len(rss.items))
    return len(rss.items)


def scrape_once(queries: Queries, concurrency: int, fetch: Fetcher = url_to_feed) -> list[Feed]:
    """Scrape the next ``concurrency`` feeds in parallel; return the feeds scraped."""
    feeds = queries.get_next_feeds_to_fetch(concurrency)
    if feeds:
        with ThreadPoolExecutor(max_workers=len(feeds)) as pool:
            list(pool.map(lambda f: scrape_feed(queries, f, fetch), feeds))
    return feeds


def start_scraping(
    queries: Queries,
    concurrency: int,
    interval: float,
    stop: threading.Event | None = None,
) -> None:
    """Scrape every ``interval`` seconds until ``stop`` is set."""
    stop = stop or threading.Event()
    log.info("Scrapping On %d goroutines every %ss duration", concurrency, interval)
    while not stop.is_set():
        try:
            scrape_once(queries, concurrency)
        except Exception as exc:  # noqa: BLE001
            log.warning("error fetching feeds: %s", exc)
        if stop.wait(interval):
            break