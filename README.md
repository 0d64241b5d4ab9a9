# rssagg

rssagg is a small RSS aggregator. It runs a JSON HTTP API, built on Flask,
where users sign up, register feeds and follow them. A background thread
polls the feeds that have waited longest and stores their items as posts.
Everything is kept in a SQLite database.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Configuration

The `rssagg` command reads its settings from the environment. A `.env` file
in the current directory is loaded first if there is one.

| Variable | Meaning                                          |
|----------|--------------------------------------------------|
| `PORT`   | TCP port to listen on, on all interfaces (required) |
| `DB_URL` | path of the SQLite database file (required)      |

The command logs an error and exits with status 1 if either variable is
missing or the database cannot be opened. The tables are created when the
database is opened if they do not exist yet.

## Running

```
PORT=8080 DB_URL=rssagg.db rssagg
```

While it runs, the scraper takes up to 10 feeds once a minute, feeds never
fetched first and then those fetched least recently, and handles them in
parallel. For each feed it marks the feed as fetched, downloads the document
(10 second timeout), parses it as RSS and stores each item as a post. Only
items whose `pubDate` has the form `Mon, 02 Jan 2006 15:04:05 MST` are kept;
the time is stored as UTC whatever the zone name says. An empty description
is stored as null. Posts are unique by URL, so items already stored are
skipped.

## API

All routes are under `/v1` and return JSON. Routes marked *auth* need this
header:

```
Authorization: ApiKey <api key>
```

A missing or malformed header gives 403; an unknown key gives 400.

| Method | Path                 | Auth | Status | Description                                    |
|--------|----------------------|------|--------|------------------------------------------------|
| GET    | `/healthz`           |      | 200    | readiness check, returns `{}`                  |
| GET    | `/err`               |      | 500    | always returns an error                        |
| POST   | `/users`             |      | 201    | create a user from `{"name": ...}`             |
| GET    | `/users`             | yes  | 200    | the user that owns the API key                 |
| POST   | `/feeds`             | yes  | 201    | create a feed from `{"name": ..., "url": ...}` |
| GET    | `/feeds`             |      | 201    | list all feeds                                 |
| POST   | `/feed_follows`      | yes  | 201    | follow a feed: `{"feed_id": ...}`              |
| GET    | `/feed_follows`      | yes  | 200    | list the user's follows                        |
| DELETE | `/feed_follows/<id>` | yes  | 200    | unfollow, returns `{}`                         |
| GET    | `/posts`             | yes  | 200    | the 10 newest posts from followed feeds        |

A new user is given a random API key, returned as `api_key`. Times are
RFC 3339 strings in UTC. Errors come back as `{"error": "<message>"}`,
mostly with status 400. Every response allows any origin
(`Access-Control-Allow-Origin: *`), and CORS preflight requests are answered
directly.

Example:

```
curl -X POST localhost:8080/v1/users -d '{"name": "alice"}'
curl -H "Authorization: ApiKey placeholder" localhost:8080/v1/posts
```

## Using it as a library

```python
from rssagg.database import Queries, connect
from rssagg.app import create_app

queries = Queries(connect("rssagg.db"))
app = create_app(queries)
```

- `rssagg.database` holds the `User`, `Feed`, `FeedFollow` and `Post`
  records and the `Queries` class; lookups that find nothing raise
  `NotFoundError`.
- `rssagg.rss.parse_feed` parses an RSS document from bytes or text into an
  `RSSFeed`; `rssagg.rss.url_to_feed` downloads and parses one.
- `rssagg.scraper.scrape_once` runs a single scraping pass and
  `rssagg.scraper.start_scraping` repeats it until a `threading.Event` is set.
- `rssagg.auth.get_api_key` reads the key from request headers and raises
  `AuthError` on a bad header.

## Limits

`url_to_feed` does not check the HTTP status of the response; a page that is
not RSS simply yields a feed with no items, and one that is not XML is
logged and skipped. The scraper reads only the `title`, `link`,
`description` and `pubDate` of each item.