from uuid import uuid4

import pytest

from rssagg.app import create_app, main
from rssagg.database import Queries, connect


@pytest.fixture
def client():
    app = create_app(Queries(connect(":memory:")))
    return app.test_client()


def _user(client):
    return client.post("/v1/users", json={"name": "alice"}).get_json()


def _auth(user):
    return {"Authorization": "ApiKey " + user["api_key"]}


def test_healthz_and_err(client):
    resp = client.get("/v1/healthz")
    assert resp.status_code == 200
    assert resp.get_json() == {}
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    err = client.get("/v1/err")
    assert err.status_code == 500
    assert err.get_json() == {"error": "Internal Server Error"}


def test_create_and_get_user(client):
    user = _user(client)
    assert user["name"] == "alice"
    resp = client.get("/v1/users", headers=_auth(user))
    assert resp.status_code == 200
    assert resp.get_json() == user


def test_auth_errors(client):
    assert client.get("/v1/users").status_code == 403
    bad = client.get("/v1/users", headers={"Authorization": "Bearer token"})
    assert bad.status_code == 403
    unknown = client.get("/v1/users", headers={"Authorization": "ApiKey placeholder"})
    assert unknown.status_code == 400
    assert unknown.get_json()["error"].startswith("Couldn't get user:")


def test_invalid_payload(client):
    resp = client.post("/v1/users", data="{", content_type="application/json")
    assert resp.status_code == 400
    assert resp.get_json()["error"].startswith("Invalid request payload")


def test_feed_and_follow_flow(client):
    user = _user(client)
    feed = client.post("/v1/feeds", headers=_auth(user),
                       json={"name": "blog", "url": "http://example.com/rss"})
    assert feed.status_code == 201
    feed_id = feed.get_json()["id"]
    listed = client.get("/v1/feeds")
    assert listed.status_code == 201
    assert [f["id"] for f in listed.get_json()] == [feed_id]

    follow = client.post("/v1/feed_follows", headers=_auth(user), json={"feed_id": feed_id})
    assert follow.status_code == 201
    follow_id = follow.get_json()["id"]
    follows = client.get("/v1/feed_follows", headers=_auth(user)).get_json()
    assert [f["id"] for f in follows] == [follow_id]

    gone = client.delete(f"/v1/feed_follows/{follow_id}", headers=_auth(user))
    assert gone.status_code == 200
    assert client.get("/v1/feed_follows", headers=_auth(user)).get_json() == []


def test_follow_unknown_feed_and_bad_id(client):
    user = _user(client)
    resp = client.post("/v1/feed_follows", headers=_auth(user), json={"feed_id": str(uuid4())})
    assert resp.status_code == 400
    bad = client.delete("/v1/feed_follows/nope", headers=_auth(user))
    assert bad.status_code == 400
    assert bad.get_json()["error"].startswith("Couldn't parse uuid")


def test_posts_empty(client):
    user = _user(client)
    resp = client.get("/v1/posts", headers=_auth(user))
    assert resp.status_code == 200
    assert resp.get_json() == []


def test_preflight(client):
    resp = client.options("/v1/feeds", headers={
        "Origin": "http://example.com", "Access-Control-Request-Method": "POST"})
    assert resp.status_code == 200
    assert "DELETE" in resp.headers["Access-Control-Allow-Methods"]


def test_main_requires_port(monkeypatch):
    monkeypatch.setattr("rssagg.app.load_dotenv", lambda: None)
    monkeypatch.delenv("PORT", raising=False)
    with pytest.raises(SystemExit) as info:
        main([])
    assert info.value.code == 1