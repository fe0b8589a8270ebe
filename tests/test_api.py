"""Tests for the HTTP API."""

import httpx
import pytest
from fastapi.testclient import TestClient

from linkstash.api import create_app

from .conftest import AUTH_KEY

AUTH = {"Authorization": f"Bearer {AUTH_KEY}"}


@pytest.fixture
def client(config, store, scraper, engine):
    app = create_app(config, store=store, scraper=scraper, engine=engine)
    with TestClient(app) as test_client:
        yield test_client


def add(client, link, room=None, headers=AUTH):
    body = {"link": link}
    if room is not None:
        body["room"] = room
    return client.post("/api/add", json=body, headers=headers)


def test_add_requires_auth_before_parsing(client, store, scrape_service):
    response = client.post("/api/add", content=b"{broken", headers={"Content-Type": "application/json"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unauthorized"}

    response = add(client, "https://a.com/x", headers={"Authorization": "Bearer wrong"})
    assert response.status_code == 401
    assert scrape_service.requests == []
    assert store.links == {}


@pytest.mark.parametrize(
    "body, error",
    [
        (b"{broken", "Invalid JSON body"),
        (b"{}", "Missing link"),
        (b'{"link": {"submittedBy": "alice"}}', "Missing link URL"),
        (b'{"link": 42}', "Missing link URL"),
        (b'{"link": "not a url"}', "Invalid URL"),
    ],
)
def test_add_validation_errors(client, store, scrape_service, body, error):
    response = client.post("/api/add", content=body, headers={**AUTH, "Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"] == error
    assert scrape_service.requests == []
    assert store.links == {}


def test_add_stores_link_with_context(client, store):
    response = add(
        client,
        {"url": "https://a.com/x", "submitted_by": "alice"},
        room={"room_id": "r1", "comment": "nice find"},
    )
    assert response.status_code == 200
    assert response.json() == {"ok": True}

    link = next(iter(store.links.values()))
    assert link.submitted_by == "alice"
    assert link.meta.room_id == "r1"
    assert link.meta.room_comment == "nice find"


def test_add_twice_counts_votes(client, store):
    add(client, "https://a.com/x")
    add(client, {"url": "https://a.com/x/", "submittedBy": "bob"})

    assert len(store.links) == 1
    link = next(iter(store.links.values()))
    assert link.count == 2
    assert link.submitted_by == "bob"


def test_add_upstream_failure(client, store, scrape_service):
    scrape_service.error = httpx.ConnectError("connection refused")
    response = add(client, "https://a.com/x")

    assert response.status_code == 502
    assert response.json()["error"] == "Upstream unreachable"
    assert store.links == {}


def test_add_upstream_error_status(client, scrape_service):
    scrape_service.response = httpx.Response(500, text="boom")
    response = add(client, "https://a.com/x")

    assert response.status_code == 502
    assert response.json() == {"error": "Upstream error", "status": 500, "details": "boom"}


def test_add_storage_failure_is_internal_error(client, store, monkeypatch):
    def explode(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(store, "insert_link", explode)
    response = add(client, "https://a.com/x")
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_links_list_is_sanitized_for_public(client):
    add(client, {"url": "https://a.com/x", "submittedBy": "alice"}, room={"id": "r1", "comment": "hi"})

    public = client.get("/api/links").json()
    assert len(public) == 1
    record = public[0]
    assert record["count"] == 1
    assert record["roomComment"] == "hi"
    assert record["title"] == "https://a.com/x"
    for key in ("submittedBy", "submitted_by", "roomId", "room_id"):
        assert key not in record

    private = client.get("/api/links", headers=AUTH).json()[0]
    assert private["submittedBy"] == "alice"
    assert private["roomId"] == "r1"


def test_links_sort_by_votes(client):
    add(client, "https://a.com/popular")
    add(client, "https://a.com/popular")
    add(client, "https://a.com/fresh")

    recent = [r["url"] for r in client.get("/api/links").json()]
    votes = [r["url"] for r in client.get("/api/links", params={"sort": "votes"}).json()]
    assert recent == ["https://a.com/fresh", "https://a.com/popular"]
    assert votes == ["https://a.com/popular", "https://a.com/fresh"]


def test_links_lookup_by_url(client):
    add(client, "https://a.com/x")

    response = client.get("/api/links", params={"url": "https://a.com/x/#top"})
    assert response.status_code == 200
    assert response.json()["url"] == "https://a.com/x"

    missing = client.get("/api/links", params={"url": "https://a.com/y"})
    assert missing.status_code == 404
    assert missing.json() == {"error": "Not found"}


def test_summary_defaults_to_latest_day(client):
    assert client.get("/api/summary").json() == {"summary": []}

    add(client, {"url": "https://a.com/x", "submittedBy": "alice"})
    body = client.get("/api/summary").json()
    assert body["day"] == "2024-03-05"
    assert len(body["summary"]) == 1
    assert "submittedBy" not in body["summary"][0]


def test_summary_for_specific_day(client):
    add(client, "https://a.com/x")
    assert len(client.get("/api/summary", params={"day": "2024-03-05"}).json()["summary"]) == 1
    assert client.get("/api/summary", params={"day": "2024-03-06"}).json() == {
        "day": "2024-03-06",
        "summary": [],
    }


@pytest.mark.parametrize("day", ["2024-3-5", "yesterday", "2024-02-30"])
def test_summary_rejects_bad_day(client, day):
    response = client.get("/api/summary", params={"day": day})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid day format. Use YYYY-MM-DD"}


def test_content(client, store):
    add(client, "https://a.com/x")
    link_id = next(iter(store.links))

    response = client.get(f"/api/content/{link_id}")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "# https://a.com/x"

    assert client.get("/api/content/missing").status_code == 404


def test_admin_delete(client, store):
    add(client, "https://a.com/x")
    link_id = next(iter(store.links))

    assert client.request("DELETE", "/api/admin/link", json={"id": link_id}).status_code == 401
    assert client.request("DELETE", "/api/admin/link", json={}, headers=AUTH).status_code == 400

    response = client.request("DELETE", "/api/admin/link", json={"id": link_id}, headers=AUTH)
    assert response.json() == {"ok": True}
    assert store.links == {}
    assert store.index == {}

    again = client.request("DELETE", "/api/admin/link", json={"id": link_id}, headers=AUTH)
    assert again.status_code == 404


def test_health(client, scrape_service):
    assert client.get("/api/health").json() == {"ok": True, "remote": {"pong": True}}

    scrape_service.error = httpx.ConnectError("connection refused")
    response = client.get("/api/health")
    assert response.status_code == 502
    body = response.json()
    assert body["ok"] is False
    assert "timestamp" in body


def test_numeric_room_id_is_accepted(client, store):
    response = add(client, "https://a.com/x", room={"id": 42, "comment": "hi"})
    assert response.status_code == 200

    link = next(iter(store.links.values()))
    assert link.meta.room_id == "42"


def test_malformed_room_is_reported(client, store):
    response = add(client, "https://a.com/x", room="lobby")
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid room"}
    assert store.links == {}


def test_bad_sort_is_a_validation_error(client):
    response = client.get("/api/links", params={"sort": "bogus"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request parameters", "fields": ["sort"]}
