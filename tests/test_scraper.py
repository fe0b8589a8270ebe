"""Tests for the scrape service client."""

import json

import httpx
import pytest

from linkstash.errors import UpstreamError
from linkstash.ingestion.scraper import ScraperClient

from .conftest import AUTH_KEY, SCRAPER_URL


def test_scrape_posts_links_with_bearer(scraper, scrape_service):
    records = scraper.scrape(["https://a.com/x"])

    assert records[0]["url"] == "https://a.com/x"
    request = scrape_service.requests[0]
    assert str(request.url) == f"{SCRAPER_URL}/api"
    assert request.headers["Authorization"] == f"Bearer {AUTH_KEY}"
    assert json.loads(request.content) == {
        "links": ["https://a.com/x"],
        "returnFormat": "json",
        "parser": "jsdom",
        "saveToDisk": False,
    }


def test_non_array_response_is_rejected(scraper, scrape_service):
    scrape_service.response = httpx.Response(200, json={"url": "https://a.com/x"})
    with pytest.raises(UpstreamError) as exc:
        scraper.scrape(["https://a.com/x"])
    assert exc.value.status_code == 502
    assert exc.value.message == "Invalid response from upstream"


def test_non_json_response_is_rejected(scraper, scrape_service):
    scrape_service.response = httpx.Response(200, text="<html>")
    with pytest.raises(UpstreamError):
        scraper.scrape(["https://a.com/x"])


def test_server_error_carries_status_and_details(scraper, scrape_service):
    scrape_service.response = httpx.Response(503, text="down for maintenance")
    with pytest.raises(UpstreamError) as exc:
        scraper.scrape(["https://a.com/x"])
    assert exc.value.status_code == 502
    assert exc.value.to_dict() == {
        "error": "Upstream error",
        "status": 503,
        "details": "down for maintenance",
    }


def test_rejected_link_maps_to_bad_request(scraper, scrape_service):
    scrape_service.response = httpx.Response(400, text="links must be strings")
    with pytest.raises(UpstreamError) as exc:
        scraper.scrape(["https://a.com/x"])
    assert exc.value.status_code == 400


def test_unreachable_service(scraper, scrape_service):
    scrape_service.error = httpx.ConnectError("connection refused")
    with pytest.raises(UpstreamError) as exc:
        scraper.scrape(["https://a.com/x"])
    assert exc.value.message == "Upstream unreachable"


def test_timeout(scraper, scrape_service):
    scrape_service.error = httpx.ReadTimeout("slow")
    with pytest.raises(UpstreamError) as exc:
        scraper.scrape(["https://a.com/x"])
    assert exc.value.message == "Upstream timed out"


def test_missing_base_url():
    with pytest.raises(UpstreamError) as exc:
        ScraperClient(None).scrape(["https://a.com/x"])
    assert exc.value.message == "Scraper URL not configured"


def test_ping(scraper):
    assert scraper.ping() == {"pong": True}
