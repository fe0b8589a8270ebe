"""Shared fixtures."""

from __future__ import annotations

import itertools
import json
from typing import Any, Callable

import httpx
import pytest

from linkstash.config import Config, ConfigModel
from linkstash.db import MemoryLinkStore
from linkstash.ingestion.engine import IngestionEngine
from linkstash.ingestion.scraper import ScraperClient

AUTH_KEY = "test-secret"
SCRAPER_URL = "https://scraper.test"
# 2024-03-05T12:00:00Z
BASE_TS = 1_709_640_000_000


@pytest.fixture
def store() -> MemoryLinkStore:
    return MemoryLinkStore()


@pytest.fixture
def clock() -> Callable[[], int]:
    ticks = itertools.count()
    return lambda: BASE_TS + next(ticks) * 1000


@pytest.fixture
def engine(store, clock) -> IngestionEngine:
    ids = (f"link-{n}" for n in itertools.count(1))
    return IngestionEngine(store, clock=clock, id_factory=lambda: next(ids))


class FakeScrapeService:
    """Mock transport handler that echoes submitted URLs as scraped records."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.records: dict[str, dict[str, Any]] = {}
        self.response: httpx.Response | None = None
        self.error: Exception | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        if request.url.path == "/ping":
            return httpx.Response(200, json={"pong": True})
        payload = json.loads(request.content)
        out = []
        for url in payload["links"]:
            out.append(self.records.get(url, {"url": url, "body": f"# {url}", "frontmatter": {"title": url}}))
        return httpx.Response(200, json=out)


@pytest.fixture
def scrape_service() -> FakeScrapeService:
    return FakeScrapeService()


@pytest.fixture
def scraper(scrape_service) -> ScraperClient:
    return ScraperClient(
        SCRAPER_URL,
        api_key=AUTH_KEY,
        transport=httpx.MockTransport(scrape_service),
    )


@pytest.fixture
def config() -> Config:
    model = ConfigModel(server={"auth_key": AUTH_KEY, "auth_key_env": None})
    return Config(config=model)
