"""HTTP API for submitting and reading links."""

import hmac
import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import pendulum
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError as ParameterValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from ..config import Config
from ..db import LinkStore, PostgresLinkStore
from ..errors import (
    AuthorizationError,
    LinkstashError,
    NotFoundError,
    RequestValidationError,
    UpstreamError,
)
from ..ingestion import Submission, SubmissionContext, is_valid_submission_url, normalize_url
from ..ingestion.engine import IngestionEngine, ingest_submission
from ..ingestion.scraper import ScraperClient
from ..public import sanitize_link, to_public_record
from ..ranking import SortOrder, rank_links
from .models import AddRequest, DeleteRequest

logger = logging.getLogger(__name__)

DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
DAY_MS = 86_400_000


def _bearer_matches(authorization: Optional[str], key: Optional[str]) -> bool:
    if not key or not authorization or not authorization.startswith("Bearer "):
        return False
    return hmac.compare_digest(authorization[len("Bearer "):], key)


def get_store(request: Request) -> LinkStore:
    return request.app.state.store


def get_engine(request: Request) -> IngestionEngine:
    return request.app.state.engine


def get_scraper(request: Request) -> ScraperClient:
    return request.app.state.scraper


def require_auth(request: Request, authorization: Optional[str] = Header(default=None)) -> None:
    if not _bearer_matches(authorization, request.app.state.auth_key):
        raise AuthorizationError()


def is_authorized(request: Request, authorization: Optional[str] = Header(default=None)) -> bool:
    return _bearer_matches(authorization, request.app.state.auth_key)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise RequestValidationError("Invalid JSON body")


def parse_day(day: str) -> pendulum.DateTime:
    """Start of a ``YYYY-MM-DD`` day in UTC."""
    if not DAY_RE.match(day):
        raise RequestValidationError("Invalid day format. Use YYYY-MM-DD")
    try:
        return pendulum.from_format(day, "YYYY-MM-DD", tz="UTC")
    except ValueError:
        raise RequestValidationError("Invalid day format. Use YYYY-MM-DD")


def create_app(
    config: Optional[Config] = None,
    store: Optional[LinkStore] = None,
    scraper: Optional[ScraperClient] = None,
    engine: Optional[IngestionEngine] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Configuration manager (defaults to the user config file)
        store: Storage backend (defaults to Postgres from config)
        scraper: Scrape service client (defaults to one built from config)
        engine: Ingestion engine (defaults to one over store with the configured policy)
    """
    config = config or Config()
    owns_store = store is None
    if store is None:
        store = PostgresLinkStore.from_config(config.get_db_config())
    if scraper is None:
        scraper = ScraperClient.from_config(config.get_scraper_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_store:
            store.close()

    app = FastAPI(title="Linkstash", lifespan=lifespan)
    app.state.store = store
    app.state.scraper = scraper
    app.state.engine = engine or IngestionEngine(store, policy=config.config.ingestion)
    app.state.auth_key = config.get_auth_key()

    if not app.state.auth_key:
        logger.warning("No auth key configured; authenticated routes will reject every request")

    @app.exception_handler(LinkstashError)
    async def linkstash_error_handler(request: Request, exc: LinkstashError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(ParameterValidationError)
    async def parameter_error_handler(request: Request, exc: ParameterValidationError) -> JSONResponse:
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        error = RequestValidationError("Invalid request parameters", details={"fields": fields})
        return JSONResponse(error.to_dict(), status_code=error.status_code)

    @app.post("/api/add", dependencies=[Depends(require_auth)])
    async def add_link(
        request: Request,
        engine: IngestionEngine = Depends(get_engine),
        scraper: ScraperClient = Depends(get_scraper),
    ) -> Dict[str, Any]:
        body = await _read_json(request)
        if not isinstance(body, dict) or not body.get("link"):
            raise RequestValidationError("Missing link")

        try:
            payload = AddRequest.model_validate(body)
        except ValidationError as e:
            if all(err["loc"][:1] == ("room",) for err in e.errors()):
                raise RequestValidationError("Invalid room")
            raise RequestValidationError("Missing link URL")

        url = payload.url
        if not url:
            raise RequestValidationError("Missing link URL")
        if not is_valid_submission_url(url):
            raise RequestValidationError("Invalid URL")

        room = payload.room
        submission = Submission(
            url=url,
            context=SubmissionContext(
                submitter=payload.submitter,
                room_id=room.resolved_id if room else None,
                room_comment=room.resolved_comment if room else None,
            ),
        )

        try:
            await run_in_threadpool(ingest_submission, submission, scraper, engine)
        except LinkstashError:
            raise
        except Exception:
            logger.exception("Error in add endpoint")
            raise LinkstashError("Internal server error")

        return {"ok": True}

    @app.get("/api/links")
    def list_links(
        url: Optional[str] = Query(None, description="Return the record for one URL"),
        sort: SortOrder = Query("recent", description="recent or votes"),
        store: LinkStore = Depends(get_store),
        authorized: bool = Depends(is_authorized),
    ) -> Any:
        shape = to_public_record if authorized else (lambda row: sanitize_link(to_public_record(row)))

        if url:
            link = store.find_by_normalized_url(normalize_url(url))
            if link is None:
                raise NotFoundError()
            row = {
                "id": link.id,
                "domain": link.domain,
                "submitted_by": link.submitted_by,
                "ts": link.ts,
                "count": link.count,
                "meta": link.meta.to_dict(),
            }
            return shape(row)

        return rank_links([shape(row) for row in store.list_links()], sort)

    @app.get("/api/summary")
    def summary(
        day: Optional[str] = Query(None, description="UTC day, YYYY-MM-DD"),
        store: LinkStore = Depends(get_store),
    ) -> Dict[str, Any]:
        if day:
            start = parse_day(day)
        else:
            latest = store.latest_ts()
            if not latest:
                return {"summary": []}
            start = pendulum.from_timestamp(latest / 1000, tz="UTC").start_of("day")

        start_ts = int(start.timestamp() * 1000)
        rows = store.list_links(start_ts=start_ts, end_ts=start_ts + DAY_MS)
        return {
            "day": start.to_date_string(),
            "summary": [sanitize_link(to_public_record(row)) for row in rows],
        }

    @app.get("/api/content/{link_id}")
    def content(link_id: str, store: LinkStore = Depends(get_store)) -> PlainTextResponse:
        body = store.get_content(link_id)
        if body is None:
            raise NotFoundError()
        return PlainTextResponse(body)

    @app.delete("/api/admin/link", dependencies=[Depends(require_auth)])
    async def delete_link(request: Request, store: LinkStore = Depends(get_store)) -> Dict[str, Any]:
        try:
            body = await request.json()
        except ValueError:
            body = {}
        try:
            payload = DeleteRequest.model_validate(body if isinstance(body, dict) else {})
        except ValidationError:
            payload = DeleteRequest()
        if not payload.id:
            raise RequestValidationError("Missing id")

        deleted = await run_in_threadpool(store.delete_link, payload.id)
        if not deleted:
            raise NotFoundError("Link not found")
        logger.info("Deleted link %s", payload.id)
        return {"ok": True}

    @app.get("/api/health")
    def health(scraper: ScraperClient = Depends(get_scraper)) -> Any:
        try:
            remote = scraper.ping()
        except UpstreamError as e:
            return JSONResponse(
                {
                    "ok": False,
                    "error": e.message,
                    "timestamp": pendulum.now("UTC").to_iso8601_string(),
                },
                status_code=502,
            )
        return {"ok": True, "remote": remote}

    return app
