"""Merge-or-insert engine for scraped links."""

import logging
import time
import uuid
from typing import Any, Callable, Iterable, List, Optional, Tuple

import pendulum
from pydantic import ValidationError

from ..config import IngestionConfig
from ..errors import DuplicateLinkError, IngestDeadlineError
from ..db.base import LinkStore
from ..models import Link, LinkIndex, LinkMeta
from .models import IngestStats, ScrapedItem, Submission, SubmissionContext
from .normalize import normalize_url, parse_domain
from .scraper import ScraperClient
from .tags import extract_tags

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current time in milliseconds since the epoch."""
    return int(pendulum.now("UTC").timestamp() * 1000)


def new_link_id() -> str:
    return str(uuid.uuid4())


class IngestionEngine:
    """Reconcile scraped items against stored links."""

    def __init__(
        self,
        store: LinkStore,
        policy: Optional[IngestionConfig] = None,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = new_link_id,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize ingestion engine.

        Args:
            store: Storage backend
            policy: Tag and deadline policy
            clock: Millisecond timestamp source
            id_factory: Generator for new link ids
            timer: Monotonic seconds source for the batch deadline
        """
        self.store = store
        self.policy = policy or IngestionConfig()
        self.clock = clock
        self.id_factory = id_factory
        self.timer = timer

    def _apply_context(
        self,
        meta: LinkMeta,
        context: SubmissionContext,
        previous_submitter: Optional[str] = None,
    ) -> None:
        """Record submitter and room info in meta."""
        if context.submitter:
            meta.submitted_by = context.submitter
        elif not meta.submitted_by and previous_submitter:
            meta.submitted_by = previous_submitter

        if context.room_id:
            meta.room_id = context.room_id
        if context.room_comment:
            meta.room_comment = context.room_comment

    def _apply_tags(self, meta: LinkMeta, item: ScrapedItem) -> None:
        tags = extract_tags(item.frontmatter, dedupe=self.policy.dedupe_tags)
        if not tags:
            return
        if self.policy.tag_policy == "merge" and meta.tags:
            combined = list(meta.tags)
            combined.extend(t for t in tags if t not in combined)
            tags = combined
        meta.tags = tags

    def _merge(
        self, existing: Link, item: ScrapedItem, nurl: str, context: SubmissionContext
    ) -> Optional[Link]:
        now = self.clock()

        meta = existing.meta.model_copy(deep=True)
        if item.frontmatter and meta.is_empty():
            meta = LinkMeta.model_validate(item.frontmatter)

        self._apply_context(meta, context, previous_submitter=existing.submitted_by)
        self._apply_tags(meta, item)
        if not meta.url:
            meta.url = item.url

        try:
            domain = parse_domain(item.url)
        except ValueError:
            domain = existing.domain

        link = existing.model_copy(
            update={
                "ts": now,
                "meta": meta,
                "content": item.body if item.body else existing.content,
                "submitted_by": context.submitter or existing.submitted_by,
            }
        )
        count = self.store.merge_link(link)
        if count is None:
            return None
        link = link.model_copy(update={"count": count})

        index = LinkIndex.for_link(link, nurl)
        index.domain = domain
        self.store.upsert_index(index)
        return link

    def _insert(self, item: ScrapedItem, nurl: str, context: SubmissionContext) -> Link:
        now = self.clock()

        meta = LinkMeta.model_validate(item.frontmatter or {})
        self._apply_context(meta, context)
        self._apply_tags(meta, item)
        if not meta.url:
            meta.url = item.url

        link = Link(
            id=self.id_factory(),
            url=item.url,
            domain=parse_domain(item.url),
            content=item.body or None,
            submitted_by=context.submitter,
            ts=now,
            count=1,
            meta=meta,
        )
        self.store.insert_link(link, LinkIndex.for_link(link, nurl))
        return link

    def ingest_item(
        self, item: ScrapedItem, context: SubmissionContext
    ) -> Tuple[Optional[Link], bool]:
        """
        Merge or insert a single validated item.

        Returns:
            Tuple of (link, is_new); link is None when the item was skipped
        """
        nurl = normalize_url(item.url)
        if not nurl:
            logger.warning("Skipping item with un-normalizable url %r", item.url)
            return None, False

        existing = self.store.find_by_normalized_url(nurl)
        if existing is not None:
            link = self._merge(existing, item, nurl, context)
            if link is not None:
                return link, False
            logger.info("Link %s was deleted before the merge, inserting %s", existing.id, nurl)

        try:
            return self._insert(item, nurl, context), True
        except DuplicateLinkError:
            # Lost a race with a concurrent insert; fold into the winner
            existing = self.store.find_by_normalized_url(nurl)
            link = self._merge(existing, item, nurl, context) if existing else None
            if link is None:
                raise
            logger.info("Insert collided on %s, merged instead", nurl)
            return link, False

    def ingest(self, items: Iterable[Any], context: Optional[SubmissionContext] = None) -> IngestStats:
        """
        Reconcile a batch of raw scraped records.

        Invalid records are logged and skipped. Storage errors propagate;
        records processed before the failure stay committed.

        Raises:
            IngestDeadlineError: the batch ran past its deadline
            StorageError: the backend failed
        """
        context = context or SubmissionContext()
        items = list(items)
        stats = IngestStats(total=len(items))

        deadline = None
        if self.policy.batch_deadline_seconds:
            deadline = self.timer() + self.policy.batch_deadline_seconds

        for position, raw in enumerate(items):
            if deadline is not None and self.timer() > deadline:
                logger.error(
                    "Ingestion deadline exceeded after %d of %d items", position, len(items)
                )
                raise IngestDeadlineError(
                    "Ingestion deadline exceeded",
                    details={"processed": position, "total": len(items)},
                )

            try:
                item = ScrapedItem.model_validate(raw)
                link, is_new = self.ingest_item(item, context)
            except ValidationError as e:
                logger.warning("Skipping upstream item %d with invalid fields: %s", position, e)
                stats.skipped += 1
                continue
            except ValueError as e:
                logger.warning("Skipping upstream item %d: %s", position, e)
                stats.skipped += 1
                continue

            if link is None:
                stats.skipped += 1
                continue

            if is_new:
                stats.inserted += 1
            else:
                stats.merged += 1
            stats.link_ids.append(link.id)

        logger.info(
            "Ingested %d items: %d new, %d merged, %d skipped",
            stats.total,
            stats.inserted,
            stats.merged,
            stats.skipped,
        )
        return stats


def ingest_submission(
    submission: Submission,
    scraper: ScraperClient,
    engine: IngestionEngine,
) -> IngestStats:
    """
    Scrape one submitted URL and ingest whatever the scraper returns.

    Raises:
        UpstreamError: scraper failed; nothing is written
    """
    records: List[Any] = scraper.scrape([submission.url])
    return engine.ingest(records, submission.context)
