"""In-process link store."""

import threading
from typing import Any, Dict, List, Optional

from ..errors import DuplicateLinkError
from ..models import Link, LinkIndex
from .base import LinkStore


class MemoryLinkStore(LinkStore):
    """Dict-backed store with the same constraints as the SQL schema.

    Used by the test-suite and ``linkstash serve --memory``.
    """

    def __init__(self) -> None:
        self.links: Dict[str, Link] = {}
        self.index: Dict[str, LinkIndex] = {}
        self._lock = threading.Lock()

    def _index_owner(self, normalized_url: str) -> Optional[LinkIndex]:
        for row in self.index.values():
            if row.normalized_url == normalized_url:
                return row
        return None

    def find_by_normalized_url(self, normalized_url: str) -> Optional[Link]:
        with self._lock:
            row = self._index_owner(normalized_url)
            if row is None or row.link_id not in self.links:
                return None
            return self.links[row.link_id].model_copy(deep=True)

    def insert_link(self, link: Link, index: LinkIndex) -> None:
        with self._lock:
            if self._index_owner(index.normalized_url) is not None:
                raise DuplicateLinkError(index.normalized_url)
            self.links[link.id] = link.model_copy(deep=True)
            self.index[link.id] = index.model_copy(deep=True)

    def merge_link(self, link: Link) -> Optional[int]:
        with self._lock:
            stored = self.links.get(link.id)
            if stored is None:
                return None
            count = stored.count + 1
            self.links[link.id] = stored.model_copy(
                update={
                    "count": count,
                    "ts": link.ts,
                    "meta": link.meta.model_copy(deep=True),
                    "content": link.content,
                    "submitted_by": link.submitted_by,
                }
            )
            return count

    def upsert_index(self, index: LinkIndex) -> None:
        with self._lock:
            if index.link_id not in self.links:
                return
            owner = self._index_owner(index.normalized_url)
            if owner is not None and owner.link_id != index.link_id:
                raise DuplicateLinkError(index.normalized_url)
            self.index[index.link_id] = index.model_copy(deep=True)

    def delete_link(self, link_id: str) -> bool:
        with self._lock:
            self.index.pop(link_id, None)
            return self.links.pop(link_id, None) is not None

    def get_link(self, link_id: str) -> Optional[Link]:
        with self._lock:
            link = self.links.get(link_id)
            return link.model_copy(deep=True) if link else None

    def get_content(self, link_id: str) -> Optional[str]:
        with self._lock:
            link = self.links.get(link_id)
            if link is None:
                return None
            return link.content or ""

    def list_links(
        self,
        start_ts: Optional[int] = None,
        end_ts: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        with self._lock:
            rows = []
            for row in self.index.values():
                if start_ts is not None and row.ts < start_ts:
                    continue
                if end_ts is not None and row.ts >= end_ts:
                    continue
                link = self.links.get(row.link_id)
                meta = link.meta if link is not None and not link.meta.is_empty() else row.meta
                rows.append(
                    {
                        "id": row.link_id,
                        "domain": row.domain,
                        "submitted_by": link.submitted_by if link else None,
                        "ts": row.ts,
                        "count": link.count if link else None,
                        "meta": meta.to_dict(),
                    }
                )
        rows.sort(key=lambda r: r["ts"], reverse=True)
        return rows

    def latest_ts(self) -> Optional[int]:
        with self._lock:
            if not self.index:
                return None
            return max(row.ts for row in self.index.values())
