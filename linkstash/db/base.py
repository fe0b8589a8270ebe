"""Storage port for links and their lookup index."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models import Link, LinkIndex


class LinkStore(ABC):
    """Abstract base class for link storage backends."""

    @abstractmethod
    def find_by_normalized_url(self, normalized_url: str) -> Optional[Link]:
        """
        Look up a link through the index.

        Args:
            normalized_url: Key produced by ``normalize_url``

        Returns:
            The stored link, or None
        """
        pass

    @abstractmethod
    def insert_link(self, link: Link, index: LinkIndex) -> None:
        """
        Insert a new link together with its index row.

        Raises:
            DuplicateLinkError: another link already owns the normalized URL
        """
        pass

    @abstractmethod
    def merge_link(self, link: Link) -> Optional[int]:
        """
        Record a re-submission of a stored link.

        The stored count is incremented in place, so concurrent merges
        never lose a vote; ``link.count`` is ignored. ts, meta, content and
        submitted_by are written from ``link``.

        Returns:
            The new count, or None when the link no longer exists
        """
        pass

    @abstractmethod
    def upsert_index(self, index: LinkIndex) -> None:
        """Insert or replace the index row of a link."""
        pass

    @abstractmethod
    def delete_link(self, link_id: str) -> bool:
        """Delete a link and its index row; False when it did not exist."""
        pass

    @abstractmethod
    def get_link(self, link_id: str) -> Optional[Link]:
        pass

    @abstractmethod
    def get_content(self, link_id: str) -> Optional[str]:
        """Stored body of a link, None when the link does not exist."""
        pass

    @abstractmethod
    def list_links(
        self,
        start_ts: Optional[int] = None,
        end_ts: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        List feed rows, newest first, without content.

        Each row has ``id``, ``domain``, ``submitted_by``, ``ts``, ``count``
        and ``meta`` (a plain dict, link meta preferred over index meta).
        ``start_ts`` is inclusive, ``end_ts`` exclusive.
        """
        pass

    @abstractmethod
    def latest_ts(self) -> Optional[int]:
        """Most recent index timestamp, None when empty."""
        pass

    def close(self) -> None:
        """Release backend resources."""
