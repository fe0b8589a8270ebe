"""Feed ordering."""

from typing import Any, Dict, List, Literal

SortOrder = Literal["recent", "votes"]


def rank_links(records: List[Dict[str, Any]], order: SortOrder = "recent") -> List[Dict[str, Any]]:
    """
    Order feed records.

    ``recent`` sorts by last-touched time; ``votes`` sorts by count and
    breaks ties by last-touched time. Both are newest/highest first.
    """
    if order == "votes":
        return sorted(
            records,
            key=lambda r: (r.get("count") or 0, r.get("ts") or 0),
            reverse=True,
        )
    return sorted(records, key=lambda r: r.get("ts") or 0, reverse=True)
