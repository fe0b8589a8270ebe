"""Tag extraction from scraper frontmatter."""

import re
from typing import Any, List, Mapping, Optional

# Alternative frontmatter keys, checked in order
TAG_FIELDS = ("tags", "tag", "tags_list")

_SPLIT_RE = re.compile(r"[,\s]+")


def split_tags(value: Any, dedupe: bool = True) -> List[str]:
    """Normalize a list or a delimited string into lowercase tags."""
    if isinstance(value, (list, tuple)):
        tokens = [str(v) for v in value]
    else:
        tokens = _SPLIT_RE.split(str(value))

    tags = []
    for token in tokens:
        tag = token.strip().lower()
        if not tag:
            continue
        if dedupe and tag in tags:
            continue
        tags.append(tag)
    return tags


def extract_tags(frontmatter: Optional[Mapping[str, Any]], dedupe: bool = True) -> List[str]:
    """Extract tags from frontmatter, empty when no tag field is present."""
    if not frontmatter:
        return []

    raw = None
    for field in TAG_FIELDS:
        raw = frontmatter.get(field)
        if raw:
            break

    if not raw:
        return []
    return split_tags(raw, dedupe=dedupe)
